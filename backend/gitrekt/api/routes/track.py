"""
Tracking configuration endpoints
"""
from fastapi import APIRouter, HTTPException, Depends
from gitrekt.auth.jwt import get_current_user
from gitrekt.models.tracked_repo import TrackedRepo
from gitrekt.models.user import UserInDB
from gitrekt.repositories.tracked_repo_repository import tracked_repo_repo
from gitrekt.schemas.schemas import TrackConfig
from gitrekt.utils.logger import logger

router = APIRouter()

def _config(tracked_repo) -> dict:
    return TrackConfig(
        post_to_twitter=tracked_repo.post_to_twitter,
        post_to_linkedin=tracked_repo.post_to_linkedin,
        revert_commit=tracked_repo.revert_commit,
        yolo_mode=tracked_repo.yolo_mode,
        timer_minutes=tracked_repo.timer_minutes,
    ).model_dump()


@router.get("/{owner}/{repo}")
async def get_tracking(owner: str, repo: str, current_user: UserInDB = Depends(get_current_user)):
    repo_name = f"{owner}/{repo}"
    try:
        tracked_repo = await tracked_repo_repo.find_by_name(repo_name)

        if not tracked_repo:
            return {"tracked": False}

        if tracked_repo.user_id != current_user.github_id:
            raise HTTPException(403, "Access denied, Github Ids don't match")

        return {"tracked": True, "config": _config(tracked_repo)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching tracking status: {str(e)}")
        raise HTTPException(500, "Failed to fetch tracking status")


@router.put("/{owner}/{repo}")
async def track_repo(
    owner: str,
    repo: str,
    config: TrackConfig,
    current_user: UserInDB = Depends(get_current_user)
):
    repo_name = f"{owner}/{repo}"
    try:
        existing = await tracked_repo_repo.find_by_name(repo_name)
        if existing and existing.user_id != current_user.github_id:
            raise HTTPException(403, "Access denied, Github Ids don't match")

        repo_id = await tracked_repo_repo.create_or_update(
            TrackedRepo(repo_name=repo_name, user_id=current_user.github_id, **config.model_dump())
        )
        logger.info(f"Tracking {repo_name} for {current_user.username}")

        return {"tracked": True, "id": repo_id, "config": config.model_dump()}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating tracking: {str(e)}")
        raise HTTPException(500, "Failed to update tracking")


@router.delete("/{owner}/{repo}")
async def untrack_repo(owner: str, repo: str, current_user: UserInDB = Depends(get_current_user)):
    repo_name = f"{owner}/{repo}"
    try:
        existing = await tracked_repo_repo.find_by_name(repo_name)
        if not existing:
            raise HTTPException(404, "Repo not tracked")

        if existing.user_id != current_user.github_id:
            raise HTTPException(403, "Access denied, Github Ids don't match")

        await tracked_repo_repo.delete_by_name(repo_name)
        return {"tracked": False, "message": "Repository untracked"}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error untracking repo: {str(e)}")
        raise HTTPException(500, "Failed to untrack repo")
