"""
Roast history endpoints
"""
from fastapi import APIRouter, HTTPException, Depends
from gitrekt.auth.jwt import get_current_user
from gitrekt.models.user import UserInDB
from gitrekt.repositories.event_repository import event_repo
from gitrekt.repositories.tracked_repo_repository import tracked_repo_repo
from gitrekt.utils.logger import logger

router = APIRouter()

@router.get("/{owner}/{repo}")
async def get_roasts(owner: str, repo: str, current_user: UserInDB = Depends(get_current_user)):
    """All events for a repository, newest first"""
    repo_name = f"{owner}/{repo}"
    try:
        tracked_repo = await tracked_repo_repo.find_by_name(repo_name)
        if tracked_repo and tracked_repo.user_id != current_user.github_id:
            raise HTTPException(403, "Access denied, Github Ids don't match")

        events = await event_repo.find_by_repo_name(repo_name)
        logger.info(f"Found {len(events)} roasts for {repo_name}")

        return {"roasts": [event.model_dump(by_alias=False) for event in events]}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to fetch roasts: {str(e)}")
        raise HTTPException(500, "Failed to fetch roasts")
