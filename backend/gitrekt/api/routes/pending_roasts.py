"""
Pending roast endpoints
Listing also kicks off a background sweep so expired roasts get handled
even when no scheduler is running
"""
from datetime import datetime
from fastapi import APIRouter, HTTPException, Depends
from gitrekt.auth.jwt import get_current_user
from gitrekt.core.errors import GitRektError
from gitrekt.models.user import UserInDB
from gitrekt.schemas.schemas import PendingRoastList, PendingRoastResponse
from gitrekt.services.roast_lifecycle_service import roast_lifecycle
from gitrekt.services.roast_scheduler import roast_scheduler
from gitrekt.utils.logger import logger

router = APIRouter()

@router.get("", response_model=PendingRoastList)
async def get_pending_roasts(current_user: UserInDB = Depends(get_current_user)):
    """Pending roasts for the current user, soonest to expire first"""
    # Fire and forget; the response never waits on it
    roast_scheduler.spawn_sweep("lazy")

    try:
        roasts = await roast_lifecycle.list_pending(current_user.github_id)
    except Exception as e:
        logger.error(f"Error fetching pending roasts: {str(e)}")
        raise HTTPException(500, "Failed to fetch pending roasts")

    now = datetime.utcnow()
    return PendingRoastList(
        pending_roasts=[
            PendingRoastResponse(
                id=roast.id,
                repo_name=roast.repo_name,
                commit_sha=roast.commit_sha,
                commit_message=roast.commit_message,
                fail_reason=roast.fail_reason,
                roast=roast.roast,
                expires_at=roast.expires_at,
                created_at=roast.created_at,
                time_remaining=max(0, int((roast.expires_at - now).total_seconds())),
            )
            for roast in roasts
        ]
    )


@router.post("/{roast_id}/resolve")
async def resolve_pending_roast(roast_id: str, current_user: UserInDB = Depends(get_current_user)):
    """Mark a pending roast as fixed before its deadline"""
    try:
        roast = await roast_lifecycle.mark_resolved(roast_id, user_id=current_user.github_id)

        return {
            "success": True,
            "message": "Pending roast resolved",
            "id": roast.id,
            "status": roast.status,
        }
    except GitRektError as e:
        raise HTTPException(e.status_code, e.message)
    except Exception as e:
        logger.error(f"Error resolving pending roast: {str(e)}")
        raise HTTPException(500, "Failed to resolve pending roast")
