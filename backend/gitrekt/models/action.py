"""
Punitive action outcome model
One entry per attempted action, persisted on the Event as its audit trail
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

class ActionKind(str, Enum):
    SOCIAL_POST = "social_post"
    REVERT_COMMIT = "revert_commit"
    DELETE_REPO = "delete_repo"
    CLEANUP = "cleanup"
    RECORD_ONLY = "record_only"
    UNTRACKED = "untracked"

class ActionOutcome(BaseModel):
    kind: ActionKind
    success: bool
    platform: Optional[str] = None
    post_id: Optional[str] = None
    error: Optional[str] = None
    detail: Optional[str] = None
    at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def label(self) -> str:
        """Short audit label, e.g. twitter_posted or repo_deletion_failed"""
        if self.kind == ActionKind.SOCIAL_POST:
            return f"{self.platform}_{'posted' if self.success else 'failed'}"
        if self.kind == ActionKind.REVERT_COMMIT:
            return "commit_reverted" if self.success else "revert_failed"
        if self.kind == ActionKind.DELETE_REPO:
            return "repo_deleted" if self.success else "repo_deletion_failed"
        if self.kind == ActionKind.CLEANUP:
            return "tracking_removed" if self.success else "tracking_cleanup_failed"
        if self.kind == ActionKind.UNTRACKED:
            return "no_tracked_repo"
        return "recorded_only"
