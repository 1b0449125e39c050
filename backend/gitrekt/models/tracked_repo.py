"""
TrackedRepo MongoDB model
Per-repository punishment configuration
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime, timedelta

class TrackedRepo(BaseModel):
    repo_name: str  # Full name (e.g., "acme/api"), unique
    user_id: str  # Owner's GitHub ID, key into the credential store
    timer_minutes: int = 30  # 0 is the short dev window, not zero minutes
    post_to_twitter: bool = False
    post_to_linkedin: bool = False
    revert_commit: bool = False
    yolo_mode: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def fix_window(self, dev_seconds: int = 10) -> timedelta:
        """Time allowed between a failing judgment and punishment"""
        if self.timer_minutes == 0:
            return timedelta(seconds=dev_seconds)
        return timedelta(minutes=self.timer_minutes)

class TrackedRepoInDB(TrackedRepo):
    """TrackedRepo model as stored in database (with _id)"""
    id: Optional[str] = Field(None, alias="_id")

    class Config:
        populate_by_name = True
