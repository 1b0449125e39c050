"""
Pydantic schemas for request/response validation
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from gitrekt.core.config import settings

class JudgeRequest(BaseModel):
    repo: str
    sha: str
    branch: Optional[str] = None

class TrackConfig(BaseModel):
    post_to_twitter: bool = False
    post_to_linkedin: bool = False
    revert_commit: bool = False
    yolo_mode: bool = False
    timer_minutes: int = Field(default_factory=lambda: settings.DEFAULT_TIMER_MINUTES, ge=0)  # 0 = short dev window

class PendingRoastResponse(BaseModel):
    id: str
    repo_name: str
    commit_sha: str
    commit_message: str
    fail_reason: Optional[str] = None
    roast: Optional[str] = None
    expires_at: datetime
    created_at: datetime
    time_remaining: int  # seconds

class PendingRoastList(BaseModel):
    pending_roasts: List[PendingRoastResponse]
