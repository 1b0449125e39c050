"""
PendingRoast MongoDB model
A judged failure whose fix window is still open
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

class RoastStatus(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    EXPIRED = "expired"

class PendingRoast(BaseModel):
    repo_name: str
    user_id: Optional[str] = None  # Owner of the tracked repo
    actor: str
    commit_sha: str
    commit_message: str
    diff_summary: Optional[str] = None
    fail_reason: Optional[str] = None
    roast: Optional[str] = None

    # Event carrying the punishment for this failure, if any
    event_id: Optional[str] = None

    status: RoastStatus = RoastStatus.PENDING
    expires_at: datetime
    resolved_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

class PendingRoastInDB(PendingRoast):
    """PendingRoast model as stored in database (with _id)"""
    id: Optional[str] = Field(None, alias="_id")

    class Config:
        populate_by_name = True
