"""
Event MongoDB model
Terminal record of a judged commit (pass, fail-and-fixed, fail-and-punished)
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from gitrekt.models.action import ActionOutcome

class Event(BaseModel):
    repo_name: str
    actor: str
    commit_message: str
    commit_sha: Optional[str] = None
    diff_summary: Optional[str] = None
    roast: Optional[str] = None
    fail_reason: Optional[str] = None

    # Countdown, absent for records that start terminal
    deadline: Optional[datetime] = None
    posted: bool = False
    fixed: bool = False

    # Audit trail written once the sweep claims the record
    actions: List[ActionOutcome] = []
    processed_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)

    def is_due(self, now: datetime) -> bool:
        return (
            self.deadline is not None
            and self.deadline <= now
            and not self.posted
            and not self.fixed
        )

class EventInDB(Event):
    """Event model as stored in database (with _id)"""
    id: Optional[str] = Field(None, alias="_id")

    class Config:
        populate_by_name = True
