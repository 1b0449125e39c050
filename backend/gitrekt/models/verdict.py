"""
Judgment verdict returned by the judgment pipeline
"""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from enum import Enum

class VerdictKind(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    SKIP = "skip"

class Verdict(BaseModel):
    verdict: VerdictKind
    reason: str
    roast: Optional[str] = None
    deadline: Optional[datetime] = None
    event_id: Optional[str] = None
    pending_roast_id: Optional[str] = None
