"""
User MongoDB model
Also the credential store: tokens are read at the moment of use
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

class SocialAccount(BaseModel):
    provider: str  # "twitter" or "linkedin"
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None  # Epoch seconds

class User(BaseModel):
    github_id: str  # GitHub user ID (unique)
    username: str  # GitHub username
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    access_token: Optional[str] = None  # GitHub OAuth token
    social_accounts: List[SocialAccount] = []
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    def social_account(self, provider: str) -> Optional[SocialAccount]:
        for account in self.social_accounts:
            if account.provider == provider:
                return account
        return None

class UserInDB(User):
    """User model as stored in database (with _id)"""
    id: Optional[str] = Field(None, alias="_id")

    class Config:
        populate_by_name = True
