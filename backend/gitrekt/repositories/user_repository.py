from gitrekt.database.mongodb import get_database
from datetime import datetime
from typing import Optional
from gitrekt.models.user import User, UserInDB

class UserRepository:
    def __init__(self):
        self.collection_name = "users"


    async def find_by_github_id(self, github_id) -> Optional[UserInDB]:
        db = get_database()

        user_data = await db[self.collection_name].find_one({"github_id": github_id})

        if user_data:
            # Convert ObjectId to string
            user_data["_id"] = str(user_data["_id"])
            return UserInDB(**user_data)
        return None

    async def create_or_update(self, user: User) -> str:

        db = get_database()

        users_collection = db[self.collection_name]


        result = await users_collection.update_one(
        {"github_id": user.github_id},
        {
            "$set": {
                "username": user.username,
                "email": user.email,
                "avatar_url": user.avatar_url,
                "access_token": user.access_token,
                "social_accounts": [a.model_dump() for a in user.social_accounts],
                "updated_at": datetime.utcnow()
            },
            "$setOnInsert": {
                "github_id": user.github_id,
                "created_at": datetime.utcnow()
            }
        },
        upsert=True
        )

        # Return user ID
        if result.upserted_id:
            return str(result.upserted_id)
        else:
            user_doc = await self.find_by_github_id(user.github_id)
            return str(user_doc.id)

    async def get_github_token(self, github_id: str) -> Optional[str]:
        """Credential lookup at the moment of use"""
        user = await self.find_by_github_id(github_id)
        return user.access_token if user else None

    async def update_social_tokens(
        self,
        github_id: str,
        provider: str,
        access_token: str,
        refresh_token: Optional[str],
        expires_at: Optional[int]
    ) -> bool:
        """Store rotated tokens for one linked social account"""
        db = get_database()
        users_collection = db[self.collection_name]

        result = await users_collection.update_one(
            {"github_id": github_id, "social_accounts.provider": provider},
            {
                "$set": {
                    "social_accounts.$.access_token": access_token,
                    "social_accounts.$.refresh_token": refresh_token,
                    "social_accounts.$.expires_at": expires_at,
                    "updated_at": datetime.utcnow()
                }
            }
        )

        return result.modified_count > 0



user_repo = UserRepository()
