from datetime import datetime
from typing import Optional
from gitrekt.database.mongodb import get_database
from gitrekt.models.tracked_repo import TrackedRepo, TrackedRepoInDB

class TrackedRepoRepository:
    def __init__(self):
        self.collection_name = "tracked_repos"

    async def find_by_name(self, repo_name: str) -> Optional[TrackedRepoInDB]:
        db = get_database()

        repo_data = await db[self.collection_name].find_one({"repo_name": repo_name})

        if repo_data:
            # Convert ObjectId to string
            repo_data["_id"] = str(repo_data["_id"])
            return TrackedRepoInDB(**repo_data)
        return None

    async def create_or_update(self, tracked_repo: TrackedRepo) -> str:
        db = get_database()
        repo_collection = db[self.collection_name]

        result = await repo_collection.update_one(
        {"repo_name": tracked_repo.repo_name},
        {
            "$set": {
                "user_id": tracked_repo.user_id,
                "timer_minutes": tracked_repo.timer_minutes,
                "post_to_twitter": tracked_repo.post_to_twitter,
                "post_to_linkedin": tracked_repo.post_to_linkedin,
                "revert_commit": tracked_repo.revert_commit,
                "yolo_mode": tracked_repo.yolo_mode,
                "updated_at": datetime.utcnow()
            },
            "$setOnInsert": {
                "repo_name": tracked_repo.repo_name,
                "created_at": datetime.utcnow()
            }
        },
        upsert=True
        )

        if result.upserted_id:
            return str(result.upserted_id)
        repo_doc = await self.find_by_name(tracked_repo.repo_name)

        return str(repo_doc.id)

    async def delete_by_name(self, repo_name: str) -> bool:
        db = get_database()

        result = await db[self.collection_name].delete_one({"repo_name": repo_name})
        return result.deleted_count > 0


tracked_repo_repo = TrackedRepoRepository()
