"""
Event Repository - Database operations for events
"""
from typing import Optional, List
from datetime import datetime
from bson import ObjectId
from pymongo.errors import DuplicateKeyError
from gitrekt.database.mongodb import get_database
from gitrekt.models.event import Event, EventInDB
from gitrekt.models.action import ActionOutcome

class EventRepository:
    """Handles all event database operations"""

    def __init__(self):
        self.collection_name = "events"

    def _to_model(self, event_data) -> EventInDB:
        # Convert ObjectId to string
        event_data["_id"] = str(event_data["_id"])
        return EventInDB(**event_data)

    async def create(self, event: Event) -> str:
        """Create new event record in a single insert"""
        db = get_database()

        result = await db[self.collection_name].insert_one(event.model_dump(mode="python"))
        return str(result.inserted_id)

    async def find_by_id(self, event_id: str) -> Optional[EventInDB]:
        """Find event by ID"""
        if not ObjectId.is_valid(event_id):
            return None
        db = get_database()

        event_data = await db[self.collection_name].find_one(
            {"_id": ObjectId(event_id)}
        )

        if event_data:
            return self._to_model(event_data)
        return None

    async def find_by_repo_name(self, repo_name: str, limit: int = 100) -> List[EventInDB]:
        """Find events for a repository, newest first"""
        db = get_database()

        cursor = db[self.collection_name].find(
            {"repo_name": repo_name}
        ).sort("created_at", -1)

        events = await cursor.to_list(length=limit)
        return [self._to_model(event) for event in events]

    async def find_due(self, now: datetime) -> List[EventInDB]:
        """Events whose deadline passed and that were neither punished nor fixed"""
        db = get_database()

        cursor = db[self.collection_name].find(
            {
                "deadline": {"$ne": None, "$lte": now},
                "posted": False,
                "fixed": False,
            }
        )

        events = await cursor.to_list(length=None)
        return [self._to_model(event) for event in events]

    async def claim(self, event_id: str, now: datetime) -> bool:
        """
        Atomically flip posted False -> True.
        Only one caller can ever see modified_count == 1 for a given event.
        """
        db = get_database()

        result = await db[self.collection_name].update_one(
            {"_id": ObjectId(event_id), "posted": False, "fixed": False},
            {"$set": {"posted": True, "processed_at": now}}
        )
        return result.modified_count == 1

    async def record_actions(self, event_id: str, actions: List[ActionOutcome]):
        """Append dispatch outcomes to the event's audit trail"""
        db = get_database()

        await db[self.collection_name].update_one(
            {"_id": ObjectId(event_id)},
            {"$push": {"actions": {"$each": [a.model_dump(mode="python") for a in actions]}}}
        )

    async def mark_fixed(self, event_id: str) -> bool:
        """Mark fixed unless the sweep already claimed it"""
        if not ObjectId.is_valid(event_id):
            return False
        db = get_database()

        result = await db[self.collection_name].update_one(
            {"_id": ObjectId(event_id), "posted": False, "fixed": False},
            {"$set": {"fixed": True}}
        )
        return result.modified_count == 1

    async def open_countdown(self, event: Event) -> Optional[str]:
        """
        Insert a deadline Event unless its commit already has one.
        The upsert is the gate: it returns the new id to exactly one caller
        per (repo_name, commit_sha), and None to everyone else.
        """
        db = get_database()

        document = event.model_dump(mode="python")
        query = {
            "repo_name": document.pop("repo_name"),
            "commit_sha": document.pop("commit_sha"),
            "deadline": {"$ne": None},
        }

        try:
            result = await db[self.collection_name].update_one(
                query,
                {"$setOnInsert": document},
                upsert=True
            )
        except DuplicateKeyError:
            # Lost the insert race on the unique countdown index
            return None

        if result.upserted_id is None:
            return None
        return str(result.upserted_id)

    async def find_countdown(self, repo_name: str, commit_sha: str) -> Optional[EventInDB]:
        """The deadline Event opened for this commit, if any"""
        db = get_database()

        event_data = await db[self.collection_name].find_one(
            {"repo_name": repo_name, "commit_sha": commit_sha, "deadline": {"$ne": None}}
        )
        if event_data:
            return self._to_model(event_data)
        return None

    async def exists_for_commit(self, repo_name: str, commit_sha: str) -> bool:
        """Whether a countdown was already opened for this commit"""
        return await self.find_countdown(repo_name, commit_sha) is not None

    async def set_roast(self, event_id: str, roast: str):
        db = get_database()

        await db[self.collection_name].update_one(
            {"_id": ObjectId(event_id)},
            {"$set": {"roast": roast}}
        )

    async def delete_by_repo_name(self, repo_name: str) -> int:
        db = get_database()

        result = await db[self.collection_name].delete_many({"repo_name": repo_name})
        return result.deleted_count

# Singleton instance
event_repo = EventRepository()
