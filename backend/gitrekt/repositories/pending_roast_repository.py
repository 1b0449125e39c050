"""
PendingRoast Repository - Database operations for pending roasts
"""
from typing import Optional, List
from datetime import datetime
from bson import ObjectId
from gitrekt.database.mongodb import get_database
from gitrekt.models.pending_roast import PendingRoast, PendingRoastInDB, RoastStatus

class PendingRoastRepository:

    def __init__(self):
        self.collection_name = "pending_roasts"

    def _to_model(self, roast_data) -> PendingRoastInDB:
        roast_data["_id"] = str(roast_data["_id"])
        return PendingRoastInDB(**roast_data)

    async def create(self, roast: PendingRoast) -> str:
        db = get_database()

        result = await db[self.collection_name].insert_one(roast.model_dump(mode="python"))
        return str(result.inserted_id)

    async def find_by_id(self, roast_id: str) -> Optional[PendingRoastInDB]:
        if not ObjectId.is_valid(roast_id):
            return None
        db = get_database()

        roast_data = await db[self.collection_name].find_one({"_id": ObjectId(roast_id)})

        if roast_data:
            return self._to_model(roast_data)
        return None

    async def find_expired(self, now: datetime) -> List[PendingRoastInDB]:
        db = get_database()

        cursor = db[self.collection_name].find(
            {"status": RoastStatus.PENDING.value, "expires_at": {"$lte": now}}
        )

        roasts = await cursor.to_list(length=None)
        return [self._to_model(roast) for roast in roasts]

    async def find_active_for_user(self, user_id: str, now: datetime) -> List[PendingRoastInDB]:
        """Pending roasts still inside their window, soonest to expire first"""
        db = get_database()

        cursor = db[self.collection_name].find(
            {
                "user_id": user_id,
                "status": RoastStatus.PENDING.value,
                "expires_at": {"$gt": now},
            }
        ).sort("expires_at", 1)

        roasts = await cursor.to_list(length=None)
        return [self._to_model(roast) for roast in roasts]

    async def transition(
        self,
        roast_id: str,
        to_status: RoastStatus,
        now: datetime
    ) -> bool:
        """Conditional pending -> to_status; False when someone else moved it first"""
        db = get_database()

        update = {"status": to_status.value}
        if to_status == RoastStatus.RESOLVED:
            update["resolved_at"] = now

        result = await db[self.collection_name].update_one(
            {"_id": ObjectId(roast_id), "status": RoastStatus.PENDING.value},
            {"$set": update}
        )
        return result.modified_count == 1

pending_roast_repo = PendingRoastRepository()
