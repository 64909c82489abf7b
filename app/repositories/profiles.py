# app/repositories/profiles.py
from typing import Optional, Dict, Any
from datetime import datetime, timezone
import copy

USERS_COLLECTION = "users"


def _now():
    return datetime.now(timezone.utc)


def _to_id(doc):
    if not doc:
        return None
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = str(doc["_id"])
        del doc["_id"]
    return doc


class ProfileRepository:
    """User profile documents keyed by user id. Writes upsert."""

    def __init__(self, db, collection: str = USERS_COLLECTION):
        self._col = db[collection]

    async def save(self, user_id: str, data: Dict[str, Any]) -> None:
        if not user_id:
            raise ValueError("User ID is required")
        now = _now()
        await self._col.update_one(
            {"_id": user_id},
            {"$set": {**data, "updatedAt": now}, "$setOnInsert": {"createdAt": now}},
            upsert=True,
        )

    async def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        doc = await self._col.find_one({"_id": user_id})
        return _to_id(doc)

    async def record_resume_upload(self, user_id: str, file_url: str, file_name: str) -> None:
        await self.save(user_id, {
            "resumeURL": file_url,
            "resumeFileName": file_name,
            "resumeUploadDate": _now(),
        })

    async def set_enhanced_resume(self, user_id: str, enhanced: str) -> None:
        await self.save(user_id, {"enhancedResume": enhanced, "enhancedResumeDate": _now()})


class InMemoryProfileRepository(ProfileRepository):
    """Profile store fallback for environments without Mongo."""

    def __init__(self):
        self._docs: Dict[str, Dict[str, Any]] = {}

    async def save(self, user_id: str, data: Dict[str, Any]) -> None:
        if not user_id:
            raise ValueError("User ID is required")
        now = _now()
        doc = self._docs.setdefault(user_id, {"_id": user_id, "createdAt": now})
        doc.update(data)
        doc["updatedAt"] = now

    async def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        return _to_id(copy.deepcopy(self._docs.get(user_id)))
