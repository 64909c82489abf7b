# app/repositories/applications.py
"""
Job applications tracked per user. Every read and write is filtered on the
owner, so another user's record behaves exactly like a missing one.
"""
from typing import Dict, List, Optional, Any
from datetime import datetime, timezone
import copy
import uuid

from pymongo import DESCENDING, ReturnDocument

from app.models.application import Application, ApplicationCreate, ApplicationStatus

APPLICATIONS_COLLECTION = "applications"


def _now():
    return datetime.now(timezone.utc)


def _new(owner_id: str, data: ApplicationCreate) -> Application:
    return Application(id=uuid.uuid4().hex, owner_id=owner_id, created_at=_now(), **data.model_dump())


class ApplicationRepository:
    """motor-backed application store"""

    def __init__(self, db, collection: str = APPLICATIONS_COLLECTION):
        self._col = db[collection]

    async def list_for_user(self, owner_id: str) -> List[Application]:
        cursor = self._col.find({"userId": owner_id}).sort("createdAt", DESCENDING)
        return [Application.from_document(doc) async for doc in cursor]

    async def create(self, owner_id: str, data: ApplicationCreate) -> Application:
        app = _new(owner_id, data)
        await self._col.insert_one(app.to_document())
        return app

    async def update_status(self, owner_id: str, app_id: str, status: ApplicationStatus) -> Optional[Application]:
        doc = await self._col.find_one_and_update(
            {"_id": app_id, "userId": owner_id},
            {"$set": {"status": status.value}},
            return_document=ReturnDocument.AFTER,
        )
        return Application.from_document(doc) if doc else None

    async def delete(self, owner_id: str, app_id: str) -> bool:
        res = await self._col.delete_one({"_id": app_id, "userId": owner_id})
        return res.deleted_count == 1


class InMemoryApplicationRepository:
    """Dict-backed application store for development and tests."""

    def __init__(self):
        self._docs: Dict[str, Dict[str, Any]] = {}

    def _owned(self, owner_id: str, app_id: str) -> Optional[Dict[str, Any]]:
        doc = self._docs.get(app_id)
        if doc is None or doc["userId"] != owner_id:
            return None
        return doc

    async def list_for_user(self, owner_id: str) -> List[Application]:
        # newest first; ties keep the later insert first
        docs = [d for d in reversed(list(self._docs.values())) if d["userId"] == owner_id]
        docs.sort(key=lambda d: d["createdAt"], reverse=True)
        return [Application.from_document(copy.deepcopy(d)) for d in docs]

    async def create(self, owner_id: str, data: ApplicationCreate) -> Application:
        app = _new(owner_id, data)
        self._docs[app.id] = app.to_document()
        return app

    async def update_status(self, owner_id: str, app_id: str, status: ApplicationStatus) -> Optional[Application]:
        doc = self._owned(owner_id, app_id)
        if doc is None:
            return None
        doc["status"] = status.value
        return Application.from_document(copy.deepcopy(doc))

    async def delete(self, owner_id: str, app_id: str) -> bool:
        if self._owned(owner_id, app_id) is None:
            return False
        del self._docs[app_id]
        return True
