# app/repositories/enhancement_jobs.py
"""
Job Store for resume enhancement requests.

Every state change is a single conditional update filtered on the states the
target may be reached from, so a transition that is no longer valid (duplicate
trigger delivery, a job already terminal) matches nothing and returns None.
"""
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone
import copy
import uuid

from pymongo import ReturnDocument

from app.models.enhancement import EnhancementJob, JobState, sources_for

JOBS_COLLECTION = "resumeQueue"


def _now():
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class EnhancementJobRepository:
    """motor-backed job store"""

    def __init__(self, db, collection: str = JOBS_COLLECTION):
        self._col = db[collection]

    async def create(self, owner_id: str, file_reference: str, file_name: str) -> EnhancementJob:
        job = EnhancementJob(
            id=_new_id(),
            owner_id=owner_id,
            file_reference=file_reference,
            file_name=file_name,
            state=JobState.PENDING,
            created_at=_now(),
        )
        await self._col.insert_one(job.to_document())
        return job

    async def get(self, job_id: str) -> Optional[EnhancementJob]:
        doc = await self._col.find_one({"_id": job_id})
        return EnhancementJob.from_document(doc) if doc else None

    async def _transition(self, job_id: str, target: JobState, fields: Dict[str, Any]) -> Optional[EnhancementJob]:
        update = {"status": target.value}
        update.update(fields)
        doc = await self._col.find_one_and_update(
            {"_id": job_id, "status": {"$in": sources_for(target)}},
            {"$set": update},
            return_document=ReturnDocument.AFTER,
        )
        return EnhancementJob.from_document(doc) if doc else None

    async def mark_processing(self, job_id: str) -> Optional[EnhancementJob]:
        return await self._transition(job_id, JobState.PROCESSING, {"processingStartTime": _now()})

    async def mark_completed(self, job_id: str, result: str) -> Optional[EnhancementJob]:
        return await self._transition(job_id, JobState.COMPLETED, {"enhancedResume": result, "completionTime": _now()})

    async def mark_error(self, job_id: str, message: str) -> Optional[EnhancementJob]:
        return await self._transition(job_id, JobState.ERROR, {"error": message, "errorTime": _now()})

    async def find_stale_processing(self, started_before: datetime, limit: int = 100) -> List[EnhancementJob]:
        cur = self._col.find(
            {"status": JobState.PROCESSING.value, "processingStartTime": {"$lt": started_before}}
        ).limit(limit)
        out = []
        async for d in cur:
            out.append(EnhancementJob.from_document(d))
        return out


class InMemoryJobRepository:
    """
    Dict-backed job store with the same interface, for development
    without Mongo and for tests. Updates never await between the state
    check and the write, so they are atomic on the event loop.
    """

    def __init__(self):
        self._docs: Dict[str, Dict[str, Any]] = {}

    async def create(self, owner_id: str, file_reference: str, file_name: str) -> EnhancementJob:
        job = EnhancementJob(
            id=_new_id(),
            owner_id=owner_id,
            file_reference=file_reference,
            file_name=file_name,
            state=JobState.PENDING,
            created_at=_now(),
        )
        self._docs[job.id] = job.to_document()
        return job

    async def get(self, job_id: str) -> Optional[EnhancementJob]:
        doc = self._docs.get(job_id)
        return EnhancementJob.from_document(copy.deepcopy(doc)) if doc else None

    async def _transition(self, job_id: str, target: JobState, fields: Dict[str, Any]) -> Optional[EnhancementJob]:
        doc = self._docs.get(job_id)
        if doc is None or doc["status"] not in sources_for(target):
            return None
        doc["status"] = target.value
        doc.update(fields)
        return EnhancementJob.from_document(copy.deepcopy(doc))

    async def mark_processing(self, job_id: str) -> Optional[EnhancementJob]:
        return await self._transition(job_id, JobState.PROCESSING, {"processingStartTime": _now()})

    async def mark_completed(self, job_id: str, result: str) -> Optional[EnhancementJob]:
        return await self._transition(job_id, JobState.COMPLETED, {"enhancedResume": result, "completionTime": _now()})

    async def mark_error(self, job_id: str, message: str) -> Optional[EnhancementJob]:
        return await self._transition(job_id, JobState.ERROR, {"error": message, "errorTime": _now()})

    async def find_stale_processing(self, started_before: datetime, limit: int = 100) -> List[EnhancementJob]:
        out = []
        for doc in self._docs.values():
            started = doc.get("processingStartTime")
            if doc["status"] == JobState.PROCESSING.value and started is not None and started < started_before:
                out.append(EnhancementJob.from_document(copy.deepcopy(doc)))
        return out[:limit]
