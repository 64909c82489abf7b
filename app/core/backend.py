# app/core/backend.py
"""
Explicitly constructed collaborators shared by the API and the worker.

build_backend(settings) wires everything from configuration; tests build a
Backend directly with in-memory stores and fakes.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from app.core.config import DEFAULT_SECRET_KEY, Settings
from app.db.mongo import create_mongo_client, get_database
from app.repositories.applications import ApplicationRepository, InMemoryApplicationRepository
from app.repositories.enhancement_jobs import EnhancementJobRepository, InMemoryJobRepository
from app.repositories.profiles import ProfileRepository, InMemoryProfileRepository
from app.services.llm_adapter import ResumeEnhancer
from app.services.queue import InlineJobQueue, RedisJobQueue
from app.services.storage import ObjectStorage
from app.services.worker import EnhancementWorker

logger = logging.getLogger(__name__)


@dataclass
class Backend:
    settings: Settings
    jobs: Any
    profiles: Any
    storage: ObjectStorage
    queue: Any
    enhancer: ResumeEnhancer
    applications: Any = None
    _closers: List[Callable[[], Any]] = field(default_factory=list)

    def worker(self) -> EnhancementWorker:
        return EnhancementWorker(
            jobs=self.jobs,
            profiles=self.profiles,
            storage=self.storage,
            enhancer=self.enhancer,
            temp_dir=self.settings.TEMP_DIR,
        )

    async def close(self) -> None:
        if self.queue is not None:
            await self.queue.close()
        for closer in self._closers:
            closer()


def _check_production(settings: Settings) -> None:
    if settings.APP_ENV == "production" and settings.SECRET_KEY == DEFAULT_SECRET_KEY:
        raise RuntimeError("SECRET_KEY must be set when APP_ENV=production")


def build_backend(settings: Settings, queue: Optional[Any] = None) -> Backend:
    _check_production(settings)
    closers = []
    if settings.JOB_STORE == "memory":
        jobs, profiles = InMemoryJobRepository(), InMemoryProfileRepository()
        applications = InMemoryApplicationRepository()
    elif settings.JOB_STORE == "mongo":
        client = create_mongo_client(settings)
        db = get_database(client, settings)
        jobs = EnhancementJobRepository(db, settings.JOBS_COLLECTION)
        profiles = ProfileRepository(db, settings.USERS_COLLECTION)
        applications = ApplicationRepository(db, settings.APPLICATIONS_COLLECTION)
        closers.append(client.close)
    else:
        raise RuntimeError(f"Unsupported JOB_STORE: {settings.JOB_STORE}")

    if queue is None:
        if settings.QUEUE_BACKEND == "redis":
            queue = RedisJobQueue.from_url(settings.REDIS_URL)
        elif settings.QUEUE_BACKEND == "inline":
            queue = InlineJobQueue()
        else:
            raise RuntimeError(f"Unsupported QUEUE_BACKEND: {settings.QUEUE_BACKEND}")

    backend = Backend(
        settings=settings,
        jobs=jobs,
        profiles=profiles,
        storage=ObjectStorage.from_settings(settings),
        queue=queue,
        enhancer=ResumeEnhancer.from_settings(settings),
        applications=applications,
        _closers=closers,
    )
    if isinstance(queue, InlineJobQueue):
        queue.bind(backend.worker().process_job)
    logger.info(
        "Backend ready (env=%s, store=%s, queue=%s, llm=%s)",
        settings.APP_ENV, settings.JOB_STORE, type(queue).__name__, settings.LLM_ADAPTER,
    )
    return backend
