# app/services/worker.py
"""
Worker trigger for a single enhancement job.

    pending -> processing -> completed | error

process_job is invoked once per job creation event. Deliveries are
at-least-once, so the first step is the conditional pending->processing
update: a job that is no longer pending is skipped.
"""
import asyncio
import logging
import tempfile
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import aiofiles

from app.core.errors import ExtractionError, InvalidFileReference, StorageError
from app.models.enhancement import EnhancementJob
from app.services.parse_utils import extract_text
from app.services.storage import FileLocation, owner_prefix, parse_file_reference

logger = logging.getLogger(__name__)

FALLBACK_TEXT = "The resume can be found at: {file_url}"
STALE_JOB_MESSAGE = "Resume enhancement timed out"


class EnhancementWorker:
    def __init__(self, jobs, profiles, storage, enhancer, temp_dir: Optional[str] = None):
        self.jobs = jobs
        self.profiles = profiles
        self.storage = storage
        self.enhancer = enhancer
        self.temp_dir = Path(temp_dir or tempfile.gettempdir())

    async def process_job(self, job_id: str) -> Optional[EnhancementJob]:
        """
        Run the job to a terminal state. Returns the job as left by this call,
        or None when the trigger was ignored (unknown id or not pending).
        """
        job = await self.jobs.mark_processing(job_id)
        if job is None:
            logger.info("Skipping job %s: not pending (duplicate trigger or unknown id)", job_id)
            return None
        logger.info("Job %s processing (%s)", job.id, job.file_name)

        temp_path: Optional[Path] = None
        try:
            location = self._resolve(job)
            temp_path = self._temp_path(job)
            await self._download(job, location, temp_path)
            text = await self._extract(job, temp_path)
            result = await self.enhancer.enhance(text)
            completed = await self.jobs.mark_completed(job.id, result)
        except Exception as exc:
            logger.exception("Job %s failed: %s", job.id, exc)
            failed = await self.jobs.mark_error(job.id, str(exc) or exc.__class__.__name__)
            return failed or await self.jobs.get(job.id)
        finally:
            self._cleanup(temp_path)

        if completed is None:
            # moved on without us, e.g. failed by the stale sweeper meanwhile
            logger.warning("Job %s left processing before it could complete", job.id)
            return await self.jobs.get(job.id)

        logger.info("Job %s completed", job.id)
        try:
            await self.profiles.set_enhanced_resume(job.owner_id, result)
        except Exception:
            logger.exception("Failed to copy enhanced resume onto profile %s", job.owner_id)
        return completed

    def _resolve(self, job: EnhancementJob) -> FileLocation:
        location = parse_file_reference(job.file_reference, bucket=self.storage.bucket)
        # only the job owner's own uploads
        prefix = owner_prefix(job.owner_id)
        if not location.key.startswith(prefix):
            logger.warning("Job %s: reference %r is not under %s", job.id, job.file_reference, prefix)
            raise InvalidFileReference(job.file_reference)
        return location

    def _temp_path(self, job: EnhancementJob) -> Path:
        # never trust the client's file name as a path
        name = Path(job.file_name).name or "resume"
        return self.temp_dir / f"{job.id}-{uuid.uuid4().hex[:8]}-{name}"

    async def _download(self, job: EnhancementJob, location: FileLocation, dest: Path) -> None:
        try:
            await self.storage.download_to_file(location, dest)
        except StorageError as exc:
            logger.error("Job %s: could not fetch %s/%s: %s", job.id, location.bucket, location.key, exc)
            raise InvalidFileReference(job.file_reference) from exc

    async def _extract(self, job: EnhancementJob, path: Path) -> str:
        async with aiofiles.open(path, "rb") as fin:
            data = await fin.read()
        loop = asyncio.get_running_loop()
        try:
            text, kind = await loop.run_in_executor(None, extract_text, data)
        except ExtractionError as exc:
            logger.warning("Job %s: text extraction failed, using fallback text: %s", job.id, exc)
            return FALLBACK_TEXT.format(file_url=job.file_reference)
        logger.debug("Job %s: extracted %s chars from %s", job.id, len(text), kind)
        return text

    def _cleanup(self, path: Optional[Path]) -> None:
        if path is None:
            return
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Could not remove temp file %s", path, exc_info=True)


async def sweep_stale_jobs(jobs, stale_after_sec: int, now: Optional[datetime] = None) -> int:
    """
    Fail jobs stuck in processing for longer than `stale_after_sec`.
    Returns how many were moved to error. 0 disables the sweep.
    """
    if stale_after_sec <= 0:
        return 0
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(seconds=stale_after_sec)
    swept = 0
    for job in await jobs.find_stale_processing(cutoff):
        if await jobs.mark_error(job.id, STALE_JOB_MESSAGE):
            logger.warning("Job %s timed out in processing (started %s)", job.id, job.processing_started_at)
            swept += 1
    return swept
