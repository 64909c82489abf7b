# app/api/v1/enhancements.py
"""
Resume enhancement endpoints.

- POST /enhance-resume       create a pending job and fire its creation event
- POST /check-resume-status  read a job's state (owner only)
- GET  /enhancements/{id}    same as check-resume-status
"""
import logging

from fastapi import APIRouter, Depends

from app.api.deps import api_error, get_backend
from app.api.v1.auth import CurrentUser, get_current_user
from app.core.backend import Backend
from app.core.errors import JobNotFound, PermissionDenied
from app.models.enhancement import EnqueueRequest, EnqueueResponse, StatusRequest, StatusResponse

logger = logging.getLogger(__name__)

router = APIRouter()

SCHEDULE_FAILED_MESSAGE = "Failed to schedule resume enhancement"


@router.post("/enhance-resume", response_model=EnqueueResponse, response_model_by_alias=True)
async def enhance_resume(
    req: EnqueueRequest,
    current_user: CurrentUser = Depends(get_current_user),
    backend: Backend = Depends(get_backend),
):
    try:
        job = await backend.jobs.create(current_user.id, req.file_url, req.file_name)
    except Exception as exc:
        logger.exception("Error initiating resume enhancement for %s", current_user.id)
        raise api_error(500, "internal", "Failed to start resume enhancement. Please try again.") from exc

    try:
        await backend.queue.publish_created(job.id)
    except Exception as exc:
        logger.exception("Could not publish creation event for job %s", job.id)
        # no trigger will ever fire for this job, so fail it now rather than leave it pending
        try:
            await backend.jobs.mark_error(job.id, SCHEDULE_FAILED_MESSAGE)
        except Exception:
            logger.exception("Could not fail unscheduled job %s", job.id)
        raise api_error(500, "internal", "Failed to start resume enhancement. Please try again.") from exc

    logger.info("Job %s enqueued for %s (%s)", job.id, current_user.id, job.file_name)
    return EnqueueResponse(queue_id=job.id)


async def _job_status(backend: Backend, queue_id: str, caller_id: str) -> StatusResponse:
    job = await backend.jobs.get(queue_id)
    if job is None:
        raise JobNotFound(queue_id)
    if job.owner_id != caller_id:
        raise PermissionDenied(queue_id)
    return StatusResponse.from_job(job)


async def _status_or_error(backend: Backend, queue_id: str, caller_id: str) -> StatusResponse:
    try:
        return await _job_status(backend, queue_id, caller_id)
    except JobNotFound as exc:
        raise api_error(404, "not-found", str(exc))
    except PermissionDenied as exc:
        logger.warning("User %s denied status of job %s", caller_id, queue_id)
        raise api_error(403, "permission-denied", str(exc))
    except Exception as exc:
        logger.exception("Error checking resume status for job %s", queue_id)
        raise api_error(500, "internal", "Failed to check resume status. Please try again.") from exc


@router.post("/check-resume-status", response_model=StatusResponse, response_model_by_alias=True)
async def check_resume_status(
    req: StatusRequest,
    current_user: CurrentUser = Depends(get_current_user),
    backend: Backend = Depends(get_backend),
):
    return await _status_or_error(backend, req.queue_id, current_user.id)


@router.get("/enhancements/{queue_id}", response_model=StatusResponse, response_model_by_alias=True)
async def get_enhancement(
    queue_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    backend: Backend = Depends(get_backend),
):
    return await _status_or_error(backend, queue_id, current_user.id)
