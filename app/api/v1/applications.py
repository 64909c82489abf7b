# app/api/v1/applications.py
"""
Job application tracker.

- GET    /applications        the caller's applications, newest first
- POST   /applications        add one (status defaults to applied)
- PATCH  /applications/{id}   change its status
- DELETE /applications/{id}
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, Response

from app.api.deps import api_error, get_backend
from app.api.v1.auth import CurrentUser, get_current_user
from app.core.backend import Backend
from app.models.application import Application, ApplicationCreate, ApplicationStatusUpdate

logger = logging.getLogger(__name__)

router = APIRouter()

NOT_FOUND_MESSAGE = "Application not found"


@router.get("/applications", response_model=List[Application], response_model_by_alias=True)
async def list_applications(
    current_user: CurrentUser = Depends(get_current_user),
    backend: Backend = Depends(get_backend),
):
    return await backend.applications.list_for_user(current_user.id)


@router.post("/applications", status_code=201, response_model=Application, response_model_by_alias=True)
async def add_application(
    req: ApplicationCreate,
    current_user: CurrentUser = Depends(get_current_user),
    backend: Backend = Depends(get_backend),
):
    app = await backend.applications.create(current_user.id, req)
    logger.info("Application %s added for %s", app.id, current_user.id)
    return app


@router.patch("/applications/{app_id}", response_model=Application, response_model_by_alias=True)
async def update_application_status(
    app_id: str,
    req: ApplicationStatusUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    backend: Backend = Depends(get_backend),
):
    app = await backend.applications.update_status(current_user.id, app_id, req.status)
    if app is None:
        raise api_error(404, "not-found", NOT_FOUND_MESSAGE)
    return app


@router.delete("/applications/{app_id}", status_code=204)
async def delete_application(
    app_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    backend: Backend = Depends(get_backend),
):
    if not await backend.applications.delete(current_user.id, app_id):
        raise api_error(404, "not-found", NOT_FOUND_MESSAGE)
    return Response(status_code=204)
