# app/api/v1/profile.py
from fastapi import APIRouter, Depends

from app.api.deps import api_error, get_backend
from app.api.v1.auth import CurrentUser, get_current_user
from app.core.backend import Backend
from app.models.profile import ProfileUpdate

router = APIRouter()


@router.get("/profile")
async def get_profile(
    current_user: CurrentUser = Depends(get_current_user),
    backend: Backend = Depends(get_backend),
):
    doc = await backend.profiles.get(current_user.id)
    if not doc:
        raise api_error(404, "not-found", "Profile not found")
    return doc


@router.put("/profile")
async def update_profile(
    req: ProfileUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    backend: Backend = Depends(get_backend),
):
    """Create or update the caller's profile; only the fields sent are changed."""
    fields = req.to_fields()
    if not fields:
        raise api_error(400, "invalid-argument", "No profile fields to update")
    await backend.profiles.save(current_user.id, fields)
    return await backend.profiles.get(current_user.id)
