# app/api/v1/uploads.py
"""
Protected upload endpoint.
- Accepts a PDF resume (multipart), max MAX_UPLOAD_BYTES
- Stores it under resumes/<user id>/<uuid>.<ext> via ObjectStorage
- Records the upload on the user's profile
- Returns the fileUrl to pass to /enhance-resume
"""
import logging
import uuid
from pathlib import Path

from fastapi import APIRouter, Depends, File, UploadFile

from app.api.deps import api_error, get_backend
from app.api.v1.auth import CurrentUser, get_current_user
from app.core.backend import Backend
from app.models.enhancement import UploadResponse
from app.services.storage import owner_prefix

logger = logging.getLogger(__name__)

router = APIRouter()

PDF_CONTENT_TYPE = "application/pdf"


def _is_pdf(file: UploadFile) -> bool:
    if file.content_type == PDF_CONTENT_TYPE:
        return True
    return (file.filename or "").lower().endswith(".pdf")


@router.post("/upload-resume", response_model=UploadResponse, response_model_by_alias=True)
async def upload_resume(
    file: UploadFile = File(...),
    current_user: CurrentUser = Depends(get_current_user),
    backend: Backend = Depends(get_backend),
):
    fname = file.filename or ""
    if not _is_pdf(file):
        raise api_error(400, "invalid-argument", "Please upload a PDF file")

    limit = backend.settings.MAX_UPLOAD_BYTES
    # never buffer more than limit + 1 bytes
    contents = await file.read(limit + 1)
    if len(contents) > limit:
        raise api_error(413, "invalid-argument", "File size should be less than 5MB")

    ext = Path(fname).suffix.lstrip(".").lower()
    if not ext.isalnum():
        ext = "pdf"
    storage_key = f"{owner_prefix(current_user.id)}{uuid.uuid4().hex}.{ext}"

    try:
        file_url = await backend.storage.upload(storage_key, contents, content_type=PDF_CONTENT_TYPE)
        await backend.profiles.record_resume_upload(current_user.id, file_url, fname)
    except Exception as exc:
        logger.exception("Error uploading resume for %s", current_user.id)
        raise api_error(500, "internal", "Failed to upload file. Please try again.") from exc

    logger.info("Stored resume %s for %s", storage_key, current_user.id)
    return UploadResponse(file_url=file_url, file_name=fname, storage_key=storage_key)
