# app/api/deps.py
from fastapi import HTTPException, Request

from app.core.backend import Backend


def get_backend(request: Request) -> Backend:
    backend = getattr(request.app.state, "backend", None)
    if backend is None:
        raise api_error(500, "internal", "Backend is not initialised")
    return backend


def api_error(status_code: int, code: str, message: str) -> HTTPException:
    """HTTPException whose detail carries a callable-style error code."""
    return HTTPException(status_code=status_code, detail={"code": code, "message": message})
