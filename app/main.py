# app/main.py
import logging
from typing import Optional

from fastapi import FastAPI

from app.api.v1.enhancements import router as enhancements_router
from app.api.v1.uploads import router as uploads_router
from app.api.v1.profile import router as profile_router
from app.api.v1.applications import router as applications_router
from app.core.backend import Backend, build_backend
from app.core.config import get_settings

logger = logging.getLogger(__name__)


def create_app(backend: Optional[Backend] = None) -> FastAPI:
    """
    Build the API. When no backend is passed one is built from settings at
    startup and closed at shutdown; an injected backend is left to its owner.
    """
    app = FastAPI(title="Resume Enhancer API")
    app.state.backend = backend

    app.include_router(enhancements_router, prefix="/api/v1")
    app.include_router(uploads_router, prefix="/api/v1")
    app.include_router(profile_router, prefix="/api/v1")
    app.include_router(applications_router, prefix="/api/v1")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.on_event("startup")
    async def startup_event():
        if app.state.backend is None:
            settings = get_settings()
            logging.basicConfig(level=settings.LOG_LEVEL)
            app.state.backend = build_backend(settings)
            app.state.owns_backend = True

    @app.on_event("shutdown")
    async def shutdown_event():
        if getattr(app.state, "owns_backend", False):
            await app.state.backend.close()

    return app


app = create_app()
