# app/api/v1/auth.py
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.api.deps import api_error, get_backend
from app.core.backend import Backend
from app.services.auth import decode_access_token, JWTError

# auto_error=False so a missing header is our 401, not FastAPI's default
security = HTTPBearer(auto_error=False)

UNAUTHENTICATED_MESSAGE = "The function must be called while authenticated."


@dataclass(frozen=True)
class CurrentUser:
    id: str


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    backend: Backend = Depends(get_backend),
) -> CurrentUser:
    if credentials is None or not credentials.credentials:
        raise api_error(401, "unauthenticated", UNAUTHENTICATED_MESSAGE)
    try:
        td = decode_access_token(credentials.credentials, backend.settings.SECRET_KEY)
    except JWTError:
        raise api_error(401, "unauthenticated", "Invalid or expired token")
    if not td.sub:
        raise api_error(401, "unauthenticated", "Invalid token")
    return CurrentUser(id=td.sub)
