# app/services/auth.py
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import jwt, JWTError
from pydantic import BaseModel

ALGORITHM = "HS256"
DEFAULT_EXPIRE_MINUTES = 60

class TokenData(BaseModel):
    sub: Optional[str] = None

def create_access_token(subject: str, secret_key: str, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta if expires_delta else timedelta(minutes=DEFAULT_EXPIRE_MINUTES))
    payload = {"sub": subject, "iat": now, "exp": exp}
    return jwt.encode(payload, secret_key, algorithm=ALGORITHM)

def access_token_for(user_id: str, settings) -> str:
    """Token for `user_id` signed with the configured key and lifetime."""
    return create_access_token(
        user_id, settings.SECRET_KEY, expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )

def decode_access_token(token: str, secret_key: str) -> TokenData:
    """Raises JWTError for bad signatures, malformed or expired tokens."""
    payload = jwt.decode(token, secret_key, algorithms=[ALGORITHM])
    return TokenData(sub=payload.get("sub"))

__all__ = ["TokenData", "access_token_for", "create_access_token", "decode_access_token", "JWTError"]
