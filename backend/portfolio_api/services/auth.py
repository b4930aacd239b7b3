"""Single-admin session tokens.

There is one admin identity, configured through settings. Login issues a
signed JWT; protected routes accept it from the session cookie or from an
``Authorization: Bearer`` header.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Header, HTTPException, Request
from jose import JWTError, jwt
from passlib.context import CryptContext

from portfolio_api.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

_admin_password_hash: Optional[str] = None


def _admin_hash() -> str:
    global _admin_password_hash

    if _admin_password_hash is None:
        _admin_password_hash = settings.ADMIN_PASSWORD_HASH or pwd_context.hash(settings.ADMIN_PASSWORD)
    return _admin_password_hash


def verify_credentials(username: str, password: str) -> bool:
    if username != settings.ADMIN_USERNAME:
        return False
    return pwd_context.verify(password, _admin_hash())


def create_access_token(username: str, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload = {"sub": username, "role": "admin", "exp": expire}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def require_admin(request: Request, authorization: Optional[str] = Header(None)) -> dict:
    """FastAPI dependency: the request must carry a valid admin token."""
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if not token and authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1]
    if not token:
        raise HTTPException(status_code=401, detail="No token provided")

    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=403, detail="Invalid or expired token")
    if payload.get("sub") != settings.ADMIN_USERNAME or payload.get("role") != "admin":
        logger.warning(f"Rejected token for subject {payload.get('sub')!r}")
        raise HTTPException(status_code=403, detail="Invalid or expired token")
    return {"username": payload["sub"], "role": payload["role"]}
