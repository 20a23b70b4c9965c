import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError
from jose import jwt as jose_jwt
from sqlalchemy.orm import Session

from .config import JWT_ALGORITHM, SECRET_KEY
from .database import get_db
from .models import User, UserRole
from .shared.errors import Forbidden, Unauthorized

logger = logging.getLogger(__name__)

# auto_error=False so a missing header becomes a 401 instead of FastAPI's default 403
security = HTTPBearer(auto_error=False)

# Capability table: which roles may invoke which operation
CAPABILITIES: dict[str, frozenset[UserRole]] = {
    "booking:read": frozenset({UserRole.USER, UserRole.FACILITY_OWNER, UserRole.ADMIN}),
    "booking:modify": frozenset({UserRole.USER, UserRole.FACILITY_OWNER, UserRole.ADMIN}),
    "email:send": frozenset({UserRole.FACILITY_OWNER, UserRole.ADMIN}),
    "email:queue:read": frozenset({UserRole.ADMIN}),
    "email:queue:manage": frozenset({UserRole.ADMIN}),
    "email:health": frozenset({UserRole.FACILITY_OWNER, UserRole.ADMIN}),
}


def create_session_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a signed session token for a user"""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=24))
    to_encode = {"sub": user_id, "exp": expire, "iat": datetime.now(timezone.utc)}
    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_session_token(token: str) -> dict[str, Any]:
    """Decode and verify a session token, raising Unauthorized when it is not usable"""
    try:
        payload = jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError as e:
        logger.info("ℹ️ Session token expired")
        raise Unauthorized("Token has expired. Please refresh your session.") from e
    except JWTError as e:
        logger.warning(f"⚠️ Session token verification failed: {e}")
        raise Unauthorized("Invalid token") from e

    if not payload.get("sub"):
        logger.error(f"❌ Token missing subject claim. Available claims: {list(payload.keys())}")
        raise Unauthorized("Invalid token claims")
    return payload


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the authenticated user from the bearer session token"""
    if not credentials:
        raise Unauthorized(
            "Not authenticated. Please provide a valid Bearer token in the Authorization header."
        )

    payload = verify_session_token(credentials.credentials)
    user = db.query(User).filter(User.id == payload["sub"]).first()
    if not user:
        logger.warning(f"⚠️ Token subject {payload['sub']} does not match any user")
        raise Unauthorized("Authentication failed")

    logger.debug(f"✅ User authenticated: {user.id}")
    return user


def can(user: User, capability: str) -> bool:
    allowed = CAPABILITIES.get(capability)
    if allowed is None:
        return False
    return UserRole(user.role) in allowed


def require_capability(capability: str):
    """
    Dependency factory: authenticate, then check the user's role against the
    capability table. Routes declare what they need instead of checking roles.
    """

    async def dependency(user: User = Depends(get_current_user)) -> User:
        if not can(user, capability):
            logger.warning(f"⚠️ User {user.id} ({user.role}) denied capability {capability}")
            raise Forbidden()
        return user

    return dependency
