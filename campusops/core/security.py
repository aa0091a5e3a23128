"""Session tokens, password hashing and RBAC request dependencies."""

import bcrypt
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import BaseModel
from sqlalchemy.orm import Session

from campusops.core.config import settings
from campusops.core.constants import TileKey
from campusops.core.exceptions import (
    AccountDisabled, AuthenticationRequired, PermissionDenied,
)
from campusops.db.session import get_db
from campusops.models.user import User
from campusops.services.role_service import role_service

# JWT bearer scheme; the session cookie is the fallback
security_scheme = HTTPBearer(auto_error=False)


class SessionClaims(BaseModel):
    """Identity bound into a session token."""
    user_id: int
    email: str
    role_id: int
    role_name: str
    expires_at: Optional[datetime] = None


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    pwd_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(pwd_bytes, salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    pwd_bytes = plain_password.encode("utf-8")
    hashed_bytes = hashed_password.encode("utf-8")
    try:
        return bcrypt.checkpw(pwd_bytes, hashed_bytes)
    except ValueError:
        # stored value is not a bcrypt hash
        return False


def create_session_token(
    claims: SessionClaims, expires_delta: Optional[timedelta] = None
) -> str:
    """Create a signed session token for the given identity."""
    expire = datetime.now(timezone.utc) + (
        expires_delta if expires_delta is not None
        else timedelta(days=settings.SESSION_EXPIRY_DAYS)
    )
    to_encode = {
        "sub": str(claims.user_id),
        "email": claims.email,
        "roleId": claims.role_id,
        "roleName": claims.role_name,
        "exp": expire,
        "type": "session",
    }
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def resolve_session_token(token: Optional[str]) -> Optional[SessionClaims]:
    """Verify signature and expiry. Returns None for any unusable token."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != "session":
        return None
    try:
        return SessionClaims(
            user_id=int(payload["sub"]),
            email=payload["email"],
            role_id=int(payload["roleId"]),
            role_name=payload["roleName"],
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
    except (KeyError, TypeError, ValueError):
        return None


def extract_token(
    request: Request, credentials: Optional[HTTPAuthorizationCredentials]
) -> Optional[str]:
    """Bearer header wins over the session cookie."""
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


async def get_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
) -> SessionClaims:
    """Resolve the caller's session claims or fail with 401."""
    claims = resolve_session_token(extract_token(request, credentials))
    if claims is None:
        raise AuthenticationRequired("Invalid or expired session")
    return claims


async def get_current_user(
    claims: SessionClaims = Depends(get_session),
    db: Session = Depends(get_db),
) -> User:
    """Load the session's user; role checks use the role held right now."""
    user = db.query(User).filter(User.id == claims.user_id).first()
    if user is None:
        raise AuthenticationRequired("Session user no longer exists")
    if not user.is_active:
        raise AccountDisabled()
    return user


async def require_admin(
    user: User = Depends(get_current_user),
) -> User:
    """Dependency that requires the caller's role to be an admin role."""
    if not user.role or not user.role.is_admin:
        raise PermissionDenied("Administrator role required")
    return user


class RequireTile:
    """Dependency that checks tile access (and optionally write) for the caller."""

    def __init__(self, tile: TileKey, write: bool = False):
        self.tile = tile
        self.write = write

    async def __call__(
        self,
        user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> User:
        if not role_service.can(db, user.role_id, self.tile, write=self.write):
            mode = "write" if self.write else "access"
            raise PermissionDenied(
                f"Role '{user.role.name}' cannot {mode} '{self.tile.value}'"
            )
        return user
