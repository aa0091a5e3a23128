"""Auth service: login, auto-provisioning, session issue, user status."""

import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campusops.core.config import settings
from campusops.core.constants import (
    AuditAction, DEFAULT_ROLE, ENTITY_USER,
)
from campusops.core.exceptions import (
    AccountDisabled, InvalidCredentials, NotFound, StorageFailure, ValidationError,
)
from campusops.core.security import (
    SessionClaims, create_session_token, hash_password, verify_password,
)
from campusops.db.session import commit_or_fail
from campusops.models.role import Role
from campusops.models.user import User
from campusops.services.audit_service import audit_service
from campusops.services.role_service import role_service

logger = logging.getLogger("campusops.auth")


def normalize_email(email: Optional[str]) -> str:
    normalized = (email or "").strip().lower()
    if not normalized:
        raise ValidationError("Email is required")
    return normalized


class AuthService:
    """Handles authentication and user lookups."""

    @staticmethod
    def _credential(password: Optional[str]) -> str:
        if password:
            return password
        if not settings.ALLOW_DEFAULT_PASSWORD:
            raise ValidationError("Password is required")
        return settings.DEFAULT_PASSWORD

    @staticmethod
    def _provision(db: Session, email: str, credential: str) -> User:
        """Create a STUDENT account for a first-time email."""
        student_role = db.query(Role).filter(Role.name == DEFAULT_ROLE.value).first()
        if not student_role:
            raise StorageFailure("System not initialized. Run the seed command.")

        user = User(
            email=email,
            name=email.split("@")[0],
            hashed_password=hash_password(credential),
            role_id=student_role.id,
            is_active=True,
        )
        db.add(user)
        try:
            db.flush()
        except IntegrityError:
            # Another login provisioned the same email first
            db.rollback()
            existing = db.query(User).filter(User.email == email).first()
            if existing is None:
                raise StorageFailure(f"Could not provision user {email}")
            return existing

        audit_service.record(
            db, user, AuditAction.USER_PROVISIONED, ENTITY_USER, user.id,
            {"email": email, "role": student_role.name},
            commit=False,
        )
        commit_or_fail(db, f"provisioning user {email}")
        db.refresh(user)
        logger.info("Auto-provisioned %s as %s", email, student_role.name)
        return user

    @staticmethod
    def authenticate(db: Session, email: str, password: Optional[str] = None) -> Dict[str, Any]:
        """Authenticate (or provision) a user and return a session token.

        Raises:
            ValidationError: email missing, or password missing with the
                default-credential fallback disabled.
            InvalidCredentials: credential mismatch.
            AccountDisabled: the account exists but is inactive.
        """
        email = normalize_email(email)
        credential = AuthService._credential(password)

        user = db.query(User).filter(User.email == email).first()
        if not user:
            if not settings.AUTO_PROVISION_USERS:
                raise InvalidCredentials()
            user = AuthService._provision(db, email, credential)

        if not user.is_active:
            raise AccountDisabled()
        if not verify_password(credential, user.hashed_password):
            logger.info("Rejected login for %s", email)
            raise InvalidCredentials()

        user.last_login_at = datetime.now(timezone.utc)
        commit_or_fail(db, f"recording login for {email}")
        db.refresh(user)

        claims = SessionClaims(
            user_id=user.id,
            email=user.email,
            role_id=user.role_id,
            role_name=user.role.name,
        )
        return {
            "token": create_session_token(claims),
            "claims": claims,
            "user": user,
        }

    @staticmethod
    def profile(db: Session, user: User) -> Dict[str, Any]:
        """Identity plus the tiles the user's current role may see."""
        return {
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "role": user.role.name,
            "role_display_name": user.role.display_name,
            "is_admin": user.role.is_admin,
            "allowed_tiles": role_service.allowed_tiles(db, user.role_id),
        }

    @staticmethod
    def get_user(db: Session, user_id: int) -> User:
        """Get a user by id."""
        user = db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFound(f"User {user_id} not found")
        return user

    @staticmethod
    def list_users(db: Session):
        """All users, newest first."""
        return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()

    @staticmethod
    def set_active(db: Session, actor: User, user_id: int, is_active: bool) -> User:
        """Enable or disable an account (admin action, audited)."""
        user = AuthService.get_user(db, user_id)
        previous = user.is_active
        user.is_active = bool(is_active)
        audit_service.record(
            db, actor, AuditAction.USER_STATUS_CHANGE, ENTITY_USER, user.id,
            {"previousActive": previous, "newActive": user.is_active, "changedBy": actor.email},
            commit=False,
        )
        commit_or_fail(db, f"changing status of user {user_id}")
        db.refresh(user)
        logger.info("User %s active=%s (by %s)", user.email, user.is_active, actor.email)
        return user


auth_service = AuthService()
