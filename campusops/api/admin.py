"""Admin API router: account status and health."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campusops.core.security import require_admin
from campusops.db.session import get_db
from campusops.models.user import User
from campusops.schemas.schemas import UserOut, UserStatusUpdate
from campusops.services.auth_service import auth_service

router = APIRouter(prefix="/admin", tags=["admin"])


@router.patch("/users/{user_id}/status", response_model=UserOut)
async def admin_set_user_status(
    user_id: int,
    body: UserStatusUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Enable or disable an account (admin only)."""
    return auth_service.set_active(db, admin, user_id, body.is_active)


@router.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """Database health check."""
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError:
        db_ok = False

    return {
        "database": "ok" if db_ok else "error",
        "status": "healthy" if db_ok else "degraded",
    }
