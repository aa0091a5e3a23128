"""Auth API router: login, logout, me."""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from campusops.core.config import settings
from campusops.core.security import get_current_user
from campusops.db.session import get_db
from campusops.models.user import User
from campusops.schemas.schemas import (
    LoginRequest, LoginResponse, LoginUser, MeResponse, MessageResponse,
)
from campusops.services.auth_service import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, response: Response, db: Session = Depends(get_db)):
    """Authenticate (provisioning first-time users) and issue a session token."""
    result = auth_service.authenticate(db, body.email, body.password)
    user = result["user"]
    token = result["token"]

    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=settings.SESSION_EXPIRY_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        path="/",
    )
    return LoginResponse(
        token=token,
        user=LoginUser(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role.name,
            role_display_name=user.role.display_name,
        ),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response):
    """Clear the session cookie."""
    response.delete_cookie(key=settings.SESSION_COOKIE_NAME, path="/")
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=MeResponse)
async def get_me(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Current user with the tiles their role can see."""
    return auth_service.profile(db, user)
