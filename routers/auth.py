"""
Authentication endpoints.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from auth.dependencies import get_db_session, get_identity
from auth.security import Identity
from core.errors import InvalidCredential, ValidationError
from services.auth_service import AuthService


router = APIRouter(prefix="/api/auth", tags=["authentication"])


class LoginRequest(BaseModel):
    """Login with email and password."""
    email: Optional[str] = None
    password: Optional[str] = None


@router.post("/login")
async def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db_session)
):
    """
    Login with email + password.
    Returns a 7-day JWT and user info.
    """
    email = AuthService.normalize_email(credentials.email)
    password = credentials.password or ""
    if not email or not password:
        raise ValidationError("email and password required")

    user = AuthService.authenticate_user(db, email, password)
    if user is None:
        raise InvalidCredential("Invalid credentials")

    return {
        "ok": True,
        "token": AuthService.create_token(user),
        "user": AuthService.user_info(user),
    }


@router.get("/me")
async def me(identity: Identity = Depends(get_identity)):
    """Return the verified identity of the caller."""
    return {
        "ok": True,
        "user": {
            "id": identity.subject_id,
            "email": identity.email,
            "role": identity.role,
            "institutionId": identity.institution_id,
        },
    }
