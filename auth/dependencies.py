"""
Authentication dependencies for FastAPI.
"""
from typing import Optional

from fastapi import Depends, Header

from auth.guards import INSTITUTION_ROLES, authorize, authorize_institution
from auth.security import Identity, verify
from core.errors import ServiceUnavailable
from database.models import UserRole
import config


def get_db_session():
    """Get database session."""
    if not config.db:
        raise ServiceUnavailable("Database not initialized")
    with config.db.get_session() as session:
        yield session


async def get_identity(authorization: Optional[str] = Header(None)) -> Identity:
    """
    Resolve the caller identity from the ``Authorization`` header.

    Raises:
        MissingCredential / InvalidCredential (rendered as 401)
    """
    return verify(authorization)


def require_role(allowed_roles: list[str]):
    """
    Dependency factory for role-based access control.

    Args:
        allowed_roles: Roles of which the caller must hold any one

    Returns:
        Dependency function
    """
    async def role_checker(identity: Identity = Depends(get_identity)) -> Identity:
        return authorize(identity, allowed_roles)

    return role_checker


async def require_institution(
    identity: Identity = Depends(require_role(sorted(INSTITUTION_ROLES)))
) -> Identity:
    """Role guard followed by the tenant guard for institution endpoints."""
    return authorize_institution(identity)


require_student = require_role([UserRole.STUDENT.value])
