"""
Authorization guards: role-set membership and institution-tenant roles.

Two independent checks so endpoint families can combine them as needed.
Both are pure and never touch storage.
"""
from typing import Iterable, Optional

from auth.security import Identity
from core.errors import Forbidden, Unauthenticated
from database.models import UserRole

# Role labels treated as the same institution role
INSTITUTION_ROLES = frozenset({UserRole.INSTITUTION.value, UserRole.INSTITUTION_ADMIN.value})


def normalize_role(role: Optional[str]) -> Optional[str]:
    """Uppercase and trim a role label; None stays None."""
    if role is None:
        return None
    return str(role).strip().upper()


def authorize(identity: Optional[Identity], required_roles: Iterable[str]) -> Identity:
    """
    Check that the identity holds any one of ``required_roles``.

    Raises:
        Unauthenticated: identity or its role is absent
        Forbidden: blank role or no match
    """
    if identity is None or identity.role is None:
        raise Unauthenticated()
    role = normalize_role(identity.role)
    allowed = {normalize_role(r.value if isinstance(r, UserRole) else r) for r in required_roles}
    if not role or role not in allowed:
        raise Forbidden()
    return identity


def authorize_institution(identity: Optional[Identity]) -> Identity:
    """Tenant guard: role must be one of the aliased institution roles."""
    if identity is None or identity.role is None:
        raise Unauthenticated()
    if normalize_role(identity.role) not in INSTITUTION_ROLES:
        raise Forbidden("Institution access required")
    return identity
