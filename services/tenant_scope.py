"""
Tenant scoping: restrict every lookup to the caller's institution.
"""
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import true
from sqlalchemy.orm import Query

from auth.guards import INSTITUTION_ROLES, normalize_role
from auth.security import Identity
from core.logger import logger
from database.models import RequestStatus

STATUS_ALIASES = {
    "PENDING": RequestStatus.OPEN,
}


@dataclass(frozen=True)
class TenantFilter:
    """Institution restriction for queries; ``institution_id=None`` means unrestricted."""

    institution_id: Optional[int] = None

    @property
    def is_restricted(self) -> bool:
        return self.institution_id is not None

    def clause(self, model) -> Any:
        """SQL predicate for ``model``; AND it with any caller predicate."""
        column = getattr(model, "institution_id", None)
        if column is None:
            raise TypeError(f"{model.__name__} carries no institution reference")
        if not self.is_restricted:
            return true()
        return column == self.institution_id

    def apply(self, query: Query, model) -> Query:
        """Return ``query`` narrowed to this tenant for ``model``."""
        return query.filter(self.clause(model))


def scope(identity: Identity) -> TenantFilter:
    """
    Build the tenant filter for a resolved identity.

    An institution-role account without an institution falls back to an
    unrestricted filter; that is logged so misconfigured accounts surface.
    """
    if identity.institution_id is not None:
        return TenantFilter(identity.institution_id)
    if normalize_role(identity.role) in INSTITUTION_ROLES:
        logger.warning(
            f"Institution account {identity.subject_id} has no institutionId; using unrestricted scope"
        )
    return TenantFilter(None)


def parse_request_status(raw: Optional[str]) -> Optional[RequestStatus]:
    """Map an external status value to the canonical enum; None if unrecognized."""
    value = str(raw or "").strip().upper()
    if not value:
        return None
    if value in STATUS_ALIASES:
        return STATUS_ALIASES[value]
    try:
        return RequestStatus(value)
    except ValueError:
        return None


def resolve_request_status(raw: Optional[str]) -> RequestStatus:
    """Like parse_request_status but absent or unknown values default to OPEN."""
    return parse_request_status(raw) or RequestStatus.OPEN
