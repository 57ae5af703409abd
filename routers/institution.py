"""
Institution administration APIs (INSTITUTION / INSTITUTION_ADMIN).
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from auth.dependencies import get_db_session, require_institution
from auth.security import Identity
from services.institution_service import InstitutionService
from services.tenant_scope import scope


router = APIRouter(prefix="/api/institution", tags=["institution"])


@router.get("/overview")
def overview(
    identity: Identity = Depends(require_institution),
    db: Session = Depends(get_db_session)
):
    """Student and request counts for the caller's institution."""
    return {"ok": True, "data": InstitutionService.overview(db, scope(identity))}


@router.get("/students")
def list_students(
    q: Optional[str] = Query(None),
    identity: Identity = Depends(require_institution),
    db: Session = Depends(get_db_session)
):
    """Students of the institution, newest first; ``q`` searches email."""
    return {"ok": True, "data": InstitutionService.list_students(db, scope(identity), search=q)}


@router.get("/requests")
def list_requests(
    status_filter: Optional[str] = Query(None, alias="status"),
    identity: Identity = Depends(require_institution),
    db: Session = Depends(get_db_session)
):
    """Requests in one status (``pending`` is an alias of OPEN, default OPEN)."""
    return {
        "ok": True,
        "data": InstitutionService.list_requests(db, scope(identity), status=status_filter),
    }
