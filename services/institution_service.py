"""
Institution-facing views over the tenant's students and requests.
"""
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from database.models import Request, RequestStatus, User, UserRole
from services.tenant_scope import TenantFilter, resolve_request_status
import config


class InstitutionService:
    """Tenant-scoped counts and lists for institution administrators."""

    @staticmethod
    def overview(db: Session, tenant: TenantFilter) -> dict:
        students = tenant.apply(
            db.query(func.count(User.id)).filter(User.role == UserRole.STUDENT),
            User,
        ).scalar() or 0
        requests_pending = tenant.apply(
            db.query(func.count(Request.id)).filter(Request.status == RequestStatus.OPEN),
            Request,
        ).scalar() or 0
        requests_total = tenant.apply(db.query(func.count(Request.id)), Request).scalar() or 0
        return {
            "institutionId": tenant.institution_id,
            "students": students,
            "requestsPending": requests_pending,
            "requestsTotal": requests_total,
        }

    @staticmethod
    def list_students(
        db: Session,
        tenant: TenantFilter,
        search: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[dict]:
        """Student accounts of the tenant, optionally matching an email substring."""
        query = tenant.apply(db.query(User).filter(User.role == UserRole.STUDENT), User)
        q = (search or "").strip()
        if q:
            # Literal substring match; % and _ in the search term are not wildcards
            query = query.filter(func.lower(User.email).contains(q.lower(), autoescape=True))
        rows = query.order_by(User.created_at.desc(), User.id.desc()).limit(limit or config.LIST_LIMIT).all()
        return [
            {
                "id": u.id,
                "email": u.email,
                "role": u.role.value,
                "phone": u.phone,
                "createdAt": u.created_at.isoformat(),
            }
            for u in rows
        ]

    @staticmethod
    def list_requests(
        db: Session,
        tenant: TenantFilter,
        status: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[dict]:
        """Requests of the tenant in one status; PENDING means OPEN, default OPEN."""
        status_value = resolve_request_status(status)
        rows = tenant.apply(
            db.query(Request).filter(Request.status == status_value),
            Request,
        ).order_by(Request.submitted_at.desc(), Request.id.desc()).limit(limit or config.LIST_LIMIT).all()
        return [
            {
                "id": r.id,
                "displayId": r.display_id,
                "studentId": r.student_id,
                "institutionId": r.institution_id,
                "title": r.title,
                "description": r.description,
                "status": r.status.value,
                "submittedAt": r.submitted_at.isoformat(),
            }
            for r in rows
        ]
