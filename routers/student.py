"""
Student self-service APIs.
"""
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from auth.dependencies import get_db_session, require_student
from auth.security import Identity
from database.models import ProfileVisibility, Student, Theme
from services.aggregation import AggregationService
from services.student_service import StudentService
from services.tenant_scope import TenantFilter, scope


router = APIRouter(prefix="/api/student", tags=["student"])


class StudentContext:
    """Verified student identity with its tenant filter and student row."""

    def __init__(self, identity: Identity, tenant: TenantFilter, student: Student):
        self.identity = identity
        self.tenant = tenant
        self.student = student


def get_student_context(
    identity: Identity = Depends(require_student),
    db: Session = Depends(get_db_session)
) -> StudentContext:
    tenant = scope(identity)
    student = StudentService.resolve_student(db, identity, tenant)
    return StudentContext(identity, tenant, student)


# Request Models
class SettingsUpdate(BaseModel):
    """Partial update of student settings."""
    theme: Optional[Theme] = None
    notifications: Optional[bool] = None
    language: Optional[str] = Field(None, min_length=2, max_length=10)
    profileVisibility: Optional[ProfileVisibility] = None


class RequestCreate(BaseModel):
    """New student request."""
    title: str = Field(..., min_length=2, max_length=120)
    description: Optional[str] = Field(None, max_length=2000)


@router.get("/profile")
def get_profile(
    ctx: StudentContext = Depends(get_student_context),
    db: Session = Depends(get_db_session)
):
    return StudentService.get_profile(db, ctx.student)


@router.get("/settings")
def get_settings(
    ctx: StudentContext = Depends(get_student_context),
    db: Session = Depends(get_db_session)
):
    return StudentService.get_settings(db, ctx.student)


@router.patch("/settings")
def update_settings(
    body: SettingsUpdate,
    ctx: StudentContext = Depends(get_student_context),
    db: Session = Depends(get_db_session)
):
    return StudentService.update_settings(
        db,
        ctx.student,
        theme=body.theme,
        notifications=body.notifications,
        language=body.language,
        profile_visibility=body.profileVisibility,
    )


@router.get("/courses")
def list_courses(
    ctx: StudentContext = Depends(get_student_context),
    db: Session = Depends(get_db_session)
):
    return {
        "studentId": ctx.student.id,
        "items": StudentService.list_courses(db, ctx.student, ctx.tenant),
    }


@router.get("/attendance")
def attendance_summary(
    ctx: StudentContext = Depends(get_student_context),
    db: Session = Depends(get_db_session)
):
    """Per-course attendance with eligibility (75% threshold)."""
    items = AggregationService.summarize_attendance(db, ctx.student.id, ctx.tenant)
    return {
        "studentId": ctx.student.id,
        "items": [item.model_dump(mode="json") for item in items],
    }


@router.get("/library/issues")
def library_issues(
    ctx: StudentContext = Depends(get_student_context),
    db: Session = Depends(get_db_session)
):
    return {
        "studentId": ctx.student.id,
        "items": StudentService.list_library_issues(db, ctx.student, ctx.tenant),
    }


@router.get("/requests")
def list_requests(
    ctx: StudentContext = Depends(get_student_context),
    db: Session = Depends(get_db_session)
):
    requests = StudentService.list_requests(db, ctx.student, ctx.tenant)
    return {
        "studentId": ctx.student.id,
        "items": [StudentService.request_view(r) for r in requests],
    }


@router.post("/requests", status_code=status.HTTP_201_CREATED)
def create_request(
    body: RequestCreate,
    ctx: StudentContext = Depends(get_student_context),
    db: Session = Depends(get_db_session)
):
    created = StudentService.create_request(db, ctx.student, body.title, body.description)
    return {
        "id": created.id,
        "displayId": created.display_id,
        "status": created.status.value,
        "submittedAt": created.submitted_at.isoformat(),
    }


@router.get("/fees/summary")
def fees_summary(
    ctx: StudentContext = Depends(get_student_context),
    db: Session = Depends(get_db_session)
):
    summary = AggregationService.summarize_fees(db, ctx.student.id, ctx.tenant)
    return {"studentId": ctx.student.id, **summary.model_dump(mode="json")}


@router.get("/home")
def home(
    ctx: StudentContext = Depends(get_student_context),
    db: Session = Depends(get_db_session)
):
    return StudentService.home(db, ctx.student, ctx.tenant)
