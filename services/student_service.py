"""
Student-facing views. Every lookup goes through the caller's tenant filter.
"""
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from auth.security import Identity
from core.errors import Forbidden, NotFound
from core.logger import logger
from database.models import (
    BookCopy, CourseOffering, Enrollment, LibraryIssue, LibraryIssueStatus,
    ProfileVisibility, Request, RequestStatus, Student, StudentSetting, Theme, User,
)
from services.aggregation import AggregationService
from services.sequence import SequenceGenerator
from services.tenant_scope import TenantFilter
import config

HOME_PREVIEW_SIZE = 5


def _iso_date(value) -> Optional[str]:
    return value.isoformat()[:10] if value else None


class StudentService:
    """Read and write operations scoped to the calling student."""

    @staticmethod
    def resolve_student(db: Session, identity: Identity, tenant: TenantFilter) -> Student:
        """
        Student row of the authenticated user.

        Raises:
            Forbidden: subject is not a user id that can own a student row
            NotFound: no student record for this user in the tenant
        """
        if not identity.subject_id.isdigit():
            raise Forbidden("Not a student account")
        student = tenant.apply(
            db.query(Student).filter(Student.user_id == int(identity.subject_id)),
            Student,
        ).first()
        if student is None:
            raise NotFound("Student not found")
        return student

    @staticmethod
    def get_profile(db: Session, student: Student) -> dict:
        user = db.query(User).filter(User.id == student.user_id).first()
        program = student.program
        return {
            "studentId": student.id,
            "displayId": student.display_id,
            "name": student.full_name,
            "program": {"id": program.id, "name": program.name} if program else None,
            "semester": student.semester,
            "email": user.email if user else None,
            "phone": user.phone if user else None,
        }

    @staticmethod
    def _settings_view(settings: StudentSetting) -> dict:
        return {
            "theme": settings.theme.value,
            "notifications": settings.notifications_enabled,
            "language": settings.language,
            "profileVisibility": settings.profile_visibility.value,
        }

    @staticmethod
    def get_settings(db: Session, student: Student) -> dict:
        settings = db.query(StudentSetting).filter(StudentSetting.student_id == student.id).first()
        if settings is None:
            raise NotFound("Settings not found")
        return StudentService._settings_view(settings)

    @staticmethod
    def update_settings(
        db: Session,
        student: Student,
        theme: Optional[Theme] = None,
        notifications: Optional[bool] = None,
        language: Optional[str] = None,
        profile_visibility: Optional[ProfileVisibility] = None,
    ) -> dict:
        """Upsert settings; omitted fields keep their value (or the default on create)."""
        settings = db.query(StudentSetting).filter(StudentSetting.student_id == student.id).first()
        if settings is None:
            settings = StudentSetting(
                student_id=student.id,
                theme=Theme.SYSTEM,
                notifications_enabled=True,
                language="en",
                profile_visibility=ProfileVisibility.CAMPUS_ONLY,
            )
            db.add(settings)
        if theme is not None:
            settings.theme = theme
        if notifications is not None:
            settings.notifications_enabled = notifications
        if language is not None:
            settings.language = language
        if profile_visibility is not None:
            settings.profile_visibility = profile_visibility
        db.commit()
        db.refresh(settings)
        return StudentService._settings_view(settings)

    @staticmethod
    def list_courses(db: Session, student: Student, tenant: TenantFilter) -> List[dict]:
        enrollments = tenant.apply(
            db.query(Enrollment)
            .options(
                joinedload(Enrollment.offering).joinedload(CourseOffering.course),
                joinedload(Enrollment.offering).joinedload(CourseOffering.faculty),
            )
            .filter(Enrollment.student_id == student.id),
            Enrollment,
        ).order_by(Enrollment.created_at.desc(), Enrollment.id.desc()).all()

        items = []
        for e in enrollments:
            course = e.offering.course
            faculty = e.offering.faculty
            items.append({
                "courseId": course.id,
                "code": course.code,
                "title": course.title,
                "credits": course.credits,
                "semester": e.offering.semester,
                "faculty": {"id": faculty.id, "name": faculty.name} if faculty else None,
            })
        return items

    @staticmethod
    def list_library_issues(
        db: Session,
        student: Student,
        tenant: TenantFilter,
        limit: Optional[int] = None,
    ) -> List[dict]:
        """Copies currently issued to the student and not yet returned, soonest due first."""
        query = tenant.apply(
            db.query(LibraryIssue)
            .options(joinedload(LibraryIssue.copy).joinedload(BookCopy.book))
            .filter(
                LibraryIssue.student_id == student.id,
                LibraryIssue.status == LibraryIssueStatus.ISSUED,
                LibraryIssue.return_date.is_(None),
            ),
            LibraryIssue,
        ).order_by(LibraryIssue.due_date.asc())
        if limit:
            query = query.limit(limit)

        return [
            {
                "issueId": i.id,
                "book": {
                    "id": i.copy.book.id,
                    "title": i.copy.book.title,
                    "author": i.copy.book.author,
                },
                "dueDate": _iso_date(i.due_date),
                "status": i.status.value,
            }
            for i in query.all()
        ]

    @staticmethod
    def list_requests(
        db: Session,
        student: Student,
        tenant: TenantFilter,
        limit: Optional[int] = None,
    ) -> List[Request]:
        query = tenant.apply(
            db.query(Request).filter(Request.student_id == student.id),
            Request,
        ).order_by(Request.submitted_at.desc(), Request.id.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def request_view(r: Request) -> dict:
        return {
            "id": r.id,
            "displayId": r.display_id,
            "title": r.title,
            "status": r.status.value,
            "submittedAt": r.submitted_at.isoformat(),
        }

    @staticmethod
    def create_request(
        db: Session,
        student: Student,
        title: str,
        description: Optional[str] = None,
        sequence: Optional[SequenceGenerator] = None,
    ) -> Request:
        """
        Create an OPEN request with a freshly allocated display id.

        The id is allocated in its own transaction before anything is written
        here, so a failed insert only leaves a gap in the sequence.
        """
        sequence = sequence or SequenceGenerator(config.db)
        display_id = sequence.next(config.REQUEST_SEQUENCE_KEY)

        request = Request(
            display_id=display_id,
            institution_id=student.institution_id,
            student_id=student.id,
            title=title,
            description=description,
            status=RequestStatus.OPEN,
        )
        db.add(request)
        db.commit()
        db.refresh(request)
        logger.info(f"Student {student.id} created request {display_id}")
        return request

    @staticmethod
    def home(db: Session, student: Student, tenant: TenantFilter) -> dict:
        """Aggregated landing view: courses, attendance, library and requests."""
        courses = [
            {
                "id": c["courseId"],
                "code": c["code"],
                "title": c["title"],
                "credits": c["credits"],
            }
            for c in StudentService.list_courses(db, student, tenant)
        ]
        attendance = [
            {
                "courseId": a.courseId,
                "code": a.code,
                "percent": a.percent,
                "status": a.status.value,
            }
            for a in AggregationService.summarize_attendance(db, student.id, tenant)
        ]
        library = [
            {"issueId": i["issueId"], "title": i["book"]["title"], "dueDate": i["dueDate"]}
            for i in StudentService.list_library_issues(db, student, tenant, limit=HOME_PREVIEW_SIZE)
        ]
        requests = [
            {
                "id": r.display_id,
                "type": r.title,
                "status": r.status.value,
                "createdAt": _iso_date(r.submitted_at),
            }
            for r in StudentService.list_requests(db, student, tenant, limit=HOME_PREVIEW_SIZE)
        ]
        return {
            "student": {"id": student.id, "name": student.full_name},
            "courses": courses,
            "attendance": attendance,
            "library": library,
            "requests": requests,
        }
