"""
Derived student views: attendance eligibility and fee-account status.

The computations are pure functions over already-fetched numbers. The
``AggregationService`` wrappers only gather those numbers from storage and
are re-run on every request; nothing here is cached or persisted.
"""
import enum
from typing import List, Optional, Sequence

from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from core.errors import NotFound
from database.models import (
    AttendanceMark, AttendanceSession, AttendanceStatus, CourseOffering,
    Enrollment, FeeAccount, FeeCharge, FeePayment,
)
from services.tenant_scope import TenantFilter

ELIGIBILITY_THRESHOLD = 75


class AttendanceEligibility(str, enum.Enum):
    ELIGIBLE = "ELIGIBLE"
    WARNING = "WARNING"


class FeeStatus(str, enum.Enum):
    PAID = "PAID"
    UNPAID = "UNPAID"
    PARTIALLY_PAID = "PARTIALLY_PAID"


class AttendanceSummary(BaseModel):
    """Attendance for one enrolled course."""
    courseId: int
    code: Optional[str] = None
    title: Optional[str] = None
    present: int
    total: int
    percent: int
    status: AttendanceEligibility


class FeeSummary(BaseModel):
    """Fee account totals; ``due`` and ``status`` are always derived."""
    totalPayable: int
    totalPaid: int
    due: int
    status: FeeStatus
    currency: Optional[str] = None


def attendance_percent(present: int, total: int) -> int:
    """Percentage rounded half-up; 0 when no sessions were held."""
    if total <= 0:
        return 0
    # floor(100 * present / total + 0.5) in exact integer arithmetic
    return (200 * present + total) // (2 * total)


def attendance_status(percent: int) -> AttendanceEligibility:
    if percent >= ELIGIBILITY_THRESHOLD:
        return AttendanceEligibility.ELIGIBLE
    return AttendanceEligibility.WARNING


def summarize_course_attendance(
    course_id: int,
    present: int,
    total: int,
    code: Optional[str] = None,
    title: Optional[str] = None,
) -> AttendanceSummary:
    percent = attendance_percent(present, total)
    return AttendanceSummary(
        courseId=course_id,
        code=code,
        title=title,
        present=present,
        total=total,
        percent=percent,
        status=attendance_status(percent),
    )


def fee_status(payable: int, paid: int) -> FeeStatus:
    """PAID when nothing is due (checked first), UNPAID when nothing was paid."""
    due = max(0, payable - paid)
    if due == 0:
        return FeeStatus.PAID
    if paid == 0:
        return FeeStatus.UNPAID
    return FeeStatus.PARTIALLY_PAID


def summarize_fee_totals(
    charges: Sequence[int],
    payments: Sequence[int],
    currency: Optional[str] = None,
) -> FeeSummary:
    payable = sum(charges)
    paid = sum(payments)
    return FeeSummary(
        totalPayable=payable,
        totalPaid=paid,
        due=max(0, payable - paid),
        status=fee_status(payable, paid),
        currency=currency,
    )


class AggregationService:
    """Gather session, mark and payment rows for the pure computations above."""

    @staticmethod
    def summarize_attendance(
        db: Session,
        student_id: int,
        tenant: TenantFilter,
    ) -> List[AttendanceSummary]:
        """One summary per enrolled course offering of the student."""
        enrollments = tenant.apply(
            db.query(Enrollment)
            .options(joinedload(Enrollment.offering).joinedload(CourseOffering.course))
            .filter(Enrollment.student_id == student_id),
            Enrollment,
        ).order_by(Enrollment.id).all()
        if not enrollments:
            return []

        offering_ids = [e.offering_id for e in enrollments]

        totals = dict(
            tenant.apply(
                db.query(AttendanceSession.offering_id, func.count(AttendanceSession.id))
                .filter(AttendanceSession.offering_id.in_(offering_ids)),
                AttendanceSession,
            ).group_by(AttendanceSession.offering_id).all()
        )
        presents = dict(
            tenant.apply(
                db.query(AttendanceSession.offering_id, func.count(AttendanceMark.id))
                .select_from(AttendanceMark)
                .join(AttendanceSession, AttendanceMark.session_id == AttendanceSession.id)
                .filter(
                    AttendanceMark.student_id == student_id,
                    AttendanceMark.status == AttendanceStatus.PRESENT,
                    AttendanceSession.offering_id.in_(offering_ids),
                ),
                AttendanceMark,
            ).group_by(AttendanceSession.offering_id).all()
        )

        items = []
        for enrollment in enrollments:
            course = enrollment.offering.course
            items.append(summarize_course_attendance(
                course_id=course.id,
                present=presents.get(enrollment.offering_id, 0),
                total=totals.get(enrollment.offering_id, 0),
                code=course.code,
                title=course.title,
            ))
        return items

    @staticmethod
    def summarize_fees(db: Session, student_id: int, tenant: TenantFilter) -> FeeSummary:
        """
        Totals for the student's fee account.

        Raises:
            NotFound: the student has no fee account in this tenant
        """
        account = tenant.apply(
            db.query(FeeAccount).filter(FeeAccount.student_id == student_id),
            FeeAccount,
        ).first()
        if account is None:
            raise NotFound("Fee account not found")

        charges = [a for (a,) in db.query(FeeCharge.amount).filter(FeeCharge.account_id == account.id).all()]
        payments = [a for (a,) in db.query(FeePayment.amount).filter(FeePayment.account_id == account.id).all()]
        return summarize_fee_totals(charges, payments, currency=account.currency)
