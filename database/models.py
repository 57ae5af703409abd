"""
Database models for the student-information backend.

Every tenant-owned table carries an ``institution_id`` column; the tenant
scope builder relies on that column name being uniform.
"""
from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date, Text,
    ForeignKey, Index, UniqueConstraint, TypeDecorator
)
from sqlalchemy.orm import declarative_base, relationship
import enum

Base = declarative_base()


# ============================================================================
# Custom Type Decorator for Enum Values
# ============================================================================

class EnumValue(TypeDecorator):
    """Type decorator to ensure enum values (not names) are stored."""
    impl = String
    cache_ok = True

    def __init__(self, enum_class, *args, **kwargs):
        kwargs.setdefault("length", 32)
        super().__init__(*args, **kwargs)
        self.enum_class = enum_class

    def process_bind_param(self, value, dialect):
        """Convert enum to its value when writing to database."""
        if value is None:
            return None
        if isinstance(value, enum.Enum):
            return value.value
        return value

    def process_result_value(self, value, dialect):
        """Convert database value back to enum when reading."""
        if value is None:
            return None
        if isinstance(value, str):
            try:
                return self.enum_class(value)
            except ValueError:
                return value
        return value


# ============================================================================
# Enums - Must be defined before models that use them
# ============================================================================

class UserRole(str, enum.Enum):
    """User roles for authorization. INSTITUTION and INSTITUTION_ADMIN are aliases."""
    STUDENT = "STUDENT"
    FACULTY = "FACULTY"
    INSTITUTION = "INSTITUTION"
    INSTITUTION_ADMIN = "INSTITUTION_ADMIN"
    ADMIN = "ADMIN"


class RequestStatus(str, enum.Enum):
    """Student request lifecycle."""
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    CLOSED = "CLOSED"


class AttendanceStatus(str, enum.Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    EXCUSED = "EXCUSED"


class LibraryIssueStatus(str, enum.Enum):
    ISSUED = "ISSUED"
    RETURNED = "RETURNED"
    LOST = "LOST"


class Theme(str, enum.Enum):
    SYSTEM = "SYSTEM"
    LIGHT = "LIGHT"
    DARK = "DARK"


class ProfileVisibility(str, enum.Enum):
    CAMPUS_ONLY = "CAMPUS_ONLY"
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


# ============================================================================
# Models
# ============================================================================

class Institution(Base):
    """Institution model - the unit of tenant isolation."""
    __tablename__ = "institutions"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    users = relationship("User", back_populates="institution")


class User(Base):
    """Login account. Students additionally have a ``Student`` row."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(EnumValue(UserRole), nullable=False)
    phone = Column(String(50), nullable=True)
    institution_id = Column(Integer, ForeignKey("institutions.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    institution = relationship("Institution", back_populates="users")
    student = relationship("Student", back_populates="user", uselist=False)

    __table_args__ = (
        Index('idx_user_institution', 'institution_id'),
        Index('idx_user_role', 'role'),
    )


class Program(Base):
    __tablename__ = "programs"

    id = Column(Integer, primary_key=True, index=True)
    institution_id = Column(Integer, ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)


class Student(Base):
    """Student record linked 1:1 to a STUDENT user."""
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    institution_id = Column(Integer, ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False)
    program_id = Column(Integer, ForeignKey("programs.id", ondelete="SET NULL"), nullable=True)
    display_id = Column(String(50), unique=True, nullable=True)
    full_name = Column(String(255), nullable=False)
    semester = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="student")
    program = relationship("Program")
    settings = relationship("StudentSetting", back_populates="student", uselist=False, cascade="all, delete-orphan")
    enrollments = relationship("Enrollment", back_populates="student", cascade="all, delete-orphan")
    fee_account = relationship("FeeAccount", back_populates="student", uselist=False)

    __table_args__ = (
        Index('idx_student_institution', 'institution_id'),
    )


class StudentSetting(Base):
    __tablename__ = "student_settings"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), unique=True, nullable=False)
    theme = Column(EnumValue(Theme), default=Theme.SYSTEM, nullable=False)
    notifications_enabled = Column(Boolean, default=True, nullable=False)
    language = Column(String(10), default="en", nullable=False)
    profile_visibility = Column(EnumValue(ProfileVisibility), default=ProfileVisibility.CAMPUS_ONLY, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    student = relationship("Student", back_populates="settings")


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    institution_id = Column(Integer, ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False)
    code = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    credits = Column(Integer, default=0, nullable=False)


class Faculty(Base):
    __tablename__ = "faculty"

    id = Column(Integer, primary_key=True, index=True)
    institution_id = Column(Integer, ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)


class CourseOffering(Base):
    """A course taught by one faculty member in one semester."""
    __tablename__ = "course_offerings"

    id = Column(Integer, primary_key=True, index=True)
    institution_id = Column(Integer, ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    faculty_id = Column(Integer, ForeignKey("faculty.id", ondelete="SET NULL"), nullable=True)
    semester = Column(Integer, nullable=False)

    course = relationship("Course")
    faculty = relationship("Faculty")
    sessions = relationship("AttendanceSession", back_populates="offering", cascade="all, delete-orphan")


class Enrollment(Base):
    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True, index=True)
    institution_id = Column(Integer, ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    offering_id = Column(Integer, ForeignKey("course_offerings.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    student = relationship("Student", back_populates="enrollments")
    offering = relationship("CourseOffering")

    __table_args__ = (
        UniqueConstraint('student_id', 'offering_id', name='uq_enrollment_student_offering'),
    )


class AttendanceSession(Base):
    """One held class of an offering."""
    __tablename__ = "attendance_sessions"

    id = Column(Integer, primary_key=True, index=True)
    institution_id = Column(Integer, ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False)
    offering_id = Column(Integer, ForeignKey("course_offerings.id", ondelete="CASCADE"), nullable=False)
    held_on = Column(Date, nullable=False)

    offering = relationship("CourseOffering", back_populates="sessions")
    marks = relationship("AttendanceMark", back_populates="session", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_attendance_session_offering', 'offering_id'),
    )


class AttendanceMark(Base):
    __tablename__ = "attendance_marks"

    id = Column(Integer, primary_key=True, index=True)
    institution_id = Column(Integer, ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False)
    session_id = Column(Integer, ForeignKey("attendance_sessions.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    status = Column(EnumValue(AttendanceStatus), nullable=False)

    session = relationship("AttendanceSession", back_populates="marks")

    __table_args__ = (
        UniqueConstraint('session_id', 'student_id', name='uq_attendance_mark_session_student'),
        Index('idx_attendance_mark_student', 'student_id'),
    )


class Book(Base):
    __tablename__ = "books"

    id = Column(Integer, primary_key=True, index=True)
    institution_id = Column(Integer, ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    author = Column(String(255), nullable=True)


class BookCopy(Base):
    __tablename__ = "book_copies"

    id = Column(Integer, primary_key=True, index=True)
    institution_id = Column(Integer, ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False)
    book_id = Column(Integer, ForeignKey("books.id", ondelete="CASCADE"), nullable=False)
    barcode = Column(String(100), nullable=True)

    book = relationship("Book")


class LibraryIssue(Base):
    __tablename__ = "library_issues"

    id = Column(Integer, primary_key=True, index=True)
    institution_id = Column(Integer, ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False)
    copy_id = Column(Integer, ForeignKey("book_copies.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    status = Column(EnumValue(LibraryIssueStatus), default=LibraryIssueStatus.ISSUED, nullable=False)
    issued_on = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    return_date = Column(Date, nullable=True)

    copy = relationship("BookCopy")


class Request(Base):
    """Student service request with a human-facing display id (REQ-0001)."""
    __tablename__ = "requests"

    id = Column(Integer, primary_key=True, index=True)
    display_id = Column(String(32), unique=True, nullable=False)
    institution_id = Column(Integer, ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(120), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(EnumValue(RequestStatus), default=RequestStatus.OPEN, nullable=False)
    submitted_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_request_institution_status', 'institution_id', 'status'),
        Index('idx_request_student', 'student_id'),
    )


class FeeAccount(Base):
    __tablename__ = "fee_accounts"

    id = Column(Integer, primary_key=True, index=True)
    institution_id = Column(Integer, ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), unique=True, nullable=False)
    currency = Column(String(3), default="INR", nullable=False)

    student = relationship("Student", back_populates="fee_account")
    charges = relationship("FeeCharge", back_populates="account", cascade="all, delete-orphan")
    payments = relationship("FeePayment", back_populates="account", cascade="all, delete-orphan")


class FeeCharge(Base):
    __tablename__ = "fee_charges"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("fee_accounts.id", ondelete="CASCADE"), nullable=False)
    label = Column(String(255), nullable=True)
    amount = Column(Integer, nullable=False)  # minor-unit agnostic whole amounts
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    account = relationship("FeeAccount", back_populates="charges")


class FeePayment(Base):
    __tablename__ = "fee_payments"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("fee_accounts.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Integer, nullable=False)
    reference = Column(String(100), nullable=True)
    paid_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    account = relationship("FeeAccount", back_populates="payments")


class Counter(Base):
    """Named monotonic counter backing display id sequences."""
    __tablename__ = "counters"

    key = Column(String(64), primary_key=True)
    value = Column(Integer, default=0, nullable=False)


# Entities whose rows belong to exactly one institution.
TENANT_MODELS = (
    User, Program, Student, Course, Faculty, CourseOffering, Enrollment,
    AttendanceSession, AttendanceMark, Book, BookCopy, LibraryIssue,
    Request, FeeAccount,
)
