"""
Pytest configuration: a file-backed SQLite database per test and a seeded
pair of institutions with disjoint data.
"""
from datetime import date, datetime, timedelta
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

import config
from auth.security import create_access_token, get_password_hash
from database.connection import Database
from database.models import (
    AttendanceMark, AttendanceSession, AttendanceStatus, Book, BookCopy, Course,
    CourseOffering, Enrollment, Faculty, FeeAccount, FeeCharge, FeePayment,
    Institution, LibraryIssue, Program, Request, RequestStatus, Student, User, UserRole,
)

PASSWORD = "Passw0rd!"
# Hashed once; bcrypt at 12 rounds is deliberately slow
PASSWORD_HASH = get_password_hash(PASSWORD)


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'test.db'}", pool_size=10, max_overflow=40)
    db.create_tables()
    previous = config.db
    config.db = db
    yield db
    config.db = previous
    db.engine.dispose()


@pytest.fixture
def session(database):
    with database.get_session() as s:
        yield s


@pytest.fixture
def client(database):
    from app import app
    with TestClient(app) as c:
        yield c


def make_token(user_id, role, institution_id=None, email=None, **extra):
    claims = {"sub": str(user_id), "email": email, "role": role, "institutionId": institution_id}
    claims.update(extra)
    return create_access_token(claims)


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


def seed_institution(db, code: str) -> SimpleNamespace:
    """
    One institution with a student enrolled in two offerings:
    ALG has 4 sessions with 3 marked present (75%), PHY has 3 with 2 (67%).
    """
    inst = Institution(code=code, name=f"Institute {code}")
    db.add(inst)
    db.flush()
    iid = inst.id

    program = Program(institution_id=iid, name=f"B.Tech {code}")
    student_user = User(
        email=f"student@{code.lower()}.edu", password_hash=PASSWORD_HASH,
        role=UserRole.STUDENT, phone="555-0100", institution_id=iid,
    )
    admin_user = User(
        email=f"admin@{code.lower()}.edu", password_hash=PASSWORD_HASH,
        role=UserRole.INSTITUTION_ADMIN, institution_id=iid,
    )
    db.add_all([program, student_user, admin_user])
    db.flush()

    student = Student(
        user_id=student_user.id, institution_id=iid, program_id=program.id,
        display_id=f"STU-{code}-0001", full_name=f"Student {code}", semester=3,
    )
    faculty = Faculty(institution_id=iid, name=f"Prof {code}")
    algebra = Course(institution_id=iid, code=f"{code}-ALG", title="Algebra", credits=4)
    physics = Course(institution_id=iid, code=f"{code}-PHY", title="Physics", credits=3)
    db.add_all([student, faculty, algebra, physics])
    db.flush()

    offerings = []
    base = datetime(2026, 1, 1)
    for i, course in enumerate((algebra, physics)):
        offering = CourseOffering(institution_id=iid, course_id=course.id, faculty_id=faculty.id, semester=3)
        db.add(offering)
        db.flush()
        db.add(Enrollment(
            institution_id=iid, student_id=student.id, offering_id=offering.id,
            created_at=base + timedelta(days=i),
        ))
        offerings.append(offering)

    for offering, statuses in (
        (offerings[0], [AttendanceStatus.PRESENT] * 3 + [AttendanceStatus.ABSENT]),
        (offerings[1], [AttendanceStatus.PRESENT] * 2 + [AttendanceStatus.LATE]),
    ):
        for day, mark_status in enumerate(statuses):
            s = AttendanceSession(institution_id=iid, offering_id=offering.id, held_on=date(2026, 2, day + 1))
            db.add(s)
            db.flush()
            db.add(AttendanceMark(institution_id=iid, session_id=s.id, student_id=student.id, status=mark_status))

    book = Book(institution_id=iid, title=f"Calculus {code}", author="Spivak")
    db.add(book)
    db.flush()
    copy = BookCopy(institution_id=iid, book_id=book.id, barcode=f"{code}-BC-1")
    db.add(copy)
    db.flush()
    db.add(LibraryIssue(
        institution_id=iid, copy_id=copy.id, student_id=student.id,
        issued_on=date(2026, 3, 1), due_date=date(2026, 3, 15),
    ))

    db.add_all([
        Request(display_id=f"SEED-{code}-1", institution_id=iid, student_id=student.id,
                title="Bonafide certificate", status=RequestStatus.OPEN, submitted_at=base),
        Request(display_id=f"SEED-{code}-2", institution_id=iid, student_id=student.id,
                title="Transcript", status=RequestStatus.CLOSED, submitted_at=base + timedelta(hours=1)),
    ])

    account = FeeAccount(institution_id=iid, student_id=student.id, currency="INR")
    db.add(account)
    db.flush()
    db.add_all([
        FeeCharge(account_id=account.id, label="Tuition", amount=800),
        FeeCharge(account_id=account.id, label="Library", amount=200),
        FeePayment(account_id=account.id, amount=400, reference=f"{code}-PAY-1"),
    ])
    db.commit()

    return SimpleNamespace(
        institution_id=iid,
        student_user_id=student_user.id,
        student_email=student_user.email,
        admin_user_id=admin_user.id,
        admin_email=admin_user.email,
        student_id=student.id,
        algebra_id=algebra.id,
        physics_id=physics.id,
    )


@pytest.fixture
def tenants(database):
    """Two institutions, A and B, with the same shape of data."""
    with database.get_session() as db:
        a = seed_institution(db, "A")
        b = seed_institution(db, "B")
    return SimpleNamespace(a=a, b=b)
