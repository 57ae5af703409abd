"""Initial schema - institutions, users, students, academics, library, requests, fees, counters

Revision ID: 001
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _institution_fk():
    return sa.Column(
        'institution_id', sa.Integer(),
        sa.ForeignKey('institutions.id', ondelete='CASCADE'), nullable=False
    )


def upgrade() -> None:
    op.create_table(
        'institutions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=50), nullable=False, unique=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    # Role stored as plain string values (EnumValue), not a native enum
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('institution_id', sa.Integer(),
                  sa.ForeignKey('institutions.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('idx_user_institution', 'users', ['institution_id'])
    op.create_index('idx_user_role', 'users', ['role'])

    op.create_table(
        'programs',
        sa.Column('id', sa.Integer(), primary_key=True),
        _institution_fk(),
        sa.Column('name', sa.String(length=255), nullable=False),
    )

    op.create_table(
        'students',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'),
                  nullable=False, unique=True),
        _institution_fk(),
        sa.Column('program_id', sa.Integer(), sa.ForeignKey('programs.id', ondelete='SET NULL'), nullable=True),
        sa.Column('display_id', sa.String(length=50), nullable=True, unique=True),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('semester', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('idx_student_institution', 'students', ['institution_id'])

    op.create_table(
        'student_settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'),
                  nullable=False, unique=True),
        sa.Column('theme', sa.String(length=32), nullable=False),
        sa.Column('notifications_enabled', sa.Boolean(), nullable=False),
        sa.Column('language', sa.String(length=10), nullable=False),
        sa.Column('profile_visibility', sa.String(length=32), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'courses',
        sa.Column('id', sa.Integer(), primary_key=True),
        _institution_fk(),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('credits', sa.Integer(), nullable=False),
    )

    op.create_table(
        'faculty',
        sa.Column('id', sa.Integer(), primary_key=True),
        _institution_fk(),
        sa.Column('name', sa.String(length=255), nullable=False),
    )

    op.create_table(
        'course_offerings',
        sa.Column('id', sa.Integer(), primary_key=True),
        _institution_fk(),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('faculty_id', sa.Integer(), sa.ForeignKey('faculty.id', ondelete='SET NULL'), nullable=True),
        sa.Column('semester', sa.Integer(), nullable=False),
    )

    op.create_table(
        'enrollments',
        sa.Column('id', sa.Integer(), primary_key=True),
        _institution_fk(),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('offering_id', sa.Integer(),
                  sa.ForeignKey('course_offerings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('student_id', 'offering_id', name='uq_enrollment_student_offering'),
    )

    op.create_table(
        'attendance_sessions',
        sa.Column('id', sa.Integer(), primary_key=True),
        _institution_fk(),
        sa.Column('offering_id', sa.Integer(),
                  sa.ForeignKey('course_offerings.id', ondelete='CASCADE'), nullable=False),
        sa.Column('held_on', sa.Date(), nullable=False),
    )
    op.create_index('idx_attendance_session_offering', 'attendance_sessions', ['offering_id'])

    op.create_table(
        'attendance_marks',
        sa.Column('id', sa.Integer(), primary_key=True),
        _institution_fk(),
        sa.Column('session_id', sa.Integer(),
                  sa.ForeignKey('attendance_sessions.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.UniqueConstraint('session_id', 'student_id', name='uq_attendance_mark_session_student'),
    )
    op.create_index('idx_attendance_mark_student', 'attendance_marks', ['student_id'])

    op.create_table(
        'books',
        sa.Column('id', sa.Integer(), primary_key=True),
        _institution_fk(),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('author', sa.String(length=255), nullable=True),
    )

    op.create_table(
        'book_copies',
        sa.Column('id', sa.Integer(), primary_key=True),
        _institution_fk(),
        sa.Column('book_id', sa.Integer(), sa.ForeignKey('books.id', ondelete='CASCADE'), nullable=False),
        sa.Column('barcode', sa.String(length=100), nullable=True),
    )

    op.create_table(
        'library_issues',
        sa.Column('id', sa.Integer(), primary_key=True),
        _institution_fk(),
        sa.Column('copy_id', sa.Integer(), sa.ForeignKey('book_copies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('issued_on', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=False),
        sa.Column('return_date', sa.Date(), nullable=True),
    )

    op.create_table(
        'requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('display_id', sa.String(length=32), nullable=False, unique=True),
        _institution_fk(),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(length=120), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('submitted_at', sa.DateTime(), nullable=False),
    )
    op.create_index('idx_request_institution_status', 'requests', ['institution_id', 'status'])
    op.create_index('idx_request_student', 'requests', ['student_id'])

    op.create_table(
        'fee_accounts',
        sa.Column('id', sa.Integer(), primary_key=True),
        _institution_fk(),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'),
                  nullable=False, unique=True),
        sa.Column('currency', sa.String(length=3), nullable=False),
    )

    op.create_table(
        'fee_charges',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('fee_accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('label', sa.String(length=255), nullable=True),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'fee_payments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('fee_accounts.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('reference', sa.String(length=100), nullable=True),
        sa.Column('paid_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'counters',
        sa.Column('key', sa.String(length=64), primary_key=True),
        sa.Column('value', sa.Integer(), nullable=False),
    )


def downgrade() -> None:
    for table in (
        'counters', 'fee_payments', 'fee_charges', 'fee_accounts', 'requests',
        'library_issues', 'book_copies', 'books', 'attendance_marks',
        'attendance_sessions', 'enrollments', 'course_offerings', 'faculty',
        'courses', 'student_settings', 'students', 'programs', 'users', 'institutions',
    ):
        op.drop_table(table)
