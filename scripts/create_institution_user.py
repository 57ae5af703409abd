#!/usr/bin/env python3
"""
Script to create (or reset) an institution admin user.

Reads INSTITUTION_EMAIL, INSTITUTION_PASSWORD and INSTITUTION_ID from the
environment. Without INSTITUTION_ID the account is unscoped and sees every
institution's data.
"""
import os
import sys
from pathlib import Path
from typing import Optional

# Add parent directory to the system path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.errors import ValidationError
from database.connection import Database
from database.models import Institution, UserRole
from services.auth_service import AuthService
import config


def parse_institution_id(raw: Optional[str]) -> Optional[int]:
    """Blank means unscoped; anything else must be a positive integer id."""
    value = (raw or "").strip()
    if not value:
        return None
    if not value.isdigit() or int(value) == 0:
        raise ValidationError(f"INSTITUTION_ID must be a positive integer, got {value!r}")
    return int(value)


def create_institution_user():
    """Upsert the institution admin user described by the environment."""
    email = os.getenv("INSTITUTION_EMAIL", "institution@gcu.edu.in")
    password = os.getenv("INSTITUTION_PASSWORD", "ChangeMe@123")

    print("Creating institution user...")
    print("=" * 50)

    try:
        institution_id = parse_institution_id(os.getenv("INSTITUTION_ID"))

        config.db = Database(
            database_url=config.DATABASE_URL,
            pool_size=config.DB_POOL_SIZE,
            max_overflow=config.DB_MAX_OVERFLOW
        )
        config.db.create_tables()

        with config.db.get_session() as db:
            if institution_id is not None and db.get(Institution, institution_id) is None:
                raise ValidationError(f"institution {institution_id} does not exist")
            user = AuthService.upsert_user(
                db=db,
                email=email,
                password=password,
                role=UserRole.INSTITUTION_ADMIN,
                institution_id=institution_id,
            )
            print(f"\n✓ Institution user ready")
            print(f"  Email: {user.email}")
            print(f"  Role: {user.role.value}")
            print(f"  Institution: {user.institution_id if user.institution_id is not None else '(all)'}")
    except ValidationError as e:
        print(f"\n✗ Error: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    create_institution_user()
