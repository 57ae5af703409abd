"""
Authentication service: user lookup, password check and token issuing.
"""
from typing import Optional

from sqlalchemy.orm import Session

from auth.security import verify_password, get_password_hash, create_access_token
from core.errors import ValidationError
from core.logger import logger
from database.models import User, UserRole


class AuthService:
    """Service for authentication operations."""

    @staticmethod
    def normalize_email(email: Optional[str]) -> str:
        return str(email or "").strip().lower()

    @staticmethod
    def find_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == AuthService.normalize_email(email)).first()

    @staticmethod
    def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
        """
        Authenticate a user by email and password.

        Returns:
            The user, or None when the email is unknown, the account inactive
            or the password wrong (callers must not distinguish these)
        """
        user = AuthService.find_user_by_email(db, email)
        if user is None or not user.is_active:
            logger.warning(f"Login failed for {AuthService.normalize_email(email)}: unknown or inactive")
            return None
        if not verify_password(password, user.password_hash):
            logger.warning(f"Login failed for user {user.id}: wrong password")
            return None
        logger.info(f"User {user.id} logged in (role: {user.role.value})")
        return user

    @staticmethod
    def create_token(user: User) -> str:
        """Issue the access token embedding {sub, email, role, institutionId}."""
        return create_access_token({
            "sub": str(user.id),
            "email": user.email,
            "role": user.role.value,
            "institutionId": user.institution_id,
        })

    @staticmethod
    def user_info(user: User) -> dict:
        return {
            "id": user.id,
            "email": user.email,
            "role": user.role.value,
            "phone": user.phone,
            "institutionId": user.institution_id,
        }

    @staticmethod
    def upsert_user(
        db: Session,
        email: str,
        password: str,
        role: UserRole,
        institution_id: Optional[int] = None,
        phone: Optional[str] = None,
    ) -> User:
        """Create the user or reset its role, password and institution."""
        email = AuthService.normalize_email(email)
        if not email or not password:
            raise ValidationError("email and password required")
        try:
            password_hash = get_password_hash(password)
        except ValueError as e:
            raise ValidationError(str(e))

        user = AuthService.find_user_by_email(db, email)
        if user is None:
            user = User(email=email, role=role)
            db.add(user)
            logger.info(f"Creating user {email} (role: {role.value})")
        else:
            logger.info(f"Updating user {email} (role: {role.value})")
        user.password_hash = password_hash
        user.role = role
        user.institution_id = institution_id
        if phone is not None:
            user.phone = phone
        user.is_active = True
        db.commit()
        db.refresh(user)
        return user
