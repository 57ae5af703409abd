"""
Security utilities for authentication: password hashing, JWT issuing and
bearer-credential verification.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Dict, Any

import bcrypt
from jose import JWTError, jwt
from passlib.context import CryptContext

from core.errors import InvalidCredential, MissingCredential
from core.logger import logger
import config

# Password hashing
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__ident="2b",
    bcrypt__rounds=12
)

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Identity:
    """
    Caller identity resolved from a verified token.

    Lives for one request only and is never persisted.
    """

    subject_id: str
    email: Optional[str] = None
    role: Optional[str] = None
    institution_id: Optional[int] = None


# Password utilities
def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        # Hash not in raw bcrypt format; let passlib identify it
        if pwd_context.identify(hashed_password) is None:
            return False
        return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt."""
    password_bytes = password.encode('utf-8')
    if len(password_bytes) > 72:
        raise ValueError("Password cannot be longer than 72 bytes. Please use a shorter password.")
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password_bytes, salt).decode('utf-8')


# JWT Token utilities
def create_access_token(
    data: Dict[str, Any],
    secret_key: Optional[str] = None,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a signed JWT access token.

    Args:
        data: Claims to encode ({sub, email, role, institutionId})
        secret_key: Signing secret (defaults to config.SECRET_KEY)
        expires_delta: Optional lifetime (defaults to ACCESS_TOKEN_EXPIRE_DAYS)

    Returns:
        Encoded JWT token
    """
    to_encode = data.copy()
    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(days=config.ACCESS_TOKEN_EXPIRE_DAYS))
    to_encode.update({
        "exp": expire,
        "iat": now,
        "type": "access"
    })
    return jwt.encode(to_encode, secret_key or config.SECRET_KEY, algorithm=config.ALGORITHM)


def decode_access_token(token: str, secret_key: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a JWT access token.

    Returns:
        Decoded claims, or None on any signature, format or expiry failure
    """
    try:
        payload = jwt.decode(token, secret_key or config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except JWTError:
        return None
    if payload.get("type", "access") != "access":
        return None
    return payload


def _institution_claim(raw: Any) -> Optional[int]:
    if raw is None or raw == "":
        return None
    if isinstance(raw, bool):
        raise InvalidCredential()
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw.strip())
    raise InvalidCredential()


def verify(raw_header: Optional[str], secret_key: Optional[str] = None) -> Identity:
    """
    Verify an ``Authorization`` header value and map its claims to an Identity.

    Pure over the secret and the token. Raises MissingCredential when the
    header is absent or not ``Bearer <token>``; every other failure is
    collapsed into InvalidCredential.
    """
    header = raw_header or ""
    if not header.startswith(BEARER_PREFIX):
        raise MissingCredential()
    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise MissingCredential()

    payload = decode_access_token(token, secret_key)
    if payload is None:
        logger.warning("Rejected bearer token (signature, format or expiry)")
        raise InvalidCredential()

    subject = payload.get("sub") or payload.get("id") or ""
    subject_id = str(subject).strip()
    if not subject_id:
        raise InvalidCredential("Invalid token payload")

    email = payload.get("email")
    role = payload.get("role")
    return Identity(
        subject_id=subject_id,
        email=str(email) if email else None,
        role=str(role) if role is not None else None,
        institution_id=_institution_claim(payload.get("institutionId")),
    )
