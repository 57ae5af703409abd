"""
Tests for bearer-token verification and password hashing.
"""
from datetime import timedelta

import pytest

from auth.guards import authorize
from auth.security import (
    Identity, create_access_token, get_password_hash, verify, verify_password,
)
from core.errors import Forbidden, InvalidCredential, MissingCredential

SECRET = "unit-test-secret"


def _bearer(claims, secret=SECRET, **kwargs):
    return f"Bearer {create_access_token(claims, secret_key=secret, **kwargs)}"


def test_verify_maps_claims_to_identity():
    header = _bearer({"sub": "42", "email": "s@a.edu", "role": "STUDENT", "institutionId": 7})

    identity = verify(header, secret_key=SECRET)

    assert identity == Identity(subject_id="42", email="s@a.edu", role="STUDENT", institution_id=7)


def test_verified_identity_passes_its_own_role_guard():
    for role in ("STUDENT", "FACULTY", "INSTITUTION_ADMIN"):
        identity = verify(_bearer({"sub": "1", "role": role}), secret_key=SECRET)
        assert authorize(identity, [role]) is identity


def test_empty_role_claim_is_forbidden_not_unauthenticated():
    identity = verify(_bearer({"sub": "1", "role": ""}), secret_key=SECRET)

    assert identity.role == ""
    with pytest.raises(Forbidden):
        authorize(identity, ["STUDENT"])


def test_legacy_id_claim_is_used_when_sub_missing():
    identity = verify(_bearer({"id": 99, "role": "STUDENT"}), secret_key=SECRET)
    assert identity.subject_id == "99"


def test_numeric_string_institution_claim_is_parsed():
    identity = verify(_bearer({"sub": "1", "role": "INSTITUTION", "institutionId": "12"}), secret_key=SECRET)
    assert identity.institution_id == 12


def test_absent_optional_claims_are_none():
    identity = verify(_bearer({"sub": "5"}), secret_key=SECRET)
    assert identity.email is None
    assert identity.role is None
    assert identity.institution_id is None


@pytest.mark.parametrize("header", [None, "", "Token abc", "bearer abc", "Bearer ", "Bearer    "])
def test_missing_or_malformed_header(header):
    with pytest.raises(MissingCredential):
        verify(header, secret_key=SECRET)


def test_altered_signature_is_rejected():
    token = create_access_token({"sub": "1", "role": "STUDENT"}, secret_key=SECRET)
    head, payload, signature = token.split(".")
    altered = ("A" if signature[0] != "A" else "B") + signature[1:]

    with pytest.raises(InvalidCredential):
        verify(f"Bearer {head}.{payload}.{altered}", secret_key=SECRET)


def test_wrong_secret_is_rejected():
    with pytest.raises(InvalidCredential):
        verify(_bearer({"sub": "1"}, secret="other-secret"), secret_key=SECRET)


def test_expired_token_is_rejected():
    header = _bearer({"sub": "1"}, expires_delta=timedelta(seconds=-30))
    with pytest.raises(InvalidCredential):
        verify(header, secret_key=SECRET)


def test_garbage_token_is_rejected():
    with pytest.raises(InvalidCredential):
        verify("Bearer not-a-jwt", secret_key=SECRET)


def test_empty_subject_is_rejected():
    with pytest.raises(InvalidCredential) as exc_info:
        verify(_bearer({"sub": "", "role": "STUDENT"}), secret_key=SECRET)
    assert exc_info.value.message == "Invalid token payload"


def test_non_numeric_institution_claim_is_rejected():
    with pytest.raises(InvalidCredential):
        verify(_bearer({"sub": "1", "institutionId": "abc"}), secret_key=SECRET)


def test_password_hash_round_trip():
    hashed = get_password_hash("s3cret-pass")

    assert verify_password("s3cret-pass", hashed)
    assert not verify_password("wrong-pass", hashed)
    assert not verify_password("s3cret-pass", "")
    assert not verify_password("s3cret-pass", "not-a-hash")


def test_password_longer_than_bcrypt_limit_is_refused():
    with pytest.raises(ValueError):
        get_password_hash("x" * 73)
