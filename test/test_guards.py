"""
Tests for the role guard and the institution tenant guard.
"""
import pytest

from auth.guards import authorize, authorize_institution, normalize_role
from auth.security import Identity
from core.errors import Forbidden, Unauthenticated
from database.models import UserRole


def _identity(role, institution_id=None):
    return Identity(subject_id="1", role=role, institution_id=institution_id)


def test_role_match_is_case_insensitive():
    assert authorize(_identity("student"), ["STUDENT"])
    assert authorize(_identity("STUDENT"), ["Student"])


def test_any_one_of_the_required_roles_is_enough():
    assert authorize(_identity("FACULTY"), ["STUDENT", "FACULTY"])


def test_enum_members_are_accepted_as_required_roles():
    assert authorize(_identity("ADMIN"), [UserRole.ADMIN])


def test_non_matching_role_is_forbidden():
    with pytest.raises(Forbidden):
        authorize(_identity("STUDENT"), ["INSTITUTION", "INSTITUTION_ADMIN"])


def test_missing_identity_or_role_is_unauthenticated():
    with pytest.raises(Unauthenticated):
        authorize(None, ["STUDENT"])
    with pytest.raises(Unauthenticated):
        authorize(_identity(None), ["STUDENT"])


def test_blank_role_is_forbidden():
    with pytest.raises(Forbidden):
        authorize(_identity("   "), ["STUDENT"])


@pytest.mark.parametrize("role", ["INSTITUTION", "institution_admin", "Institution_Admin"])
def test_institution_roles_are_aliases(role):
    assert authorize_institution(_identity(role, institution_id=3))


@pytest.mark.parametrize("role", ["STUDENT", "FACULTY", "ADMIN", ""])
def test_tenant_guard_rejects_other_roles(role):
    with pytest.raises(Forbidden):
        authorize_institution(_identity(role))


def test_tenant_guard_without_role_is_unauthenticated():
    with pytest.raises(Unauthenticated):
        authorize_institution(_identity(None))


def test_role_normalization():
    assert normalize_role(" faculty ") == "FACULTY"
    assert normalize_role(None) is None
