"""
Tests for the institution admin provisioning script.
"""
import pytest

from core.errors import ValidationError
from database.models import User, UserRole
from scripts import create_institution_user as script


@pytest.fixture
def use_test_database(database, monkeypatch):
    monkeypatch.setattr(script, "Database", lambda **kwargs: database)
    return database


@pytest.mark.parametrize("raw,expected", [(None, None), ("", None), ("  ", None), ("7", 7), (" 12 ", 12)])
def test_parse_institution_id(raw, expected):
    assert script.parse_institution_id(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "-3", "0", "1.5"])
def test_parse_institution_id_rejects_non_ids(raw):
    with pytest.raises(ValidationError):
        script.parse_institution_id(raw)


def test_non_numeric_institution_id_exits_cleanly(monkeypatch, capsys):
    monkeypatch.setenv("INSTITUTION_ID", "abc")

    def no_database(**kwargs):
        raise AssertionError("database must not be opened")

    monkeypatch.setattr(script, "Database", no_database)

    with pytest.raises(SystemExit) as exc_info:
        script.create_institution_user()

    assert exc_info.value.code == 1
    assert "INSTITUTION_ID must be a positive integer" in capsys.readouterr().out


def test_unknown_institution_exits_cleanly(use_test_database, monkeypatch, capsys):
    monkeypatch.setenv("INSTITUTION_ID", "999")

    with pytest.raises(SystemExit) as exc_info:
        script.create_institution_user()

    assert exc_info.value.code == 1
    assert "institution 999 does not exist" in capsys.readouterr().out


def test_creates_scoped_institution_admin(use_test_database, tenants, monkeypatch):
    monkeypatch.setenv("INSTITUTION_EMAIL", " Registrar@A.edu ")
    monkeypatch.setenv("INSTITUTION_PASSWORD", "Registrar#2026")
    monkeypatch.setenv("INSTITUTION_ID", str(tenants.a.institution_id))

    script.create_institution_user()

    with use_test_database.get_session() as db:
        user = db.query(User).filter(User.email == "registrar@a.edu").one()
        assert user.role is UserRole.INSTITUTION_ADMIN
        assert user.institution_id == tenants.a.institution_id
