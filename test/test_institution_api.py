"""
End-to-end tests for the institution administration endpoints.
"""
from conftest import auth_header, make_token


def _admin_headers(t, role="INSTITUTION_ADMIN"):
    return auth_header(make_token(t.admin_user_id, role, t.institution_id, t.admin_email))


def test_overview_is_scoped(client, tenants):
    response = client.get("/api/institution/overview", headers=_admin_headers(tenants.a))
    assert response.status_code == 200
    assert response.json() == {
        "ok": True,
        "data": {
            "institutionId": tenants.a.institution_id,
            "students": 1,
            "requestsPending": 1,
            "requestsTotal": 2,
        },
    }


def test_institution_role_alias(client, tenants):
    response = client.get("/api/institution/overview", headers=_admin_headers(tenants.b, role="institution"))
    assert response.status_code == 200
    assert response.json()["data"]["institutionId"] == tenants.b.institution_id


def test_student_role_is_forbidden(client, tenants):
    token = make_token(tenants.a.student_user_id, "STUDENT", tenants.a.institution_id)
    response = client.get("/api/institution/overview", headers=auth_header(token))
    assert response.status_code == 403
    assert response.json() == {"ok": False, "error": "forbidden", "detail": "Forbidden"}


def test_requires_credentials(client, tenants):
    response = client.get("/api/institution/students")
    assert response.status_code == 401
    assert response.json()["error"] == "missing_credential"


def test_students_listing_and_search(client, tenants):
    headers = _admin_headers(tenants.a)

    listed = client.get("/api/institution/students", headers=headers).json()["data"]
    assert [s["email"] for s in listed] == ["student@a.edu"]

    assert client.get("/api/institution/students", params={"q": "STUDENT@A"}, headers=headers).json()["data"]
    assert client.get("/api/institution/students", params={"q": "student@b"}, headers=headers).json()["data"] == []


def test_student_search_treats_wildcards_literally(client, tenants):
    headers = _admin_headers(tenants.a)

    for q in ("_", "%", "student_a", "\\"):
        response = client.get("/api/institution/students", params={"q": q}, headers=headers)
        assert response.status_code == 200
        assert response.json()["data"] == [], q

    dotted = client.get("/api/institution/students", params={"q": "@a.edu"}, headers=headers).json()["data"]
    assert [s["email"] for s in dotted] == ["student@a.edu"]


def test_requests_status_alias(client, tenants):
    headers = _admin_headers(tenants.a)

    pending = client.get("/api/institution/requests", params={"status": "pending"}, headers=headers).json()
    open_ = client.get("/api/institution/requests", params={"status": "OPEN"}, headers=headers).json()
    default = client.get("/api/institution/requests", headers=headers).json()
    closed = client.get("/api/institution/requests", params={"status": "CLOSED"}, headers=headers).json()

    assert pending == open_ == default
    assert [r["displayId"] for r in pending["data"]] == ["SEED-A-1"]
    assert [r["displayId"] for r in closed["data"]] == ["SEED-A-2"]


def test_new_student_request_shows_up_for_own_institution_only(client, tenants):
    student = auth_header(make_token(tenants.a.student_user_id, "STUDENT", tenants.a.institution_id))
    created = client.post("/api/student/requests", headers=student, json={"title": "Hall ticket"}).json()

    own = client.get("/api/institution/requests", headers=_admin_headers(tenants.a)).json()["data"]
    other = client.get("/api/institution/requests", headers=_admin_headers(tenants.b)).json()["data"]

    assert created["displayId"] in [r["displayId"] for r in own]
    assert created["displayId"] not in [r["displayId"] for r in other]


def test_account_without_institution_is_unrestricted(client, tenants):
    token = make_token(tenants.a.admin_user_id, "INSTITUTION_ADMIN", None)
    body = client.get("/api/institution/overview", headers=auth_header(token)).json()

    assert body["data"]["institutionId"] is None
    assert body["data"]["students"] == 2
    assert body["data"]["requestsTotal"] == 4
