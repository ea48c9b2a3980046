"""
Registration, login, session and profile endpoints.
"""
import logging

from services.storage_service import StorageService
from conftest import PASSWORD, register, login


def test_register_returns_user_without_password_and_logs_in(client):
    user = register(client, "ravi", "student", district="Mysuru", schoolId=1)

    assert user["username"] == "ravi"
    assert user["userType"] == "student"
    assert "password" not in user

    resp = client.get("/api/auth/session")
    assert resp.status_code == 200
    assert resp.json()["id"] == user["id"]


def test_register_school_creates_linked_school(client):
    admin = register(client, "headmaster", "school", schoolName="GHPS Hassan", district="Hassan")

    assert admin["schoolId"] is not None
    resp = client.get("/api/schools", params={"district": "Hassan"})
    assert resp.status_code == 200
    schools = resp.json()
    assert len(schools) == 1
    assert schools[0]["id"] == admin["schoolId"]
    assert schools[0]["name"] == "GHPS Hassan"
    assert schools[0]["adminId"] == admin["id"]


def test_register_school_requires_school_name(client):
    resp = client.post("/api/auth/register", json={
        "username": "hm", "password": PASSWORD, "email": "hm@eduaudit.org",
        "name": "HM", "userType": "school", "district": "Udupi",
    })
    assert resp.status_code == 400


def test_register_rejects_unknown_user_type(client):
    resp = client.post("/api/auth/register", json={
        "username": "x", "password": PASSWORD, "email": "x@eduaudit.org",
        "name": "X", "userType": "parent",
    })
    assert resp.status_code == 400


def test_duplicate_username_rejected(client):
    register(client, "ravi", "student")
    resp = client.post("/api/auth/register", json={
        "username": "ravi", "password": PASSWORD, "email": "other@eduaudit.org",
        "name": "Other", "userType": "student",
    })
    assert resp.status_code == 400
    assert "Username" in resp.json()["detail"]


def test_login_and_logout(client):
    register(client, "ravi", "student")
    client.post("/api/auth/logout")
    assert client.get("/api/auth/session").status_code == 401

    bad = client.post("/api/auth/login", json={"username": "ravi", "password": "wrong"})
    assert bad.status_code == 401

    user = login(client, "ravi")
    assert user["username"] == "ravi"
    assert client.get("/api/auth/session").status_code == 200

    resp = client.post("/api/auth/logout")
    assert resp.json() == {"message": "Logged out successfully"}
    assert client.get("/api/auth/session").status_code == 401


def test_protected_route_without_session_is_401(client):
    assert client.get("/api/complaints").status_code == 401


def test_user_can_update_only_own_profile(client):
    other = register(client, "asha", "student")
    me = register(client, "ravi", "student")

    resp = client.put(f"/api/user/{me['id']}", json={"classInfo": "9th B", "name": "Ravi K"})
    assert resp.status_code == 200
    assert resp.json()["classInfo"] == "9th B"
    assert resp.json()["name"] == "Ravi K"

    resp = client.put(f"/api/user/{other['id']}", json={"name": "Hacked"})
    assert resp.status_code == 403

    resp = client.get(f"/api/user/{other['id']}")
    assert resp.status_code == 200
    assert resp.json()["name"] == "Asha"
    assert "password" not in resp.json()


def test_password_change_takes_effect(client):
    me = register(client, "ravi", "student")
    client.put(f"/api/user/{me['id']}", json={"password": "newpass456"})
    client.post("/api/auth/logout")

    assert client.post("/api/auth/login", json={"username": "ravi", "password": PASSWORD}).status_code == 401
    assert client.post("/api/auth/login", json={"username": "ravi", "password": "newpass456"}).status_code == 200


def test_unknown_user_is_404(client):
    register(client, "ravi", "student")
    assert client.get("/api/user/999").status_code == 404


def test_metadata_and_health_are_public(client):
    meta = client.get("/api/metadata").json()
    assert len(meta["districts"]) == 30
    assert "Mid-day Meal" in meta["complaintCategories"]
    assert meta["complaintStatus"] == ["pending", "in_progress", "resolved", "rejected", "under_review"]

    health = client.get("/health").json()
    assert health["checks"]["database"]["status"] == "ok"


def test_role_fields_cannot_be_cleared(client):
    deo = register(client, "deo", "authority", district="Mysuru")
    resp = client.put(f"/api/user/{deo['id']}", json={"district": None})
    assert resp.status_code == 400
    resp = client.put(f"/api/user/{deo['id']}", json={"district": ""})
    assert resp.status_code == 400
    assert client.get(f"/api/user/{deo['id']}").json()["district"] == "Mysuru"

    hm = register(client, "headmaster", "school", schoolName="GHPS Mysuru", district="Mysuru")
    resp = client.put(f"/api/user/{hm['id']}", json={"schoolName": None})
    assert resp.status_code == 400
    assert client.get(f"/api/user/{hm['id']}").json()["schoolName"] == "GHPS Mysuru"

    # Other fields still update, and a school admin may clear district
    resp = client.put(f"/api/user/{hm['id']}", json={"designation": "Headmaster", "district": None})
    assert resp.status_code == 200
    assert resp.json()["designation"] == "Headmaster"


def test_register_school_survives_school_creation_failure(client, monkeypatch, caplog):
    def broken_create_school(db, data):
        raise RuntimeError("schools table unavailable")

    monkeypatch.setattr(StorageService, "create_school", staticmethod(broken_create_school))

    with caplog.at_level(logging.ERROR, logger="eduaudit"):
        resp = client.post("/api/auth/register", json={
            "username": "headmaster", "password": PASSWORD, "email": "headmaster@eduaudit.org",
            "name": "Headmaster", "userType": "school",
            "schoolName": "GHPS Mysuru", "district": "Mysuru",
        })

    assert resp.status_code == 201
    assert resp.json()["schoolId"] is None
    assert resp.json()["schoolName"] == "GHPS Mysuru"
    assert any("Error creating school" in r.getMessage() for r in caplog.records)
    assert client.get("/api/auth/session").json()["username"] == "headmaster"
