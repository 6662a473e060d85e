# tests/test_auth.py - Registration, login and password reset
from numbers_erp.core.security import password_manager
from numbers_erp.models import Role

PASSWORD = "Secret123"


def test_register_creates_workspace_admin(client):
    response = client.post("/api/auth/register", json={
        "email": "Owner@Example.com",
        "full_name": "Olivia Owner",
        "password": "Tutoring2024",
        "workspace_name": "Bright Minds",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["role"] == "admin"
    assert body["workspace_id"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "owner@example.com"
    assert me.json()["workspace_id"] == body["workspace_id"]


def test_register_rejects_duplicates_and_weak_passwords(client, admin):
    payload = {"email": admin.email, "full_name": "Copy Cat", "password": "Tutoring2024", "workspace_name": "Copy"}
    assert client.post("/api/auth/register", json=payload).status_code == 409

    payload.update(email="weak@example.com", password="password")
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 400
    assert "uppercase" in response.json()["detail"]


def test_login(client, admin):
    response = client.post("/api/auth/login", json={"email": admin.email, "password": PASSWORD})
    assert response.status_code == 200
    assert response.json()["workspace_id"] == str(admin.workspace_id)

    response = client.post("/api/auth/login", json={"email": admin.email, "password": "Wrong1234"})
    assert response.status_code == 401


def test_requests_need_a_valid_token(client, workspace):
    assert client.get("/api/students/").status_code in (401, 403)
    response = client.get("/api/students/", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_deactivated_account_is_refused(client, db, admin, admin_headers):
    admin.is_active = False
    db.commit()
    assert client.get("/api/auth/me", headers=admin_headers).status_code == 401


def test_user_without_workspace_is_forbidden(client, make_user, headers_for):
    drifter = make_user(None, Role.ADMIN, email="drifter@example.com")
    response = client.get("/api/students/", headers=headers_for(drifter))
    assert response.status_code == 403


def test_forgot_password_answers_the_same_for_unknown_emails(client, admin, sent_emails):
    known = client.post("/api/auth/forgot-password", json={"email": admin.email})
    unknown = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()
    assert [email["to"] for email in sent_emails] == [admin.email]
    assert "/reset-password?token=" in sent_emails[0]["text"]


def test_reset_password_rejects_bad_tokens(client, admin):
    response = client.post("/api/auth/reset-password", json={
        "token": "made-up-token",
        "email": admin.email,
        "new_password": "Different2024",
    })
    assert response.status_code == 400


def test_password_strength_rules():
    assert password_manager.validate_password_strength("Tutoring2024")["valid"] is True
    result = password_manager.validate_password_strength("short")
    assert result["valid"] is False
    assert "Password must be at least 8 characters long" in result["feedback"]


def test_unusable_password_never_verifies():
    assert password_manager.verify_password("anything", password_manager.unusable_password()) is False
