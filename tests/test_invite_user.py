# tests/test_invite_user.py - Account invitations
from urllib.parse import parse_qs, urlparse

from sqlalchemy import select, func

from numbers_erp.models import Role, User
from numbers_erp.models.password_reset import PasswordResetToken
from numbers_erp.services.invitation_service import CREATED_MESSAGE, LINKED_MESSAGE


def _invite(client, headers, workspace, **fields):
    payload = {
        "email": "new.person@example.com",
        "role": "parent",
        "first_name": "New",
        "last_name": "Person",
        "workspace_id": str(workspace.id),
    }
    payload.update(fields)
    return client.post("/api/invite-user", json=payload, headers=headers)


def _link_from(email):
    line = next(line for line in email["text"].splitlines() if "/reset-password?" in line)
    return parse_qs(urlparse(line.strip()).query)


def test_existing_account_is_linked_not_duplicated(
    client, db, admin_headers, workspace, make_parent, make_user, sent_emails
):
    parent = make_parent(workspace)
    existing = make_user(None, Role.STUDENT, email="pat.parent@example.com")

    response = _invite(
        client, admin_headers, workspace,
        email="Pat.Parent@example.com", role="parent", parent_id=str(parent.id),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == LINKED_MESSAGE
    assert body["user"]["id"] == str(existing.id)
    assert db.execute(
        select(func.count(User.id)).where(User.email == "pat.parent@example.com")
    ).scalar_one() == 1

    db.refresh(existing)
    assert existing.role == "parent"
    assert existing.workspace_id == workspace.id
    assert existing.parent_id == parent.id
    assert sent_emails == []


def test_account_of_another_workspace_is_not_taken_over(
    client, db, admin_headers, workspace, make_workspace, make_student, make_user, sent_emails
):
    rival = make_workspace("Rival Tutoring")
    rival_admin = make_user(rival, Role.ADMIN, email="boss@rival.example.com")
    student = make_student(workspace)

    response = _invite(
        client, admin_headers, workspace,
        email="boss@rival.example.com", role="student", student_id=str(student.id),
    )

    assert response.status_code == 409
    assert response.json() == {"success": False, "error": "User belongs to another workspace"}
    db.refresh(rival_admin)
    assert rival_admin.workspace_id == rival.id
    assert rival_admin.role == "admin"
    assert rival_admin.student_id is None
    assert sent_emails == []


def test_existing_account_in_same_workspace_is_relinked(
    client, db, admin_headers, workspace, make_tutor, make_user
):
    tutor = make_tutor(workspace)
    existing = make_user(workspace, Role.STUDENT, email="tess@example.com")

    response = _invite(
        client, admin_headers, workspace,
        email="tess@example.com", role="tutor", employee_id=str(tutor.id),
    )

    assert response.status_code == 200
    assert response.json()["message"] == LINKED_MESSAGE
    db.refresh(existing)
    assert existing.role == "tutor"
    assert existing.employee_id == tutor.id


def test_new_account_gets_invitation_email(client, db, admin_headers, workspace, make_tutor, sent_emails):
    tutor = make_tutor(workspace)

    response = _invite(
        client, admin_headers, workspace,
        email="tess@example.com", role="tutor", employee_id=str(tutor.id),
    )

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == CREATED_MESSAGE
    assert body["user"]["employee_id"] == str(tutor.id)

    user = db.execute(select(User).where(User.email == "tess@example.com")).scalar_one()
    assert user.role == "tutor"
    assert user.is_verified is False
    assert user.password_hash.startswith("!")
    token = db.execute(select(PasswordResetToken).where(PasswordResetToken.user_id == user.id)).scalar_one()
    assert token.purpose == "invite"

    assert len(sent_emails) == 1
    assert sent_emails[0]["to"] == "tess@example.com"
    link = _link_from(sent_emails[0])
    assert link["email"] == ["tess@example.com"]
    # Only the hash is stored
    assert link["token"][0] != token.token


def test_invited_user_sets_password_and_signs_in(client, admin_headers, workspace, sent_emails):
    _invite(client, admin_headers, workspace, email="grace@example.com", role="parent")
    link = _link_from(sent_emails[0])

    response = client.post("/api/auth/reset-password", json={
        "token": link["token"][0],
        "email": "grace@example.com",
        "new_password": "Welcome2024",
    })
    assert response.status_code == 200
    assert response.json()["success"] is True

    login = client.post("/api/auth/login", json={"email": "grace@example.com", "password": "Welcome2024"})
    assert login.status_code == 200
    assert login.json()["role"] == "parent"

    # Tokens are single use
    response = client.post("/api/auth/reset-password", json={
        "token": link["token"][0],
        "email": "grace@example.com",
        "new_password": "Another2024",
    })
    assert response.status_code == 400


def test_missing_fields_are_reported(client, admin_headers, workspace):
    response = client.post(
        "/api/invite-user",
        json={"email": "x@example.com", "role": "student", "workspace_id": str(workspace.id)},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Missing required fields"}


def test_only_the_id_matching_the_role_is_attached(client, db, admin_headers, workspace, make_parent, make_student):
    parent = make_parent(workspace)
    student = make_student(workspace, parent)

    response = _invite(
        client, admin_headers, workspace,
        email="sam@example.com", role="student",
        student_id=str(student.id), parent_id=str(parent.id),
    )

    assert response.status_code == 200
    user = db.execute(select(User).where(User.email == "sam@example.com")).scalar_one()
    assert user.student_id == student.id
    assert user.parent_id is None


def test_invalid_role_and_unknown_record_are_refused(client, admin_headers, workspace, make_workspace, make_parent):
    assert _invite(client, admin_headers, workspace, role="principal").status_code == 400

    foreign = make_parent(make_workspace("Rival Tutoring"))
    response = _invite(client, admin_headers, workspace, parent_id=str(foreign.id))
    assert response.status_code == 404
    assert response.json()["success"] is False


def test_invites_are_limited_to_own_workspace_admins(
    client, admin_headers, workspace, make_workspace, make_user, headers_for
):
    other = make_workspace("Rival Tutoring")
    assert _invite(client, admin_headers, other).status_code == 403

    tutor = make_user(workspace, Role.TUTOR, email="tutor@example.com")
    assert _invite(client, headers_for(tutor), workspace).status_code == 403
