# tests/test_balances.py - Parent balances and per-parent lesson views
from decimal import Decimal

from numbers_erp.models import Invoice, Role


def test_balances_sum_unbilled_lessons_per_parent(
    client, admin_headers, workspace, make_parent, make_student, make_tutor, make_lesson
):
    tutor = make_tutor(workspace)
    busy = make_parent(workspace, first_name="Bea", last_name="Busy")
    quiet = make_parent(workspace, first_name="Quinn", last_name="Quiet", current_balance=Decimal("100.00"))
    first = make_student(workspace, busy, first_name="Ada")
    second = make_student(workspace, busy, first_name="Ben")
    make_student(workspace, quiet, first_name="Cal")
    make_lesson(workspace, tutor, first, minutes=60, rate="40.00")
    make_lesson(workspace, tutor, second, minutes=30, rate="40.00")
    make_lesson(workspace, tutor, second, minutes=60, rate="40.00", billing_status="paid")

    response = client.get("/api/balances/", headers=admin_headers)

    assert response.status_code == 200
    rows = response.json()
    # Highest balance first
    assert [row["id"] for row in rows] == [str(quiet.id), str(busy.id)]
    busy_row = rows[1]
    assert busy_row["student_count"] == 2
    assert Decimal(str(busy_row["total_unbilled"])) == Decimal("60.00")
    assert Decimal(str(busy_row["total_paid"])) == Decimal("0.00")
    assert Decimal(str(rows[0]["total_unbilled"])) == Decimal("0.00")


def test_balances_sum_payments_on_childrens_invoices(
    client, db, admin_headers, workspace, make_parent, make_student
):
    parent = make_parent(workspace)
    student = make_student(workspace, parent)
    for paid in ("25.00", "15.50"):
        db.add(Invoice(
            workspace_id=workspace.id,
            student_id=student.id,
            invoice_number=f"INV-{paid}",
            amount_due=Decimal("50.00"),
            amount_paid=Decimal(paid),
            status="sent",
        ))
    db.commit()

    row = client.get("/api/balances/", headers=admin_headers).json()[0]

    assert Decimal(str(row["total_paid"])) == Decimal("40.50")


def test_parent_lessons_only_include_own_students(
    client, admin_headers, workspace, make_parent, make_student, make_tutor, make_lesson
):
    tutor = make_tutor(workspace)
    mine = make_parent(workspace, first_name="Mia", last_name="Mine")
    theirs = make_parent(workspace, first_name="Theo", last_name="Theirs")
    own_lesson = make_lesson(workspace, tutor, make_student(workspace, mine))
    make_lesson(workspace, tutor, make_student(workspace, theirs, first_name="Tia"))

    response = client.get(f"/api/balances/{mine.id}/lessons", headers=admin_headers)

    assert response.status_code == 200
    lessons = response.json()
    assert [lesson["id"] for lesson in lessons] == [str(own_lesson.id)]
    assert lessons[0]["student_name"] == "Sam Student"
    assert Decimal(str(lessons[0]["calculated_amount"])) == Decimal("40.00")


def test_balances_stay_inside_the_workspace(
    client, admin_headers, workspace, make_workspace, make_parent, make_student, make_tutor, make_lesson
):
    elsewhere = make_workspace("Rival Tutoring")
    outsider = make_parent(elsewhere, first_name="Otto", last_name="Outside")
    outside_lesson = make_lesson(elsewhere, make_tutor(elsewhere), make_student(elsewhere, outsider))
    make_parent(workspace)

    rows = client.get("/api/balances/", headers=admin_headers).json()
    assert str(outsider.id) not in [row["id"] for row in rows]

    response = client.get(f"/api/balances/{outsider.id}/lessons", headers=admin_headers)
    assert response.status_code == 404

    response = client.post(f"/api/balances/{outsider.id}/invoices", json={"lesson_ids": [str(outside_lesson.id)]}, headers=admin_headers)
    assert response.status_code == 404


def test_parent_user_sees_own_balance_lessons_only(
    client, workspace, make_parent, make_student, make_user, headers_for
):
    mine = make_parent(workspace, first_name="Mia", last_name="Mine")
    theirs = make_parent(workspace, first_name="Theo", last_name="Theirs")
    make_student(workspace, mine)
    headers = headers_for(make_user(workspace, Role.PARENT, email="mia@example.com", parent_id=mine.id))

    assert client.get(f"/api/balances/{mine.id}/lessons", headers=headers).status_code == 200
    assert client.get(f"/api/balances/{theirs.id}/lessons", headers=headers).status_code == 403
    assert client.get("/api/balances/", headers=headers).status_code == 403
