# tests/test_billing.py - Lesson amounts and invoice generation
from decimal import Decimal

import pytest
from fastapi import HTTPException
from sqlalchemy import select, func

from numbers_erp.models import Invoice, Lesson, Role, Service
from numbers_erp.models.invoice import InvoiceLineItem
from numbers_erp.services.billing import InvoiceService, calculate_lesson_amount, lesson_amount


@pytest.fixture
def family(workspace, make_parent, make_student, make_tutor):
    parent = make_parent(workspace)
    student = make_student(workspace, parent)
    tutor = make_tutor(workspace)
    return parent, student, tutor


@pytest.mark.parametrize("minutes, expected", [
    (0, "0.00"),
    (60, "40.00"),
    (90, "60.00"),
    (1440, "960.00"),
])
def test_lesson_amount_is_rate_times_hours(minutes, expected):
    assert calculate_lesson_amount(Decimal("40.00"), minutes) == Decimal(expected)


def test_lesson_without_duration_counts_as_an_hour():
    assert calculate_lesson_amount(Decimal("40.00"), None) == Decimal("40.00")


def test_amount_rounds_half_up_to_cents():
    # 25 * 20 / 60 = 8.333...
    assert calculate_lesson_amount(Decimal("25.00"), 20) == Decimal("8.33")
    # 0.03 * 30 / 60 = 0.015
    assert calculate_lesson_amount(Decimal("0.03"), 30) == Decimal("0.02")


def test_lesson_rate_falls_back_to_service_rate():
    lesson = Lesson(rate=None, duration_minutes=30, service=Service(name="SAT Prep", rate_per_hour=Decimal("80.00")))
    assert lesson_amount(lesson) == Decimal("40.00")

    lesson = Lesson(rate=None, duration_minutes=30)
    assert lesson_amount(lesson) == Decimal("0.00")


def test_invoice_two_lessons_totals_sixty_dollars(client, db, admin_headers, workspace, family, make_lesson):
    parent, student, tutor = family
    hour = make_lesson(workspace, tutor, student, minutes=60, rate="40.00")
    half_hour = make_lesson(workspace, tutor, student, minutes=30, rate="40.00")

    response = client.post(
        f"/api/balances/{parent.id}/invoices",
        json={"lesson_ids": [str(hour.id), str(half_hour.id)]},
        headers=admin_headers,
    )

    assert response.status_code == 201
    body = response.json()
    assert Decimal(str(body["amount_due"])) == Decimal("60.00")
    assert body["status"] == "pending"
    assert body["student_id"] == str(student.id)
    assert body["invoice_number"].startswith("INV-")
    assert len(body["line_items"]) == 2

    for lesson in (hour, half_hour):
        db.refresh(lesson)
        assert lesson.billing_status == "invoiced"
        assert str(lesson.invoice_id) == body["id"]


def test_line_items_match_invoiced_lessons(client, db, admin_headers, workspace, family, make_lesson, make_service):
    parent, student, tutor = family
    service = make_service(workspace, name="Algebra", rate="50.00")
    lessons = [
        make_lesson(workspace, tutor, student, minutes=45, rate="40.00"),
        make_lesson(workspace, tutor, student, minutes=90, rate=None, service=service),
        make_lesson(workspace, tutor, student, minutes=None, rate="35.00"),
    ]

    response = client.post(
        f"/api/balances/{parent.id}/invoices",
        json={"lesson_ids": [str(lesson.id) for lesson in lessons]},
        headers=admin_headers,
    )
    assert response.status_code == 201
    invoice = db.execute(select(Invoice)).scalar_one()

    invoiced = db.execute(select(Lesson).where(Lesson.billing_status == "invoiced")).scalars().all()
    assert len(invoiced) == 3
    for lesson in invoiced:
        count = db.execute(
            select(func.count(InvoiceLineItem.id)).where(InvoiceLineItem.lesson_id == lesson.id)
        ).scalar_one()
        assert count == 1

    items = db.execute(
        select(InvoiceLineItem).where(InvoiceLineItem.invoice_id == invoice.id)
    ).scalars().all()
    assert sum((item.subtotal for item in items), Decimal("0")) == invoice.amount_due
    # 30.00 + 75.00 + 35.00
    assert invoice.amount_due == Decimal("140.00")

    by_lesson = {item.lesson_id: item for item in items}
    assert by_lesson[lessons[1].id].description == "Algebra - Sam Student"
    assert by_lesson[lessons[1].id].rate == Decimal("50.00")
    assert by_lesson[lessons[2].id].description == "Lesson - Sam Student"
    assert by_lesson[lessons[2].id].duration_minutes == 60


def test_already_invoiced_lesson_conflicts(client, db, admin_headers, workspace, family, make_lesson):
    parent, student, tutor = family
    lesson = make_lesson(workspace, tutor, student)
    url = f"/api/balances/{parent.id}/invoices"

    assert client.post(url, json={"lesson_ids": [str(lesson.id)]}, headers=admin_headers).status_code == 201
    response = client.post(url, json={"lesson_ids": [str(lesson.id)]}, headers=admin_headers)

    assert response.status_code == 409
    assert db.execute(select(func.count(Invoice.id))).scalar_one() == 1


def test_empty_selection_is_rejected(client, admin_headers, family):
    parent, _, _ = family
    response = client.post(f"/api/balances/{parent.id}/invoices", json={"lesson_ids": []}, headers=admin_headers)
    assert response.status_code == 400


def test_lessons_of_another_parent_cannot_be_billed(
    client, db, admin_headers, workspace, family, make_parent, make_student, make_lesson
):
    parent, _, tutor = family
    other_student = make_student(workspace, make_parent(workspace, first_name="Olive", last_name="Other"))
    lesson = make_lesson(workspace, tutor, other_student)

    response = client.post(
        f"/api/balances/{parent.id}/invoices",
        json={"lesson_ids": [str(lesson.id)]},
        headers=admin_headers,
    )

    assert response.status_code == 404
    db.refresh(lesson)
    assert lesson.billing_status == "unbilled"
    assert db.execute(select(func.count(Invoice.id))).scalar_one() == 0


def test_failed_commit_leaves_no_partial_invoice(db, monkeypatch, admin, workspace, family, make_lesson):
    parent, student, tutor = family
    first = make_lesson(workspace, tutor, student, minutes=60)
    second = make_lesson(workspace, tutor, student, minutes=30)

    def broken_commit():
        raise RuntimeError("connection lost")

    monkeypatch.setattr(db, "commit", broken_commit)

    with pytest.raises(HTTPException) as exc_info:
        InvoiceService(db).create_from_lessons(workspace.id, parent.id, [first.id, second.id], admin)

    assert exc_info.value.status_code == 500

    assert db.execute(select(func.count(Invoice.id))).scalar_one() == 0
    assert db.execute(select(func.count(InvoiceLineItem.id))).scalar_one() == 0
    for lesson in (first, second):
        db.refresh(lesson)
        assert lesson.billing_status == "unbilled"
        assert lesson.invoice_id is None


def test_deleting_invoice_returns_lessons_to_unbilled(client, db, admin_headers, workspace, family, make_lesson):
    parent, student, tutor = family
    lesson = make_lesson(workspace, tutor, student)
    created = client.post(
        f"/api/balances/{parent.id}/invoices",
        json={"lesson_ids": [str(lesson.id)]},
        headers=admin_headers,
    ).json()

    response = client.delete(f"/api/invoices/{created['id']}", headers=admin_headers)

    assert response.status_code == 204
    db.expire_all()
    lesson = db.get(Lesson, lesson.id)
    assert lesson.billing_status == "unbilled"
    assert lesson.invoice_id is None
    assert db.execute(select(func.count(InvoiceLineItem.id))).scalar_one() == 0


def test_invoiced_lesson_cannot_be_deleted_or_rebilled_by_edit(
    client, admin_headers, workspace, family, make_lesson
):
    parent, student, tutor = family
    lesson = make_lesson(workspace, tutor, student)
    client.post(f"/api/balances/{parent.id}/invoices", json={"lesson_ids": [str(lesson.id)]}, headers=admin_headers)

    assert client.delete(f"/api/lessons/{lesson.id}", headers=admin_headers).status_code == 409
    response = client.put(f"/api/lessons/{lesson.id}", json={"rate": "99.00"}, headers=admin_headers)
    assert response.status_code == 409

    response = client.put(f"/api/lessons/{lesson.id}", json={"description": "Worked on fractions"}, headers=admin_headers)
    assert response.status_code == 200


def test_manual_invoice_crud(client, admin_headers, workspace, family):
    _, student, _ = family

    response = client.post(
        "/api/invoices/",
        json={"student_id": str(student.id), "amount_due": "120.00", "description": "October package"},
        headers=admin_headers,
    )
    assert response.status_code == 201
    invoice = response.json()
    assert invoice["status"] == "draft"
    assert invoice["student_name"] == "Sam Student"
    assert invoice["due_date"] is not None

    response = client.put(
        f"/api/invoices/{invoice['id']}",
        json={"amount_paid": "120.00", "status": "paid"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "paid"
    assert Decimal(str(response.json()["amount_paid"])) == Decimal("120.00")

    listed = client.get("/api/invoices/", params={"status": "paid"}, headers=admin_headers).json()
    assert [row["id"] for row in listed] == [invoice["id"]]

    response = client.put(f"/api/invoices/{invoice['id']}", json={"status": "lost"}, headers=admin_headers)
    assert response.status_code == 422


def test_parent_sees_only_own_invoices(
    client, db, admin_headers, workspace, family, make_parent, make_student, make_user, headers_for
):
    parent, student, _ = family
    other = make_student(workspace, make_parent(workspace, first_name="Olive", last_name="Other"))
    for owner in (student, other):
        client.post(
            "/api/invoices/",
            json={"student_id": str(owner.id), "amount_due": "10.00"},
            headers=admin_headers,
        )
    parent_user = make_user(workspace, Role.PARENT, email="pat@example.com", parent_id=parent.id)

    listed = client.get("/api/invoices/", headers=headers_for(parent_user)).json()

    assert len(listed) == 1
    assert listed[0]["student_id"] == str(student.id)
    other_invoice = db.execute(select(Invoice).where(Invoice.student_id == other.id)).scalar_one()
    response = client.get(f"/api/invoices/{other_invoice.id}", headers=headers_for(parent_user))
    assert response.status_code == 403
