# tests/test_dashboard_reports.py - Dashboard and financial report figures
from datetime import date, datetime, timedelta
from decimal import Decimal

from numbers_erp.models import Invoice, Role
from numbers_erp.services.dashboard import DashboardService, month_bounds
from numbers_erp.services.reports import ReportService

TODAY = date(2026, 10, 18)


def _invoice(db, workspace, student, due, paid, status="sent", created=None, number=None):
    invoice = Invoice(
        workspace_id=workspace.id,
        student_id=student.id,
        invoice_number=number or f"INV-{due}-{paid}-{status}",
        amount_due=Decimal(due),
        amount_paid=Decimal(paid),
        status=status,
        created_at=created or datetime(2026, 10, 2, 9, 0),
    )
    db.add(invoice)
    db.commit()
    return invoice


def test_month_bounds_roll_over_the_year():
    assert month_bounds(date(2026, 12, 15)) == (datetime(2026, 12, 1), datetime(2027, 1, 1))
    assert month_bounds(TODAY) == (datetime(2026, 10, 1), datetime(2026, 11, 1))


def test_dashboard_summary_for_the_month(db, workspace, make_parent, make_student, make_tutor, make_service, make_lesson):
    student = make_student(workspace, make_parent(workspace))
    tutor = make_tutor(workspace)
    service = make_service(workspace, name="Biology")
    make_lesson(workspace, tutor, student, service=service, start=datetime(2026, 10, 17, 16, 0))
    make_lesson(workspace, tutor, student, start=datetime(2026, 10, 17, 18, 0), title=None)
    make_lesson(workspace, tutor, student, start=datetime(2026, 9, 30, 10, 0))
    _invoice(db, workspace, student, "80.00", "0.00")
    _invoice(db, workspace, student, "20.00", "0.00", created=datetime(2026, 9, 12))

    summary = DashboardService(db).summary(workspace.id, today=TODAY)

    assert summary["total_revenue"] == Decimal("80.00")
    assert summary["active_accounts"] == 1
    assert summary["total_lessons"] == 2
    assert summary["growth_rate"] == "-%"

    recent = summary["recent_lessons"]
    assert [lesson["start_time"] for lesson in recent] == sorted((l["start_time"] for l in recent), reverse=True)
    assert recent[0]["title"] == "Lesson"
    assert recent[0]["service_type"] == "Unknown Service"
    assert recent[1]["service_type"] == "Biology"
    assert recent[0]["student_name"] == "Sam Student"

    chart = summary["lessons_chart_data"]
    assert len(chart) == 30
    assert chart[-1]["date"] == TODAY
    assert chart[0]["date"] == TODAY - timedelta(days=29)
    by_day = {point["date"]: point["lessons"] for point in chart}
    assert by_day[date(2026, 10, 17)] == 2
    assert by_day[date(2026, 9, 30)] == 1
    assert by_day[TODAY] == 0


def test_dashboard_endpoint_is_admin_only(client, admin_headers, workspace, make_user, headers_for):
    response = client.get("/api/dashboard/", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["growth_rate"] == "-%"
    assert len(response.json()["lessons_chart_data"]) == 30

    parent = make_user(workspace, Role.PARENT, email="p@example.com")
    assert client.get("/api/dashboard/", headers=headers_for(parent)).status_code == 403


def test_financial_report(db, workspace, make_parent, make_student, make_tutor, make_lesson):
    parent = make_parent(workspace, current_balance=Decimal("35.00"))
    make_parent(workspace, first_name="Second", current_balance=Decimal("15.00"))
    student = make_student(workspace, parent)
    tess = make_tutor(workspace)
    tom = make_tutor(workspace, first_name="Tom")
    make_lesson(workspace, tess, student, minutes=120, rate="40.00")
    make_lesson(workspace, tom, student, minutes=60, rate="50.00")
    make_lesson(workspace, tom, student, minutes=30, rate="60.00", status="scheduled")
    _invoice(db, workspace, student, "100.00", "50.00", status="pending")
    _invoice(db, workspace, student, "100.00", "100.00", status="paid")
    _invoice(db, workspace, student, "100.00", "75.00", status="sent", created=datetime(2026, 9, 5))

    report = ReportService(db).financial_report(workspace.id, today=TODAY)

    assert report["total_revenue"] == Decimal("225.00")
    assert report["monthly_revenue"] == Decimal("150.00")
    assert report["outstanding_balance"] == Decimal("50.00")
    assert report["average_invoice_value"] == Decimal("100.00")
    assert report["payment_collection_rate"] == 75.0
    assert report["total_lessons_delivered"] == 2
    assert report["average_hourly_rate"] == Decimal("50.00")
    assert report["top_performing_tutor"] == {"name": "Tess Tutor", "revenue": Decimal("80.00")}
    assert report["monthly_growth"] == 100.0
    assert report["unpaid_invoices_count"] == 2
    assert report["total_active_parents"] == 2
    assert report["average_lesson_duration"] == 70


def test_empty_report_defaults(client, admin_headers):
    response = client.get("/api/reports/financial", headers=admin_headers)

    assert response.status_code == 200
    report = response.json()
    assert report["top_performing_tutor"]["name"] == "No data"
    assert Decimal(str(report["top_performing_tutor"]["revenue"])) == Decimal("0")
    assert report["payment_collection_rate"] == 0
    assert report["monthly_growth"] == 0
    assert report["average_lesson_duration"] == 60
