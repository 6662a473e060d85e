# tests/test_calendar.py - Lessons as calendar events
from datetime import datetime, timedelta

import pytest

from numbers_erp.models import Role
from numbers_erp.services.calendar import DEFAULT_COLOR, status_color

LESSON_DAY = datetime(2026, 10, 5, 15, 0)


@pytest.fixture
def schedule(workspace, make_parent, make_student, make_tutor, make_service, make_location, make_lesson):
    parent = make_parent(workspace)
    ada = make_student(workspace, parent, first_name="Ada")
    ben = make_student(workspace, parent, first_name="Ben")
    tess = make_tutor(workspace)
    tom = make_tutor(workspace, first_name="Tom")
    math = make_service(workspace)
    make_location(workspace)
    lessons = {
        "done": make_lesson(workspace, tess, ada, service=math, status="completed", title="Fractions"),
        "next": make_lesson(workspace, tom, ben, status="scheduled", start=LESSON_DAY + timedelta(days=1)),
        "off": make_lesson(workspace, tom, ada, status="canceled", start=LESSON_DAY + timedelta(days=2)),
    }
    return {"ada": ada, "ben": ben, "tess": tess, "tom": tom, "math": math, "lessons": lessons}


def test_status_colors():
    assert status_color("completed") == "#22c55e"
    assert status_color("scheduled") == "#3b82f6"
    assert status_color("canceled") == "#ef4444"
    assert status_color("mystery") == DEFAULT_COLOR


def test_events_carry_times_colors_and_lesson(client, admin_headers, schedule):
    response = client.get("/api/calendar/events", headers=admin_headers)

    assert response.status_code == 200
    events = {event["id"]: event for event in response.json()}
    assert len(events) == 3

    done = events[str(schedule["lessons"]["done"].id)]
    assert done["title"] == "Fractions"
    assert done["backgroundColor"] == done["borderColor"] == "#22c55e"
    assert done["textColor"] == "#ffffff"
    assert done["start"] == LESSON_DAY.isoformat()
    assert done["extendedProps"]["lesson"]["service_name"] == "Math Tutoring"

    untitled = events[str(schedule["lessons"]["next"].id)]
    assert untitled["title"] == "Lesson with Ben Student"


def test_events_filter_by_tutor_and_status(client, admin_headers, schedule):
    params = {"tutor_id": str(schedule["tom"].id), "status": "all"}
    events = client.get("/api/calendar/events", params=params, headers=admin_headers).json()
    assert {event["id"] for event in events} == {
        str(schedule["lessons"]["next"].id),
        str(schedule["lessons"]["off"].id),
    }

    params = {"tutor_id": str(schedule["tom"].id), "status": "canceled", "student_id": "all"}
    events = client.get("/api/calendar/events", params=params, headers=admin_headers).json()
    assert [event["id"] for event in events] == [str(schedule["lessons"]["off"].id)]


def test_invalid_filter_id_is_rejected(client, admin_headers, schedule):
    response = client.get("/api/calendar/events", params={"service_id": "not-a-uuid"}, headers=admin_headers)
    assert response.status_code == 400


def test_student_calendar_shows_only_their_lessons(client, workspace, make_user, headers_for, schedule):
    student_user = make_user(workspace, Role.STUDENT, email="ben@example.com", student_id=schedule["ben"].id)

    events = client.get("/api/calendar/events", headers=headers_for(student_user)).json()

    assert [event["id"] for event in events] == [str(schedule["lessons"]["next"].id)]


def test_unlinked_tutor_sees_no_lessons(client, workspace, make_user, headers_for, schedule):
    tutor_user = make_user(workspace, Role.TUTOR, email="new-tutor@example.com")
    assert client.get("/api/calendar/events", headers=headers_for(tutor_user)).json() == []


def test_filter_options_list_people_on_lessons(client, admin_headers, schedule):
    response = client.get("/api/calendar/filters", headers=admin_headers)

    assert response.status_code == 200
    options = response.json()
    assert [tutor["name"] for tutor in options["tutors"]] == ["Tess Tutor", "Tom Tutor"]
    assert [student["name"] for student in options["students"]] == ["Ada Student", "Ben Student"]
    assert [service["name"] for service in options["services"]] == ["Math Tutoring"]
    assert options["locations"][0]["address"] == "1 High Street"
