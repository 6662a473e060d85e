# tests/test_navigation.py - Role navigation and breadcrumbs
import pytest

from numbers_erp.models import Role
from numbers_erp.services.navigation import APP_NAME, BREADCRUMBS, nav_paths


def _labels(role):
    return [item["label"] for item in role.nav_items]


def test_each_role_has_its_own_navigation():
    assert _labels(Role.ADMIN) == ["Dashboard", "Calendar", "Students", "Tutoring", "Billing", "Settings"]
    assert _labels(Role.TUTOR) == ["Calendar", "My Lessons", "Students", "Profile"]
    assert _labels(Role.PARENT) == ["Calendar", "My Students", "Invoices", "Account"]
    assert _labels(Role.STUDENT) == ["Calendar", "My Lessons", "Profile"]


@pytest.mark.parametrize("value", [None, "", "superuser"])
def test_unknown_roles_fall_back_to_student(value):
    assert Role.parse(value) is Role.STUDENT
    assert Role.parse(value).nav_items == Role.STUDENT.nav_items


def test_role_parse_ignores_case_and_spaces():
    assert Role.parse(" Admin ") is Role.ADMIN


@pytest.mark.parametrize("role", list(Role))
def test_every_nav_path_has_a_breadcrumb(role):
    for path in nav_paths(role):
        assert BREADCRUMBS[path][0] == APP_NAME


def test_navigation_endpoint_follows_caller_role(client, workspace, make_user, headers_for, admin_headers):
    admin_nav = client.get("/api/navigation/", headers=admin_headers).json()
    assert admin_nav["role"] == "admin"
    assert admin_nav["breadcrumbs"]["invoices"] == [APP_NAME, "Billing", "Invoices"]

    parent = make_user(workspace, Role.PARENT, email="p@example.com")
    parent_nav = client.get("/api/navigation/", headers=headers_for(parent)).json()
    assert parent_nav["role"] == "parent"
    assert [item["label"] for item in parent_nav["items"]] == _labels(Role.PARENT)
    assert "reports" not in parent_nav["breadcrumbs"]
