# numbers_erp/services/navigation.py - Role navigation sets and breadcrumb trails
from typing import Dict, List

from numbers_erp.models.user import Role

APP_NAME = "Numbers ERP"


def _item(label: str, path: str = None, icon: str = None, children: List[dict] = None) -> dict:
    item = {"label": label, "icon": icon}
    if path:
        item["path"] = path
    if children:
        item["children"] = [{"label": child_label, "path": child_path} for child_label, child_path in children]
    return item


NAV_ITEMS: Dict[Role, List[dict]] = {
    Role.ADMIN: [
        _item("Dashboard", "dashboard", "bar-chart"),
        _item("Calendar", "calendar", "calendar"),
        _item("Students", icon="users", children=[
            ("All Students", "students"),
            ("Add Student", "students/new"),
        ]),
        _item("Tutoring", icon="book-open", children=[
            ("Services", "services"),
            ("Tutors", "tutors"),
            ("Lessons", "lessons"),
        ]),
        _item("Billing", icon="dollar-sign", children=[
            ("Invoices", "invoices"),
            ("Reports", "reports"),
        ]),
        _item("Settings", icon="settings", children=[
            ("General", "settings/general"),
            ("Users", "settings/users"),
            ("Preferences", "settings/preferences"),
        ]),
    ],
    Role.TUTOR: [
        _item("Calendar", "calendar", "calendar"),
        _item("My Lessons", "lessons", "book-open"),
        _item("Students", "students", "users"),
        _item("Profile", "profile", "settings"),
    ],
    Role.PARENT: [
        _item("Calendar", "calendar", "calendar"),
        _item("My Students", "students", "users"),
        _item("Invoices", "invoices", "dollar-sign"),
        _item("Account", "profile", "settings"),
    ],
    Role.STUDENT: [
        _item("Calendar", "calendar", "calendar"),
        _item("My Lessons", "lessons", "book-open"),
        _item("Profile", "profile", "settings"),
    ],
}

BREADCRUMBS: Dict[str, List[str]] = {
    "dashboard": [APP_NAME, "Dashboard"],
    "calendar": [APP_NAME, "Calendar"],
    "students": [APP_NAME, "Students", "All Students"],
    "students/new": [APP_NAME, "Students", "Add Student"],
    "services": [APP_NAME, "Tutoring", "Services"],
    "tutors": [APP_NAME, "Tutoring", "Tutors"],
    "lessons": [APP_NAME, "Lessons"],
    "invoices": [APP_NAME, "Billing", "Invoices"],
    "balances": [APP_NAME, "Billing", "Balances"],
    "payroll": [APP_NAME, "Billing", "Payroll"],
    "reports": [APP_NAME, "Billing", "Reports"],
    "settings/general": [APP_NAME, "Settings", "General"],
    "settings/users": [APP_NAME, "Settings", "Users"],
    "settings/preferences": [APP_NAME, "Settings", "Preferences"],
    "profile": [APP_NAME, "Profile"],
}


def nav_paths(role: Role) -> List[str]:
    """Every content key reachable from a role's navigation"""
    paths = []
    for item in role.nav_items:
        if "path" in item:
            paths.append(item["path"])
        paths.extend(child["path"] for child in item.get("children", []))
    return paths


def navigation_for(role: Role) -> dict:
    return {
        "role": role.value,
        "items": role.nav_items,
        "breadcrumbs": {path: BREADCRUMBS[path] for path in nav_paths(role) if path in BREADCRUMBS},
    }
