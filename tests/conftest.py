# tests/conftest.py - In-memory database, API client and record factories
import os

os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SITE_URL", "http://testserver")

from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from numbers_erp.core.db import get_db
from numbers_erp.core.security import password_manager
from numbers_erp.main import app
from numbers_erp.models import (
    Base,
    Workspace,
    User,
    Role,
    Parent,
    Student,
    Employee,
    Service,
    Location,
    Lesson,
)
from numbers_erp.services.auth_service import AuthService
from numbers_erp.services.email_service import EmailService

PASSWORD = "Secret123"
LESSON_DAY = datetime(2026, 10, 5, 15, 0)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Capture outgoing mail instead of talking to SMTP"""
    outbox = []

    def fake_send(self, to_email, subject, body_text, body_html=None, reply_to=None):
        outbox.append({"to": to_email, "subject": subject, "text": body_text, "html": body_html})
        return True

    monkeypatch.setattr(EmailService, "send_email", fake_send)
    return outbox


@pytest.fixture
def make_workspace(db):
    def factory(name="Numbers Tutoring"):
        workspace = Workspace(name=name)
        db.add(workspace)
        db.commit()
        return workspace
    return factory


@pytest.fixture
def workspace(make_workspace):
    return make_workspace()


@pytest.fixture
def make_user(db):
    def factory(workspace, role=Role.ADMIN, email=None, **links):
        user = User(
            email=email or f"{role.value}-{len(db.query(User).all())}@example.com",
            full_name=f"Test {role.value.capitalize()}",
            password_hash=password_manager.hash_password(PASSWORD),
            role=role.value,
            workspace_id=workspace.id if workspace else None,
            is_active=True,
            is_verified=True,
            **links,
        )
        db.add(user)
        db.commit()
        return user
    return factory


@pytest.fixture
def headers_for(db):
    def factory(user):
        token = AuthService(db).create_access_token_for_user(user)
        return {"Authorization": f"Bearer {token}"}
    return factory


@pytest.fixture
def admin(workspace, make_user):
    return make_user(workspace, Role.ADMIN, email="admin@example.com")


@pytest.fixture
def admin_headers(admin, headers_for):
    return headers_for(admin)


@pytest.fixture
def make_parent(db):
    def factory(workspace, first_name="Pat", last_name="Parent", email=None, **fields):
        parent = Parent(
            workspace_id=workspace.id,
            first_name=first_name,
            last_name=last_name,
            email=email or f"{first_name.lower()}.{last_name.lower()}@example.com",
            current_balance=fields.pop("current_balance", Decimal("0.00")),
            **fields,
        )
        db.add(parent)
        db.commit()
        return parent
    return factory


@pytest.fixture
def make_student(db):
    def factory(workspace, parent=None, first_name="Sam", last_name="Student", **fields):
        student = Student(
            workspace_id=workspace.id,
            parent_id=parent.id if parent else None,
            first_name=first_name,
            last_name=last_name,
            subjects=fields.pop("subjects", ["Math"]),
            status=fields.pop("status", "active"),
            **fields,
        )
        db.add(student)
        db.commit()
        return student
    return factory


@pytest.fixture
def make_tutor(db):
    def factory(workspace, first_name="Tess", last_name="Tutor", **fields):
        tutor = Employee(
            workspace_id=workspace.id,
            type=fields.pop("type", "tutor"),
            first_name=first_name,
            last_name=last_name,
            email=fields.pop("email", f"{first_name.lower()}@example.com"),
            status="active",
            lesson_wage_type=fields.pop("lesson_wage_type", "service-based"),
            subjects=fields.pop("subjects", ["Math"]),
            **fields,
        )
        db.add(tutor)
        db.commit()
        return tutor
    return factory


@pytest.fixture
def make_service(db):
    def factory(workspace, name="Math Tutoring", rate="40.00", cost="20.00"):
        service = Service(
            workspace_id=workspace.id,
            name=name,
            rate_per_hour=Decimal(rate),
            cost_per_hour=Decimal(cost) if cost is not None else None,
        )
        db.add(service)
        db.commit()
        return service
    return factory


@pytest.fixture
def make_location(db):
    def factory(workspace, name="Main Office", address="1 High Street"):
        location = Location(workspace_id=workspace.id, name=name, address=address)
        db.add(location)
        db.commit()
        return location
    return factory


@pytest.fixture
def make_lesson(db):
    def factory(
        workspace,
        tutor,
        student,
        minutes=60,
        rate="40.00",
        service=None,
        start=LESSON_DAY,
        status="completed",
        billing_status="unbilled",
        **fields,
    ):
        lesson = Lesson(
            workspace_id=workspace.id,
            tutor_id=tutor.id,
            student_id=student.id,
            service_id=service.id if service else None,
            start_time=start,
            end_time=start + timedelta(minutes=minutes or 0),
            duration_minutes=minutes,
            rate=Decimal(rate) if rate is not None else None,
            status=status,
            billing_status=billing_status,
            **fields,
        )
        db.add(lesson)
        db.commit()
        return lesson
    return factory
