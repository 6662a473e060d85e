# tests/test_db.py - Database manager and health endpoints
import pytest
from sqlalchemy import select

from numbers_erp.core.db import DatabaseManager
from numbers_erp.models import Base, Workspace


@pytest.fixture
def manager():
    manager = DatabaseManager("sqlite://")
    manager.initialize()
    Base.metadata.create_all(bind=manager.engine)
    yield manager
    manager.close()


def test_health_check_reports_healthy(manager):
    health = manager.health_check()
    assert health["status"] == "healthy"
    assert health["database_url"] == "local"


def test_transaction_commits_on_success(manager):
    with manager.transaction() as session:
        session.add(Workspace(name="Committed"))

    with manager.transaction() as session:
        names = session.execute(select(Workspace.name)).scalars().all()
    assert names == ["Committed"]


def test_transaction_rolls_back_on_error(manager):
    with pytest.raises(RuntimeError):
        with manager.transaction() as session:
            session.add(Workspace(name="Lost"))
            session.flush()
            raise RuntimeError("boom")

    with manager.transaction() as session:
        assert session.execute(select(Workspace)).scalars().all() == []


def test_health_and_root_endpoints(client):
    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["environment"] == "test"

    root = client.get("/").json()
    assert root["message"] == "Numbers ERP API"
