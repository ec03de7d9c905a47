"""
Test configuration
Shared fixtures for the engine, persistence and API tests
"""

import pytest
from fastapi.testclient import TestClient

from meal_schedule.app import create_app
from meal_schedule.core.database import DatabaseManager
from meal_schedule.models.schedule import ScheduleGraph
from meal_schedule.services.schedule_service import ScheduleService
from meal_schedule.services.session_service import SessionRegistry
from .factories import build_week_graph


@pytest.fixture
def week_graph():
    """Consistent one-group week"""
    return build_week_graph()


@pytest.fixture
def empty_graph():
    return ScheduleGraph()


@pytest.fixture
def test_db():
    """In-memory database"""
    db = DatabaseManager(":memory:")
    db.init_database()
    yield db
    db.close()


@pytest.fixture
def schedule_service(test_db):
    return ScheduleService(test_db)


@pytest.fixture
def registry(schedule_service):
    return SessionRegistry(schedule_service, ttl_minutes=30)


@pytest.fixture
def client(test_db):
    """Test client bound to the in-memory database"""
    app = create_app(test_db)
    return TestClient(app)


@pytest.fixture
def stored_week(schedule_service, week_graph):
    """Week graph stored for residence 'res-1' at version 1"""
    result = schedule_service.save_schedule("res-1", week_graph, expected_version=0)
    assert result.ok
    return week_graph
