"""
Pytest configuration and fixtures for taskboard tests.

Provides database fixtures, backend fixtures and model factories.
"""

from itertools import count

import pytest
import pytest_asyncio

from taskboard.database import DatabaseManager
from taskboard.demo_data import seed_demo_data
from taskboard.models import Project, Subtask, Task
from taskboard.services.local_backend import LocalBackend


@pytest_asyncio.fixture
async def db_manager():
    """
    Create an in-memory SQLite database for testing.

    Yields:
        DatabaseManager instance with in-memory database
    """
    manager = DatabaseManager("sqlite+aiosqlite:///:memory:")
    await manager.initialize()

    yield manager

    await manager.close()


@pytest_asyncio.fixture
async def local_backend(db_manager):
    """LocalBackend over an empty database."""
    return LocalBackend(db_manager)


@pytest_asyncio.fixture
async def seeded_backend(db_manager):
    """LocalBackend over the demo dataset (project-1 holds task-1 and task-2)."""
    await seed_demo_data(db_manager)
    return LocalBackend(db_manager)


@pytest.fixture
def make_project():
    """Factory for Project models."""
    def factory(id: str = "project-1", name: str = "Website Redesign", **fields) -> Project:
        fields.setdefault("client_id", "client-1")
        fields.setdefault("provider_id", "provider-1")
        return Project(id=id, name=name, **fields)
    return factory


@pytest.fixture
def make_task():
    """Factory for Task models with sequential ids."""
    ids = count(1)

    def factory(title: str = "Task", **fields) -> Task:
        fields.setdefault("id", f"task-{next(ids)}")
        fields.setdefault("project_id", "project-1")
        fields.setdefault("provider_id", "provider-1")
        return Task(title=title, **fields)
    return factory


@pytest.fixture
def make_subtask():
    """Factory for Subtask models with sequential ids and positions."""
    ids = count(1)

    def factory(task_id: str, title: str = "Subtask", completed: bool = False, **fields) -> Subtask:
        number = next(ids)
        fields.setdefault("id", f"subtask-{number}")
        fields.setdefault("position", number)
        return Subtask(task_id=task_id, title=title, completed=completed, **fields)
    return factory
