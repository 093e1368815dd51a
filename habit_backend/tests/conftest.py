import os

import pytest

# Ensure we default to memory backend for tests to avoid filesystem dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")
os.environ.setdefault("DAY_TIMEZONE", "UTC")

from src.api.main import app  # noqa: E402
from src.api.repositories import (  # noqa: E402
    InMemoryFocusTimeRepository,
    InMemoryHabitRepository,
    get_focus_time_repository,
    get_habit_repository,
)


@pytest.fixture
def habit_repo():
    return InMemoryHabitRepository()


@pytest.fixture
def focus_repo():
    return InMemoryFocusTimeRepository()


@pytest.fixture(autouse=True)
def fresh_repositories(habit_repo, focus_repo):
    """Give every test its own empty stores behind the API."""
    app.dependency_overrides[get_habit_repository] = lambda: habit_repo
    app.dependency_overrides[get_focus_time_repository] = lambda: focus_repo
    yield
    app.dependency_overrides.clear()
