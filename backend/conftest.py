# backend/conftest.py

"""
Pytest configuration and fixtures.
"""
from datetime import datetime, timedelta, timezone

import pytest

from apps.domain.services.template_store import TemplateStore
from apps.infrastructure.container import reset_fake_repository


class TickingClock:
    """Deterministic clock advancing one second per call"""

    def __init__(self, start=None, step=timedelta(seconds=1)):
        self.now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self):
        self.now = self.now + self.step
        return self.now


@pytest.fixture(autouse=True)
def fake_repository():
    """Fresh in-memory repository, also handed out by the container."""
    return reset_fake_repository()


@pytest.fixture
def clock():
    return TickingClock()


@pytest.fixture
def store(fake_repository, clock):
    """Template store that deletes directly."""
    return TemplateStore(fake_repository, require_approval=False, clock=clock)


@pytest.fixture
def approval_store(fake_repository, clock):
    """Template store whose deletes go through a pull request."""
    return TemplateStore(fake_repository, require_approval=True, clock=clock)


@pytest.fixture
def greeting_fields():
    return {
        "name": "Greeting",
        "content": "Hello",
        "department": "CS",
        "appCode": "APP1",
        "instructions": "Be polite",
        "examples": [{"input": "hi", "output": "Hello there"}],
    }
