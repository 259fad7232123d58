from datetime import datetime, timezone

import pytest

from scouting.api import create_app
from scouting.store import MemoryStore

# 2025-03-08 14:15:09 in Pacific time
FIXED_NOW = datetime(2025, 3, 8, 22, 15, 9, tzinfo=timezone.utc)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def app(store):
    app = create_app(store)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c
