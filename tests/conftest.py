import random

import pytest

from secretdraw import create_app
from secretdraw.extensions import get_store
from secretdraw.services.events import create_event, join_event
from secretdraw.store import EventStore


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "data.json"


@pytest.fixture
def store(data_file):
    return EventStore.open(data_file)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def make_event(store):
    """Create an event with the given participant names; returns (event_id, {name: token})."""
    def _make(*names, expected=None, wishes=None):
        wishes = wishes or {}
        organizer, *others = names
        created = create_event(store, "Office Party", organizer, wishes.get(organizer, ""), expected)
        tokens = {organizer: created.organizer_token}
        for name in others:
            tokens[name] = join_event(store, created.event_id, name, wishes.get(name, "")).token
        return created.event_id, tokens

    return _make


@pytest.fixture
def app(data_file):
    app = create_app({
        "TESTING": True,
        "WTF_CSRF_ENABLED": False,
        "SECRET_KEY": "test-secret",
        "SECRETDRAW_DATA_FILE": str(data_file),
        "FORCE_HTTPS": False,
    })
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def app_store(app):
    with app.app_context():
        return get_store()
