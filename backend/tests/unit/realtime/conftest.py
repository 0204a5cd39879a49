"""Fixtures for the in-memory realtime layer."""

import uuid

import pytest
from realtime_fakes import FakeChannel

from marknote.realtime.hub import CollabHub


@pytest.fixture
def hub():
    hub = CollabHub()
    hub.init()
    return hub


@pytest.fixture
def connect(hub):
    """Register a connection backed by a ``FakeChannel``."""

    def _connect(name=None, user_id=None, fail=False):
        channel = FakeChannel(fail=fail)
        connection = hub.connect(
            channel,
            user_id=user_id if user_id is not None else uuid.uuid4(),
            display_identity=name,
        )
        return connection, channel

    return _connect
