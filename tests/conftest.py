"""
Pytest configuration and fixtures.

This file is automatically loaded by pytest and provides
shared fixtures for all tests.
"""

import pytest

from beaconelo.elo.events import EventDispatcher
from beaconelo.elo.store import RatingStore


@pytest.fixture
def ratings_path(tmp_path):
    """Location of a ratings file that does not exist yet."""
    return tmp_path / "data" / "elo_ratings.json"


@pytest.fixture
def received_events():
    """List that collects every event emitted through the `events` fixture."""
    return []


@pytest.fixture
def events(received_events):
    dispatcher = EventDispatcher()
    dispatcher.subscribe(received_events.append)
    return dispatcher


@pytest.fixture
def store(ratings_path, events):
    """
    A fresh store on an empty temporary directory.

    Each test gets its own file, so saves never leak between tests.
    """
    return RatingStore(ratings_path, events=events)


@pytest.fixture
def seeded_store(store):
    """Store with a few known players at hand-picked skills."""
    store.set_skill("alice", 1.0)
    store.set_skill("bob", 1.0)
    store.set_skill("carol", 4.0)
    store.set_skill("dave", 2.0)
    return store
