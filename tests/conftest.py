import pytest
from fastapi.testclient import TestClient

from app import create_app
from backend import RoomStore
from processor import EventProcessor
from registry import ConnectionRegistry


@pytest.fixture
def store():
    return RoomStore()


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def processor(store, registry):
    return EventProcessor(store, registry)


@pytest.fixture
def client():
    # Entering the client shares one event loop between all WebSocket sessions
    with TestClient(create_app(static_dir=None)) as test_client:
        yield test_client
