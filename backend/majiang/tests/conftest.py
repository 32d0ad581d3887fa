import pytest

from majiang.messaging.router import MessageRouter
from majiang.server.app import create_app
from majiang.server.settings import GameServerSettings
from majiang.session.manager import SessionManager
from majiang.session.registry import RoomRegistry
from majiang.tests.mocks import MockConnection


@pytest.fixture
def registry():
    return RoomRegistry(max_rooms=10)


@pytest.fixture
def session_manager(registry):
    return SessionManager(registry)


@pytest.fixture
def message_router(session_manager):
    return MessageRouter(session_manager)


@pytest.fixture
def mock_connection():
    return MockConnection()


@pytest.fixture
def settings():
    return GameServerSettings(max_rooms=10, cors_origins=["http://localhost:3000"])


@pytest.fixture
def app(settings, session_manager, message_router):
    return create_app(settings=settings, session_manager=session_manager, message_router=message_router)
