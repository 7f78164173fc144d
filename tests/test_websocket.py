import pytest
import json
from fastapi.testclient import TestClient

from app.main import app, release_connection, websocket_endpoint
from app.services.desktop import desktop_service
from app.websocket import ConnectionManager, manager as global_manager


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def manager():
    """Fresh connection manager for each test"""
    return ConnectionManager()


class MockWebSocket:
    def __init__(self):
        self.sent_messages = []

    async def send_text(self, message: str):
        self.sent_messages.append(message)


class FailingWebSocket:
    async def send_text(self, message: str):
        raise Exception("Connection failed")


class BrokenWebSocket:
    """Socket that is accepted and then fails with a non-disconnect error"""

    async def accept(self):
        pass

    async def receive_text(self):
        raise RuntimeError("protocol error")


def test_websocket_connection(client):
    """Test that a user's WebSocket connection can be established"""
    with client.websocket_connect("/ws/u1") as websocket:
        assert websocket is not None


def test_connection_manager_starts_empty(manager):
    assert manager.connection_count("u1") == 0


@pytest.mark.asyncio
async def test_broadcast_reaches_only_that_user(manager):
    """Events of one desktop are not sent to other users"""
    mine = MockWebSocket()
    other = MockWebSocket()
    manager.active_connections["u1"].append(mine)
    manager.active_connections["u2"].append(other)

    await manager.broadcast("u1", "item_moved", {"item_id": "p1"})

    assert len(mine.sent_messages) == 1
    sent_data = json.loads(mine.sent_messages[0])
    assert sent_data["type"] == "item_moved"
    assert sent_data["data"]["item_id"] == "p1"
    assert other.sent_messages == []


@pytest.mark.asyncio
async def test_broadcast_all_keeps_order(manager):
    ws = MockWebSocket()
    manager.active_connections["u1"].append(ws)

    await manager.broadcast_all("u1", [("item_moved", {"n": 1}), ("confirmation_requested", {"n": 2})])

    assert [json.loads(m)["type"] for m in ws.sent_messages] == ["item_moved", "confirmation_requested"]


@pytest.mark.asyncio
async def test_failed_connections_removed(manager):
    """Test that failed connections are removed from the list"""
    manager.active_connections["u1"].append(FailingWebSocket())

    await manager.broadcast("u1", "item_moved", {"item_id": "p1"})

    assert manager.connection_count("u1") == 0


@pytest.mark.asyncio
async def test_broadcast_without_connections(manager):
    await manager.broadcast("nobody", "item_moved", {})
    assert manager.connection_count("nobody") == 0


def test_connection_manager_disconnect(manager):
    """Test that disconnect removes connection"""
    ws = MockWebSocket()
    manager.active_connections["u1"].append(ws)
    assert manager.connection_count("u1") == 1

    manager.disconnect("u1", ws)
    assert manager.connection_count("u1") == 0
    assert "u1" not in manager.active_connections


@pytest.mark.asyncio
async def test_socket_released_on_unexpected_error():
    """A socket failing with any error is unregistered"""
    with pytest.raises(RuntimeError):
        await websocket_endpoint(BrokenWebSocket(), "u-broken")

    assert global_manager.connection_count("u-broken") == 0


def test_last_connection_evicts_desktop():
    desktop_service.get_or_create_session("u-evict")
    first, second = MockWebSocket(), MockWebSocket()
    global_manager.active_connections["u-evict"].extend([first, second])

    release_connection("u-evict", first)
    assert "u-evict" in desktop_service.sessions

    release_connection("u-evict", second)
    assert "u-evict" not in desktop_service.sessions
