import json
import logging
from collections import defaultdict
from typing import Any, Dict, List
from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages WebSocket connections per user and broadcasts desktop events"""

    def __init__(self):
        self.active_connections: Dict[str, List[WebSocket]] = defaultdict(list)

    async def connect(self, user_id: str, websocket: WebSocket):
        """Accept and store a new WebSocket connection for a user"""
        await websocket.accept()
        self.active_connections[user_id].append(websocket)

    def disconnect(self, user_id: str, websocket: WebSocket):
        """Remove a WebSocket connection"""
        connections = self.active_connections.get(user_id, [])
        if websocket in connections:
            connections.remove(websocket)
        if not connections:
            self.active_connections.pop(user_id, None)

    def connection_count(self, user_id: str) -> int:
        return len(self.active_connections.get(user_id, []))

    async def broadcast(self, user_id: str, message_type: str, data: Dict[str, Any]):
        """Send a message to every client of one user"""
        message = {"type": message_type, "data": data}
        message_json = json.dumps(message, default=str)

        disconnected = []
        for connection in list(self.active_connections.get(user_id, [])):
            try:
                await connection.send_text(message_json)
            except Exception as e:
                logger.debug(f"Dropping connection for {user_id}: {e}")
                disconnected.append(connection)

        for connection in disconnected:
            self.disconnect(user_id, connection)

    async def broadcast_all(self, user_id: str, messages):
        """Broadcast (message_type, data) tuples in order"""
        for message_type, data in messages:
            await self.broadcast(user_id, message_type, data)


# Global connection manager instance
manager = ConnectionManager()
