import asyncio
import json
import logging
from typing import Dict, Set
from fastapi import WebSocket, WebSocketDisconnect
from collections import defaultdict

logger = logging.getLogger(__name__)

class WebSocketManager:
    """Live notification channels, keyed by recipient user id"""

    def __init__(self):
        self.active_connections: Dict[int, Set[WebSocket]] = defaultdict(set)
        self.lock = asyncio.Lock()

    async def connect(self, user_id: int, websocket: WebSocket):
        await websocket.accept()

        async with self.lock:
            self.active_connections[user_id].add(websocket)

        logger.info(f"User {user_id} connected to notifications. Open connections: {len(self.active_connections[user_id])}")

    async def disconnect(self, user_id: int, websocket: WebSocket):
        async with self.lock:
            if user_id in self.active_connections:
                self.active_connections[user_id].discard(websocket)
                if not self.active_connections[user_id]:
                    del self.active_connections[user_id]

        logger.info(f"User {user_id} disconnected from notifications")

    async def send_notification(self, user_id: int, notification: dict) -> int:
        """Push a notification to every open connection of the user; returns how many received it"""
        async with self.lock:
            connections = list(self.active_connections.get(user_id, ()))

        if not connections:
            logger.debug(f"No open notification connections for user {user_id}")
            return 0

        message = json.dumps({"type": "notification", "data": notification}, default=str)
        results = await asyncio.gather(
            *(self._send_message(connection, message) for connection in connections),
            return_exceptions=True,
        )

        delivered = 0
        async with self.lock:
            for connection, result in zip(connections, results):
                if result is True:
                    delivered += 1
                    continue
                logger.warning(f"Removing broken notification connection for user {user_id}")
                self.active_connections.get(user_id, set()).discard(connection)
            if user_id in self.active_connections and not self.active_connections[user_id]:
                del self.active_connections[user_id]
        return delivered

    async def _send_message(self, websocket: WebSocket, message: str) -> bool:
        try:
            await websocket.send_text(message)
            return True
        except WebSocketDisconnect:
            return False
        except Exception as e:
            logger.error(f"Error sending notification over WebSocket: {e}")
            return False

    async def get_total_connections_count(self) -> int:
        async with self.lock:
            return sum(len(connections) for connections in self.active_connections.values())

ws_manager = WebSocketManager()
