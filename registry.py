"""Live WebSocket connections keyed by connection id."""
from typing import Dict, Optional

from fastapi import WebSocket

from logging_config import get_logger

logger = get_logger(__name__)


class ConnectionRegistry:
    def __init__(self):
        self._connections: Dict[str, WebSocket] = {}

    def register(self, connection_id: str, websocket: WebSocket):
        self._connections[connection_id] = websocket
        logger.debug(f"Registered connection {connection_id} (live connections: {len(self._connections)})")

    def unregister(self, connection_id: str):
        if self._connections.pop(connection_id, None) is not None:
            logger.debug(f"Unregistered connection {connection_id} (live connections: {len(self._connections)})")

    def get(self, connection_id: str) -> Optional[WebSocket]:
        return self._connections.get(connection_id)

    def is_connected(self, connection_id) -> bool:
        return connection_id in self._connections

    def ids(self) -> list:
        return list(self._connections)
