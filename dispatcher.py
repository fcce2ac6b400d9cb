import asyncio
import json
from typing import Any, Iterable, List, Tuple

from backend import RoomStore
from processor import Delivery, Outbound
from registry import ConnectionRegistry
from logging_config import get_logger

logger = get_logger(__name__)


class BroadcastDispatcher:
    """Delivers processor output to live WebSocket connections.

    Fire-and-forget: a send that fails is logged and dropped, never retried.
    """

    def __init__(self, store: RoomStore, registry: ConnectionRegistry):
        self.store = store
        self.registry = registry

    def resolve(self, caller_id: str, message: Outbound) -> List[str]:
        """Connection ids that should receive ``message``, as of right now."""
        if message.delivery is Delivery.CALLER:
            return [caller_id]
        if message.delivery is Delivery.ROOM:
            return self.store.member_ids(message.target)
        if message.delivery is Delivery.CONNECTION:
            return [message.target]
        return self.registry.ids()

    def plan(self, caller_id: str, messages: Iterable[Outbound]) -> List[Tuple[List[str], str]]:
        return [(self.resolve(caller_id, message), json.dumps(message.to_frame())) for message in messages]

    async def dispatch(self, caller_id: str, messages: Iterable[Outbound]):
        # Recipients are fixed before the first await so later events can't
        # change who receives this event's messages
        plan = self.plan(caller_id, messages)
        for recipients, text in plan:
            await self._send_many(recipients, text)

    async def send(self, connection_id: str, event: str, data: Any):
        await self._send_many([connection_id], json.dumps({"event": event, "data": data}))

    async def _send_many(self, recipients: List[str], text: str):
        send_tasks = []
        targets = []
        for conn_id in recipients:
            ws = self.registry.get(conn_id)
            if ws is None:
                logger.debug(f"Skipping send to {conn_id}: no live connection")
                continue
            send_tasks.append(ws.send_text(text))
            targets.append(conn_id)

        if not send_tasks:
            return

        results = await asyncio.gather(*send_tasks, return_exceptions=True)
        for conn_id, result in zip(targets, results):
            if isinstance(result, Exception):
                logger.warning(f"Error sending to connection {conn_id}: {result}")
        logger.debug(f"Delivered message to {len(send_tasks)} connections")
