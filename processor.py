"""
Event processor: the per-connection state machine over the room store.

Every inbound event is handled synchronously and returns the ordered list of
outbound messages it produced. Nothing here awaits, so one event always runs
to completion before the next one touches the store.

Connection states:
    Unbound --create-room/join-room--> Bound(room)
    Bound(room) --leave-room/disconnect--> Unbound
    Bound(room) --create-room/join-room(other)--> Bound(other)   (implicit leave first)
"""
import json
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional

from pydantic import ValidationError

import events
from backend import RoomStore
from exceptions import InvalidArgument, MalformedMessage, RoomNotFound, SignalingError
from registry import ConnectionRegistry
from schemas.events import InboundFrame, RoomRequest, SignalRequest
from schemas.rooms import Member
from logging_config import get_logger

logger = get_logger(__name__)


class Delivery(Enum):
    CALLER = "caller"          # the connection that sent the event
    ROOM = "room"              # every current member of ``target`` room
    CONNECTION = "connection"  # the single connection ``target``
    ALL = "all"                # every live connection


class Outbound(NamedTuple):
    event: str
    data: Any
    delivery: Delivery
    target: Optional[str] = None

    def to_frame(self) -> dict:
        return {"event": self.event, "data": self.data}


class EventProcessor:
    def __init__(self, store: RoomStore, registry: ConnectionRegistry):
        self.store = store
        self.registry = registry
        # connection_id -> room name the connection is currently bound to
        self._bindings: Dict[str, str] = {}
        self._handlers = {
            events.CREATE_ROOM: self._on_create_room,
            events.JOIN_ROOM: self._on_join_room,
            events.LEAVE_ROOM: self._on_leave_room,
            events.GET_ROOMS: self._on_get_rooms,
            events.SIGNAL: self._on_signal,
            events.DISCONNECT: self._on_disconnect,
        }

    def current_room(self, connection_id: str) -> Optional[str]:
        return self._bindings.get(connection_id)

    # ============ entry points ============

    def handle_raw(self, connection_id: str, raw: str) -> List[Outbound]:
        """Decode one client frame and process it.

        Frames naming the transport-only ``disconnect`` event are rejected the
        same way as unknown events.
        """
        try:
            frame = InboundFrame.model_validate(json.loads(raw))
        except (ValueError, RecursionError, ValidationError) as e:
            logger.warning(f"Malformed frame from connection {connection_id}: {e}")
            return [Outbound(events.ERROR, "Malformed message", Delivery.CALLER)]

        if frame.event not in events.CLIENT_EVENTS:
            logger.warning(f"Unknown event '{frame.event}' from connection {connection_id}")
            return [Outbound(events.ERROR, f"Unknown event: {frame.event}", Delivery.CALLER)]

        return self.handle(connection_id, frame.event, frame.data)

    def handle(self, connection_id: str, event: str, data: Any = None) -> List[Outbound]:
        handler = self._handlers.get(event)
        try:
            if handler is None:
                raise MalformedMessage(f"Unknown event: {event}")
            return handler(connection_id, data)
        except SignalingError as e:
            logger.info(f"Rejected {event} from connection {connection_id}: {e}")
            return [Outbound(events.ERROR, str(e), Delivery.CALLER)]

    # ============ operations ============

    def create_room(self, connection_id: str, room_name: str, username: str) -> List[Outbound]:
        if not room_name or not username:
            raise InvalidArgument()

        outbound = []
        if self._bound_elsewhere(connection_id, room_name):
            outbound.extend(self._leave(connection_id))

        self.store.ensure_room(room_name, connection_id)
        self._bind(connection_id, room_name, username)
        logger.info(f"{username} created room: {room_name}")

        outbound.append(Outbound(events.ROOM_CREATED, room_name, Delivery.CALLER))
        outbound.append(self._user_joined(room_name))
        outbound.append(self._rooms_list_updated())
        return outbound

    def join_room(self, connection_id: str, room_name: str, username: str) -> List[Outbound]:
        logger.info(f"{username} joining room: {room_name}")
        if not room_name or room_name not in self.store:
            raise RoomNotFound(room_name)
        if not username:
            raise InvalidArgument()

        outbound = []
        if self._bound_elsewhere(connection_id, room_name):
            outbound.extend(self._leave(connection_id))
            outbound.append(self._rooms_list_updated())

        self._bind(connection_id, room_name, username)

        outbound.append(Outbound(events.ROOM_JOINED, room_name, Delivery.CALLER))
        outbound.append(self._user_joined(room_name))
        return outbound

    def leave_room(self, connection_id: str) -> List[Outbound]:
        room_name = self.current_room(connection_id)
        if room_name is None:
            return []
        outbound = self._leave(connection_id)
        outbound.append(Outbound(events.ROOM_LEFT, room_name, Delivery.CALLER))
        outbound.append(self._rooms_list_updated())
        return outbound

    def get_rooms(self, connection_id: str) -> List[Outbound]:
        rooms = [summary.to_wire() for summary in self.store.list()]
        return [Outbound(events.ROOMS_LIST, rooms, Delivery.CALLER)]

    def signal(self, connection_id: str, target_id: Any, payload: Any) -> List[Outbound]:
        logger.debug(f"Signal from {connection_id} to {target_id}")
        # Best effort: unknown or gone targets are dropped without telling the sender
        if not isinstance(target_id, str) or not self.registry.is_connected(target_id):
            logger.debug(f"Dropping signal from {connection_id}: target {target_id} is not connected")
            return []
        return [Outbound(events.SIGNAL, {"from": connection_id, "signal": payload},
                         Delivery.CONNECTION, target_id)]

    def disconnect(self, connection_id: str) -> List[Outbound]:
        if self.current_room(connection_id) is None:
            return []
        outbound = self._leave(connection_id)
        outbound.append(self._rooms_list_updated())
        return outbound

    # ============ payload adapters ============

    def _on_create_room(self, connection_id: str, data: Any) -> List[Outbound]:
        request = _parse_room_request(data)
        return self.create_room(connection_id, request.room_name, request.username)

    def _on_join_room(self, connection_id: str, data: Any) -> List[Outbound]:
        request = _parse_room_request(data)
        return self.join_room(connection_id, request.room_name, request.username)

    def _on_leave_room(self, connection_id: str, data: Any) -> List[Outbound]:
        return self.leave_room(connection_id)

    def _on_get_rooms(self, connection_id: str, data: Any) -> List[Outbound]:
        return self.get_rooms(connection_id)

    def _on_signal(self, connection_id: str, data: Any) -> List[Outbound]:
        request = SignalRequest.model_validate(data if isinstance(data, dict) else {})
        return self.signal(connection_id, request.to, request.signal)

    def _on_disconnect(self, connection_id: str, data: Any) -> List[Outbound]:
        return self.disconnect(connection_id)

    # ============ helpers ============

    def _bind(self, connection_id: str, room_name: str, username: str):
        member = Member(connection_id=connection_id, display_name=username)
        room = self.store.add_member(room_name, member)
        self._bindings[connection_id] = room_name
        return room

    def _bound_elsewhere(self, connection_id: str, room_name: str) -> bool:
        """Whether binding to ``room_name`` needs an implicit leave first.

        Re-entering the room the connection is already in keeps its seat (and
        its host role) and only refreshes the member record.
        """
        current = self.current_room(connection_id)
        if current is None or current == room_name:
            return False
        logger.info(f"Connection {connection_id} moving from room {current} to {room_name}")
        return True

    def _leave(self, connection_id: str) -> List[Outbound]:
        room_name = self._bindings.pop(connection_id)
        result = self.store.remove_member(room_name, connection_id)
        logger.info(f"Connection {connection_id} left room {room_name}")

        if result.room_deleted:
            return []

        outbound = []
        if result.new_host is not None:
            outbound.append(Outbound(events.HOST_CHANGED, result.new_host, Delivery.ROOM, room_name))
        room = self.store.get(room_name)
        outbound.append(Outbound(
            events.USER_LEFT,
            {"userId": connection_id, "users": room.users_wire()},
            Delivery.ROOM,
            room_name,
        ))
        return outbound

    def _user_joined(self, room_name: str) -> Outbound:
        room = self.store.get(room_name)
        return Outbound(
            events.USER_JOINED,
            {"users": room.users_wire(), "host": room.host},
            Delivery.ROOM,
            room_name,
        )

    def _rooms_list_updated(self) -> Outbound:
        return Outbound(events.ROOMS_LIST_UPDATED, self.store.names(), Delivery.ALL)


def _parse_room_request(data: Any) -> RoomRequest:
    # Accept positional [roomName, username] as well as {"roomName", "username"}
    if isinstance(data, (list, tuple)):
        data = dict(zip(("roomName", "username"), data))
    elif data is None:
        data = {}
    elif not isinstance(data, dict):
        raise MalformedMessage("Invalid room payload")
    try:
        return RoomRequest.model_validate(data)
    except ValidationError as e:
        raise MalformedMessage("Invalid room payload") from e
