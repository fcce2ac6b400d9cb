from typing import Dict, List, NamedTuple, Optional

from exceptions import RoomNotFound
from schemas.rooms import Member, RoomSummary
from logging_config import get_logger

logger = get_logger(__name__)


class Room:
    """A named group of connections. Exists only while it has members."""

    def __init__(self, name: str, host: str):
        self.name = name
        self.host = host
        # connection_id -> Member, kept in join order so host succession is stable
        self.members: Dict[str, Member] = {}

    def users_wire(self) -> dict:
        return {conn_id: member.to_wire() for conn_id, member in self.members.items()}

    def summary(self) -> RoomSummary:
        return RoomSummary(name=self.name, member_count=len(self.members), host=self.host)


class RemovalResult(NamedTuple):
    room_deleted: bool
    new_host: Optional[str]


class RoomStore:
    """In-memory room registry.

    Not thread safe: every call is expected to come from the single event loop
    that runs the event processor, one event at a time.
    """

    def __init__(self):
        self._rooms: Dict[str, Room] = {}
        logger.debug("Initialized empty RoomStore")

    def ensure_room(self, name: str, creator_id: str) -> Room:
        """Return the room called ``name``, creating it with ``creator_id`` as host.

        The creator is not added as a member; the caller does that.
        """
        room = self._rooms.get(name)
        if room is None:
            room = Room(name, host=creator_id)
            self._rooms[name] = room
            logger.info(f"Room {name} created with host {creator_id}")
        return room

    def add_member(self, name: str, member: Member) -> Room:
        room = self._rooms.get(name)
        if room is None:
            raise RoomNotFound(name)
        if member.connection_id in room.members:
            logger.debug(f"Connection {member.connection_id} already in room {name}, updating member record")
        room.members[member.connection_id] = member
        logger.debug(f"Room {name} now has {len(room.members)} members")
        return room

    def remove_member(self, name: str, connection_id: str) -> RemovalResult:
        """Remove a member, deleting the room or promoting a new host as needed.

        When the host leaves a room that still has members, the earliest
        joined survivor becomes host.
        """
        room = self._rooms.get(name)
        if room is None or connection_id not in room.members:
            logger.debug(f"Connection {connection_id} is not a member of room {name}, nothing to remove")
            return RemovalResult(room_deleted=False, new_host=None)

        del room.members[connection_id]

        if not room.members:
            del self._rooms[name]
            logger.info(f"Room {name} is empty, deleted")
            return RemovalResult(room_deleted=True, new_host=None)

        if room.host == connection_id:
            room.host = next(iter(room.members))
            logger.info(f"Host {connection_id} left room {name}, new host is {room.host}")
            return RemovalResult(room_deleted=False, new_host=room.host)

        return RemovalResult(room_deleted=False, new_host=None)

    def get(self, name: str) -> Optional[Room]:
        return self._rooms.get(name)

    def member_ids(self, name: str) -> List[str]:
        room = self._rooms.get(name)
        return list(room.members) if room else []

    def list(self) -> List[RoomSummary]:
        return [room.summary() for room in self._rooms.values()]

    def names(self) -> List[str]:
        return list(self._rooms)

    def __contains__(self, name: str) -> bool:
        return name in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)
