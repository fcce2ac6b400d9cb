from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional


class Member(BaseModel):
    """One connection's seat in a room.

    Serialized with the field names browser clients expect:
    ``{"id", "username", "peerId"}``.
    """
    model_config = ConfigDict(populate_by_name=True)

    connection_id: str = Field(alias="id")
    display_name: str = Field(alias="username")
    # Filled in out of band by the peers themselves; the relay never sets it
    signaling_address: Optional[str] = Field(default=None, alias="peerId")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class RoomSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    member_count: int = Field(alias="userCount")
    host: str

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class RoomsListResponse(BaseModel):
    rooms: list[dict[str, Any]]
