from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional


class InboundFrame(BaseModel):
    """Envelope of every client frame: ``{"event": ..., "data": ...}``"""
    event: str
    data: Any = None


class RoomRequest(BaseModel):
    """Payload of create-room and join-room.

    Both fields default to empty so a missing value reaches the processor's
    own validation instead of failing schema parsing.
    """
    model_config = ConfigDict(populate_by_name=True)

    room_name: Optional[str] = Field(default="", alias="roomName")
    username: Optional[str] = ""


class SignalRequest(BaseModel):
    # Left untyped: a bad target is dropped like an absent one, never rejected
    to: Any = None
    signal: Any = None
