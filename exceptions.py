"""Errors raised by the room store and event processor.

All of them are caller mistakes: the processor turns them into an ``error``
event for the originating connection and never lets them reach the transport.
"""


class SignalingError(Exception):
    """Base class for every error surfaced to a client as an ``error`` event"""
    pass


class InvalidArgument(SignalingError):
    """Missing or empty room name / username"""
    def __init__(self, message: str = "Invalid room name or username"):
        super().__init__(message)


class RoomNotFound(SignalingError):
    def __init__(self, room_name):
        self.room_name = room_name
        super().__init__("Room does not exist")


class MalformedMessage(SignalingError):
    """Frame that is not JSON, has no known event name, or has a bad payload"""
    pass
