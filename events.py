# Inbound events (client -> server)
CREATE_ROOM = "create-room"
JOIN_ROOM = "join-room"
LEAVE_ROOM = "leave-room"
GET_ROOMS = "get-rooms"
SIGNAL = "signal"
DISCONNECT = "disconnect"  # generated by the transport, never sent by clients

CLIENT_EVENTS = (CREATE_ROOM, JOIN_ROOM, LEAVE_ROOM, GET_ROOMS, SIGNAL)

# Outbound events (server -> client)
CONNECTED = "connected"
ERROR = "error"
ROOM_CREATED = "room-created"
ROOM_JOINED = "room-joined"
ROOM_LEFT = "room-left"
USER_JOINED = "user-joined"
USER_LEFT = "user-left"
HOST_CHANGED = "host-changed"
ROOMS_LIST = "rooms-list"
ROOMS_LIST_UPDATED = "rooms-list-updated"

# Frame shape: {"event": "<name>", "data": <payload>}
# - create-room / join-room data: {"roomName": str, "username": str}
# - signal data:                   {"to": <connection id>, "signal": <opaque>}
# - user-joined data:              {"users": {id: member}, "host": id}
# - user-left data:                {"userId": id, "users": {id: member}}
# - rooms-list data:               [{"name", "userCount", "host"}]
# - rooms-list-updated data:       [room name, ...]
