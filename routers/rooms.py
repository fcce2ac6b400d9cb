from fastapi import APIRouter, Request
from schemas.rooms import RoomsListResponse
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/api/rooms", tags=["rooms"])


@rooms_router.get("", response_model=RoomsListResponse)
async def list_rooms(request: Request):
    """
    List every open room.

    Returns the same snapshot a client gets from the ``get-rooms`` event:
    - name: Room name
    - userCount: Number of connected members
    - host: Connection id of the current host
    """
    client_host = request.client.host if request.client else 'unknown'
    store = request.app.state.store
    rooms = [summary.to_wire() for summary in store.list()]
    logger.info(f"Rooms list request from {client_host}: {len(rooms)} rooms")
    return RoomsListResponse(rooms=rooms)
