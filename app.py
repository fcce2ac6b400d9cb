from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from routers.rooms import rooms_router
from backend import RoomStore
from registry import ConnectionRegistry
from processor import EventProcessor
from dispatcher import BroadcastDispatcher
from constants import CORS_ORIGINS, LOG_FILE, LOG_LEVEL, STATIC_DIR, WS_PATH
import events
import asyncio
import uuid
import os
from typing import Optional
from logging_config import get_logger, setup_logging

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)


async def websocket_endpoint(websocket: WebSocket):
    """One signaling connection.

    Every frame is processed to completion against the room store before the
    next one is read; the resulting messages are then handed to the
    dispatcher. The disconnect teardown always runs, however the loop ends.
    """
    state = websocket.app.state
    connection_id = uuid.uuid4().hex

    await websocket.accept()
    state.registry.register(connection_id, websocket)
    logger.info(f"New client connected: {connection_id}")

    try:
        await state.dispatcher.send(connection_id, events.CONNECTED, {"id": connection_id})

        message_count = 0
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"WebSocket disconnected normally for connection {connection_id}")
                break

            raw = message.get("text")
            if raw is None:
                raw = (message.get("bytes") or b"").decode("utf-8", errors="replace")
            message_count += 1
            logger.debug(f"Received message #{message_count} from connection {connection_id}")

            outbound = state.processor.handle_raw(connection_id, raw)
            await state.dispatcher.dispatch(connection_id, outbound)

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for connection {connection_id}")
    except Exception as e:
        logger.error(f"WebSocket error for connection {connection_id}: {e}", exc_info=True)
        try:
            await websocket.close()
        except Exception as close_error:
            logger.debug(f"Error closing WebSocket: {close_error}")
    finally:
        # Unregister first so the departing connection gets none of its own teardown
        state.registry.unregister(connection_id)
        outbound = state.processor.handle(connection_id, events.DISCONNECT)
        logger.info(f"Client disconnected: {connection_id}")
        # Teardown notifications still go out when this task is being cancelled
        await asyncio.shield(state.dispatcher.dispatch(connection_id, outbound))


def create_app(store: Optional[RoomStore] = None, static_dir: Optional[str] = STATIC_DIR) -> FastAPI:
    app = FastAPI(
        title="LAN Relay",
        description="Rendezvous and WebRTC signaling relay for virtual LAN rooms",
        version="1.0.0",
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    registry = ConnectionRegistry()
    app.state.store = store if store is not None else RoomStore()
    app.state.registry = registry
    app.state.processor = EventProcessor(app.state.store, registry)
    app.state.dispatcher = BroadcastDispatcher(app.state.store, registry)

    app.include_router(rooms_router)
    app.add_api_websocket_route(WS_PATH, websocket_endpoint)

    @app.get("/health")
    def health():
        return {"status": "healthy"}

    # Mounted last: a "/" mount would otherwise shadow the routes above
    if static_dir and os.path.isdir(static_dir):
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
        logger.info(f"Serving static files from {static_dir}")

    logger.info("FastAPI application initialized")
    return app


app = create_app()
