from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Optional, Union
import logging

from fastapi import FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from robot_relay import __version__
from robot_relay.codec import to_document
from robot_relay.config import RelaySettings
from robot_relay.connections import WebSocketConnection
from robot_relay.history import TelemetryHistory
from robot_relay.registry import ConnectionRegistry
from robot_relay.router import RelayRouter

logger = logging.getLogger(__name__)


async def _receive_frames(websocket: WebSocket) -> AsyncIterator[Union[str, bytes]]:
    """Yield text or binary frames until the peer disconnects."""
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return
        if message.get("text") is not None:
            yield message["text"]
        elif message.get("bytes") is not None:
            yield message["bytes"]


def create_app(settings: Optional[RelaySettings] = None, router: Optional[RelayRouter] = None) -> FastAPI:
    settings = settings or RelaySettings.from_env()
    router = router or RelayRouter(ConnectionRegistry(), TelemetryHistory(settings.history_capacity))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Robot relay starting up...")
        yield
        logger.info("Robot relay shutting down...")

    app = FastAPI(
        title="Robot Relay",
        description="WebSocket relay between one robot and any number of operator consoles",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.router = router

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # WebSocket endpoint for the robot
    @app.websocket("/ws/robot")
    async def robot_endpoint(websocket: WebSocket):
        await websocket.accept()
        connection = WebSocketConnection(websocket, role="robot")
        try:
            await router.on_device_connected(connection)
            async for frame in _receive_frames(websocket):
                await router.on_device_frame(connection, frame)
        except WebSocketDisconnect:
            pass
        except Exception as e:
            logger.error(f"Robot connection error ({connection.label}): {e}", exc_info=True)
        finally:
            await router.on_device_disconnected(connection)

    # WebSocket endpoint for operator consoles
    @app.websocket("/ws/client")
    async def console_endpoint(websocket: WebSocket):
        await websocket.accept()
        connection = WebSocketConnection(websocket, role="console")
        try:
            await router.on_console_connected(connection)
            async for frame in _receive_frames(websocket):
                await router.on_console_frame(connection, frame)
        except WebSocketDisconnect:
            pass
        except Exception as e:
            logger.error(f"Console connection error ({connection.label}): {e}", exc_info=True)
        finally:
            await router.on_console_disconnected(connection)

    @app.get("/")
    async def root():
        return {
            "message": "Robot Relay",
            "version": __version__,
            "status": "running",
            "consoles": router.registry.console_count(),
        }

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
        }

    @app.get("/api/status")
    async def get_status():
        return to_document(router.status())

    @app.get("/api/telemetry/latest")
    async def get_latest_telemetry():
        report = router.history.latest()
        if report is None:
            raise HTTPException(status_code=404, detail="No telemetry data available")
        return to_document(report)

    @app.get("/api/telemetry/history")
    async def get_telemetry_history(limit: int = Query(100, ge=1)):
        """Most recent reports, oldest first."""
        reports = router.history.recent(min(limit, router.history.capacity))
        return {
            "count": len(reports),
            "capacity": router.history.capacity,
            "reports": [to_document(report) for report in reports],
        }

    return app


app = create_app()
