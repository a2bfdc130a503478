"""FastAPI application entry point for the light bridge."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from config import settings
from lightbridge.api.routes.lights import router as lights_router
from lightbridge.api.websocket import ws_manager
from lightbridge.devices.registry import light_registry
from lightbridge.integrations.home_assistant import ha_client
from lightbridge.models.device import LightConfig
from lightbridge.mqtt.client import mqtt_client
from lightbridge.storage.kv_store import kv_store

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
# Quiet noisy loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("aiosqlite").setLevel(logging.WARNING)
logging.getLogger("mqtt").setLevel(logging.ERROR)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle."""
    logger.info(f"Starting {settings.app_name}")

    await kv_store.initialize()
    light_registry.load_from_yaml(settings.lights_config_path)
    if not light_registry.lights and settings.default_entity_id:
        light_registry.register(LightConfig(id="default", entity_id=settings.default_entity_id))

    try:
        await mqtt_client.connect()
    except TimeoutError:
        logger.warning(
            f"MQTT broker {settings.mqtt_host}:{settings.mqtt_port} not available yet, "
            "will keep retrying in the background"
        )

    # Subscriptions are replayed on (re)connect, so lights start either way
    await light_registry.start_all()

    logger.info(f"{settings.app_name} is ready with {len(light_registry.lights)} lights")
    yield

    logger.info("Shutting down...")
    await light_registry.stop_all()
    await mqtt_client.disconnect()
    await ha_client.close()
    await kv_store.close()


app = FastAPI(
    title=settings.app_name,
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(lights_router, prefix="/api/v1")


@app.get("/api/v1/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "mqtt_connected": mqtt_client.is_connected,
        "home_assistant_configured": ha_client.configured,
        "lights_count": len(light_registry.lights),
        "websocket_connections": ws_manager.connection_count,
    }


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, light_id: str | None = None):
    """Controller notifications in real time, optionally for one light."""
    await ws_manager.connect(websocket, light_id)
    try:
        await ws_manager.send_to(websocket, "initial_state", light_registry.get_all_states())
        while True:
            data = await websocket.receive_text()
            logger.debug(f"WS received: {data}")
    except WebSocketDisconnect:
        await ws_manager.disconnect(websocket)


def run() -> None:
    import uvicorn

    uvicorn.run(
        "lightbridge.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
