"""Central configuration using Pydantic BaseSettings."""

from pydantic_settings import BaseSettings
from pydantic import Field
from pathlib import Path


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    # MQTT (controller link + Home Assistant event stream)
    mqtt_host: str = Field(default="localhost", alias="MQTT_HOST")
    mqtt_port: int = Field(default=1883, alias="MQTT_PORT")
    mqtt_topic_prefix: str = "lightbridge"

    # Home Assistant
    ha_base_url: str = Field(default="http://homeassistant.local:8123", alias="HA_BASE_URL")
    ha_token: str = Field(default="", alias="HA_TOKEN")
    ha_event_topic: str = "homeassistant/events/state_changed"
    ha_request_timeout_seconds: float = 10.0
    # Bridged when lights.yaml declares no lights
    default_entity_id: str = Field(default="", alias="HA_ENTITY_ID")

    # Light behaviour defaults (all settable at runtime per light)
    color_trace_tolerance: float = 1.0
    default_brightness_rate_ms: int = 0
    default_color_rate_ms: int = 0

    # Application
    app_name: str = "Light Bridge"
    debug: bool = False
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Storage
    sqlite_db_path: str = "lightbridge.db"

    # Lights config
    lights_config_path: str = str(
        Path(__file__).parent / "lights.yaml"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


settings = Settings()
