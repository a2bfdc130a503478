"""MQTT topic constants and helpers."""

from config import settings


class Topics:
    """MQTT topic structure for the light bridge."""

    # Controller link, per light
    LIGHT_COMMAND = "{prefix}/lights/{light_id}/command"
    LIGHT_NOTIFY = "{prefix}/lights/{light_id}/notify"

    @staticmethod
    def light_command(light_id: str) -> str:
        return Topics.LIGHT_COMMAND.format(prefix=settings.mqtt_topic_prefix, light_id=light_id)

    @staticmethod
    def light_notify(light_id: str) -> str:
        return Topics.LIGHT_NOTIFY.format(prefix=settings.mqtt_topic_prefix, light_id=light_id)

    @staticmethod
    def ha_events() -> str:
        """Home Assistant state_changed event stream."""
        return settings.ha_event_topic
