"""Pydantic model for Home Assistant service calls."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class LightService(str, Enum):
    TURN_ON = "turn_on"
    TURN_OFF = "turn_off"


class ServiceData(BaseModel):
    brightness: int | None = None
    color_temp_kelvin: int | None = None
    xy_color: tuple[float, float] | None = None
    transition: float | None = None
    effect: str | None = None

    @property
    def has_color(self) -> bool:
        return self.color_temp_kelvin is not None or self.xy_color is not None


class ServiceCall(BaseModel):
    """One ``light`` domain service invocation."""
    domain: str = "light"
    service: LightService = LightService.TURN_ON
    entity_id: str
    service_data: ServiceData = Field(default_factory=ServiceData)

    def power_off(self) -> "ServiceCall":
        """Same call as ``turn_off``, keeping only the transition."""
        return ServiceCall(
            domain=self.domain,
            service=LightService.TURN_OFF,
            entity_id=self.entity_id,
            service_data=ServiceData(transition=self.service_data.transition),
        )

    def to_payload(self) -> dict[str, Any]:
        """Full call as the backend expects it (``target`` + ``service_data``)."""
        return {
            "domain": self.domain,
            "service": self.service.value,
            "service_data": self.service_data.model_dump(exclude_none=True, mode="json"),
            "target": {"entity_id": self.entity_id},
        }

    def to_rest_body(self) -> dict[str, Any]:
        """Body for ``POST /api/services/<domain>/<service>``."""
        body = self.service_data.model_dump(exclude_none=True, mode="json")
        body["entity_id"] = self.entity_id
        return body
