"""Sensor entity."""

# Based on Home Assistant's MQTT sensor integration documentation:
# https://www.home-assistant.io/integrations/sensor.mqtt/

from __future__ import annotations

from typing import Any, Optional

from .entity import Entity, EntityContext


class Sensor(Entity):
    """Read-only entity whose state is published as a raw string.

    Numeric sensors should set ``unit_of_measurement`` through
    ``set_discovery_config`` so Home Assistant graphs them.
    """

    _attr_ha_type = "sensor"

    def __init__(
        self,
        context: EntityContext,
        entity_id: str = "",
        name: str = "",
        icon: Optional[str] = None,
        state: Any = "",
    ) -> None:
        super().__init__(context, entity_id, name, icon)
        self._state = "" if state is None else str(state)

    @property
    def state(self) -> str:
        return self._state

    def set_state(self, state: Any) -> None:
        self._state = "" if state is None else str(state)
        self.publish_state(self._state)

    def init(self) -> None:
        self.set_discovery_config("state_topic", self.base_topic)

        self.send_registration()
        self.publish_state(self._state)
        self.publish_attributes()
