"""Binary sensor entity."""

from __future__ import annotations

from typing import Optional

from .const import PAYLOAD_AVAILABLE, PAYLOAD_NOT_AVAILABLE
from .entity import Entity, EntityContext


class BinarySensor(Entity):
    """Read-only boolean entity, published as "on"/"off"."""

    _attr_ha_type = "binary_sensor"
    _payload_on = PAYLOAD_AVAILABLE
    _payload_off = PAYLOAD_NOT_AVAILABLE
    _retain_state = True

    def __init__(
        self,
        context: EntityContext,
        entity_id: str = "",
        name: str = "",
        icon: Optional[str] = None,
        state: bool = False,
    ) -> None:
        super().__init__(context, entity_id, name, icon)
        self._state = bool(state)

    @property
    def state(self) -> bool:
        return self._state

    def set_state(self, state: bool) -> None:
        self._state = bool(state)
        self.publish_state(
            self._payload_on if self._state else self._payload_off, retain=self._retain_state
        )

    def init(self) -> None:
        self.set_discovery_config("state_topic", self.base_topic)
        self.set_discovery_config("payload_on", self._payload_on)
        self.set_discovery_config("payload_off", self._payload_off)

        self.send_registration()
        self.set_state(self._state)
