"""Number entity."""

from __future__ import annotations

import logging
import math
from typing import Optional

from .const import TOPIC_SET
from .entity import Entity, EntityContext
from .signals import Signal
from .transport import Message

_LOGGER = logging.getLogger(__name__)


def clamp(value: int, minimum: int, maximum: int) -> int:
    return max(minimum, min(maximum, value))


def parse_number_command(payload: str, minimum: int, maximum: int) -> Optional[int]:
    """Parse a command payload into an integer clamped to [minimum, maximum].

    Home Assistant may send "55.0" for integer numbers, so decimals are
    accepted and rounded. Returns None for anything that is not a finite
    number.
    """
    text = payload.strip()
    try:
        value = int(text)
    except ValueError:
        try:
            number = float(text)
        except ValueError:
            return None
        if not math.isfinite(number):
            return None
        value = int(round(number))
    return clamp(value, minimum, maximum)


class Number(Entity):
    """Integer value within an inclusive range.

    Out of range values, both from commands and from ``set_state``, are
    clamped to the range rather than rejected.
    """

    _attr_ha_type = "number"

    def __init__(
        self,
        context: EntityContext,
        entity_id: str = "",
        name: str = "",
        icon: Optional[str] = None,
        state: int = 0,
    ) -> None:
        super().__init__(context, entity_id, name, icon)
        self._min = 0
        self._max = 100
        self._step = 1
        self._unit = "%"
        # Clamped once the range is known, in set_range, set_state or init
        self._state = int(state)
        self.value_change_requested = Signal("value_change_requested")

    @property
    def minimum(self) -> int:
        return self._min

    @property
    def maximum(self) -> int:
        return self._max

    @property
    def step(self) -> int:
        return self._step

    @property
    def unit(self) -> str:
        return self._unit

    def set_range(self, minimum: int, maximum: int, step: int = 1, unit: str = "%") -> None:
        """Configure range, step and unit. Call before the entity registers.

        Example for volume control::

            number.set_range(0, 100, 5, "%")
        """
        if minimum > maximum:
            raise ValueError(f"Invalid range [{minimum}, {maximum}]")
        if step <= 0:
            raise ValueError("step must be positive")
        self._min = int(minimum)
        self._max = int(maximum)
        self._step = int(step)
        self._unit = unit
        self._state = clamp(self._state, self._min, self._max)

    @property
    def state(self) -> int:
        return self._state

    def set_state(self, value: int) -> None:
        self._state = clamp(int(value), self._min, self._max)
        self.publish_state(str(self._state))

    set_value = set_state

    def decode_command(self, payload: str) -> Optional[int]:
        return parse_number_command(payload, self._min, self._max)

    def init(self) -> None:
        self.set_discovery_config("state_topic", self.base_topic)
        self.set_discovery_config("command_topic", self.topic(TOPIC_SET))
        self.set_discovery_config("min", self._min)
        self.set_discovery_config("max", self._max)
        self.set_discovery_config("step", self._step)
        self.set_discovery_config("unit_of_measurement", self._unit)

        self.send_registration()
        self.set_state(self._state)
        self.subscribe_command(TOPIC_SET, self._handle_command)

    def _handle_command(self, message: Message) -> None:
        value = self.decode_command(message.payload)
        if value is None:
            _LOGGER.warning("%s: invalid number %r", self.entity_id, message.payload)
            return
        self.value_change_requested.emit(value)
