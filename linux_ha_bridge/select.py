"""Select entity."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .const import TOPIC_SET
from .entity import Entity, EntityContext
from .signals import Signal
from .transport import Message

_LOGGER = logging.getLogger(__name__)


class Select(Entity):
    """Represents a choice from a fixed list of options."""

    _attr_ha_type = "select"

    def __init__(
        self,
        context: EntityContext,
        entity_id: str = "",
        name: str = "",
        icon: Optional[str] = None,
        options: Iterable[str] = (),
        state: str = "",
    ) -> None:
        super().__init__(context, entity_id, name, icon)
        self._options: List[str] = [str(option) for option in options]
        self._state = state
        self.option_selected = Signal("option_selected")

    @property
    def options(self) -> List[str]:
        return list(self._options)

    def set_options(self, options: Iterable[str]) -> None:
        """Replace the option list. Takes effect on next registration."""
        self._options = [str(option) for option in options]
        self.set_discovery_config("options", list(self._options))

    @property
    def state(self) -> str:
        return self._state

    def set_state(self, state: str) -> None:
        if self._options and state not in self._options:
            _LOGGER.warning("%s: %r is not one of %s", self.entity_id, state, self._options)
            return
        self._state = state
        self.publish_state(self._state)

    def decode_command(self, payload: str) -> Optional[str]:
        """Return the selected option, None if payload is not an option."""
        return payload if payload in self._options else None

    def init(self) -> None:
        self.set_discovery_config("state_topic", self.base_topic)
        self.set_discovery_config("command_topic", self.topic(TOPIC_SET))
        self.set_discovery_config("options", list(self._options))

        self.send_registration()
        self.publish_state(self._state)
        self.subscribe_command(TOPIC_SET, self._handle_command)

    def _handle_command(self, message: Message) -> None:
        option = self.decode_command(message.payload)
        if option is None:
            _LOGGER.warning("%s: unknown option %r", self.entity_id, message.payload)
            return
        self.option_selected.emit(option)
