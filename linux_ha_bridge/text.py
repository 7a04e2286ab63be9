"""Text entity."""

from __future__ import annotations

import logging
from typing import Optional

from .const import TOPIC_SET
from .entity import Entity, EntityContext
from .signals import Signal
from .transport import Message

_LOGGER = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 255


class Text(Entity):
    """Free text input. Commands replace the state directly."""

    _attr_ha_type = "text"

    def __init__(
        self,
        context: EntityContext,
        entity_id: str = "",
        name: str = "",
        icon: Optional[str] = None,
        state: str = "",
    ) -> None:
        super().__init__(context, entity_id, name, icon)
        self._state = state
        self.text_changed = Signal("text_changed")

    @property
    def state(self) -> str:
        return self._state

    def set_state(self, state: str) -> None:
        self._state = state[:MAX_TEXT_LENGTH]
        self.publish_state(self._state)

    def init(self) -> None:
        self.set_discovery_config("state_topic", self.base_topic)
        self.set_discovery_config("command_topic", self.topic(TOPIC_SET))
        self.set_discovery_config("max", MAX_TEXT_LENGTH)

        self.send_registration()
        self.publish_state(self._state)
        self.subscribe_command(TOPIC_SET, self._handle_command)

    def _handle_command(self, message: Message) -> None:
        if len(message.payload) > MAX_TEXT_LENGTH:
            _LOGGER.warning(
                "%s: text longer than %d characters ignored", self.entity_id, MAX_TEXT_LENGTH
            )
            return
        self.set_state(message.payload)
        self.text_changed.emit(self._state)
