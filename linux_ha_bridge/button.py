"""Button entity."""

import logging

from .const import TOPIC_SET
from .entity import Entity
from .signals import Signal
from .transport import Message

_LOGGER = logging.getLogger(__name__)


class Button(Entity):
    """Stateless momentary action. Any payload on {base}/set fires ``triggered``."""

    _attr_ha_type = "button"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.triggered = Signal("triggered")

    def init(self) -> None:
        self.set_discovery_config("command_topic", self.topic(TOPIC_SET))

        self.send_registration()
        self.subscribe_command(TOPIC_SET, self._handle_command)

    def _handle_command(self, message: Message) -> None:
        _LOGGER.debug("%s pressed", self.entity_id)
        self.triggered.emit()
