"""Switch entity."""

# Based on Home Assistant's MQTT switch integration documentation:
# https://www.home-assistant.io/integrations/switch.mqtt/

import logging

from .const import TOPIC_SET
from .entity import BinaryCommandEntity

_LOGGER = logging.getLogger(__name__)


class Switch(BinaryCommandEntity):
    """Toggleable entity, state published as "true"/"false".

    Commands "true"/"false" on {base}/set emit ``state_change_requested``.
    The integration decides whether to follow up with ``set_state``.
    """

    _attr_ha_type = "switch"

    def init(self) -> None:
        self.set_discovery_config("state_topic", self.base_topic)
        self.set_discovery_config("command_topic", self.topic(TOPIC_SET))
        self.set_discovery_config("payload_on", self._command_true)
        self.set_discovery_config("payload_off", self._command_false)

        self.send_registration()
        self.set_state(self._state)
        self.subscribe_command(TOPIC_SET, self._handle_command)
