"""Notify entity."""

# Based on Home Assistant's MQTT notify integration documentation:
# https://www.home-assistant.io/integrations/notify.mqtt/

import logging

from .const import TOPIC_NOTIFICATIONS
from .entity import Entity
from .signals import Signal
from .transport import Message

_LOGGER = logging.getLogger(__name__)


class Notify(Entity):
    """Receives messages sent from Home Assistant automations.

    Every payload on {base}/notifications is passed unchanged to
    ``notification_received``; integrations turn it into desktop
    notifications, speech or whatever else they like.
    """

    _attr_ha_type = "notify"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.notification_received = Signal("notification_received")

    def init(self) -> None:
        self.set_discovery_config("state_topic", self.base_topic)
        self.set_discovery_config("command_topic", self.topic(TOPIC_NOTIFICATIONS))

        self.send_registration()
        self.subscribe_command(TOPIC_NOTIFICATIONS, self._handle_notification)

    def _handle_notification(self, message: Message) -> None:
        _LOGGER.debug("Notify message received: %s", message.payload)
        self.notification_received.emit(message.payload)
