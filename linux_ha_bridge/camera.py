"""Camera entity publishing base64 snapshots."""

# Based on Home Assistant's MQTT camera integration documentation:
# https://www.home-assistant.io/integrations/camera.mqtt/

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Union

from .const import TOPIC_COMMAND
from .entity import Entity
from .signals import Signal
from .transport import Message

_LOGGER = logging.getLogger(__name__)


class Camera(Entity):
    """Snapshot camera, not a live stream.

    Images are published retained to the base topic. The command topic is
    not part of Home Assistant's camera integration; integrations use
    ``command_received`` to produce a fresh image on request.
    """

    _attr_ha_type = "camera"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.command_received = Signal("command_received")

    def init(self) -> None:
        self.set_discovery_config("topic", self.base_topic)
        self.set_discovery_config("image_encoding", "b64")
        self.set_discovery_config("command_topic", self.topic(TOPIC_COMMAND))

        self.send_registration()
        self.subscribe_command(TOPIC_COMMAND, self._handle_command)

    def publish_image(self, image_base64: Union[bytes, str]) -> None:
        """Publish a base64 encoded image and its metadata attributes."""
        if not self.transport.is_connected:
            return
        if isinstance(image_base64, str):
            image_base64 = image_base64.encode("ascii")

        self.publish_state(image_base64)
        self.set_attributes(
            {
                "timestamp": datetime.now(timezone.utc).replace(microsecond=0),
                "size_bytes": len(image_base64),
            }
        )

    def _handle_command(self, message: Message) -> None:
        _LOGGER.debug("%s camera command received: %s", self.name, message.payload)
        self.command_received.emit(message.payload)
