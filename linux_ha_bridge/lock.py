"""Lock entity."""

from .const import TOPIC_SET
from .entity import BinaryCommandEntity


class Lock(BinaryCommandEntity):
    """Lockable entity, e.g. the screen lock. True means locked."""

    _attr_ha_type = "lock"
    _state_true = "locked"
    _state_false = "unlocked"
    _command_true = "lock"
    _command_false = "unlock"

    def init(self) -> None:
        self.set_discovery_config("state_topic", self.base_topic)
        self.set_discovery_config("command_topic", self.topic(TOPIC_SET))
        self.set_discovery_config("payload_lock", self._command_true)
        self.set_discovery_config("payload_unlock", self._command_false)
        self.set_discovery_config("state_locked", self._state_true)
        self.set_discovery_config("state_unlocked", self._state_false)

        self.send_registration()
        self.set_state(self._state)
        self.subscribe_command(TOPIC_SET, self._handle_command)
