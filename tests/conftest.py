import json

import pytest

from linux_ha_bridge.config import MqttSettings
from linux_ha_bridge.entity import EntityContext
from linux_ha_bridge.protocol import availability_topic
from linux_ha_bridge.transport import ConnectionState, MqttTransport

HOSTNAME = "testhost"


class RecordingTransport(MqttTransport):
    """Transport that records traffic instead of talking to a broker."""

    def __init__(self, hostname=HOSTNAME, **settings):
        super().__init__(
            MqttSettings(host="localhost", **settings), availability_topic(hostname)
        )
        self.published = []
        self.subscribed = []

    def publish(self, topic, payload, retain=False):
        if not self.is_connected:
            return
        self.published.append((topic, payload, retain))

    def subscribe(self, topic_filter, callback):
        subscription = super().subscribe(topic_filter, callback)
        if subscription.active:
            self.subscribed.append(topic_filter)
        return subscription

    def _spawn(self, coro):
        coro.close()

    def connect(self):
        self.go_online()

    async def disconnect(self):
        self.disconnected = True
        self.go_offline()

    def go_online(self):
        self._set_state(ConnectionState.CONNECTED)

    def go_offline(self, error=None):
        self._connection_lost(error)

    def deliver(self, topic, payload):
        self._dispatch(topic, payload)

    def payloads(self, topic):
        return [payload for t, payload, _ in self.published if t == topic]

    def last(self, topic):
        payloads = self.payloads(topic)
        assert payloads, f"nothing published to {topic}"
        return payloads[-1]

    def retained(self, topic):
        return [retain for t, _, retain in self.published if t == topic]

    def discovery(self, ha_type, entity_id):
        return json.loads(self.last(f"homeassistant/{ha_type}/{HOSTNAME}/{entity_id}/config"))

    def clear(self):
        self.published.clear()
        self.subscribed.clear()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def context(transport):
    return EntityContext(transport=transport, hostname=HOSTNAME)


@pytest.fixture
def received():
    """Collects signal emissions."""
    calls = []

    def _record(*args):
        calls.append(args[0] if len(args) == 1 else args)

    _record.calls = calls
    return _record
