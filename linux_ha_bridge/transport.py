"""MQTT transport shared by every entity of the bridge."""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import aiomqtt

from .config import MqttSettings
from .const import MQTT_QOS, PAYLOAD_NOT_AVAILABLE

_LOGGER = logging.getLogger(__name__)


class ConnectionState(enum.Enum):
    """Connection state broadcast to state listeners."""

    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


StateListener = Callable[[ConnectionState, Optional[Exception]], None]


@dataclass(frozen=True)
class Message:
    """A message received on a subscribed topic."""

    topic: str
    payload: str


def _payload_to_str(payload: Any) -> str:
    """Return payload as text, whether it's bytes, str, or None."""
    if payload is None:
        return ""
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload).decode("utf-8", "ignore")
    return str(payload)


class Subscription:
    """Handle for one callback registered on a topic filter."""

    def __init__(
        self,
        transport: MqttTransport,
        topic_filter: str,
        callback: Callable[[Message], None],
    ) -> None:
        self.topic_filter = topic_filter
        self.callback = callback
        self.active = False
        self._transport = transport

    def __repr__(self) -> str:
        return f"<Subscription {self.topic_filter} active={self.active}>"

    def matches(self, topic: str) -> bool:
        return aiomqtt.Topic(topic).matches(self.topic_filter)

    def cancel(self) -> None:
        """Stop delivering messages to this subscription."""
        if self.active:
            self._transport._remove_subscription(self)


class MqttTransport:
    """Owns the single broker connection of the process.

    ``connect()`` starts a background task that keeps a session to the broker
    open and broadcasts every state transition to the registered listeners.
    Publishing and subscribing are fire-and-forget; while the transport is
    not connected they are skipped.
    """

    def __init__(self, settings: MqttSettings, availability_topic: str) -> None:
        """Initialize the transport.

        Args:
            settings: Broker connection settings
            availability_topic: Host availability topic, used for the
                last will and for the offline message on shutdown
        """
        self.settings = settings
        self.availability_topic = availability_topic
        self.last_error: Optional[Exception] = None

        self._will = aiomqtt.Will(
            topic=availability_topic,
            payload=PAYLOAD_NOT_AVAILABLE,
            qos=MQTT_QOS,
            retain=False,
        )
        self._client: Optional[aiomqtt.Client] = None
        self._state = ConnectionState.DISCONNECTED
        self._state_listeners: list[StateListener] = []
        self._subscriptions: list[Subscription] = []
        self._pending: set[asyncio.Task] = set()
        self._listener_task: Optional[asyncio.Task] = None
        self._running = False
        self._reconnect_requested = asyncio.Event()

    # ---------- state ----------
    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    def add_state_listener(self, listener: StateListener) -> Callable[[], None]:
        """Register a connection state listener and return its remover."""
        self._state_listeners.append(listener)

        def _remove() -> None:
            if listener in self._state_listeners:
                self._state_listeners.remove(listener)

        return _remove

    def _set_state(self, state: ConnectionState, error: Optional[Exception] = None) -> None:
        if state is self._state:
            return
        self._state = state
        if error is not None:
            _LOGGER.info("MQTT %s (%s)", state.value, error)
        else:
            _LOGGER.info("MQTT %s", state.value)
        for listener in list(self._state_listeners):
            try:
                listener(state, error)
            except Exception:
                _LOGGER.exception("Error in connection state listener %r", listener)

    def _connection_lost(self, error: Optional[Exception] = None) -> None:
        self._client = None
        self._drop_subscriptions()
        self._set_state(ConnectionState.DISCONNECTED, error)

    # ---------- lifecycle ----------
    def connect(self) -> None:
        """Start connecting to the broker in the background."""
        if self._listener_task is not None and not self._listener_task.done():
            _LOGGER.debug("MQTT connection already running")
            return
        self._running = True
        self._reconnect_requested.clear()
        self._listener_task = asyncio.create_task(self._listen())

    def reconnect(self) -> None:
        """Drop the current session (if any) and connect again right away."""
        if self._listener_task is None or self._listener_task.done():
            self.connect()
            return
        _LOGGER.info("MQTT reconnect requested")
        self._reconnect_requested.set()

    async def disconnect(self) -> None:
        """Announce the host offline and close the connection."""
        if self._listener_task is None:
            return

        if self._client is not None and self.is_connected:
            try:
                await self._client.publish(
                    self.availability_topic, PAYLOAD_NOT_AVAILABLE, qos=MQTT_QOS, retain=False
                )
            except aiomqtt.MqttError as err:
                _LOGGER.warning("Could not publish offline availability: %s", err)

        self._running = False
        self._listener_task.cancel()

        try:
            await self._listener_task
        except asyncio.CancelledError:
            _LOGGER.debug("Listener task cancelled")

        self._listener_task = None
        for task in list(self._pending):
            task.cancel()
        self._connection_lost()

    async def _listen(self) -> None:
        """Main MQTT connection loop."""
        while self._running:
            self._reconnect_requested.clear()
            try:
                await self._session()
            except aiomqtt.MqttError as mqtt_err:
                self.last_error = mqtt_err
                _LOGGER.warning("MQTT connection error: %s", mqtt_err)
            except asyncio.CancelledError:
                _LOGGER.debug("MQTT listener cancelled")
                raise
            except Exception as err:
                self.last_error = err
                _LOGGER.exception("Exception in MQTT loop")
            finally:
                self._connection_lost(self.last_error)

            if not self._running:
                break
            await self._wait_before_reconnect()

    async def _wait_before_reconnect(self) -> None:
        if self._reconnect_requested.is_set():
            return
        if not self.settings.auto_reconnect:
            _LOGGER.info("Automatic reconnect disabled, waiting for a reconnect request")
            await self._reconnect_requested.wait()
            return
        _LOGGER.debug("Reconnecting in %.1fs", self.settings.reconnect_interval)
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(
                self._reconnect_requested.wait(), self.settings.reconnect_interval
            )

    async def _session(self) -> None:
        """Run one broker session until it fails or a reconnect is requested."""
        self.last_error = None
        self._set_state(ConnectionState.CONNECTING)
        async with aiomqtt.Client(
            hostname=self.settings.host,
            port=self.settings.port,
            username=self.settings.username,
            password=self.settings.password,
            identifier=self.settings.client_id,
            keepalive=self.settings.keepalive,
            will=self._will,
        ) as client:
            self._client = client
            _LOGGER.debug(
                "Connected to MQTT broker %s:%d", self.settings.host, self.settings.port
            )
            self._set_state(ConnectionState.CONNECTED)

            receiver = asyncio.create_task(self._receive(client))
            waiter = asyncio.create_task(self._reconnect_requested.wait())
            try:
                done, _ = await asyncio.wait(
                    {receiver, waiter}, return_when=asyncio.FIRST_COMPLETED
                )
            finally:
                receiver.cancel()
                waiter.cancel()
            if receiver in done:
                # Re-raises the MqttError that ended the message stream
                receiver.result()

    async def _receive(self, client: aiomqtt.Client) -> None:
        async for message in client.messages:
            self._dispatch(str(message.topic), message.payload)

    # ---------- publish / subscribe ----------
    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def publish(self, topic: str, payload: Any, retain: bool = False) -> None:
        """Publish at qos 0. Dropped silently while not connected."""
        if not self.is_connected:
            _LOGGER.debug("Not connected, dropping publish to %s", topic)
            return
        self._spawn(self._publish(topic, payload, retain))

    async def _publish(self, topic: str, payload: Any, retain: bool) -> None:
        client = self._client
        if client is None:
            return
        try:
            await client.publish(topic, payload, qos=MQTT_QOS, retain=retain)
        except aiomqtt.MqttError as err:
            _LOGGER.warning("Failed to publish to %s: %s", topic, err)

    def subscribe(
        self, topic_filter: str, callback: Callable[[Message], None]
    ) -> Subscription:
        """Deliver messages matching topic_filter to callback.

        Subscriptions only live for the current session; a disconnect
        invalidates them and they have to be made again once connected.
        """
        subscription = Subscription(self, topic_filter, callback)
        if not self.is_connected:
            _LOGGER.debug("Not connected, dropping subscription to %s", topic_filter)
            return subscription
        subscription.active = True
        self._subscriptions.append(subscription)
        self._spawn(self._subscribe(topic_filter))
        return subscription

    async def _subscribe(self, topic_filter: str) -> None:
        client = self._client
        if client is None:
            return
        try:
            await client.subscribe(topic_filter, qos=MQTT_QOS)
            _LOGGER.debug("Subscribed to %s", topic_filter)
        except aiomqtt.MqttError as err:
            _LOGGER.warning("Failed to subscribe to %s: %s", topic_filter, err)

    def _remove_subscription(self, subscription: Subscription) -> None:
        subscription.active = False
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
        if not self.is_connected:
            return
        if any(sub.topic_filter == subscription.topic_filter for sub in self._subscriptions):
            return
        self._spawn(self._unsubscribe(subscription.topic_filter))

    async def _unsubscribe(self, topic_filter: str) -> None:
        client = self._client
        if client is None:
            return
        try:
            await client.unsubscribe(topic_filter)
        except aiomqtt.MqttError as err:
            _LOGGER.debug("Failed to unsubscribe from %s: %s", topic_filter, err)

    def _drop_subscriptions(self) -> None:
        for subscription in self._subscriptions:
            subscription.active = False
        self._subscriptions.clear()

    def _dispatch(self, topic: str, payload: Any) -> None:
        message = Message(topic=topic, payload=_payload_to_str(payload))
        _LOGGER.debug("Received %s: %s", topic, message.payload[:200])
        for subscription in list(self._subscriptions):
            if not subscription.active or not subscription.matches(topic):
                continue
            try:
                subscription.callback(message)
            except Exception:
                _LOGGER.exception("Error handling message on %s", topic)
