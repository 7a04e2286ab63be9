"""Base entity shared by every discoverable entity type."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from .const import (
    CONNECTED_ID,
    DEFAULT_DISCOVERY_PREFIX,
    PAYLOAD_AVAILABLE,
    TOPIC_ATTRIBUTES,
)
from .protocol import (
    HA_TYPES,
    availability_topic,
    base_topic,
    build_discovery_config,
    discovery_topic,
    encode_attributes,
    encode_json,
    is_recognized_key,
    sub_topic,
)
from .signals import Signal
from .transport import ConnectionState, Message, MqttTransport, Subscription

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class EntityContext:
    """Everything an entity needs to talk to Home Assistant."""

    transport: MqttTransport
    hostname: str
    discovery_prefix: str = DEFAULT_DISCOVERY_PREFIX

    def create(self, entity_cls, entity_id: str, name: str = "", **kwargs: Any):
        """Construct an entity bound to this context."""
        return entity_cls(self, entity_id, name, **kwargs)


class Entity:
    """Implementation of the base discoverable entity.

    An entity is constructed detached from the broker. Every time the
    transport reports Connected, ``init()`` runs to declare the discovery
    config, restore command subscriptions and publish the current state.
    On Disconnected the entity drops back to unregistered and forgets its
    subscriptions.
    """

    _attr_ha_type: str = ""
    _attr_icon: Optional[str] = None

    def __init__(
        self,
        context: EntityContext,
        entity_id: str = "",
        name: str = "",
        icon: Optional[str] = None,
    ) -> None:
        """Initialize the entity."""
        self._context = context
        self._entity_id = entity_id
        self._name = name or entity_id
        self._ha_type = ""
        self.ha_type = self._attr_ha_type
        self._icon = icon if icon is not None else self._attr_icon
        self._discovery_config: Dict[str, Any] = {}
        self._attributes: Dict[str, Any] = {}
        self._subscriptions: Dict[str, Subscription] = {}
        self._registered = False

        self._remove_state_listener = context.transport.add_state_listener(
            self._handle_transport_state
        )
        if context.transport.is_connected:
            # Run the first init once the subclass constructor has finished
            try:
                asyncio.get_running_loop().call_soon(
                    self._handle_transport_state, ConnectionState.CONNECTED, None
                )
            except RuntimeError:
                _LOGGER.debug("%s created outside the event loop, waiting for reconnect", entity_id)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._ha_type}:{self._entity_id}>"

    # ---------- identity ----------
    @property
    def entity_id(self) -> str:
        return self._entity_id

    @entity_id.setter
    def entity_id(self, value: str) -> None:
        self._entity_id = value

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        self._name = value

    @property
    def ha_type(self) -> str:
        return self._ha_type

    @ha_type.setter
    def ha_type(self, value: str) -> None:
        if value and value not in HA_TYPES:
            raise ValueError(f"Unknown discovery category: {value}")
        self._ha_type = value or ""

    @property
    def icon(self) -> Optional[str]:
        return self._icon

    @icon.setter
    def icon(self, value: Optional[str]) -> None:
        self._icon = value

    # ---------- topics ----------
    @property
    def transport(self) -> MqttTransport:
        return self._context.transport

    @property
    def hostname(self) -> str:
        return self._context.hostname

    @property
    def base_topic(self) -> str:
        return base_topic(self.hostname, self._entity_id)

    def topic(self, suffix: str) -> str:
        """Return {hostname}/{id}/{suffix}."""
        return sub_topic(self.hostname, self._entity_id, suffix)

    @property
    def discovery_topic(self) -> str:
        return discovery_topic(
            self._context.discovery_prefix, self._ha_type, self.hostname, self._entity_id
        )

    @property
    def is_registered(self) -> bool:
        return self._registered

    # ---------- discovery ----------
    @property
    def discovery_config(self) -> Dict[str, Any]:
        return dict(self._discovery_config)

    def set_discovery_config(self, key: str, value: Any) -> None:
        """Insert or overwrite one discovery config entry."""
        if self._ha_type and not is_recognized_key(self._ha_type, key):
            _LOGGER.debug("%s: passing through vendor discovery key %s", self._entity_id, key)
        self._discovery_config[key] = value

    def build_discovery_config(self) -> Dict[str, Any]:
        return build_discovery_config(
            self._discovery_config,
            hostname=self.hostname,
            entity_id=self._entity_id,
            name=self._name,
            icon=self._icon,
        )

    def send_registration(self) -> None:
        """Publish the discovery config, then announce the host available."""
        if not self._ha_type:
            _LOGGER.debug("%s has no discovery category, not registering", self._entity_id)
            return
        payload = encode_json(self.build_discovery_config())
        self.transport.publish(self.discovery_topic, payload, retain=True)
        if self._entity_id != CONNECTED_ID:
            self.transport.publish(availability_topic(self.hostname), PAYLOAD_AVAILABLE)

    # ---------- attributes ----------
    @property
    def attributes(self) -> Dict[str, Any]:
        return dict(self._attributes)

    def set_attributes(self, attributes: Mapping[str, Any]) -> None:
        """Replace all attributes and publish them."""
        self._attributes = dict(attributes)
        self.publish_attributes()

    def publish_attributes(self) -> None:
        if not self.transport.is_connected:
            return
        self.transport.publish(
            self.topic(TOPIC_ATTRIBUTES), encode_attributes(self._attributes), retain=True
        )

    # ---------- state helpers ----------
    def publish_state(self, payload: Any, retain: bool = True, topic: Optional[str] = None) -> None:
        """Publish payload to the state topic when connected."""
        if not self.transport.is_connected:
            return
        self.transport.publish(topic or self.base_topic, payload, retain=retain)

    def publish_json_state(self, document: Mapping[str, Any], retain: bool = True) -> None:
        if not self.transport.is_connected:
            return
        self.publish_state(encode_json(document), retain=retain)

    def subscribe_command(self, suffix: str, handler: Callable[[Message], None]) -> None:
        """Subscribe handler to {base}/{suffix}, replacing an earlier handler."""
        topic = self.topic(suffix)
        previous = self._subscriptions.pop(topic, None)
        if previous is not None:
            previous.cancel()
        subscription = self.transport.subscribe(topic, handler)
        if subscription.active:
            self._subscriptions[topic] = subscription

    # ---------- lifecycle ----------
    def init(self) -> None:
        """Declare discovery, subscribe and publish state. Runs on every connect."""

    def _handle_transport_state(
        self, state: ConnectionState, error: Optional[Exception] = None
    ) -> None:
        if state is ConnectionState.CONNECTED:
            if not self.transport.is_connected:
                return
            # Subscriptions from a previous session are gone with it
            self._subscriptions.clear()
            self._registered = True
            try:
                self.init()
            except Exception:
                _LOGGER.exception("Failed to initialize %s", self._entity_id)
        elif state is ConnectionState.DISCONNECTED:
            self._registered = False
            self._subscriptions.clear()

    def close(self) -> None:
        """Detach from the transport. No retraction is published."""
        self._remove_state_listener()
        for subscription in self._subscriptions.values():
            subscription.cancel()
        self._subscriptions.clear()
        self._registered = False


class BinaryCommandEntity(Entity):
    """Entity with a boolean state that accepts two command payloads."""

    _state_true: str = "true"
    _state_false: str = "false"
    _command_true: str = "true"
    _command_false: str = "false"

    def __init__(
        self,
        context: EntityContext,
        entity_id: str = "",
        name: str = "",
        icon: Optional[str] = None,
        state: bool = False,
    ) -> None:
        super().__init__(context, entity_id, name, icon)
        self._state = bool(state)
        self.state_change_requested = Signal("state_change_requested")

    @property
    def state(self) -> bool:
        return self._state

    def set_state(self, state: bool) -> None:
        self._state = bool(state)
        self.publish_state(self.encode_state(self._state))

    @classmethod
    def encode_state(cls, state: bool) -> str:
        return cls._state_true if state else cls._state_false

    @classmethod
    def decode_command(cls, payload: str) -> Optional[bool]:
        """Map a command payload to the requested state, None if unknown."""
        if payload == cls._command_true:
            return True
        if payload == cls._command_false:
            return False
        return None

    def _handle_command(self, message: Message) -> None:
        requested = self.decode_command(message.payload)
        if requested is None:
            _LOGGER.warning("%s: unknown state request %r", self._entity_id, message.payload)
            return
        self.state_change_requested.emit(requested)
