"""Bridge wiring the transport, the host entity and the integrations."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import List, Optional

from .binary_sensor import BinarySensor
from .config import BridgeConfig
from .const import CONNECTED_ID
from .entity import EntityContext
from .integrations import Integration
from .integrations.docker import DockerIntegration
from .integrations.scripts import ScriptsIntegration
from .protocol import availability_topic
from .transport import ConnectionState, MqttTransport

_LOGGER = logging.getLogger(__name__)


class HostAvailability(BinarySensor):
    """The "connected" entity. Its state topic is the availability topic."""

    # The last will publishes "off" here; a retained "on" would mask it
    _retain_state = False

    def init(self) -> None:
        self.set_discovery_config("device_class", "connectivity")
        super().init()


class Bridge:
    """Runs the bridge for one host."""

    def __init__(
        self,
        config: BridgeConfig,
        transport: Optional[MqttTransport] = None,
    ) -> None:
        """Initialize the bridge."""
        self.config = config
        self.transport = transport or MqttTransport(
            config.mqtt, availability_topic(config.hostname)
        )
        self.context = EntityContext(
            transport=self.transport,
            hostname=config.hostname,
            discovery_prefix=config.discovery_prefix,
        )
        self.connected = HostAvailability(self.context, CONNECTED_ID, "Connected", state=True)
        self.integrations: List[Integration] = self._create_integrations()
        self._stop_event = asyncio.Event()
        self._remove_listener = self.transport.add_state_listener(self._log_state)

        _LOGGER.info(
            "Bridge initialized for host %s (broker %s:%d)",
            config.hostname,
            config.mqtt.host,
            config.mqtt.port,
        )

    def _create_integrations(self) -> List[Integration]:
        integrations: List[Integration] = []
        if self.config.scripts:
            integrations.append(ScriptsIntegration(self.context, self.config.scripts))
        if self.config.docker is not None:
            integrations.append(DockerIntegration(self.context, self.config.docker))
        return integrations

    def _log_state(self, state: ConnectionState, error: Optional[Exception]) -> None:
        if state is ConnectionState.DISCONNECTED and error is not None:
            _LOGGER.warning("Lost connection to the broker: %s", error)

    async def async_start(self) -> None:
        """Set up integrations, then connect."""
        for integration in self.integrations:
            try:
                await integration.async_setup()
            except Exception:
                _LOGGER.exception("Failed to set up %s integration", integration.name)
        self.transport.connect()

    def stop(self) -> None:
        """Request shutdown. Safe to call from a signal handler."""
        self._stop_event.set()

    async def run(self) -> None:
        """Run until SIGINT or SIGTERM."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self.stop)
        try:
            await self.async_start()
            await self._stop_event.wait()
            _LOGGER.info("Shutting down")
        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)
            await self.shutdown()

    async def shutdown(self) -> None:
        """Shut down integrations and disconnect from the broker."""
        for integration in reversed(self.integrations):
            try:
                await integration.async_shutdown()
            except Exception:
                _LOGGER.exception("Failed to shut down %s integration", integration.name)

        await self.transport.disconnect()
        self.connected.close()
        self._remove_listener()

        _LOGGER.info("Bridge shutdown complete")
