"""Start and stop docker containers from Home Assistant switches."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional

from ..config import DockerConfig
from ..const import DOCKER_ICON
from ..docker_api import DockerAPI, DockerError
from ..entity import EntityContext
from ..switch import Switch
from . import Integration

_LOGGER = logging.getLogger(__name__)

# Delay before re-opening the event stream after it ends
EVENTS_RETRY_DELAY = 10.0

# Container event actions that change the running state
_STATE_ACTIONS = {"start", "stop", "die", "kill", "pause", "unpause", "restart", "destroy"}


def container_attributes(info: dict) -> dict:
    """Pick the attributes shown in Home Assistant from an inspect result."""
    state = info.get("State") or {}
    config = info.get("Config") or {}
    return {
        "status": state.get("Status", "unknown"),
        "id": (info.get("Id") or "")[:12],
        "image": config.get("Image", ""),
    }


class ContainerSwitch(Switch):
    """Switch that also restores its container attributes on connect."""

    def init(self) -> None:
        super().init()
        self.publish_attributes()


class DockerIntegration(Integration):
    """One switch per configured container."""

    name = "docker"

    def __init__(
        self,
        context: EntityContext,
        config: DockerConfig,
        api: Optional[DockerAPI] = None,
    ) -> None:
        super().__init__(context)
        self.config = config
        self.api = api or DockerAPI(config.socket)
        self.switches: Dict[str, ContainerSwitch] = {}
        self._events_task: Optional[asyncio.Task] = None

    async def async_setup(self) -> None:
        for container in self.config.containers:
            switch = self.add_entity(
                ContainerSwitch(self.context, f"docker_{container}", f"Docker {container}", icon=DOCKER_ICON)
            )
            switch.state_change_requested.connect(self._make_handler(container))
            self.switches[container] = switch
            await self.refresh(container)

        self._events_task = asyncio.create_task(self._watch_events())
        _LOGGER.info("Docker integration ready with %d container(s)", len(self.switches))

    def _make_handler(self, container: str):
        async def _handle(requested: bool) -> None:
            try:
                if requested:
                    await self.api.start(container)
                else:
                    await self.api.stop(container)
            except DockerError as err:
                _LOGGER.error("Failed to %s container %s: %s",
                              "start" if requested else "stop", container, err)
            await self.refresh(container)

        return _handle

    async def refresh(self, container: str) -> None:
        """Publish the current state and attributes of a container."""
        switch = self.switches.get(container)
        if switch is None:
            return
        try:
            info = await self.api.inspect(container)
        except DockerError as err:
            _LOGGER.warning("Cannot inspect container %s: %s", container, err)
            switch.set_attributes({"status": "unavailable", "id": "", "image": ""})
            switch.set_state(False)
            return
        switch.set_state(bool((info.get("State") or {}).get("Running")))
        switch.set_attributes(container_attributes(info))

    async def handle_event(self, event: dict) -> None:
        if event.get("Type") != "container":
            return
        action = (event.get("Action") or "").split(":", 1)[0]
        if action not in _STATE_ACTIONS:
            return
        name = ((event.get("Actor") or {}).get("Attributes") or {}).get("name")
        if name in self.switches:
            _LOGGER.debug("Container %s: %s", name, action)
            await self.refresh(name)

    async def _watch_events(self) -> None:
        while True:
            try:
                async for event in self.api.events():
                    await self.handle_event(event)
            except DockerError as err:
                _LOGGER.warning("Docker event stream error: %s", err)
            await asyncio.sleep(EVENTS_RETRY_DELAY)

    async def async_shutdown(self) -> None:
        if self._events_task is not None:
            self._events_task.cancel()
            try:
                await self._events_task
            except asyncio.CancelledError:
                pass
            self._events_task = None
        await self.api.close_session()
        await super().async_shutdown()
