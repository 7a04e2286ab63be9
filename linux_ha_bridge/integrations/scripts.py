"""Run configured shell commands from Home Assistant buttons."""

from __future__ import annotations

import asyncio
import logging
import shlex
from typing import Dict, List, Optional

from ..button import Button
from ..config import ScriptConfig
from ..const import SCRIPT_ARGUMENT_PLACEHOLDER, SCRIPTS_ARGUMENTS_ID
from ..entity import EntityContext
from ..text import Text
from . import Integration

_LOGGER = logging.getLogger(__name__)


def build_command(exec_line: str, argument: str = "") -> List[str]:
    """Split a command line and substitute {arg} in every word."""
    words = shlex.split(exec_line)
    if SCRIPT_ARGUMENT_PLACEHOLDER in exec_line:
        words = [word.replace(SCRIPT_ARGUMENT_PLACEHOLDER, argument) for word in words]
    return words


class ScriptsIntegration(Integration):
    """One button per script, plus a shared argument text when needed."""

    name = "scripts"

    def __init__(self, context: EntityContext, scripts: Dict[str, ScriptConfig]) -> None:
        super().__init__(context)
        self.scripts = dict(scripts)
        self.arguments: Optional[Text] = None
        self._processes: set[asyncio.Task] = set()

    async def async_setup(self) -> None:
        if any(SCRIPT_ARGUMENT_PLACEHOLDER in script.exec for script in self.scripts.values()):
            self.arguments = self.add_entity(
                Text(self.context, SCRIPTS_ARGUMENTS_ID, "Scripts arguments", icon="mdi:form-textbox")
            )

        for script_id, script in self.scripts.items():
            button = self.add_entity(
                Button(self.context, script_id, script.name, icon=script.icon)
            )
            button.triggered.connect(self._make_runner(script_id, script))

        _LOGGER.info("Scripts integration ready with %d script(s)", len(self.scripts))

    def _make_runner(self, script_id: str, script: ScriptConfig):
        def _run() -> None:
            argument = ""
            if self.arguments is not None and SCRIPT_ARGUMENT_PLACEHOLDER in script.exec:
                argument = self.arguments.state
                self.arguments.set_state("")
            task = asyncio.get_running_loop().create_task(
                self.run_script(script_id, build_command(script.exec, argument))
            )
            self._processes.add(task)
            task.add_done_callback(self._processes.discard)

        return _run

    async def run_script(self, script_id: str, command: List[str]) -> Optional[int]:
        """Run the command and return its exit status, None if it could not start."""
        if not command:
            _LOGGER.warning("Script %s has an empty command", script_id)
            return None
        _LOGGER.debug("Running script %s: %s", script_id, command)
        try:
            process = await asyncio.create_subprocess_exec(*command)
        except OSError as err:
            _LOGGER.error("Failed to start script %s: %s", script_id, err)
            return None
        returncode = await process.wait()
        if returncode:
            _LOGGER.warning("Script %s exited with status %d", script_id, returncode)
        else:
            _LOGGER.info("Script %s finished", script_id)
        return returncode

    async def async_shutdown(self) -> None:
        for task in list(self._processes):
            task.cancel()
        self._processes.clear()
        await super().async_shutdown()
