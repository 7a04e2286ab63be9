"""Media player entity."""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .entity import Entity, EntityContext
from .signals import Signal
from .transport import Message

_LOGGER = logging.getLogger(__name__)

# Command topic suffix -> discovery key
COMMAND_TOPICS = {
    "play": "command_play_topic",
    "pause": "command_pause_topic",
    "playpause": "command_playpause_topic",
    "stop": "command_stop_topic",
    "next": "command_next_topic",
    "previous": "command_previous_topic",
    "volume": "command_volume_topic",
    "play_media": "command_playmedia_topic",
}


def clamp_volume(volume: float) -> float:
    return max(0.0, min(1.0, volume))


def parse_volume(payload: str) -> Optional[float]:
    """Parse a volume level, clamped to [0, 1]. None if not a number."""
    try:
        volume = float(payload.strip())
    except ValueError:
        return None
    if not math.isfinite(volume):
        return None
    return clamp_volume(volume)


class MediaPlayer(Entity):
    """Media player driven by a structured state map.

    The state map (title, artist, album, position, duration, volume,
    state, ...) is published as one JSON document on the base topic.
    Each playback command has its own topic and signal. The same signals
    fire when local code calls ``play()``, ``pause()`` and friends, so a
    desktop shortcut and Home Assistant drive the player the same way.
    """

    _attr_ha_type = "media_player"

    def __init__(
        self,
        context: EntityContext,
        entity_id: str = "",
        name: str = "",
        icon: Optional[str] = None,
    ) -> None:
        super().__init__(context, entity_id, name, icon)
        self._state: Dict[str, Any] = {}
        self._players: List[str] = []

        self.state_changed = Signal("state_changed")
        self.play_requested = Signal("play_requested")
        self.pause_requested = Signal("pause_requested")
        self.play_pause_requested = Signal("play_pause_requested")
        self.stop_requested = Signal("stop_requested")
        self.next_requested = Signal("next_requested")
        self.previous_requested = Signal("previous_requested")
        self.volume_change_requested = Signal("volume_change_requested")
        self.play_media_requested = Signal("play_media_requested")

        self._simple_commands = {
            "play": self.play_requested,
            "pause": self.pause_requested,
            "playpause": self.play_pause_requested,
            "stop": self.stop_requested,
            "next": self.next_requested,
            "previous": self.previous_requested,
        }

    @property
    def state(self) -> Dict[str, Any]:
        return dict(self._state)

    def set_state(self, info: Mapping[str, Any]) -> None:
        """Replace the whole state map and publish it."""
        self._state = dict(info)
        self._publish()
        self.state_changed.emit(self.state)

    @property
    def available_players(self) -> List[str]:
        return list(self._players)

    def set_available_players(self, players: Iterable[str]) -> None:
        self._players = list(players)
        self._publish()

    def _publish(self) -> None:
        document = dict(self._state)
        document["available_players"] = list(self._players)
        self.publish_json_state(document)

    # ---------- local controls ----------
    def play(self) -> None:
        self.play_requested.emit()

    def pause(self) -> None:
        self.pause_requested.emit()

    def stop(self) -> None:
        self.stop_requested.emit()

    def next(self) -> None:
        self.next_requested.emit()

    def previous(self) -> None:
        self.previous_requested.emit()

    def set_volume(self, volume: float) -> None:
        self.volume_change_requested.emit(clamp_volume(float(volume)))

    # ---------- discovery ----------
    def init(self) -> None:
        self.set_discovery_config("state_topic", self.base_topic)
        for suffix, key in COMMAND_TOPICS.items():
            self.set_discovery_config(key, self.topic(suffix))

        self.send_registration()

        for suffix, signal in self._simple_commands.items():
            self.subscribe_command(suffix, self._make_simple_handler(suffix, signal))
        self.subscribe_command("volume", self._handle_volume)
        self.subscribe_command("play_media", self._handle_play_media)

        self._publish()

    def _make_simple_handler(self, command: str, signal: Signal):
        def _handle(message: Message) -> None:
            _LOGGER.debug("%s: %s requested", self.entity_id, command)
            signal.emit()

        return _handle

    def _handle_volume(self, message: Message) -> None:
        volume = parse_volume(message.payload)
        if volume is None:
            _LOGGER.warning("%s: invalid volume %r", self.entity_id, message.payload)
            return
        self.volume_change_requested.emit(volume)

    def _handle_play_media(self, message: Message) -> None:
        self.play_media_requested.emit(message.payload)
