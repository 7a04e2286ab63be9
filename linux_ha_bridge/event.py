"""Event entity."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .entity import Entity, EntityContext

_LOGGER = logging.getLogger(__name__)

DEFAULT_EVENT_TYPE = "pressed"


class Event(Entity):
    """One-way trigger for Home Assistant automations, e.g. global shortcuts."""

    _attr_ha_type = "event"

    def __init__(
        self,
        context: EntityContext,
        entity_id: str = "",
        name: str = "",
        icon: Optional[str] = None,
        event_types: Iterable[str] = (DEFAULT_EVENT_TYPE,),
    ) -> None:
        super().__init__(context, entity_id, name, icon)
        self._event_types: List[str] = list(event_types) or [DEFAULT_EVENT_TYPE]

    @property
    def event_types(self) -> List[str]:
        return list(self._event_types)

    def init(self) -> None:
        self.set_discovery_config("state_topic", self.base_topic)
        self.set_discovery_config("event_types", list(self._event_types))

        self.send_registration()

    def trigger(self, event_type: Optional[str] = None) -> None:
        """Fire the event. Not retained, so it never replays on reconnect."""
        event_type = event_type or self._event_types[0]
        if event_type not in self._event_types:
            _LOGGER.warning("%s: unknown event type %r", self.entity_id, event_type)
            return
        self.publish_json_state({"event_type": event_type}, retain=False)
