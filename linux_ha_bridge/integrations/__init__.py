"""Integrations that expose parts of the desktop through entities."""

from __future__ import annotations

from ..entity import EntityContext


class Integration:
    """Base class for integrations.

    An integration creates its entities in ``async_setup`` and releases
    whatever it holds (tasks, sessions) in ``async_shutdown``.
    """

    name = ""

    def __init__(self, context: EntityContext) -> None:
        self.context = context
        self.entities: list = []

    def __repr__(self) -> str:
        return f"<{type(self).__name__} entities={len(self.entities)}>"

    def add_entity(self, entity):
        self.entities.append(entity)
        return entity

    async def async_setup(self) -> None:
        raise NotImplementedError

    async def async_shutdown(self) -> None:
        for entity in self.entities:
            entity.close()
        self.entities.clear()
