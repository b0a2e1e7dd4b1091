"""Registry of every entity declared during one run."""

import logging

from protograph.constants import ALIAS_COUNTER_START, ALIAS_PREFIX, MISSING_NAMESPACE, SEPARATOR
from protograph.errors import DuplicateDeclaration
from protograph.graph.models import Entity, EntityKind

logger = logging.getLogger(__name__)


class DeclarationRegistry:
    """Index of declared entities by qualified name, short name and alias.

    Pure data store: no resolution logic lives here. One registry is owned by
    exactly one run.
    """

    def __init__(self):
        # Qualified name -> entity, in declaration order
        self._entities: dict[str, Entity] = {}
        # Short name -> qualified names sharing it
        self._by_short_name: dict[str, list[str]] = {}
        # (short name, qualified name) -> alias
        self._aliases: dict[tuple[str, str], str] = {}
        # Alias -> qualified name
        self._alias_owners: dict[str, str] = {}
        self._counter = ALIAS_COUNTER_START

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, qualified_name: str) -> bool:
        return qualified_name in self._entities

    def declare(self, entity: Entity) -> Entity:
        """Insert a new entity.

        Raises:
            DuplicateDeclaration: If the qualified name is already taken.
        """
        if entity.qualified_name in self._entities:
            raise DuplicateDeclaration(entity.qualified_name)

        self._entities[entity.qualified_name] = entity
        self._alias_owners.setdefault(entity.alias, entity.qualified_name)
        # Placeholders must never become resolution candidates.
        if not entity.is_missing:
            self._by_short_name.setdefault(entity.name, []).append(entity.qualified_name)
        return entity

    def lookup(self, qualified_name: str) -> Entity | None:
        return self._entities.get(qualified_name)

    def lookup_alias(self, alias: str) -> Entity | None:
        qualified_name = self._alias_owners.get(alias)
        if qualified_name is None:
            return None
        return self._entities.get(qualified_name)

    def candidates_for_short_name(self, name: str) -> list[str]:
        """All qualified names declared with this short name."""
        return list(self._by_short_name.get(name, []))

    def get_or_create_alias(self, short_name: str, qualified_name: str) -> str:
        """Return the stable alias for the pair, allocating one on first use."""
        key = (short_name, qualified_name)
        alias = self._aliases.get(key)
        if alias is None:
            alias = f"{ALIAS_PREFIX}{self._counter}"
            self._counter += 1
            self._aliases[key] = alias
            self._alias_owners[alias] = qualified_name
        return alias

    def entities(self, kind: EntityKind | None = None) -> list[Entity]:
        """Declared entities in declaration order, optionally of one kind."""
        if kind is None:
            return list(self._entities.values())
        return [e for e in self._entities.values() if e.kind is kind]

    def missing_placeholder(self, owner: Entity, reference: str) -> Entity:
        """Return the placeholder for `reference` as seen from `owner`.

        One placeholder exists per (owner alias, missing name) pair.
        """
        qualified_name = SEPARATOR.join([MISSING_NAMESPACE, owner.alias, reference])
        existing = self._entities.get(qualified_name)
        if existing is not None:
            return existing

        placeholder = Entity(
            qualified_name=qualified_name,
            name=reference,
            kind=EntityKind.MISSING,
            alias=self.get_or_create_alias(reference, qualified_name),
            source=owner.source,
            package=owner.package,
        )
        logger.debug(f"Created placeholder {placeholder.alias} for missing type {reference!r}")
        return self.declare(placeholder)
