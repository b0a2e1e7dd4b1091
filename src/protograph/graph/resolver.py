"""Scope-aware resolution of type references to declared entities."""

import logging

from protograph.constants import SCALAR_TYPES, SEPARATOR
from protograph.errors import UnresolvedReference
from protograph.graph.models import REFERENCEABLE_KINDS, Entity
from protograph.graph.registry import DeclarationRegistry

logger = logging.getLogger(__name__)


class _Scalar:
    """Sentinel returned for built-in value types."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SCALAR"


SCALAR = _Scalar()


def is_scalar_type(reference: str) -> bool:
    return reference in SCALAR_TYPES


def _strip_suffix(name: str, suffix: str) -> str:
    """Remove `suffix` and the separator before it from `name`."""
    prefix = name[: len(name) - len(suffix)]
    if prefix.endswith(SEPARATOR):
        prefix = prefix[: -len(SEPARATOR)]
    return prefix


def _is_scope_prefix(prefix: str, scope: str) -> bool:
    """True when `prefix` is an enclosing namespace of `scope` (or the root)."""
    if not prefix:
        return True
    return scope == prefix or scope.startswith(prefix + SEPARATOR)


class ReferenceResolver:
    """Bind raw type references to entities, memoizing every binding.

    Resolution order for a reference seen in `scope`:

    1. Scalars short-circuit to SCALAR.
    2. A memoized binding for (scope, reference) is returned unchanged.
    3. A leading dot marks a fully qualified name, looked up directly.
    4. Candidates are the messages and enums sharing the last component.
    5. A single candidate wins outright.
    6. For dotted references, candidates must end with the reference and
       the rest of their name must enclose the scope; the longest wins.
    7. For bare names, the candidate whose namespace is the nearest
       enclosing namespace of the scope wins.

    Anything left unresolved becomes a missing placeholder owned by the
    scope's entity, or raises UnresolvedReference when placeholders are off.
    """

    def __init__(self, registry: DeclarationRegistry, show_missing_types: bool = True):
        self._registry = registry
        self.show_missing_types = show_missing_types
        # Scope -> raw reference -> entity
        self._resolutions: dict[str, dict[str, Entity]] = {}

    def resolve(self, scope: str, reference: str) -> Entity | _Scalar:
        """Resolve `reference` as written inside the entity named `scope`.

        Raises:
            UnresolvedReference: If nothing matches and missing types are not shown.
        """
        if is_scalar_type(reference):
            return SCALAR

        memoized = self._resolutions.get(scope, {}).get(reference)
        if memoized is not None:
            return memoized

        target = self._lookup(scope, reference)
        if target is None:
            if not self.show_missing_types:
                raise UnresolvedReference(scope, reference)
            target = self._placeholder(scope, reference)

        self._resolutions.setdefault(scope, {})[reference] = target
        return target

    def resolutions(self, scope: str) -> dict[str, Entity]:
        """Bindings made so far for one scope."""
        return dict(self._resolutions.get(scope, {}))

    def _lookup(self, scope: str, reference: str) -> Entity | None:
        if reference.startswith(SEPARATOR):
            entity = self._registry.lookup(reference[len(SEPARATOR):])
            if entity is not None and entity.kind in REFERENCEABLE_KINDS:
                return entity
            return None

        short_name = reference.rsplit(SEPARATOR, 1)[-1]
        candidates = [
            name
            for name in self._registry.candidates_for_short_name(short_name)
            if self._registry.lookup(name).kind in REFERENCEABLE_KINDS
        ]
        if not candidates:
            logger.debug(f"No declaration named {short_name!r} for {reference!r} in {scope}")
            return None

        if len(candidates) == 1:
            chosen: str | None = candidates[0]
        elif SEPARATOR in reference:
            chosen = self._closest_qualified(scope, reference, candidates)
        else:
            chosen = self._closest_namespace(scope, short_name, candidates)

        if chosen is None:
            logger.debug(
                f"None of {', '.join(candidates)} is visible from {scope} as {reference!r}"
            )
            return None
        logger.debug(f"Resolved {reference!r} in {scope} to {chosen}")
        return self._registry.lookup(chosen)

    def _closest_qualified(self, scope: str, reference: str, candidates: list[str]) -> str | None:
        # Two survivors of equal length would have to share the same prefix
        # of `scope`, which makes them the same name; no tie is possible.
        found = None
        for candidate in candidates:
            if candidate != reference and not candidate.endswith(SEPARATOR + reference):
                continue
            if not _is_scope_prefix(_strip_suffix(candidate, reference), scope):
                continue
            if found is None or len(candidate) > len(found):
                found = candidate
        return found

    def _closest_namespace(self, scope: str, short_name: str, candidates: list[str]) -> str | None:
        found = None
        found_namespace = ""
        for candidate in candidates:
            namespace = _strip_suffix(candidate, short_name)
            if not _is_scope_prefix(namespace, scope):
                continue
            if found is None or len(namespace) > len(found_namespace):
                found = candidate
                found_namespace = namespace
        return found

    def _placeholder(self, scope: str, reference: str) -> Entity:
        owner = self._registry.lookup(scope)
        if owner is None:
            raise UnresolvedReference(scope, reference)
        logger.debug(f"Type {reference!r} used in {scope} is not declared anywhere")
        return self._registry.missing_placeholder(owner, reference)
