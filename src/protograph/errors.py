"""Error kinds raised while loading, resolving and selecting schema entities."""


class ProtographError(Exception):
    """Base class for every error a schema run can report."""

    pass


class DuplicateDeclaration(ProtographError):
    """Two declarations claim the same qualified name."""

    def __init__(self, qualified_name: str):
        self.qualified_name = qualified_name
        super().__init__(f"Duplicate declaration of {qualified_name!r}")


class UnresolvedReference(ProtographError):
    """A type reference could not be bound to a declared entity."""

    def __init__(self, scope: str, reference: str):
        self.scope = scope
        self.reference = reference
        super().__init__(f"Failed to resolve type {reference!r} used in {scope!r}")


class GraphBuildError(ProtographError):
    """Raised after the edge pass when references were left unresolved."""

    def __init__(self, unresolved: list[UnresolvedReference]):
        self.unresolved = unresolved
        details = "; ".join(str(e) for e in unresolved)
        super().__init__(f"{len(unresolved)} unresolved reference(s): {details}")


class AmbiguousSelection(ProtographError):
    """A selection fragment matched zero or several entities."""

    def __init__(self, fragment: str, candidates: list[str]):
        self.fragment = fragment
        self.candidates = candidates
        if candidates:
            message = (
                f"Your selection [{fragment}] results in more than one entry: "
                f"{', '.join(candidates)}"
            )
        else:
            message = f"Cannot find anything matching your selection: {fragment}"
        super().__init__(message)


class MissingImport(ProtographError):
    """A schema file could not be opened."""

    def __init__(self, name: str, depth: int = 0, reason: str | None = None):
        self.name = name
        self.depth = depth
        self.reason = reason
        message = f"Failed to open {name!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class SchemaParseError(ProtographError):
    """Schema text is not valid protobuf syntax."""

    def __init__(self, path: str, line: int, message: str):
        self.path = path
        self.line = line
        self.message = message
        super().__init__(f"{path}:{line}: {message}")


class UnsupportedConstruct(ProtographError):
    """A declaration the graph does not model (groups, extend blocks).

    Never raised: instances are collected by the builder and logged.
    """

    def __init__(self, scope: str, construct: str):
        self.scope = scope
        self.construct = construct
        super().__init__(f"Unsupported construct {construct!r} in {scope!r}, skipped")
