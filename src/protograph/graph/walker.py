"""Recursive import traversal feeding one shared builder."""

import logging
from collections.abc import Callable
from pathlib import Path

from protograph.errors import MissingImport, SchemaParseError
from protograph.graph.builder import InclusionGraphBuilder
from protograph.graph.models import SourceUnit
from protograph.parsing import ProtoParser
from protograph.sources import blob_identifier, is_source_blob

logger = logging.getLogger(__name__)

# (name, root directory) -> content; raises OSError when the name cannot be read
FindSource = Callable[[str, Path | None], str]


class ImportWalker:
    """Load a root schema and every file it transitively imports.

    Every file is parsed and declared exactly once, even across import
    cycles and diamonds. Edges are only built after the whole closure has
    been declared.
    """

    def __init__(
        self,
        builder: InclusionGraphBuilder,
        parser: ProtoParser,
        find_source: FindSource,
        allow_missing_imports: bool = True,
        import_mapping: dict[str, str] | None = None,
    ):
        self._builder = builder
        self._parser = parser
        self._find_source = find_source
        self.allow_missing_imports = allow_missing_imports
        self._import_mapping = dict(import_mapping or {})
        # Identifier -> unit, for every file reached so far (missing ones included)
        self.units: dict[str, SourceUnit] = {}
        self.depth = 0
        self.root: SourceUnit | None = None
        self._root_dir: Path | None = None

    @property
    def builder(self) -> InclusionGraphBuilder:
        return self._builder

    def walk(self, source: str) -> SourceUnit:
        """Visit `source` and its imports, then build every edge.

        Args:
            source: Path of the root file, or its schema text.

        Returns:
            The root SourceUnit.

        Raises:
            MissingImport: If the root (or, when not tolerated, an import) cannot be opened.
            SchemaParseError: If any reached file is not valid schema text.
            GraphBuildError: If references are left unresolved.
        """
        self.visit(source)
        assert self.root is not None
        logger.info(f"Loaded {len(self.units)} file(s) reachable from {self.root.identifier}")
        self._builder.build_edges()
        return self.root

    def visit(self, name: str, weak: bool = False) -> bool:
        """Load, declare and recurse into one file.

        Returns:
            False if the file was missing (now or on an earlier visit).
        """
        location = self._import_mapping.get(name, name)
        if location != name:
            logger.debug(f"Replacing import [{name}] with [{location}]")

        blob = is_source_blob(location)
        identifier = blob_identifier(name) if is_source_blob(name) else name

        known = self.units.get(identifier)
        if known is not None:
            return not known.missing

        if self.depth == 0 and not blob:
            self._root_dir = Path(location).parent

        if blob:
            content = location
        else:
            try:
                content = self._find_source(location, self._root_dir if self.depth else None)
            except OSError as e:
                if self.depth > 0 and self.allow_missing_imports:
                    logger.warning(f"Import [{name}] could not be opened, continuing without it: {e}")
                    self.units[identifier] = SourceUnit(identifier=identifier, missing=True, weak=weak)
                    return False
                raise MissingImport(name, self.depth, str(e)) from e

        result = self._parser.parse(identifier, content)
        if not result.ok:
            raise SchemaParseError(identifier, result.line, result.error or "parse failed")
        proto = result.file

        unit = SourceUnit(
            identifier=identifier,
            package=proto.package,
            syntax=proto.syntax,
            weak=weak,
            location=None if blob else location,
        )
        # Registered before recursing so cycles stop here.
        self.units[identifier] = unit
        if self.depth == 0:
            self.root = unit

        logger.debug(f"Processing file {identifier} at depth {self.depth}")
        self._builder.declare_file(unit, proto)

        for imported in proto.imports:
            unit.dependencies.append(imported.path)
            self.depth += 1
            try:
                self.visit(imported.path, weak=imported.weak)
            finally:
                self.depth -= 1
        return True

    def dependencies(self) -> dict[str, list[str]]:
        """Identifier -> imported identifiers, for every reached file."""
        return {identifier: list(unit.dependencies) for identifier, unit in self.units.items()}

    def missing(self) -> list[str]:
        return [identifier for identifier, unit in self.units.items() if unit.missing]
