"""Run entry points: one schema per run, many runs per batch.

A run owns all of its state (registry, resolution table, inclusion graph),
so independent runs can execute on separate threads without coordination.
Failures are returned as RunResult values; callers decide whether to go on.
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from pathlib import Path

from protograph.config import Config, load_settings
from protograph.constants import PROTO_SUFFIX, SELECT_IMPORTS
from protograph.errors import ProtographError
from protograph.graph import (
    DeclarationRegistry,
    ImportWalker,
    InclusionGraph,
    InclusionGraphBuilder,
    ReferenceResolver,
    SourceUnit,
    Subgraph,
    SubgraphSelector,
)
from protograph.graph.walker import FindSource
from protograph.parsing import ProtoParser
from protograph.render import DotRenderer, rasterize
from protograph.sources import FileSystemSource, blob_identifier, expand_sources, is_source_blob

logger = logging.getLogger(__name__)


def describe_source(source: str) -> str:
    """Short printable name of a source (blobs are identified by hash)."""
    return blob_identifier(source) if is_source_blob(source) else source


def with_overrides(settings: Config, **options) -> Config:
    """Copy of `settings` with the given [options] values replaced; None means keep."""
    changes = {key: value for key, value in options.items() if value is not None}
    if not changes:
        return settings
    return replace(settings, options=replace(settings.options, **changes))


def default_output_path(settings: Config, identifier: str, selection: str = "") -> Path:
    """Where the DOT document of a run goes when no path is given."""
    stem = Path(identifier).name
    if stem.endswith(PROTO_SUFFIX):
        stem = stem[: -len(PROTO_SUFFIX)]
    if selection.strip():
        slug = re.sub(r"[^A-Za-z0-9_.-]+", "_", selection.strip()).strip("_") or "all"
        stem = f"{stem}-{slug}"
    return settings.output_path / f"{stem}.dot"


class SchemaSession:
    """State of one run: the import closure of a root schema and its graph."""

    def __init__(
        self,
        settings: Config | None = None,
        find_source: FindSource | None = None,
        parser: ProtoParser | None = None,
        renderer: DotRenderer | None = None,
    ):
        self.settings = settings or Config()
        self.registry = DeclarationRegistry()
        self.resolver = ReferenceResolver(
            self.registry, show_missing_types=self.settings.show_missing_types
        )
        self.graph = InclusionGraph()
        self.renderer = renderer or DotRenderer(self.settings.render)
        self.builder = InclusionGraphBuilder(self.registry, self.resolver, self.graph, self.renderer)
        self.walker = ImportWalker(
            self.builder,
            parser or ProtoParser(),
            find_source or FileSystemSource(self.settings.paths.import_dirs),
            allow_missing_imports=self.settings.allow_missing_imports,
            import_mapping=self.settings.import_mapping,
        )
        self.root: SourceUnit | None = None

    def load(self, source: str) -> SourceUnit:
        """Walk the root schema and its imports, then build the graph."""
        self.root = self.walker.walk(source)
        return self.root

    def whole_graph(self) -> Subgraph:
        return Subgraph(entities=self.registry.entities(), edges=self.graph.edges())

    def select(self, selection: str) -> Subgraph:
        selector = SubgraphSelector(
            self.registry, self.resolver, self.graph, root=self.root.identifier if self.root else None
        )
        return selector.select(selection)

    def dependencies(self) -> dict[str, list[str]]:
        return self.walker.dependencies()

    def render(self, selection: str = "") -> tuple[str, Subgraph | None]:
        """Render the whole graph, a selection, or the import tree.

        Returns:
            The DOT document and the subgraph drawn (None for the import tree).

        Raises:
            AmbiguousSelection: If a selection fragment is not unique.
        """
        if self.root is None:
            raise RuntimeError("load() must be called before render()")
        title = self.root.identifier
        selection = selection.strip()

        if selection == SELECT_IMPORTS:
            return self.renderer.render_dependency_tree(self.walker.units, self.root.identifier), None
        if not selection:
            subgraph = self.whole_graph()
            return self.renderer.render_document(subgraph, title, root=self.root.identifier), subgraph

        subgraph = self.select(selection)
        dot = self.renderer.render_document(
            subgraph, title, root=self.root.identifier, group_by_packages=False
        )
        return dot, subgraph


@dataclass
class RunResult:
    """Outcome of one independent run."""

    ok: bool
    source: str
    selection: str = ""
    dot: str | None = None
    output_path: Path | None = None
    images: list[Path] = field(default_factory=list)
    subgraph: Subgraph | None = None
    dependencies: dict[str, list[str]] = field(default_factory=dict)
    error: str | None = None
    error_type: str | None = None

    @classmethod
    def success(cls, source: str, selection: str, dot: str, **details) -> "RunResult":
        """Create a successful run result."""
        return cls(ok=True, source=source, selection=selection, dot=dot, **details)

    @classmethod
    def failure(cls, source: str, selection: str, error: Exception) -> "RunResult":
        """Create a failed run result."""
        return cls(
            ok=False,
            source=source,
            selection=selection,
            error=str(error),
            error_type=type(error).__name__,
        )


def run(
    source: str,
    selection: str = "",
    settings: Config | None = None,
    output: Path | None = None,
    write: bool = True,
    find_source: FindSource | None = None,
) -> RunResult:
    """Process one root schema end to end.

    Args:
        source: Path of the root schema, or its text.
        selection: "" for the whole graph, "imports", "*" or `;`-separated fragments.
        settings: Configuration; loaded from the environment when omitted.
        output: Explicit DOT output path.
        write: Write the DOT file (and requested images) to disk.
        find_source: Alternative file-resolution function.

    Returns:
        RunResult describing the outcome. Schema errors never propagate.
    """
    settings = settings or load_settings()
    label = describe_source(source)
    logger.info(f"Processing {label}" + (f" with selection [{selection}]" if selection else ""))

    session = SchemaSession(settings, find_source=find_source)
    try:
        session.load(source)
        dot, subgraph = session.render(selection)
    except ProtographError as e:
        logger.error(f"Failed to process {label}: {e}")
        return RunResult.failure(label, selection, e)

    output_path = None
    images: list[Path] = []
    if write:
        output_path = output or default_output_path(settings, session.root.identifier, selection)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(dot, encoding="utf-8")
        logger.info(f"Wrote {output_path}")

        formats = [
            fmt
            for fmt, enabled in (("svg", settings.options.generate_svg), ("png", settings.options.generate_png))
            if enabled
        ]
        images = rasterize(output_path, formats)

    return RunResult.success(
        label,
        selection,
        dot,
        output_path=output_path,
        images=images,
        subgraph=subgraph,
        dependencies=session.dependencies(),
    )


def run_batch(sources: list[str], selection: str = "", settings: Config | None = None) -> list[RunResult]:
    """Process independent sources in parallel; results keep the input order."""
    settings = settings or load_settings()
    workers = min(settings.batch.parallel_limit, max(len(sources), 1))
    logger.info(f"Processing {len(sources)} sources with {workers} worker(s)")
    results: list[RunResult] = []
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(run, source, selection, settings) for source in sources]
        for source, future in zip(sources, futures):
            try:
                results.append(future.result())
            except Exception as e:
                # One broken input must not cost the results of the others.
                label = describe_source(source)
                logger.exception(f"Unexpected error processing {label}")
                results.append(RunResult.failure(label, selection, e))

    failed = sum(1 for r in results if not r.ok)
    if failed:
        logger.warning(f"{failed} of {len(results)} runs failed")
    return results


def run_source(
    source: str,
    selection: str = "",
    settings: Config | None = None,
    output: Path | None = None,
) -> list[RunResult]:
    """Run a command line input, which may expand to several independent runs."""
    settings = settings or load_settings()
    sources = expand_sources(source)
    if not sources:
        logger.warning(f"No schema files found for {source}")
        return []
    if len(sources) == 1:
        return [run(sources[0], selection, settings, output=output)]
    if output is not None:
        logger.warning(f"Ignoring --output for {len(sources)} inputs, using default names")
    return run_batch(sources, selection, settings)
