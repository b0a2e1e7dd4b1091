"""Graphviz DOT generators for inclusion graphs and file dependency trees."""

import hashlib
from html import escape

from protograph.config import RenderConfig
from protograph.constants import (
    APP_VERSION,
    CLUSTER_COLOR,
    EDGE_STYLES,
    HEADER_COLORS,
    MISSING_COLOR,
    RPC_REQUEST_SUFFIX,
    RPC_RESPONSE_SUFFIX,
)
from protograph.graph.models import Entity, EntityKind, ResolvedField, SourceUnit, Subgraph


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _quote(text: str) -> str:
    """Quote a string for use as a DOT identifier or attribute value."""
    return '"' + _escape(text) + '"'


def file_node_id(identifier: str) -> str:
    """Stable DOT node id for a schema file."""
    return "F_" + hashlib.sha1(identifier.encode("utf-8")).hexdigest()[:16]


def _field_type(field: ResolvedField) -> str:
    if field.label == "map":
        return f"map<{field.key_type}, {field.type_name}>"
    if field.label == "repeated":
        return f"{field.type_name}[...]"
    if field.oneof:
        return f"oneof {field.oneof}: {field.type_name}"
    return field.type_name


class DotRenderer:
    """Renders entities as HTML-table nodes and subgraphs as DOT documents.

    Every field row carries a port named after the field, so an inclusion
    edge keyed by (owner, field) leaves from the row that caused it.
    """

    def __init__(self, config: RenderConfig | None = None):
        self.rankdir = config.rankdir if config else "LR"
        self.font_name = config.font_name if config else "Helvetica"
        self.group_by_packages = config.group_by_packages if config else True
        self.unwrap_root_package = config.unwrap_root_package if config else True

    # ------------------------------------------------------------------
    # Entities
    # ------------------------------------------------------------------

    def render_entity(self, entity: Entity) -> str:
        """Render one entity as a DOT node statement.

        RPC methods are drawn as rows of their service and render to "".
        """
        if entity.kind is EntityKind.MESSAGE:
            rows = [
                self._row(_field_type(f), f.name, str(f.number), port=f.name)
                for f in entity.fields
            ]
            return self._table(entity, entity.name, rows)
        if entity.kind is EntityKind.ENUM:
            rows = [self._row(name, str(number)) for name, number in entity.values]
            return self._table(entity, f"enum {entity.name}", rows)
        if entity.kind is EntityKind.SERVICE:
            rows = [self._method_row(method) for method in entity.methods]
            return self._table(entity, f"service {entity.name}", rows)
        if entity.kind is EntityKind.MISSING:
            return (
                f"{entity.alias} [shape=box, style=\"dashed,filled\", "
                f"color=\"{MISSING_COLOR}\", fillcolor=\"{HEADER_COLORS['missing']}\", "
                f"label={_quote(entity.name + ' (missing)')}, tooltip={_quote(entity.qualified_name)}];"
            )
        return ""

    def _row(self, *cells: str, port: str | None = None) -> str:
        rendered = []
        for index, cell in enumerate(cells):
            port_attr = f' PORT="{escape(port)}"' if port and index == 1 else ""
            rendered.append(f'<TD ALIGN="LEFT"{port_attr}>{escape(cell)}</TD>')
        return "<TR>" + "".join(rendered) + "</TR>"

    def _method_row(self, method: Entity) -> str:
        request = ("stream " if method.streams_request else "") + (method.request_type or "")
        response = ("stream " if method.streams_response else "") + (method.response_type or "")
        return (
            f'<TR><TD ALIGN="LEFT">{escape(method.name)}</TD>'
            f'<TD ALIGN="LEFT" PORT="{escape(method.name + RPC_REQUEST_SUFFIX)}">{escape(request)}</TD>'
            f'<TD ALIGN="LEFT" PORT="{escape(method.name + RPC_RESPONSE_SUFFIX)}">{escape(response)}</TD></TR>'
        )

    def _table(self, entity: Entity, title: str, rows: list[str]) -> str:
        color = HEADER_COLORS.get(entity.kind.value, HEADER_COLORS["message"])
        lines = [
            f"{entity.alias} [tooltip={_quote(entity.qualified_name)}, label=<",
            '<TABLE BORDER="0" CELLBORDER="1" CELLSPACING="0" CELLPADDING="4">',
            f'<TR><TD COLSPAN="3" BGCOLOR="{color}"><B>{escape(title)}</B></TD></TR>',
            *rows,
            "</TABLE>>];",
        ]
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def _header(self, name: str, title: str, selection: str) -> list[str]:
        lines = [f"/* {APP_VERSION} */", f"/* source: {title} */"]
        if selection:
            lines.append(f"/* selection: {selection} */")
        lines.extend([
            f"digraph {_quote(name)} {{",
            f"    rankdir={self.rankdir};",
            f"    node [fontname={_quote(self.font_name)}, fontsize=10, shape=plaintext];",
            f"    edge [fontname={_quote(self.font_name)}, fontsize=9];",
        ])
        return lines

    def render_document(
        self,
        subgraph: Subgraph,
        title: str,
        root: str | None = None,
        group_by_packages: bool | None = None,
    ) -> str:
        """Render a subgraph as a complete DOT document.

        Args:
            subgraph: Entities and edges to draw.
            title: Source description written into the header comment.
            root: Identifier of the root file, left unclustered when grouping.
            group_by_packages: Cluster entities per source file; defaults to
                the renderer configuration.

        Returns:
            DOT document text. Output is sorted, so equal input renders equal text.
        """
        if group_by_packages is None:
            group_by_packages = self.group_by_packages

        lines = self._header("protograph", title, subgraph.selection)
        entities = sorted(subgraph.entities, key=lambda e: (e.source, e.qualified_name))

        if group_by_packages:
            by_source: dict[str, list[Entity]] = {}
            for entity in entities:
                by_source.setdefault(entity.source, []).append(entity)
            for index, (source, members) in enumerate(sorted(by_source.items())):
                unwrap = self.unwrap_root_package and source == root
                indent = "    " if unwrap else "        "
                if not unwrap:
                    lines.append(f"    subgraph cluster_{index} {{")
                    lines.append(f"        label={_quote(source)};")
                    lines.append(f"        style=dashed; color=\"{CLUSTER_COLOR}\";")
                for entity in members:
                    lines.extend(self._indent(self._artifact(entity), indent))
                if not unwrap:
                    lines.append("    }")
        else:
            for entity in entities:
                lines.extend(self._indent(self._artifact(entity), "    "))

        kinds = {e.alias: e.kind for e in subgraph.entities}
        for edge in sorted(subgraph.edges, key=lambda e: (e.owner, e.field)):
            for target in sorted(edge.targets):
                if target not in kinds or edge.owner not in kinds:
                    continue
                style = EDGE_STYLES.get(kinds[target].value, EDGE_STYLES["message"])
                count = edge.targets[target]
                label = f", label=\"x{count}\"" if count > 1 else ""
                lines.append(f"    {edge.owner}:{_quote(edge.field)}:e -> {target} [{style}{label}];")

        lines.append("}")
        return "\n".join(lines) + "\n"

    def render_dependency_tree(self, units: dict[str, SourceUnit], root: str) -> str:
        """Render the file import tree; missing files are drawn in red."""
        lines = self._header("imports", root, "imports")
        for identifier in sorted(units):
            unit = units[identifier]
            if unit.missing:
                lines.append(
                    f"    {file_node_id(identifier)} [shape=box, style=dashed, color=\"{MISSING_COLOR}\", "
                    f"fontcolor=\"{MISSING_COLOR}\", label={_quote(identifier + ' (missing)')}];"
                )
                continue
            label = f"{_escape(unit.package)}\\n{_escape(identifier)}" if unit.package else _escape(identifier)
            style = ", style=bold" if identifier == root else ""
            lines.append(f"    {file_node_id(identifier)} [shape=box{style}, label=\"{label}\"];")

        for identifier in sorted(units):
            for dependency in units[identifier].dependencies:
                lines.append(f"    {file_node_id(identifier)} -> {file_node_id(dependency)};")

        lines.append("}")
        return "\n".join(lines) + "\n"

    def _artifact(self, entity: Entity) -> str:
        if entity.artifact is not None:
            return entity.artifact
        return self.render_entity(entity)

    @staticmethod
    def _indent(text: str, indent: str) -> list[str]:
        if not text:
            return []
        return [indent + line for line in text.splitlines()]
