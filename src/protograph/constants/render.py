"""Graphviz styling used by the DOT renderer.

Keeping colors and shapes here means the renderer only decides structure;
changing the look of a diagram never touches rendering logic.
"""

APP_VERSION = "generated by protograph"

# =============================================================================
# Node Colors
# =============================================================================

HEADER_COLORS = {
    "message": "#c6dbef",
    "enum": "#fdd0a2",
    "service": "#c7e9c0",
    "missing": "#fcbba1",
}

CLUSTER_COLOR = "#bdbdbd"
MISSING_COLOR = "#cb181d"

# =============================================================================
# Edge Styles
# =============================================================================
# Keyed by the kind of the edge target.

EDGE_STYLES = {
    "message": 'color="#2171b5"',
    "enum": 'color="#d94801", style=dashed',
    "missing": f'color="{MISSING_COLOR}", style=dotted',
}

# =============================================================================
# Rasterizing
# =============================================================================

GRAPHVIZ_BINARY = "dot"
RASTER_FORMATS = ("svg", "png")
RASTER_TIMEOUT_SECONDS = 120
