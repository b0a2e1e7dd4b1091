"""Diagram output: DOT text and optional Graphviz images."""

from protograph.render.dot import DotRenderer, file_node_id
from protograph.render.graphviz import find_graphviz, rasterize

__all__ = [
    "DotRenderer",
    "file_node_id",
    "find_graphviz",
    "rasterize",
]
