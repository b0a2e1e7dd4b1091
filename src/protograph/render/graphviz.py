"""Rasterize DOT documents with the Graphviz command line tool."""

import logging
import shutil
import subprocess
from pathlib import Path

from protograph.constants import GRAPHVIZ_BINARY, RASTER_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


def find_graphviz() -> str | None:
    """Path of the `dot` binary, or None when Graphviz is not installed."""
    return shutil.which(GRAPHVIZ_BINARY)


def rasterize(dot_path: Path, formats: list[str], timeout: int = RASTER_TIMEOUT_SECONDS) -> list[Path]:
    """Convert a DOT file into images next to it.

    Args:
        dot_path: Path to the .dot file.
        formats: Graphviz output formats, e.g. ["svg", "png"].
        timeout: Timeout in seconds per conversion.

    Returns:
        Paths of the images actually produced. A missing binary or a failed
        conversion is logged and leaves that image out.
    """
    if not formats:
        return []

    binary = find_graphviz()
    if binary is None:
        logger.error(
            f"Graphviz '{GRAPHVIZ_BINARY}' is not installed or not in PATH, "
            f"skipping {', '.join(formats)} output for {dot_path}"
        )
        return []

    produced = []
    for fmt in formats:
        target = dot_path.with_suffix(f".{fmt}")
        try:
            result = subprocess.run(
                [binary, f"-T{fmt}", str(dot_path), "-o", str(target)],
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            logger.error(f"Graphviz timed out after {timeout}s producing {target}")
            continue

        if result.returncode != 0:
            logger.error(f"Graphviz failed producing {target}: {result.stderr.strip()}")
            continue
        logger.info(f"Wrote {target}")
        produced.append(target)
    return produced
