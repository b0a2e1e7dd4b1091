"""Locating schema sources: files on disk, in-memory mappings and inline blobs."""

import glob
import hashlib
import logging
from pathlib import Path

from protograph.constants import (
    BLOB_HASH_LENGTH,
    BLOB_PREFIX,
    EXCLUDED_DIRECTORIES,
    GLOB_CHARACTERS,
    LIST_SOURCE_PREFIX,
    PROTO_SUFFIX,
)
from protograph.errors import SchemaParseError

logger = logging.getLogger(__name__)


def is_source_blob(source: str) -> bool:
    """Inputs spanning several lines are schema text, not a path."""
    return source.count("\n") > 1


def blob_identifier(source: str) -> str:
    digest = hashlib.sha1(source.encode("utf-8")).hexdigest()
    return f"{BLOB_PREFIX}{digest[:BLOB_HASH_LENGTH]}"


class FileSystemSource:
    """Read imports from disk.

    A name is tried as given, then under the root file's directory, then
    under each configured import directory.
    """

    def __init__(self, import_dirs: list[Path] | None = None):
        self.import_dirs = list(import_dirs or [])

    def candidates(self, name: str, root_dir: Path | None) -> list[Path]:
        path = Path(name)
        if path.is_absolute():
            return [path]

        found: list[Path] = [path]
        if root_dir is not None:
            found.append(root_dir / name)
        found.extend(directory / name for directory in self.import_dirs)

        unique: list[Path] = []
        for candidate in found:
            if candidate not in unique:
                unique.append(candidate)
        return unique

    def __call__(self, name: str, root_dir: Path | None) -> str:
        """Return the content of `name`, without any byte-order mark.

        Raises:
            FileNotFoundError: If no candidate location holds the file.
            SchemaParseError: If the file is not UTF-8 text.
        """
        searched = self.candidates(name, root_dir)
        for candidate in searched:
            if candidate.is_file():
                logger.debug(f"Loading {name} from {candidate}")
                try:
                    return candidate.read_text(encoding="utf-8-sig")
                except UnicodeDecodeError as e:
                    raise SchemaParseError(
                        name, 0, f"{candidate} is not valid UTF-8 (byte {e.start})"
                    ) from e
        raise FileNotFoundError(
            f"{name} not found (searched: {', '.join(str(p) for p in searched)})"
        )


class MappingSource:
    """Serve schema files from an in-memory {name: content} mapping."""

    def __init__(self, files: dict[str, str]):
        self._files = dict(files)

    def __call__(self, name: str, root_dir: Path | None) -> str:
        if name in self._files:
            return self._files[name]
        if root_dir is not None:
            nested = (root_dir / name).as_posix()
            if nested in self._files:
                return self._files[nested]
        raise FileNotFoundError(f"{name} is not among the uploaded files")


def expand_sources(source: str) -> list[str]:
    """Expand one command line input into the independent sources it names.

    Supports `list:<file>` (one source per line, `#` comments allowed), a
    directory (every schema file below it), a glob pattern and, unchanged,
    a single path or inline blob.
    """
    if is_source_blob(source):
        return [source]

    if source.startswith(LIST_SOURCE_PREFIX):
        listing = Path(source[len(LIST_SOURCE_PREFIX):])
        sources = []
        for line in listing.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if line and not line.startswith("#"):
                sources.append(line)
        return sources

    path = Path(source)
    if path.is_dir():
        return [
            str(p)
            for p in sorted(path.rglob(f"*{PROTO_SUFFIX}"))
            if not any(part in EXCLUDED_DIRECTORIES for part in p.relative_to(path).parts)
        ]

    if any(character in source for character in GLOB_CHARACTERS):
        matches = sorted(glob.glob(source, recursive=True))
        if matches:
            return matches
        logger.warning(f"Pattern {source!r} matched no files")

    return [source]
