"""Configuration system for protograph.

Settings come from an optional INI file, validated against CONFIG_SCHEMA,
with a couple of environment variable overrides. Every section is a frozen
dataclass so a loaded configuration can be shared between independent runs.
"""

from configparser import ConfigParser
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional
import os


DEFAULT_CONFIG_NAME = "protograph.ini"
IMPORT_MAPPING_SECTION = "imports"


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# Schema: section -> key -> (type, default, min, max, description)
CONFIG_SCHEMA: dict[str, dict[str, tuple[type, Any, Any, Any, str]]] = {
    "options": {
        "allow_missing_imports": (bool, True, None, None, "Tolerate imports that cannot be opened"),
        "show_missing_types": (bool, True, None, None, "Draw unresolved types as placeholders"),
        "generate_svg": (bool, False, None, None, "Rasterize the diagram to .svg"),
        "generate_png": (bool, False, None, None, "Rasterize the diagram to .png"),
    },
    "render": {
        "group_by_packages": (bool, True, None, None, "Cluster entities by source file"),
        "unwrap_root_package": (bool, True, None, None, "Leave the root file unclustered"),
        "rankdir": (str, "LR", None, None, "Graphviz rank direction"),
        "font_name": (str, "Helvetica", None, None, "Font used for every label"),
    },
    "paths": {
        "output_dir": (str, "generated", None, None, "Directory receiving .dot files"),
        "import_paths": (str, "", None, None, "Extra import search directories"),
    },
    "batch": {
        "parallel_limit": (int, 4, 1, 32, "Concurrent independent runs"),
    },
}

RANKDIR_VALUES = ("LR", "RL", "TB", "BT")


@dataclass(frozen=True)
class OptionsConfig:
    """Resolution and output toggles."""

    allow_missing_imports: bool
    show_missing_types: bool
    generate_svg: bool
    generate_png: bool


@dataclass(frozen=True)
class RenderConfig:
    """Diagram layout configuration."""

    group_by_packages: bool
    unwrap_root_package: bool
    rankdir: str
    font_name: str


@dataclass(frozen=True)
class PathsConfig:
    """Output and import search locations."""

    output_dir: str
    import_paths: str

    @property
    def import_dirs(self) -> list[Path]:
        """Configured import search directories, in order."""
        return [Path(p) for p in self.import_paths.split(os.pathsep) if p.strip()]


@dataclass(frozen=True)
class BatchConfig:
    """Batch processing configuration."""

    parallel_limit: int


def _defaults(section: str) -> dict[str, Any]:
    return {key: default for key, (_, default, _, _, _) in CONFIG_SCHEMA[section].items()}


def _load_section(
    parser: ConfigParser, section: str, schema: dict[str, tuple[type, Any, Any, Any, str]]
) -> dict[str, Any]:
    """Load and validate a configuration section.

    Args:
        parser: ConfigParser instance with loaded config
        section: Section name to load
        schema: Schema definition for the section

    Returns:
        Dictionary of validated configuration values

    Raises:
        ConfigError: If validation fails
    """
    result = {}

    for key, (typ, default, min_val, max_val, _) in schema.items():
        if parser.has_option(section, key):
            raw_value = parser.get(section, key)
            value: bool | int | float | str
            try:
                if typ is bool:
                    lowered = raw_value.strip().lower()
                    if lowered in ("true", "1", "yes", "on"):
                        value = True
                    elif lowered in ("false", "0", "no", "off"):
                        value = False
                    else:
                        raise ValueError(raw_value)
                elif typ is int:
                    value = int(raw_value)
                elif typ is float:
                    value = float(raw_value)
                else:
                    value = raw_value.strip()
            except ValueError as e:
                raise ConfigError(
                    f"Invalid value for [{section}].{key}: {raw_value!r} (expected {typ.__name__})"
                ) from e
        else:
            value = default

        if typ in (int, float) and value is not None:
            if min_val is not None and value < min_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but minimum is {min_val}"
                )
            if max_val is not None and value > max_val:
                raise ConfigError(
                    f"Value for [{section}].{key} is {value}, but maximum is {max_val}"
                )

        result[key] = value

    return result


@dataclass(frozen=True)
class Config:
    """Complete protograph configuration."""

    options: OptionsConfig = None  # type: ignore[assignment]
    render: RenderConfig = None  # type: ignore[assignment]
    paths: PathsConfig = None  # type: ignore[assignment]
    batch: BatchConfig = None  # type: ignore[assignment]
    # Import name -> location it should actually be loaded from
    import_mapping: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        """Fill sections that were not provided with schema defaults."""
        if self.options is None:
            object.__setattr__(self, "options", OptionsConfig(**_defaults("options")))
        if self.render is None:
            object.__setattr__(self, "render", RenderConfig(**_defaults("render")))
        if self.paths is None:
            object.__setattr__(self, "paths", PathsConfig(**_defaults("paths")))
        if self.batch is None:
            object.__setattr__(self, "batch", BatchConfig(**_defaults("batch")))

    @property
    def output_path(self) -> Path:
        """Directory receiving generated diagrams."""
        return Path(self.paths.output_dir)

    @property
    def allow_missing_imports(self) -> bool:
        return self.options.allow_missing_imports

    @property
    def show_missing_types(self) -> bool:
        return self.options.show_missing_types


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from an INI file.

    Args:
        config_path: Path to config file. If None or absent, uses schema defaults.

    Returns:
        Config object with all sections populated.

    Raises:
        ConfigError: If validation fails or the file cannot be parsed.
    """
    parser = ConfigParser()
    # Import mapping keys are file names; keep their case.
    parser.optionxform = str  # type: ignore[assignment,method-assign]

    if config_path and Path(config_path).exists():
        try:
            parser.read(config_path)
        except Exception as e:
            raise ConfigError(f"Failed to read {config_path}: {e}") from e

    options_values = _load_section(parser, "options", CONFIG_SCHEMA["options"])
    render_values = _load_section(parser, "render", CONFIG_SCHEMA["render"])
    paths_values = _load_section(parser, "paths", CONFIG_SCHEMA["paths"])
    batch_values = _load_section(parser, "batch", CONFIG_SCHEMA["batch"])

    if render_values["rankdir"].upper() not in RANKDIR_VALUES:
        raise ConfigError(
            f"Value for [render].rankdir is {render_values['rankdir']!r}, "
            f"expected one of {', '.join(RANKDIR_VALUES)}"
        )
    render_values["rankdir"] = render_values["rankdir"].upper()

    import_mapping: dict[str, str] = {}
    if parser.has_section(IMPORT_MAPPING_SECTION):
        for name, replacement in parser.items(IMPORT_MAPPING_SECTION):
            import_mapping[name] = replacement.strip()

    return Config(
        options=OptionsConfig(**options_values),
        render=RenderConfig(**render_values),
        paths=PathsConfig(**paths_values),
        batch=BatchConfig(**batch_values),
        import_mapping=import_mapping,
    )


@lru_cache(maxsize=1)
def load_settings() -> Config:
    """Load settings from the environment and the optional config file.

    Settings are cached for the lifetime of the process.
    Use load_settings.cache_clear() to reload settings.

    Environment:
        PROTOGRAPH_CONFIG: config file path (default: ./protograph.ini, optional).
        PROTOGRAPH_OUTPUT_DIR: overrides [paths].output_dir.
    """
    config_file = Path(os.getenv("PROTOGRAPH_CONFIG", DEFAULT_CONFIG_NAME))
    try:
        config_exists = config_file.exists()
    except PermissionError:
        config_exists = False
    config = load_config(config_file if config_exists else None)

    output_dir = os.getenv("PROTOGRAPH_OUTPUT_DIR")
    if output_dir:
        config = Config(
            options=config.options,
            render=config.render,
            paths=PathsConfig(output_dir=output_dir, import_paths=config.paths.import_paths),
            batch=config.batch,
            import_mapping=config.import_mapping,
        )
    return config
