"""Configuration tests.

Tests verify behavior (types, ranges, loading) not specific values.
"""

from pathlib import Path

import pytest

from protograph.config import (
    CONFIG_SCHEMA,
    Config,
    ConfigError,
    load_config,
    load_settings,
)


def write_config(workspace: Path, content: str) -> Path:
    """Write a protograph.ini file to the workspace and return the path."""
    config_path = workspace / "protograph.ini"
    config_path.write_text(content)
    return config_path


# =============================================================================
# Type Validation Tests
# =============================================================================


def test_all_settings_have_correct_types():
    """Every setting matches its declared type from schema."""
    config = load_config(None)

    for section_name, keys in CONFIG_SCHEMA.items():
        section = getattr(config, section_name)
        for key, (expected_type, *_) in keys.items():
            value = getattr(section, key)
            assert isinstance(value, expected_type), (
                f"{section_name}.{key}: expected {expected_type.__name__}, "
                f"got {type(value).__name__}"
            )


def test_default_config_matches_schema_defaults():
    """Config() without arguments equals loading no file at all."""
    assert Config() == load_config(None)


def test_invalid_int_raises_clear_error(tmp_path: Path):
    """Non-numeric value for int setting gives helpful message."""
    config_path = write_config(tmp_path, "[batch]\nparallel_limit = lots")

    with pytest.raises(ConfigError) as exc_info:
        load_config(config_path)

    assert "batch" in str(exc_info.value)
    assert "parallel_limit" in str(exc_info.value)
    assert "int" in str(exc_info.value)


def test_invalid_bool_raises_clear_error(tmp_path: Path):
    """Booleans accept the usual spellings and nothing else."""
    config_path = write_config(tmp_path, "[options]\nshow_missing_types = maybe")

    with pytest.raises(ConfigError) as exc_info:
        load_config(config_path)

    assert "show_missing_types" in str(exc_info.value)
    assert "bool" in str(exc_info.value)


def test_bool_spellings(tmp_path: Path):
    """yes/no/on/off/1/0 are understood."""
    config_path = write_config(
        tmp_path,
        "[options]\nallow_missing_imports = no\nshow_missing_types = off\ngenerate_svg = yes\ngenerate_png = 1\n",
    )

    config = load_config(config_path)

    assert config.allow_missing_imports is False
    assert config.show_missing_types is False
    assert config.options.generate_svg is True
    assert config.options.generate_png is True


def test_invalid_rankdir_raises_error(tmp_path: Path):
    """Only Graphviz rank directions are accepted."""
    config_path = write_config(tmp_path, "[render]\nrankdir = sideways")

    with pytest.raises(ConfigError) as exc_info:
        load_config(config_path)

    assert "rankdir" in str(exc_info.value)


# =============================================================================
# Range Validation Tests
# =============================================================================


def test_value_below_minimum_raises_error(tmp_path: Path):
    """Value below declared minimum raises ConfigError."""
    config_path = write_config(tmp_path, "[batch]\nparallel_limit = 0")

    with pytest.raises(ConfigError) as exc_info:
        load_config(config_path)

    assert "parallel_limit" in str(exc_info.value)
    assert "minimum" in str(exc_info.value)


def test_value_above_maximum_raises_error(tmp_path: Path):
    """Value above declared maximum raises ConfigError."""
    config_path = write_config(tmp_path, "[batch]\nparallel_limit = 500")

    with pytest.raises(ConfigError) as exc_info:
        load_config(config_path)

    assert "parallel_limit" in str(exc_info.value)
    assert "maximum" in str(exc_info.value)


# =============================================================================
# Loading Behavior Tests
# =============================================================================


def test_partial_config_merges_with_defaults(tmp_path: Path):
    """Config with only [render] still has [options] defaults."""
    config_path = write_config(tmp_path, "[render]\nrankdir = tb\ngroup_by_packages = false")

    config = load_config(config_path)

    assert config.render.rankdir == "TB"
    assert config.render.group_by_packages is False
    assert config.allow_missing_imports is True
    assert config.batch.parallel_limit >= 1


def test_import_mapping_section_keeps_case(tmp_path: Path):
    """[imports] entries become the include mapping, names unchanged."""
    config_path = write_config(
        tmp_path,
        "[imports]\nGoogle/Api.proto = third_party/google/api.proto\n",
    )

    config = load_config(config_path)

    assert config.import_mapping == {"Google/Api.proto": "third_party/google/api.proto"}


def test_import_paths_are_split(tmp_path: Path):
    """import_paths uses the platform path separator."""
    import os

    config_path = write_config(tmp_path, f"[paths]\nimport_paths = a{os.pathsep}b/c{os.pathsep}\n")

    config = load_config(config_path)

    assert config.paths.import_dirs == [Path("a"), Path("b/c")]


def test_load_settings_reads_environment(tmp_path: Path, monkeypatch):
    """PROTOGRAPH_CONFIG and PROTOGRAPH_OUTPUT_DIR are honored."""
    config_path = write_config(tmp_path, "[options]\nshow_missing_types = false\n")
    monkeypatch.setenv("PROTOGRAPH_CONFIG", str(config_path))
    monkeypatch.setenv("PROTOGRAPH_OUTPUT_DIR", str(tmp_path / "out"))

    settings = load_settings()

    assert settings.show_missing_types is False
    assert settings.output_path == tmp_path / "out"


def test_load_settings_without_file_uses_defaults(tmp_path: Path, monkeypatch):
    """A missing config file is not an error."""
    monkeypatch.setenv("PROTOGRAPH_CONFIG", str(tmp_path / "nope.ini"))
    monkeypatch.delenv("PROTOGRAPH_OUTPUT_DIR", raising=False)

    settings = load_settings()

    assert settings == Config()


def test_load_settings_is_cached(tmp_path: Path, monkeypatch):
    """Settings are loaded once per process until the cache is cleared."""
    monkeypatch.setenv("PROTOGRAPH_CONFIG", str(tmp_path / "nope.ini"))

    assert load_settings() is load_settings()
