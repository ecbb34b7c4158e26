"""Tests for configuration loading and env overrides."""

from pathlib import Path

import pytest
import yaml

from contextwell.config import (
    ContextwellConfig,
    config_paths,
    deep_update,
    load_config,
    save_default_config,
)
from contextwell.foundation.errors import ConfigError


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a real ~/.contextwell/config.yaml out of these tests."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


class TestDefaults:
    """Built-in defaults when no config file exists."""

    def test_defaults_without_file(self, tmp_path: Path) -> None:
        """An empty workspace yields the built-in defaults."""
        config = load_config(workspace=tmp_path)

        assert config.execution.fast_path is True
        assert config.execution.default_timeout == 180
        assert config.execution.min_timeout == 1
        assert config.execution.max_timeout == 600
        assert config.tools.legacy is True
        assert config.bundles.exclude == []
        assert config.guidelines.paths == [".contextwell/guidelines"]
        assert config.application.env_file == ".env"

    def test_root_dataclass_defaults(self) -> None:
        """ContextwellConfig() is usable without arguments."""
        config = ContextwellConfig()
        assert config.debug is False
        assert config.application.databases == {}


class TestLoadConfig:
    """Loading YAML files."""

    def test_workspace_file_is_merged_over_defaults(self, tmp_path: Path) -> None:
        """Keys in the workspace file override defaults; others keep defaults."""
        config_dir = tmp_path / ".contextwell"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text(
            yaml.safe_dump({"execution": {"default_timeout": 30}, "bundles": {"exclude": ["@testing"]}})
        )

        config = load_config(workspace=tmp_path)

        assert config.execution.default_timeout == 30
        assert config.execution.fast_path is True
        assert config.bundles.exclude == ["@testing"]

    def test_explicit_path_wins(self, tmp_path: Path) -> None:
        """An explicit path is used before the workspace file."""
        config_dir = tmp_path / ".contextwell"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text(yaml.safe_dump({"debug": False}))
        explicit = tmp_path / "custom.yaml"
        explicit.write_text(yaml.safe_dump({"debug": True}))

        config = load_config(explicit, workspace=tmp_path)

        assert config.debug is True

    def test_unknown_key_raises(self, tmp_path: Path) -> None:
        """Typos in section keys are reported instead of ignored."""
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.safe_dump({"execution": {"fastpath": False}}))

        with pytest.raises(ConfigError, match="fastpath"):
            load_config(path, workspace=tmp_path)

    def test_malformed_yaml_raises(self, tmp_path: Path) -> None:
        """Unparseable YAML becomes ConfigError."""
        path = tmp_path / "bad.yaml"
        path.write_text("execution: [unclosed")

        with pytest.raises(ConfigError, match="Could not read config file"):
            load_config(path, workspace=tmp_path)

    def test_non_mapping_file_raises(self, tmp_path: Path) -> None:
        """A YAML list at the top level is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="must contain a mapping"):
            load_config(path, workspace=tmp_path)

    def test_config_paths_order(self, tmp_path: Path) -> None:
        """Explicit path, then workspace, then user-global."""
        paths = config_paths("explicit.yaml", tmp_path)
        assert paths[0] == Path("explicit.yaml")
        assert paths[1] == tmp_path / ".contextwell" / "config.yaml"
        assert paths[2] == Path.home() / ".contextwell" / "config.yaml"


class TestEnvOverrides:
    """CONTEXTWELL_* environment variables."""

    def test_bool_and_int_coercion(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Booleans and integers are coerced from strings."""
        monkeypatch.setenv("CONTEXTWELL_EXECUTION_FAST_PATH", "false")
        monkeypatch.setenv("CONTEXTWELL_EXECUTION_DEFAULT_TIMEOUT", "45")

        config = load_config(workspace=tmp_path)

        assert config.execution.fast_path is False
        assert config.execution.default_timeout == 45

    def test_list_coercion(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Comma-separated values become lists for list settings."""
        monkeypatch.setenv("CONTEXTWELL_BUNDLES_EXCLUDE", "@testing, @debug")

        config = load_config(workspace=tmp_path)

        assert config.bundles.exclude == ["@testing", "@debug"]

    def test_unknown_env_key_ignored(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Unknown keys in the environment do not break loading."""
        monkeypatch.setenv("CONTEXTWELL_EXECUTION_NOPE", "1")

        config = load_config(workspace=tmp_path)

        assert not hasattr(config.execution, "nope")

    def test_top_level_debug(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CONTEXTWELL_DEBUG", "true")
        assert load_config(workspace=tmp_path).debug is True


class TestNoSharedState:
    def test_each_load_is_independent(self, tmp_path: Path) -> None:
        """Loading twice yields separate objects; mutating one leaves the other alone."""
        first = load_config(workspace=tmp_path)
        first.bundles.exclude.append("@debug")

        assert load_config(workspace=tmp_path).bundles.exclude == []


class TestHelpers:
    """deep_update and save_default_config."""

    def test_deep_update_merges_nested(self) -> None:
        base = {"a": {"b": 1, "c": 2}, "d": 1}
        deep_update(base, {"a": {"b": 10}, "e": 5})
        assert base == {"a": {"b": 10, "c": 2}, "d": 1, "e": 5}

    def test_saved_default_config_loads(self, tmp_path: Path) -> None:
        """The documented default file round-trips to the defaults."""
        path = save_default_config(tmp_path / ".contextwell" / "config.yaml")

        assert path.exists()
        config = load_config(path, workspace=tmp_path)
        assert config.execution.default_timeout == 180
        assert config.application.base_url == "http://localhost:8000"
