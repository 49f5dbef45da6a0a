from pathlib import Path

import pytest

from ovirt_actuator.config import ActuatorConfig, _deep_merge, load_config
from ovirt_actuator.errors import ConfigurationError
from ovirt_actuator.observability.logging import LogConfig


class TestDeepMerge:
    def test_shallow_override(self):
        assert _deep_merge({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_nested_merge(self):
        base = {"logging": {"level": "INFO", "console": True}}
        override = {"logging": {"level": "DEBUG"}}
        assert _deep_merge(base, override) == {"logging": {"level": "DEBUG", "console": True}}

    def test_empty_override(self):
        assert _deep_merge({"a": 1}, {}) == {"a": 1}


class TestLoadConfig:
    def test_no_files_gives_defaults(self, tmp_path: Path):
        result = load_config(project_dir=tmp_path / "nope", global_path=tmp_path / "nope.toml")
        assert result == ActuatorConfig()
        assert result.namespace == "openshift-machine-api"
        assert result.credentials_secret == "ovirt-credentials"
        assert result.logging == LogConfig()

    def test_project_overrides_global(self, tmp_path: Path):
        global_toml = tmp_path / "defaults.toml"
        global_toml.write_text(
            'namespace = "machines"\ncredentials_secret = "engine"\n\n[logging]\nlevel = "WARNING"\n'
        )
        project_dir = tmp_path / "project"
        project_dir.mkdir()
        (project_dir / "ovirt-actuator.toml").write_text('[logging]\nlevel = "DEBUG"\n')

        result = load_config(project_dir=project_dir, global_path=global_toml)
        assert result.namespace == "machines"
        assert result.credentials_secret == "engine"
        assert result.logging.level == "DEBUG"

    def test_unknown_key_raises(self, tmp_path: Path):
        (tmp_path / "ovirt-actuator.toml").write_text('region = "eu"\n')
        with pytest.raises(ConfigurationError, match="region"):
            load_config(project_dir=tmp_path, global_path=tmp_path / "nope.toml")

    def test_malformed_toml_raises(self, tmp_path: Path):
        (tmp_path / "ovirt-actuator.toml").write_text("namespace = \n")
        with pytest.raises(ConfigurationError, match="invalid TOML"):
            load_config(project_dir=tmp_path, global_path=tmp_path / "nope.toml")
