"""TOML-based actuator configuration.

Loads ~/.ovirt-actuator/defaults.toml (global) and ovirt-actuator.toml
(project), merges them, and resolves the result into an ActuatorConfig.

Example ``ovirt-actuator.toml``::

    namespace = "openshift-machine-api"
    credentials_secret = "ovirt-credentials"

    [logging]
    level = "DEBUG"
    file = "/var/log/ovirt-actuator.log"
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeAlias

from ovirt_actuator.constants import DEFAULT_CREDENTIALS_SECRET, DEFAULT_NAMESPACE
from ovirt_actuator.errors import ConfigurationError
from ovirt_actuator.observability.logging import LogConfig

RawConfig: TypeAlias = dict[str, Any]

GLOBAL_CONFIG_PATH = Path.home() / ".ovirt-actuator" / "defaults.toml"
PROJECT_CONFIG_NAME = "ovirt-actuator.toml"


@dataclass(frozen=True, slots=True)
class ActuatorConfig:
    """Process-wide actuator settings.

    Attributes:
        namespace: Namespace holding the machines and the credentials secret.
        credentials_secret: Name of the secret with the ``ovirt_*`` keys,
            used by the node provider-id reconciler.
        logging: Logging sinks and level.
    """

    namespace: str = DEFAULT_NAMESPACE
    credentials_secret: str = DEFAULT_CREDENTIALS_SECRET
    logging: LogConfig = field(default_factory=LogConfig)


def _deep_merge(base: RawConfig, override: RawConfig) -> RawConfig:
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_toml(path: Path) -> RawConfig:
    if not path.is_file():
        return {}
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"invalid TOML in {path}: {e}") from e


def load_config(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> ActuatorConfig:
    """Read and merge the global and project files.

    Missing files are treated as empty; project values override global ones.

    Raises:
        ConfigurationError: On malformed TOML or unknown keys.
    """
    global_cfg = _read_toml(global_path or GLOBAL_CONFIG_PATH)
    project_cfg = _read_toml((project_dir or Path.cwd()) / PROJECT_CONFIG_NAME)
    merged = _deep_merge(global_cfg, project_cfg)

    raw_logging = merged.pop("logging", {})
    try:
        return ActuatorConfig(logging=LogConfig(**raw_logging), **merged)
    except TypeError as e:
        raise ConfigurationError(f"invalid actuator configuration: {e}") from e
