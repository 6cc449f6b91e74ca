"""TOML-based plugin configuration.

Loads ~/.instancekit/defaults.toml (global) and instancekit.toml (project),
merges them, and builds an immutable PluginConfig that is passed into the
plugin components at construction.

Example instancekit.toml::

    [aws]
    region = "us-west-2"
    retries = 8
    volume_tag = "my-cluster-volume"

    [aws.namespace]
    "my-cluster" = "prod"

    [wait]
    interval = 5
    timeout = 600

    [logging]
    level = "DEBUG"
"""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from types import MappingProxyType
from typing import Any

from instancekit.constants import (
    DEFAULT_ATTACH_DEVICE,
    DEFAULT_REGION,
    DEFAULT_RETRIES,
    DEFAULT_VOLUME_TAG,
)
from instancekit.logging import LogConfig
from instancekit.wait import WaitPolicy

type RawConfig = dict[str, Any]

GLOBAL_CONFIG_PATH = Path.home() / ".instancekit" / "defaults.toml"
PROJECT_CONFIG_NAME = "instancekit.toml"


@dataclass(frozen=True, slots=True)
class PluginConfig:
    """Immutable configuration for the AWS instance plugin.

    Args:
        region: AWS region for all API calls.
        retries: Maximum attempts botocore makes per API call.
        namespace_tags: Tags marking instances owned by this plugin.
        volume_tag: Tag key used to look up volumes by attachment id.
        attach_device: Device name volumes are attached as.
        endpoint_url: Override the EC2 endpoint (e.g. for a local emulator).
        profile: Named AWS profile for credentials.
        wait: Bounds for the wait-for-running poll.
        log: Logging configuration.
    """

    region: str = DEFAULT_REGION
    retries: int = DEFAULT_RETRIES
    namespace_tags: Mapping[str, str] = field(default_factory=dict)
    volume_tag: str = DEFAULT_VOLUME_TAG
    attach_device: str = DEFAULT_ATTACH_DEVICE
    endpoint_url: str | None = None
    profile: str | None = None
    wait: WaitPolicy = field(default_factory=WaitPolicy)
    log: LogConfig = field(default_factory=LogConfig)

    def __post_init__(self) -> None:
        object.__setattr__(self, "namespace_tags", MappingProxyType(dict(self.namespace_tags)))
        if self.retries < 1:
            raise ValueError("retries must be at least 1")


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
    with path.open("rb") as f:
        return tomllib.load(f)


def load_config(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> RawConfig:
    global_cfg = _read_toml(global_path or GLOBAL_CONFIG_PATH)
    project_path = (project_dir or Path.cwd()) / PROJECT_CONFIG_NAME
    project_cfg = _read_toml(project_path)

    merged = _deep_merge(global_cfg, project_cfg)
    merged.setdefault("aws", {})
    merged.setdefault("wait", {})
    merged.setdefault("logging", {})
    return merged


def _build[T](cls: type[T], section: str, raw: RawConfig) -> T:
    allowed = {f.name for f in fields(cls)}  # type: ignore[arg-type]
    unknown = set(raw) - allowed
    if unknown:
        raise ValueError(
            f"Unknown key(s) in [{section}]: {', '.join(sorted(unknown))}. "
            f"Valid: {', '.join(sorted(allowed))}"
        )
    return cls(**raw)


def build_config(raw: RawConfig) -> PluginConfig:
    aws = dict(raw.get("aws", {}))
    namespace = aws.pop("namespace", {})
    if not isinstance(namespace, dict):
        raise ValueError("[aws.namespace] must be a table of tag keys to values")

    return _build(PluginConfig, "aws", {
        **aws,
        "namespace_tags": {str(k): str(v) for k, v in namespace.items()},
        "wait": _build(WaitPolicy, "wait", raw.get("wait", {})),
        "log": _build(LogConfig, "logging", raw.get("logging", {})),
    })


def resolve_config(
    *,
    project_dir: Path | None = None,
    global_path: Path | None = None,
) -> PluginConfig:
    """Load, merge and validate configuration from the TOML files."""
    return build_config(load_config(project_dir=project_dir, global_path=global_path))
