"""Core data types shared by the plugin components."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import NewType

InstanceID = NewType("InstanceID", str)
"""Provider-assigned instance identifier, immutable once issued."""

LogicalID = NewType("LogicalID", str)
"""Caller-meaningful stable identifier, e.g. a private IP address."""

type Tags = Mapping[str, str]


def _freeze(tags: Tags) -> Tags:
    return MappingProxyType(dict(tags))


@dataclass(frozen=True, slots=True)
class InstanceSpec:
    """Declarative request for a single instance.

    Args:
        properties: Raw provider payload. Only the provisioner interprets it.
        logical_id: Optional stable identity (private IP) for the instance.
        init: Initialization script. Empty string means no script.
        tags: Tags supplied by the orchestrator.
        attachments: Logical ids of pre-existing volumes to attach, in order.
    """

    properties: bytes | str | None = None
    logical_id: LogicalID | None = None
    init: str = ""
    tags: Tags = field(default_factory=dict)
    attachments: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", _freeze(self.tags))
        object.__setattr__(self, "attachments", tuple(self.attachments))


@dataclass(frozen=True, slots=True)
class InstanceDescription:
    """Externally visible summary of a live instance."""

    id: InstanceID
    logical_id: LogicalID | None = None
    tags: Tags = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", _freeze(self.tags))
