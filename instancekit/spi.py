"""Capability interface exposed to the host orchestrator."""

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from instancekit.types import InstanceDescription, InstanceID, InstanceSpec


@runtime_checkable
class InstancePlugin(Protocol):
    def validate(self, raw: bytes | str) -> None: ...

    def provision(self, spec: InstanceSpec) -> InstanceID: ...

    def destroy(self, instance_id: InstanceID) -> None: ...

    def describe_instances(self, tags: Mapping[str, str]) -> list[InstanceDescription]: ...
