"""Deterministic merging of tag sources."""

from __future__ import annotations

from collections.abc import Mapping

from loguru import logger

log = logger.bind(component="tags")


def merge_tags(*sources: Mapping[str, str]) -> tuple[tuple[str, ...], dict[str, str]]:
    """Merge tag mappings, implementing 'last write wins' for colliding keys.

    A collision is logged as a warning, never raised.

    Returns:
        Lexicographically sorted keys and the merged mapping. Sorted keys keep
        provider filters and tag application reproducible.
    """
    merged: dict[str, str] = {}
    for source in sources:
        for key, value in source.items():
            if key in merged:
                log.warning("Overwriting tag value for key {key}", key=key)
            merged[key] = value
    return tuple(sorted(merged)), merged


def to_ec2_tags(keys: tuple[str, ...], tags: Mapping[str, str]) -> list[dict[str, str]]:
    return [{"Key": key, "Value": tags[key]} for key in keys]
