"""Tag-scoped enumeration of live EC2 instances."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from loguru import logger

from instancekit.constants import LIVE_STATES
from instancekit.errors import InstanceNotFoundError
from instancekit.providers.aws.client import EC2API
from instancekit.tags import merge_tags
from instancekit.types import InstanceDescription, InstanceID, LogicalID

log = logger.bind(component="aws-describe")


def describe_group_request(
    namespace_tags: Mapping[str, str],
    tags: Mapping[str, str],
    next_token: str | None = None,
) -> dict[str, Any]:
    """Build DescribeInstances arguments for live instances carrying all tags.

    Namespace tags take precedence over query tags on colliding keys.
    """
    filters: list[dict[str, Any]] = [
        {"Name": "instance-state-name", "Values": [str(s) for s in LIVE_STATES]},
    ]

    keys, merged = merge_tags(tags, namespace_tags)
    filters.extend({"Name": f"tag:{key}", "Values": [merged[key]]} for key in keys)

    request: dict[str, Any] = {"Filters": filters}
    if next_token:
        request["NextToken"] = next_token
    return request


def _describe(ec2_instance: Mapping[str, Any]) -> InstanceDescription:
    tags = {
        tag["Key"]: tag["Value"]
        for tag in ec2_instance.get("Tags") or []
        if tag.get("Key") is not None and tag.get("Value") is not None
    }
    private_ip = ec2_instance.get("PrivateIpAddress")
    return InstanceDescription(
        id=InstanceID(ec2_instance["InstanceId"]),
        logical_id=LogicalID(private_ip) if private_ip else None,
        tags=tags,
    )


class InstanceDescriber:
    def __init__(self, client: EC2API, namespace_tags: Mapping[str, str]) -> None:
        self._client = client
        self._namespace_tags = MappingProxyType(dict(namespace_tags))

    def describe_instances(self, tags: Mapping[str, str]) -> list[InstanceDescription]:
        """List pending and running instances carrying the namespace and query tags.

        Follows continuation tokens until the last page. The result is not
        ordered or deduplicated.
        """
        descriptions: list[InstanceDescription] = []
        next_token: str | None = None
        pages = 0

        while True:
            result = self._client.describe_instances(
                **describe_group_request(self._namespace_tags, tags, next_token)
            )
            pages += 1
            for reservation in result.get("Reservations", []):
                descriptions.extend(_describe(i) for i in reservation.get("Instances", []))

            next_token = result.get("NextToken")
            if not next_token:
                break

        log.debug("Described {n} instances over {pages} page(s)", n=len(descriptions), pages=pages)
        return descriptions

    def describe_instance(self, instance_id: str) -> dict[str, Any]:
        """Return the provider's record for a single instance."""
        result = self._client.describe_instances(InstanceIds=[instance_id])
        reservations = result.get("Reservations", [])
        if not reservations or not reservations[0].get("Instances"):
            raise InstanceNotFoundError(instance_id)
        return reservations[0]["Instances"][0]
