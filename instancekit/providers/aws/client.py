"""EC2 capability interface and client factory.

The plugin only needs six EC2 operations. They are declared here as a
Protocol using boto3's keyword arguments and response dicts, so a real
``boto3`` EC2 client satisfies it structurally and tests can substitute a
scripted double.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import boto3
from botocore.config import Config
from botocore.handlers import base64_encode_user_data
from loguru import logger

from instancekit.config import PluginConfig

if TYPE_CHECKING:
    from mypy_boto3_ec2 import EC2Client

log = logger.bind(component="aws-client")


@runtime_checkable
class EC2API(Protocol):
    def run_instances(self, **kwargs: Any) -> dict[str, Any]: ...

    def describe_instances(self, **kwargs: Any) -> dict[str, Any]: ...

    def describe_volumes(self, **kwargs: Any) -> dict[str, Any]: ...

    def create_tags(self, **kwargs: Any) -> dict[str, Any]: ...

    def attach_volume(self, **kwargs: Any) -> dict[str, Any]: ...

    def terminate_instances(self, **kwargs: Any) -> dict[str, Any]: ...


def create_ec2_client(config: PluginConfig) -> EC2Client:
    """Create a boto3 EC2 client for the configured region.

    ``config.retries`` bounds botocore's own retries of throttled and
    transient API calls. The client sends ``UserData`` as given, so
    callers pass it base64-encoded.
    """
    session = boto3.Session(profile_name=config.profile, region_name=config.region)
    log.debug(
        "Creating EC2 client region={region} retries={retries}",
        region=config.region,
        retries=config.retries,
    )
    client = session.client(
        "ec2",
        endpoint_url=config.endpoint_url,
        config=Config(retries={"max_attempts": config.retries, "mode": "standard"}),
    )
    # UserData arrives already base64-encoded; botocore must not encode it twice.
    client.meta.events.unregister(
        "before-parameter-build.ec2.RunInstances", base64_encode_user_data
    )
    return client
