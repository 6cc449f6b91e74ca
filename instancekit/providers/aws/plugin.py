"""AWS EC2 instance plugin.

Composes the provisioning components around one EC2 client and one
immutable configuration. Holds no mutable state, so a single plugin can
serve concurrent calls.

Example:
    >>> from instancekit import AWSInstancePlugin, InstanceSpec, PluginConfig
    >>> with AWSInstancePlugin.from_config(
    ...     PluginConfig(region="us-west-2", namespace_tags={"cluster": "prod"})
    ... ) as plugin:
    ...     instance_id = plugin.provision(InstanceSpec(properties=payload))
"""

from __future__ import annotations

import threading
from collections.abc import Mapping

from loguru import logger

from instancekit.config import PluginConfig
from instancekit.logging import setup_logging, teardown_logging
from instancekit.providers.aws.client import EC2API, create_ec2_client
from instancekit.providers.aws.describe import InstanceDescriber
from instancekit.providers.aws.provisioner import InstanceProvisioner
from instancekit.providers.aws.request import ProvisionRequest
from instancekit.providers.aws.terminate import InstanceTerminator
from instancekit.providers.aws.volumes import VolumeResolver
from instancekit.types import InstanceDescription, InstanceID, InstanceSpec

log = logger.bind(component="plugin")


class AWSInstancePlugin:
    """Creates, destroys and lists instances in AWS EC2."""

    def __init__(self, client: EC2API, config: PluginConfig | None = None) -> None:
        self.config = config or PluginConfig()
        self._describer = InstanceDescriber(client, self.config.namespace_tags)
        self._provisioner = InstanceProvisioner(
            client,
            self.config.namespace_tags,
            volumes=VolumeResolver(client, self.config.volume_tag),
            describer=self._describer,
            wait=self.config.wait,
            attach_device=self.config.attach_device,
        )
        self._terminator = InstanceTerminator(client)
        self._log_handler_ids: list[int] = []

    @classmethod
    def from_config(cls, config: PluginConfig) -> AWSInstancePlugin:
        """Build the boto3 client and apply ``config.log``.

        The logging handlers live until ``close`` is called.
        """
        plugin = cls(create_ec2_client(config), config)
        plugin._log_handler_ids = setup_logging(config.log)
        log.debug("Plugin ready in {region}", region=config.region)
        return plugin

    def close(self) -> None:
        if self._log_handler_ids:
            teardown_logging(self._log_handler_ids)
            self._log_handler_ids = []

    def __enter__(self) -> AWSInstancePlugin:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def validate(self, raw: bytes | str) -> None:
        """Check that a properties payload parses as a provision request."""
        ProvisionRequest.parse(raw)

    def provision(self, spec: InstanceSpec, *, cancel: threading.Event | None = None) -> InstanceID:
        return self._provisioner.provision(spec, cancel=cancel)

    def destroy(self, instance_id: InstanceID) -> None:
        self._terminator.destroy(instance_id)

    def describe_instances(self, tags: Mapping[str, str]) -> list[InstanceDescription]:
        return self._describer.describe_instances(tags)
