"""instancekit - manage the lifecycle of EC2 instances for an orchestrator.

Example:

    from instancekit import AWSInstancePlugin, InstanceSpec, PluginConfig

    plugin = AWSInstancePlugin.from_config(
        PluginConfig(region="us-east-1", namespace_tags={"cluster": "prod"})
    )

    instance_id = plugin.provision(InstanceSpec(properties=payload, tags={"group": "workers"}))
    live = plugin.describe_instances({"group": "workers"})
    plugin.destroy(instance_id)
"""

# Logging (disables the instancekit namespace on import)
from instancekit.logging import LogConfig, setup_logging, teardown_logging

# Configuration
from instancekit.config import PluginConfig, resolve_config
from instancekit.wait import WaitPolicy

# Errors
from instancekit.errors import (
    InstanceKitError,
    InstanceNotFoundError,
    InvalidRequestError,
    MissingPropertiesError,
    PartialProvisionError,
    UnexpectedResponseError,
    ValidationError,
    VolumeCountMismatchError,
    VolumeLookupError,
    VolumeResolutionError,
    WaitTimeoutError,
)

# Types
from instancekit.spi import InstancePlugin
from instancekit.tags import merge_tags
from instancekit.types import InstanceDescription, InstanceID, InstanceSpec, LogicalID

# Providers
from instancekit.providers.aws import AWSInstancePlugin

__all__ = [
    "AWSInstancePlugin",
    "InstanceDescription",
    "InstanceID",
    "InstanceKitError",
    "InstanceNotFoundError",
    "InstancePlugin",
    "InstanceSpec",
    "InvalidRequestError",
    "LogConfig",
    "LogicalID",
    "MissingPropertiesError",
    "PartialProvisionError",
    "PluginConfig",
    "UnexpectedResponseError",
    "ValidationError",
    "VolumeCountMismatchError",
    "VolumeLookupError",
    "VolumeResolutionError",
    "WaitPolicy",
    "WaitTimeoutError",
    "merge_tags",
    "resolve_config",
    "setup_logging",
    "teardown_logging",
]
