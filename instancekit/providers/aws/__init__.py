"""AWS EC2 provider for instancekit.

Example:
    from instancekit.providers.aws import AWSInstancePlugin
    from instancekit.config import PluginConfig

    plugin = AWSInstancePlugin.from_config(PluginConfig(region="us-east-1"))
"""

from instancekit.providers.aws.client import EC2API, create_ec2_client
from instancekit.providers.aws.describe import InstanceDescriber
from instancekit.providers.aws.plugin import AWSInstancePlugin
from instancekit.providers.aws.provisioner import InstanceProvisioner
from instancekit.providers.aws.request import ProvisionRequest
from instancekit.providers.aws.terminate import InstanceTerminator
from instancekit.providers.aws.volumes import VolumeResolver

__all__ = [
    "AWSInstancePlugin",
    "EC2API",
    "InstanceDescriber",
    "InstanceProvisioner",
    "InstanceTerminator",
    "ProvisionRequest",
    "VolumeResolver",
    "create_ec2_client",
]
