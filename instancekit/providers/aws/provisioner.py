"""Single-instance provisioning on EC2.

Provisioning is a best-effort sequence, not a transaction:

1. parse the request and build ``RunInstances`` arguments;
2. resolve volumes (before anything is created);
3. launch exactly one instance;
4. tag it;
5. if volumes were requested, wait for running and attach them.

Once step 3 succeeds, every failure is raised as
:class:`~instancekit.errors.PartialProvisionError` carrying the instance id,
so the caller can reconcile instead of losing track of the instance.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from types import MappingProxyType

from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from instancekit.constants import DEFAULT_ATTACH_DEVICE
from instancekit.errors import (
    InstanceKitError,
    MissingPropertiesError,
    PartialProvisionError,
    UnexpectedResponseError,
)
from instancekit.providers.aws.client import EC2API
from instancekit.providers.aws.describe import InstanceDescriber
from instancekit.providers.aws.request import ProvisionRequest
from instancekit.providers.aws.volumes import VolumeResolver
from instancekit.tags import merge_tags, to_ec2_tags
from instancekit.types import InstanceID, InstanceSpec
from instancekit.wait import WaitPolicy, wait_for_running

log = logger.bind(component="aws-provisioner")

_PROVIDER_ERRORS = (ClientError, BotoCoreError, InstanceKitError)


class InstanceProvisioner:
    def __init__(
        self,
        client: EC2API,
        namespace_tags: Mapping[str, str],
        volumes: VolumeResolver,
        describer: InstanceDescriber,
        wait: WaitPolicy | None = None,
        attach_device: str = DEFAULT_ATTACH_DEVICE,
    ) -> None:
        self._client = client
        self._namespace_tags = MappingProxyType(dict(namespace_tags))
        self._volumes = volumes
        self._describer = describer
        self._wait = wait or WaitPolicy()
        self._attach_device = attach_device

    def provision(self, spec: InstanceSpec, *, cancel: threading.Event | None = None) -> InstanceID:
        """Create one instance from the spec.

        Args:
            spec: Instance specification.
            cancel: Setting this event aborts the wait for running.

        Returns:
            The new instance id.

        Raises:
            MissingPropertiesError: The instance spec has no properties payload.
            InvalidRequestError: The payload is not a valid request.
            VolumeResolutionError: Attachments could not be resolved.
            UnexpectedResponseError: EC2 did not launch exactly one instance.
            PartialProvisionError: The instance exists but tagging, waiting
                or attaching failed.
        """
        if spec.properties is None:
            raise MissingPropertiesError()

        request = ProvisionRequest.parse(spec.properties)
        run_args = request.to_run_args(logical_id=spec.logical_id, init=spec.init)

        volume_ids = self._volumes.resolve(spec.attachments)

        reservation = self._client.run_instances(**run_args)
        launched = reservation.get("Instances", []) if reservation else []
        if len(launched) != 1:
            raise UnexpectedResponseError("RunInstances", 1, len(launched))

        instance_id = InstanceID(launched[0]["InstanceId"])
        log.info(
            "Launched instance {instance_id} (logical id: {logical_id})",
            instance_id=instance_id,
            logical_id=spec.logical_id,
        )

        try:
            self._tag(instance_id, system_tags=spec.tags, user_tags=request.tags)
        except _PROVIDER_ERRORS as e:
            raise PartialProvisionError(instance_id, "tagging", e) from e

        if volume_ids:
            self._attach(instance_id, volume_ids, cancel)

        return instance_id

    def _tag(
        self,
        instance_id: str,
        system_tags: Mapping[str, str],
        user_tags: Mapping[str, str],
    ) -> None:
        keys, tags = merge_tags(user_tags, system_tags, self._namespace_tags)
        self._client.create_tags(Resources=[instance_id], Tags=to_ec2_tags(keys, tags))

    def _attach(
        self,
        instance_id: InstanceID,
        volume_ids: tuple[str, ...],
        cancel: threading.Event | None,
    ) -> None:
        log.info(
            "Waiting for instance {instance_id} to enter running state before attaching volumes",
            instance_id=instance_id,
        )
        try:
            running = wait_for_running(
                self._describer.describe_instance, instance_id, self._wait, cancel=cancel
            )
        except _PROVIDER_ERRORS as e:
            raise PartialProvisionError(instance_id, "waiting for running", e) from e

        if not running:
            return

        for volume_id in volume_ids:
            try:
                self._client.attach_volume(
                    InstanceId=instance_id,
                    VolumeId=volume_id,
                    Device=self._attach_device,
                )
            except (ClientError, BotoCoreError) as e:
                raise PartialProvisionError(instance_id, f"attaching {volume_id}", e) from e
            log.info(
                "Attached volume {volume_id} to {instance_id} as {device}",
                volume_id=volume_id,
                instance_id=instance_id,
                device=self._attach_device,
            )
