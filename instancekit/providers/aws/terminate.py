"""Termination of a single EC2 instance."""

from __future__ import annotations

from loguru import logger

from instancekit.errors import UnexpectedResponseError
from instancekit.providers.aws.client import EC2API

log = logger.bind(component="aws-terminate")


class InstanceTerminator:
    def __init__(self, client: EC2API) -> None:
        self._client = client

    def destroy(self, instance_id: str) -> None:
        """Terminate exactly one instance.

        Not idempotent: terminating an unknown or already terminated instance
        surfaces whatever error EC2 returns.
        """
        result = self._client.terminate_instances(InstanceIds=[instance_id])

        terminating = result.get("TerminatingInstances", [])
        if len(terminating) != 1:
            raise UnexpectedResponseError("TerminateInstances", 1, len(terminating))

        log.info("Terminating instance {instance_id}", instance_id=instance_id)
