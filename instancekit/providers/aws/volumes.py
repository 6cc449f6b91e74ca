"""Resolution of logical attachment ids to EBS volume ids."""

from __future__ import annotations

from collections.abc import Sequence

from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from instancekit.errors import VolumeCountMismatchError, VolumeLookupError
from instancekit.providers.aws.client import EC2API

log = logger.bind(component="aws-volumes")


class VolumeResolver:
    """Looks up volumes tagged ``<volume_tag>=<attachment id>``."""

    def __init__(self, client: EC2API, volume_tag: str) -> None:
        self._client = client
        self._volume_tag = volume_tag

    def resolve(self, attachments: Sequence[str]) -> tuple[str, ...]:
        """Map attachment ids to volume ids.

        Partial matches are never accepted: attaching the wrong subset of
        volumes risks data loss.

        Raises:
            VolumeLookupError: The describe call failed.
            VolumeCountMismatchError: Found a different number of volumes
                than attachments were requested.
        """
        if not attachments:
            return ()

        # TODO: volume tag values are usually private IPs, which are not unique
        # across VPCs. Scope the filter with the namespace tags as well.
        try:
            response = self._client.describe_volumes(
                Filters=[{"Name": f"tag:{self._volume_tag}", "Values": list(attachments)}],
            )
        except (ClientError, BotoCoreError) as e:
            raise VolumeLookupError(attachments) from e

        volume_ids = tuple(v["VolumeId"] for v in response.get("Volumes", []))
        if len(volume_ids) != len(attachments):
            raise VolumeCountMismatchError(attachments, volume_ids)

        log.debug("Resolved attachments {attachments} to {volumes}", attachments=list(attachments), volumes=volume_ids)
        return volume_ids
