"""Centralized constants and enums for instancekit.

All magic strings and tuning defaults are defined here to ensure
consistency across the provisioning components.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Final

# =============================================================================
# AWS Resource Tags
# =============================================================================

DEFAULT_VOLUME_TAG: Final = "instancekit-volume"
"""Tag key that associates logical attachment ids with EBS volumes."""


# =============================================================================
# EC2 Instance States
# =============================================================================


class InstanceState(StrEnum):
    """EC2 instance state names."""

    PENDING = "pending"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting-down"
    TERMINATED = "terminated"
    STOPPING = "stopping"
    STOPPED = "stopped"


LIVE_STATES: Final = (InstanceState.PENDING, InstanceState.RUNNING)
GONE_STATES: Final = (InstanceState.SHUTTING_DOWN, InstanceState.TERMINATED)


# =============================================================================
# EC2 Error Codes
# =============================================================================

INSTANCE_NOT_FOUND_CODE: Final = "InvalidInstanceID.NotFound"

TRANSIENT_ERROR_CODES: Final = frozenset({
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "RequestThrottled",
    "InternalError",
    "InternalFailure",
    "ServiceUnavailable",
    "Unavailable",
})


# =============================================================================
# Provisioning Defaults
# =============================================================================

DEFAULT_REGION: Final = "us-east-1"
DEFAULT_RETRIES: Final = 5
DEFAULT_ATTACH_DEVICE: Final = "/dev/sdf"

# Wait-for-running (in seconds)
WAIT_INTERVAL: Final = 10.0
WAIT_BACKOFF: Final = 1.5
WAIT_MAX_INTERVAL: Final = 60.0
WAIT_MAX_ATTEMPTS: Final = 60
WAIT_TIMEOUT: Final = 900.0
