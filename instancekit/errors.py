"""Exception hierarchy for instancekit.

Provider transport errors (``botocore.exceptions.ClientError`` and friends)
are not wrapped: they propagate to the caller verbatim, except after an
instance already exists, where they are chained under
:class:`PartialProvisionError`.
"""

from __future__ import annotations

from collections.abc import Sequence


class InstanceKitError(Exception):
    """Base class for every error raised by instancekit."""


# =============================================================================
# Validation
# =============================================================================


class ValidationError(InstanceKitError):
    """Missing or malformed caller input. Nothing was created."""


class MissingPropertiesError(ValidationError):
    def __init__(self) -> None:
        super().__init__("Properties must be set")


class InvalidRequestError(ValidationError):
    """The raw properties payload could not be parsed."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Invalid input formatting: {reason}")
        self.reason = reason


# =============================================================================
# Volume Resolution
# =============================================================================


class VolumeResolutionError(InstanceKitError):
    """Volumes could not be resolved. Nothing was created."""


class VolumeLookupError(VolumeResolutionError):
    def __init__(self, attachments: Sequence[str]) -> None:
        super().__init__(f"Failed while looking up volumes {list(attachments)}")
        self.attachments = tuple(attachments)


class VolumeCountMismatchError(VolumeResolutionError):
    """Matched volume count differs from the requested attachment count."""

    def __init__(self, wanted: Sequence[str], found: Sequence[str]) -> None:
        super().__init__(
            "Not all required volumes found to attach. "
            f"Wanted {list(wanted)}, found {list(found)}"
        )
        self.wanted = tuple(wanted)
        self.found = tuple(found)


# =============================================================================
# Provider Responses
# =============================================================================


class UnexpectedResponseError(InstanceKitError):
    """Provider response had the wrong cardinality."""

    def __init__(self, operation: str, expected: int, got: int) -> None:
        super().__init__(
            f"Unexpected AWS API response from {operation}: "
            f"expected {expected} instance(s), got {got}"
        )
        self.operation = operation
        self.expected = expected
        self.got = got


class InstanceNotFoundError(InstanceKitError):
    def __init__(self, instance_id: str) -> None:
        super().__init__(f"Instance {instance_id} not found")
        self.instance_id = instance_id


class WaitTimeoutError(InstanceKitError):
    """Instance did not reach the running state within the wait policy."""

    def __init__(self, instance_id: str, attempts: int, state: str | None) -> None:
        super().__init__(
            f"Instance {instance_id} not running after {attempts} attempt(s) "
            f"(last state: {state or 'unknown'})"
        )
        self.instance_id = instance_id
        self.attempts = attempts
        self.state = state


# =============================================================================
# Partial Failure
# =============================================================================


class PartialProvisionError(InstanceKitError):
    """The instance exists but a follow-up step failed.

    Callers should reconcile using ``instance_id``: retry the failed step or
    destroy the instance. The underlying error is available as ``__cause__``.
    """

    def __init__(self, instance_id: str, step: str, cause: BaseException) -> None:
        super().__init__(f"Instance {instance_id} created but {step} failed: {cause}")
        self.instance_id = instance_id
        self.step = step
