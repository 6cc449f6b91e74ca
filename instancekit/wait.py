"""Bounded, cancellable wait for an instance to reach the running state.

Each poll has one of three outcomes:

- the instance is running: the wait succeeds;
- the instance is gone (not found, shutting down or terminated): the wait
  ends and reports the disappearance;
- the instance is still starting, or the provider failed transiently: the
  poll is retried with exponential backoff until the policy is exhausted.

Any other provider error is permanent and propagates immediately.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from botocore.exceptions import ClientError, ConnectionError as BotoConnectionError
from loguru import logger
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    stop_before_delay,
    stop_when_event_set,
    wait_exponential,
)
from tenacity.nap import sleep_using_event

from instancekit.constants import (
    GONE_STATES,
    INSTANCE_NOT_FOUND_CODE,
    TRANSIENT_ERROR_CODES,
    WAIT_BACKOFF,
    WAIT_INTERVAL,
    WAIT_MAX_ATTEMPTS,
    WAIT_MAX_INTERVAL,
    WAIT_TIMEOUT,
    InstanceState,
)
from instancekit.errors import InstanceNotFoundError, WaitTimeoutError

log = logger.bind(component="wait")


@dataclass(frozen=True, slots=True)
class WaitPolicy:
    """How long and how often to poll for the running state.

    Args:
        interval: Delay before the second poll, in seconds.
        backoff: Multiplier applied to the delay after each poll.
        max_interval: Upper bound for a single delay, in seconds.
        max_attempts: Maximum number of polls.
        timeout: Maximum total time spent waiting, in seconds.
    """

    interval: float = WAIT_INTERVAL
    backoff: float = WAIT_BACKOFF
    max_interval: float = WAIT_MAX_INTERVAL
    max_attempts: int = WAIT_MAX_ATTEMPTS
    timeout: float = WAIT_TIMEOUT

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.interval < 0 or self.max_interval < 0 or self.timeout < 0:
            raise ValueError("interval, max_interval and timeout must not be negative")
        if self.backoff < 1:
            raise ValueError("backoff must be >= 1")


class _NotRunningError(Exception):
    """Instance not running yet - retry."""

    def __init__(self, state: str) -> None:
        super().__init__(f"state is {state}")
        self.state = state


def error_code(exc: BaseException) -> str:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code", "")
    return ""


def is_not_found_error(exc: BaseException) -> bool:
    return isinstance(exc, InstanceNotFoundError) or error_code(exc) == INSTANCE_NOT_FOUND_CODE


def is_transient_error(exc: BaseException) -> bool:
    """Check if a provider error is worth retrying (throttling, 5xx, network)."""
    if isinstance(exc, BotoConnectionError):
        return True
    if isinstance(exc, ClientError):
        if error_code(exc) in TRANSIENT_ERROR_CODES:
            return True
        status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
        return status >= 500
    return False


def _should_keep_waiting(exc: BaseException) -> bool:
    return isinstance(exc, _NotRunningError) or is_transient_error(exc)


def _log_retry(instance_id: str) -> Callable[[RetryCallState], None]:
    def before_sleep(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        delay = state.next_action.sleep if state.next_action else 0.0
        log.debug(
            "Instance {instance_id} not running ({reason}), poll {n} done, next in {delay:.1f}s",
            instance_id=instance_id,
            reason=exc,
            n=state.attempt_number,
            delay=delay,
        )

    return before_sleep


def wait_for_running(
    describe: Callable[[str], Mapping[str, Any]],
    instance_id: str,
    policy: WaitPolicy,
    *,
    cancel: threading.Event | None = None,
) -> bool:
    """Block until the instance is running.

    Args:
        describe: Returns the provider's record for an instance id.
        instance_id: Instance to watch.
        policy: Attempt, timeout and backoff bounds.
        cancel: Setting this event stops the wait early.

    Returns:
        True once running, False if the instance disappeared.

    Raises:
        WaitTimeoutError: The policy was exhausted or the wait was cancelled.
        botocore.exceptions.ClientError: A permanent provider error, or the
            last transient one when the policy ran out.
    """
    attempts = 0

    def poll() -> bool:
        nonlocal attempts
        attempts += 1
        try:
            record = describe(instance_id)
        except Exception as e:
            if is_not_found_error(e):
                return False
            raise

        state = record.get("State", {}).get("Name", "")
        if state == InstanceState.RUNNING:
            return True
        if state in GONE_STATES:
            log.warning(
                "Instance {instance_id} is {state} while waiting for running",
                instance_id=instance_id,
                state=state,
            )
            return False
        raise _NotRunningError(state)

    stop = stop_after_attempt(policy.max_attempts) | stop_before_delay(policy.timeout)
    if cancel is not None:
        stop = stop | stop_when_event_set(cancel)

    retrying = Retrying(
        stop=stop,
        wait=wait_exponential(
            multiplier=policy.interval,
            exp_base=policy.backoff,
            min=policy.interval,
            max=policy.max_interval,
        ),
        retry=retry_if_exception(_should_keep_waiting),
        before_sleep=_log_retry(instance_id),
        reraise=True,
    )
    if cancel is not None:
        # Wake up from the backoff delay as soon as the event is set.
        retrying.sleep = sleep_using_event(cancel)

    try:
        running = retrying(poll)
    except _NotRunningError as e:
        raise WaitTimeoutError(instance_id, attempts, e.state) from e

    if not running:
        log.info("Instance {instance_id} no longer exists, skipping wait", instance_id=instance_id)
    return running
