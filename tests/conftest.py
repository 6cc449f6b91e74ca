from __future__ import annotations

import json
from collections import defaultdict
from collections.abc import Callable, Iterator
from typing import Any

import pytest
from botocore.exceptions import ClientError
from loguru import logger

from instancekit import AWSInstancePlugin, PluginConfig, WaitPolicy

NAMESPACE = {"cluster": "test"}


class FakeEC2:
    """Scripted stand-in for the EC2 client.

    Each operation replays its scripted responses in order; the last one
    repeats. Exceptions in the script are raised instead of returned.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self._scripts: dict[str, list[Any]] = defaultdict(list)

    def script(self, operation: str, *responses: Any) -> FakeEC2:
        self._scripts[operation].extend(responses)
        return self

    def calls_to(self, operation: str) -> list[dict[str, Any]]:
        return [kwargs for name, kwargs in self.calls if name == operation]

    def _call(self, operation: str, kwargs: dict[str, Any]) -> dict[str, Any]:
        self.calls.append((operation, kwargs))
        queue = self._scripts[operation]
        if not queue:
            raise AssertionError(f"unexpected call to {operation}")
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, BaseException):
            raise response
        return response

    def run_instances(self, **kwargs: Any) -> dict[str, Any]:
        return self._call("run_instances", kwargs)

    def describe_instances(self, **kwargs: Any) -> dict[str, Any]:
        return self._call("describe_instances", kwargs)

    def describe_volumes(self, **kwargs: Any) -> dict[str, Any]:
        return self._call("describe_volumes", kwargs)

    def create_tags(self, **kwargs: Any) -> dict[str, Any]:
        return self._call("create_tags", kwargs)

    def attach_volume(self, **kwargs: Any) -> dict[str, Any]:
        return self._call("attach_volume", kwargs)

    def terminate_instances(self, **kwargs: Any) -> dict[str, Any]:
        return self._call("terminate_instances", kwargs)


def make_client_error(code: str, operation: str = "DescribeInstances", status: int = 400) -> ClientError:
    return ClientError(
        {
            "Error": {"Code": code, "Message": f"{code} raised by test"},
            "ResponseMetadata": {"HTTPStatusCode": status},
        },
        operation,
    )


def instance_record(
    instance_id: str,
    state: str = "running",
    private_ip: str | None = None,
    tags: dict[str, str] | None = None,
) -> dict[str, Any]:
    record: dict[str, Any] = {"InstanceId": instance_id, "State": {"Name": state}}
    if private_ip is not None:
        record["PrivateIpAddress"] = private_ip
    if tags is not None:
        record["Tags"] = [{"Key": k, "Value": v} for k, v in tags.items()]
    return record


def reservations(*records: dict[str, Any], next_token: str | None = None) -> dict[str, Any]:
    response: dict[str, Any] = {"Reservations": [{"Instances": list(records)}]}
    if next_token is not None:
        response["NextToken"] = next_token
    return response


@pytest.fixture
def fake_ec2() -> FakeEC2:
    return FakeEC2()


@pytest.fixture
def client_error() -> Callable[..., ClientError]:
    return make_client_error


@pytest.fixture
def records() -> Callable[..., dict[str, Any]]:
    return instance_record


@pytest.fixture
def page() -> Callable[..., dict[str, Any]]:
    return reservations


@pytest.fixture
def fast_wait() -> WaitPolicy:
    return WaitPolicy(interval=0, max_interval=0, max_attempts=5, timeout=60)


@pytest.fixture
def config(fast_wait: WaitPolicy) -> PluginConfig:
    return PluginConfig(namespace_tags=NAMESPACE, wait=fast_wait)


@pytest.fixture
def plugin(fake_ec2: FakeEC2, config: PluginConfig) -> AWSInstancePlugin:
    return AWSInstancePlugin(fake_ec2, config)


@pytest.fixture
def payload() -> Callable[..., bytes]:
    def build(tags: dict[str, str] | None = None, **run_instances_input: Any) -> bytes:
        body = {"Tags": tags or {}, "RunInstancesInput": {"ImageId": "ami-123", **run_instances_input}}
        return json.dumps(body).encode()

    return build


@pytest.fixture
def log_messages() -> Iterator[list[str]]:
    """Capture instancekit log messages emitted through loguru."""
    logger.enable("instancekit")
    messages: list[str] = []
    hid = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(hid)
    logger.disable("instancekit")
