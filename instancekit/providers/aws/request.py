"""Parsed form of the raw provisioning payload."""

from __future__ import annotations

import base64
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from instancekit.errors import InvalidRequestError


class ProvisionRequest(BaseModel):
    """Concrete provision request.

    Example payload::

        {
            "Tags": {"role": "worker"},
            "RunInstancesInput": {
                "ImageId": "ami-123",
                "InstanceType": "t3.micro",
                "NetworkInterfaces": [{"DeviceIndex": 0, "SubnetId": "subnet-1"}]
            }
        }

    ``RunInstancesInput`` holds EC2 ``RunInstances`` parameters verbatim.
    ``Tags`` are the request author's tags, kept apart from the instance spec's tags
    until the instance is tagged.
    """

    tags: dict[str, str] = Field(default_factory=dict, alias="Tags")
    run_instances_input: dict[str, Any] = Field(default_factory=dict, alias="RunInstancesInput")

    model_config = {"populate_by_name": True}

    @field_validator("run_instances_input")
    @classmethod
    def validate_network_interfaces(cls, value: dict[str, Any]) -> dict[str, Any]:
        """Logical ids are routed into the first interface, so each must be an object."""
        interfaces = value.get("NetworkInterfaces")
        if interfaces is None:
            return value
        if not isinstance(interfaces, list) or not all(isinstance(i, dict) for i in interfaces):
            raise ValueError("NetworkInterfaces must be a list of objects")
        return value

    @classmethod
    def parse(cls, raw: bytes | str) -> ProvisionRequest:
        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            raise InvalidRequestError(str(e)) from e

    def to_run_args(self, logical_id: str | None = None, init: str = "") -> dict[str, Any]:
        """Build RunInstances keyword arguments for a single instance.

        Copies the request input, so the parsed request is never mutated.
        """
        args = dict(self.run_instances_input)
        args["MinCount"] = 1
        args["MaxCount"] = 1

        if logical_id is not None:
            interfaces = args.get("NetworkInterfaces")
            if interfaces:
                first = dict(interfaces[0])
                first["PrivateIpAddress"] = logical_id
                args["NetworkInterfaces"] = [first, *interfaces[1:]]
            else:
                args["PrivateIpAddress"] = logical_id

        if init:
            args["UserData"] = init

        if args.get("UserData") is not None:
            args["UserData"] = base64.b64encode(str(args["UserData"]).encode()).decode()

        return args
