from __future__ import annotations

import base64
import json

import pytest

from instancekit.errors import InvalidRequestError
from instancekit.providers.aws.request import ProvisionRequest


def _request(**run_instances_input) -> ProvisionRequest:
    return ProvisionRequest.parse(json.dumps({"RunInstancesInput": run_instances_input}))


class TestParse:
    def test_tags_and_input(self):
        request = ProvisionRequest.parse(
            b'{"Tags": {"role": "db"}, "RunInstancesInput": {"ImageId": "ami-1"}}'
        )
        assert request.tags == {"role": "db"}
        assert request.run_instances_input == {"ImageId": "ami-1"}

    def test_empty_object(self):
        request = ProvisionRequest.parse("{}")
        assert request.tags == {}
        assert request.run_instances_input == {}

    @pytest.mark.parametrize(
        "raw",
        [
            b"not json",
            b"",
            b"[1, 2]",
            b'{"Tags": "role=db"}',
            b'{"RunInstancesInput": []}',
        ],
    )
    def test_malformed_payload_raises(self, raw):
        with pytest.raises(InvalidRequestError, match="Invalid input formatting"):
            ProvisionRequest.parse(raw)

    @pytest.mark.parametrize("interfaces", [[None], ["eni-1"], [1], {"DeviceIndex": 0}, "eni-1"])
    def test_malformed_network_interfaces_raise(self, interfaces):
        raw = json.dumps({"RunInstancesInput": {"NetworkInterfaces": interfaces}})
        with pytest.raises(InvalidRequestError, match="NetworkInterfaces must be a list of objects"):
            ProvisionRequest.parse(raw)

    def test_null_network_interfaces_accepted(self):
        request = ProvisionRequest.parse('{"RunInstancesInput": {"NetworkInterfaces": null}}')
        assert request.to_run_args(logical_id="10.0.0.5")["PrivateIpAddress"] == "10.0.0.5"


class TestSingleInstance:
    def test_counts_forced_to_one(self):
        args = _request(MinCount=5, MaxCount=10).to_run_args()
        assert args["MinCount"] == 1
        assert args["MaxCount"] == 1

    def test_counts_set_when_absent(self):
        args = _request().to_run_args()
        assert (args["MinCount"], args["MaxCount"]) == (1, 1)


class TestLogicalIdRouting:
    def test_top_level_without_interfaces(self):
        args = _request().to_run_args(logical_id="10.0.0.5")
        assert args["PrivateIpAddress"] == "10.0.0.5"
        assert "NetworkInterfaces" not in args

    def test_first_interface_when_declared(self):
        request = _request(NetworkInterfaces=[
            {"DeviceIndex": 0, "SubnetId": "subnet-1"},
            {"DeviceIndex": 1, "SubnetId": "subnet-2"},
        ])
        args = request.to_run_args(logical_id="10.0.0.5")

        assert "PrivateIpAddress" not in args
        assert args["NetworkInterfaces"][0] == {
            "DeviceIndex": 0,
            "SubnetId": "subnet-1",
            "PrivateIpAddress": "10.0.0.5",
        }
        assert "PrivateIpAddress" not in args["NetworkInterfaces"][1]

    def test_empty_interface_list_uses_top_level(self):
        args = _request(NetworkInterfaces=[]).to_run_args(logical_id="10.0.0.5")
        assert args["PrivateIpAddress"] == "10.0.0.5"

    def test_no_logical_id_leaves_address_unset(self):
        args = _request(NetworkInterfaces=[{"DeviceIndex": 0}]).to_run_args()
        assert "PrivateIpAddress" not in args
        assert args["NetworkInterfaces"] == [{"DeviceIndex": 0}]

    def test_parsed_request_not_mutated(self):
        request = _request(NetworkInterfaces=[{"DeviceIndex": 0}])
        request.to_run_args(logical_id="10.0.0.5")
        assert request.run_instances_input == {"NetworkInterfaces": [{"DeviceIndex": 0}]}


class TestUserData:
    def test_init_script_is_base64_encoded(self):
        args = _request().to_run_args(init="echo hi")
        assert args["UserData"] == base64.b64encode(b"echo hi").decode()
        assert args["UserData"] == "ZWNobyBoaQ=="

    def test_absent_init_leaves_user_data_unset(self):
        assert "UserData" not in _request().to_run_args()

    def test_init_replaces_request_user_data(self):
        args = _request(UserData="echo request").to_run_args(init="echo spec")
        assert base64.b64decode(args["UserData"]) == b"echo spec"

    def test_request_user_data_encoded_without_init(self):
        args = _request(UserData="echo request").to_run_args()
        assert base64.b64decode(args["UserData"]) == b"echo request"

    def test_non_ascii_script_encoded_as_utf8(self):
        args = _request().to_run_args(init="echo héllo")
        assert base64.b64decode(args["UserData"]).decode() == "echo héllo"
