import pytest
from botocore.exceptions import ClientError

from cloudwright.driver import Driver
from cloudwright.errors import BindingError, ConvergenceTimeout, ParameterError, ProviderError
from cloudwright.operations import (
    AttachSecurityGroupAction,
    CheckSecurityGroupAction,
    DetachSecurityGroupAction,
    UpdateSecurityGroupAction,
)
from cloudwright.operations.securitygroup import build_ip_permission, parse_port_range
from cloudwright.params import Params


class FakeEC2:
    def __init__(self, groups=None, interfaces=None):
        self.groups = groups or []
        self.interfaces = list(interfaces or [])
        self.calls: list[tuple[str, dict]] = []

    def describe_instance_attribute(self, **kwargs):
        self.calls.append(("describe_instance_attribute", kwargs))
        return {"Groups": [{"GroupId": g} for g in self.groups]}

    def modify_instance_attribute(self, **kwargs):
        self.calls.append(("modify_instance_attribute", kwargs))
        return {}

    def describe_network_interfaces(self, **kwargs):
        self.calls.append(("describe_network_interfaces", kwargs))
        current = self.interfaces.pop(0) if self.interfaces else []
        return {"NetworkInterfaces": [{"NetworkInterfaceId": ni} for ni in current]}

    def _rule(self, name, kwargs):
        self.calls.append((name, kwargs))
        if kwargs.get("DryRun"):
            raise ClientError({"Error": {"Code": "DryRunOperation", "Message": "ok"}}, name)
        return {"Return": True}

    def authorize_security_group_ingress(self, **kwargs):
        return self._rule("authorize_security_group_ingress", kwargs)

    def revoke_security_group_egress(self, **kwargs):
        return self._rule("revoke_security_group_egress", kwargs)


def driver_for(ec2):
    return Driver(clients={"ec2": ec2}, poll_frequency=0.01)


def test_attach_appends_group():
    ec2 = FakeEC2(groups=["sg-a"])
    AttachSecurityGroupAction(driver_for(ec2)).execute({"id": "sg-b", "instance": "i-1"})

    assert ec2.calls == [
        ("describe_instance_attribute", {"Attribute": "groupSet", "InstanceId": "i-1"}),
        ("modify_instance_attribute", {"InstanceId": "i-1", "Groups": ["sg-a", "sg-b"]}),
    ]


def test_detach_removes_group():
    ec2 = FakeEC2(groups=["sg-a", "sg-b"])
    DetachSecurityGroupAction(driver_for(ec2)).execute({"id": "sg-a", "instance": "i-1"})

    assert ec2.calls[-1] == ("modify_instance_attribute", {"InstanceId": "i-1", "Groups": ["sg-b"]})


def test_detach_last_group_logs_error(caplog):
    ec2 = FakeEC2(groups=["sg-a"])
    DetachSecurityGroupAction(driver_for(ec2)).execute({"id": "sg-a", "instance": "i-1"})

    assert "at least one securitygroup" in caplog.text
    assert ec2.calls[-1][1]["Groups"] == []


def test_attach_validate_checks_params_only():
    ec2 = FakeEC2()
    action = AttachSecurityGroupAction(driver_for(ec2))

    assert action.validate({"id": "sg-b", "instance": "i-1"}) is None
    with pytest.raises(ParameterError):
        action.validate({"id": "sg-b"})
    assert ec2.calls == []


def test_attach_validate_rejects_list_group():
    ec2 = FakeEC2()
    with pytest.raises(BindingError):
        AttachSecurityGroupAction(driver_for(ec2)).validate({"id": ["sg-a", "sg-b"], "instance": "i-1"})
    assert ec2.calls == []


def test_check_securitygroup_waits_until_unused():
    ec2 = FakeEC2(interfaces=[["eni-1"], []])
    CheckSecurityGroupAction(driver_for(ec2)).execute({"id": "sg-1", "state": "unused", "timeout": 5})

    assert [name for name, _ in ec2.calls] == ["describe_network_interfaces"] * 2
    assert ec2.calls[0][1] == {"Filters": [{"Name": "group-id", "Values": ["sg-1"]}]}


def test_check_securitygroup_zero_timeout_expires():
    ec2 = FakeEC2(interfaces=[[]])
    with pytest.raises(ConvergenceTimeout):
        CheckSecurityGroupAction(driver_for(ec2)).execute({"id": "sg-1", "state": "unused", "timeout": 0})
    assert ec2.calls == []


def test_check_securitygroup_rejects_unknown_state():
    with pytest.raises(ParameterError, match="invalid state 'gone'"):
        CheckSecurityGroupAction(driver_for(FakeEC2())).validate({"id": "sg-1", "state": "gone", "timeout": 5})


def test_update_inbound_authorize_dry_run():
    ec2 = FakeEC2()
    action = UpdateSecurityGroupAction(driver_for(ec2))

    fake_id = action.validate(
        {"id": "sg-1", "inbound": "authorize", "cidr": "10.0.0.0/16", "protocol": "tcp", "portrange": "80-443"}
    )

    assert fake_id.startswith("sg-")
    assert ec2.calls == [
        (
            "authorize_security_group_ingress",
            {
                "GroupId": "sg-1",
                "IpPermissions": [
                    {"IpProtocol": "tcp", "FromPort": 80, "ToPort": 443, "IpRanges": [{"CidrIp": "10.0.0.0/16"}]}
                ],
                "DryRun": True,
            },
        )
    ]


def test_update_outbound_revoke_any_protocol():
    ec2 = FakeEC2()
    UpdateSecurityGroupAction(driver_for(ec2)).execute(
        {"id": "sg-1", "outbound": "revoke", "cidr": "0.0.0.0/0", "protocol": "any"}
    )

    name, kwargs = ec2.calls[0]
    assert name == "revoke_security_group_egress"
    assert kwargs["IpPermissions"][0] == {
        "IpProtocol": "-1",
        "FromPort": -1,
        "ToPort": -1,
        "IpRanges": [{"CidrIp": "0.0.0.0/0"}],
    }


@pytest.mark.parametrize(
    "params",
    [
        {"id": "sg-1", "cidr": "10.0.0.0/8", "protocol": "tcp"},
        {"id": "sg-1", "inbound": "authorize", "outbound": "revoke", "cidr": "10.0.0.0/8", "protocol": "tcp"},
        {"id": "sg-1", "inbound": "allow", "cidr": "10.0.0.0/8", "protocol": "tcp"},
        {"id": "sg-1", "inbound": "authorize", "protocol": "tcp"},
        {"id": "sg-1", "inbound": "authorize", "cidr": "10.0.0.0/8", "protocol": "tcp", "portrange": "x-y"},
    ],
)
def test_update_rejects_bad_params_without_calls(params):
    ec2 = FakeEC2()
    with pytest.raises(ParameterError):
        UpdateSecurityGroupAction(driver_for(ec2)).validate(params)
    assert ec2.calls == []


def test_parse_port_range():
    assert parse_port_range(22) == (22, 22)
    assert parse_port_range("8080") == (8080, 8080)
    assert parse_port_range("1000-2000") == (1000, 2000)
    assert parse_port_range("any") == (-1, -1)


def test_build_ip_permission_without_ports():
    permission = build_ip_permission(Params.from_mapping({"cidr": "10.0.0.0/8", "protocol": "icmp"}))
    assert permission == {"cidr": "10.0.0.0/8", "protocol": "icmp", "from": None, "to": None}


def test_fetch_groups_failure_is_provider_error():
    class BrokenEC2(FakeEC2):
        def describe_instance_attribute(self, **kwargs):
            raise ClientError({"Error": {"Code": "InvalidInstanceID.Malformed", "Message": "bad"}}, "x")

    with pytest.raises(ProviderError, match="fetching securitygroups for instance i-1"):
        AttachSecurityGroupAction(driver_for(BrokenEC2())).execute({"id": "sg-b", "instance": "i-1"})
