from __future__ import annotations

from typing import Any, Optional, Union

from .base import Action, Prepared
from ..binder import bind, coerce
from ..driver import PROVIDER_ERRORS
from ..errors import ParameterError, ProviderError
from ..params import Params
from ..types import CoercionKind, Setter, ValueTag

SECURITYGROUP_STATES = {"unused"}

RULE_OPERATIONS = {
    ("inbound", "authorize"): "AuthorizeSecurityGroupIngress",
    ("inbound", "revoke"): "RevokeSecurityGroupIngress",
    ("outbound", "authorize"): "AuthorizeSecurityGroupEgress",
    ("outbound", "revoke"): "RevokeSecurityGroupEgress",
}


def fetch_instance_security_groups(client: Any, instance: str) -> list[str]:
    try:
        output = client.describe_instance_attribute(Attribute="groupSet", InstanceId=instance)
    except PROVIDER_ERRORS as exc:
        raise ProviderError(f"fetching securitygroups for instance {instance}: {exc}") from exc
    return [group["GroupId"] for group in output.get("Groups", []) if group.get("GroupId")]


class _InstanceGroupsAction(Action):
    service = "ec2"

    def check(self, params: Params) -> None:
        params.require("id")
        params.require_str("instance")

    def build(self, params: Params, groups: Optional[list[str]] = None) -> Prepared:
        if groups is None:
            groups = self.groups_for(params, [])
        return self.prepare(
            "ModifyInstanceAttribute",
            [
                Setter(params["instance"], "InstanceId", CoercionKind.STRING),
                Setter(groups, "Groups", CoercionKind.STRING_LIST),
            ],
        )

    def run(self, params: Params) -> Any:
        instance = params.require_str("instance")
        current = fetch_instance_security_groups(self.driver.client("ec2"), instance)
        groups = self.groups_for(params, current)
        if not groups:
            self.logger.error("AWS instances must have at least one securitygroup")
        call, request = self.build(params, groups)
        output = call.execute(request)
        self.logger.info("%s '%s' on instance '%s' done", self.description, params.text("id"), instance)
        return output

    def groups_for(self, params: Params, current: list[str]) -> list[str]:
        return self.updated_groups(current, coerce(params["id"], CoercionKind.STRING))

    def updated_groups(self, current: list[str], group: str) -> list[str]:
        raise NotImplementedError


class AttachSecurityGroupAction(_InstanceGroupsAction):
    description = "attach securitygroup"

    def updated_groups(self, current: list[str], group: str) -> list[str]:
        return [*current, group]


class DetachSecurityGroupAction(_InstanceGroupsAction):
    description = "detach securitygroup"

    def updated_groups(self, current: list[str], group: str) -> list[str]:
        return [g for g in current if g != group]


class CheckSecurityGroupAction(Action):
    """Wait until no network interface references the group."""

    description = "check securitygroup"
    service = "ec2"

    def check(self, params: Params) -> None:
        params.require("id")
        params.require_choice("state", SECURITYGROUP_STATES)
        params.require_int("timeout")

    def build(self, params: Params) -> Prepared:
        call, request = self.prepare("DescribeNetworkInterfaces", [])
        group_filter = request.new_item("Filters")
        bind("group-id", group_filter, "Name", CoercionKind.STRING)
        bind(params["id"], group_filter, "Values", CoercionKind.STRING_LIST)
        return call, request

    def run(self, params: Params) -> None:
        group = params.text("id")
        call, request = self.build(params)

        def fetch() -> str:
            output = call.execute(request)
            interfaces = [ni.get("NetworkInterfaceId", "") for ni in output.get("NetworkInterfaces", [])]
            if not interfaces:
                return "unused"
            return f"used by {', '.join(interfaces)}"

        checker = self.checker(f"securitygroup {group}", fetch, params.require_str("state"), params.require_int("timeout"))
        checker.check()
        return None


def build_ip_permission(params: Params) -> dict[str, Any]:
    """Translate cidr/protocol/portrange params into one IP permission."""
    cidr = params.get("cidr")
    if cidr is None or cidr.tag is not ValueTag.STRING:
        raise ParameterError(f"invalid cidr '{params.text('cidr')}'")
    protocol = params.get("protocol")
    if protocol is None or protocol.tag is not ValueTag.STRING:
        raise ParameterError(f"invalid protocol '{params.text('protocol')}'")

    permission: dict[str, Any] = {"cidr": cidr.value, "protocol": protocol.value, "from": None, "to": None}
    if protocol.value in {"any", "-1"}:
        permission["protocol"] = "-1"
        permission["from"] = permission["to"] = -1
        return permission

    ports = params.get("portrange")
    if ports is not None:
        low, high = parse_port_range(ports.value)
        permission["from"], permission["to"] = low, high
    return permission


def parse_port_range(value: Union[int, str, tuple]) -> tuple[int, int]:
    if isinstance(value, int):
        return value, value
    if not isinstance(value, str):
        raise ParameterError(f"invalid portrange '{value}'")
    text = value.strip()
    try:
        if "any" in text:
            return -1, -1
        if "-" in text:
            low, high = text.split("-", 1)
            return int(low), int(high)
        port = int(text)
    except ValueError:
        raise ParameterError(f"invalid portrange '{value}'") from None
    return port, port


class UpdateSecurityGroupAction(Action):
    """Authorize or revoke one inbound or outbound rule."""

    description = "update securitygroup"
    service = "ec2"

    def check(self, params: Params) -> None:
        params.require("id")
        build_ip_permission(params)
        self._operation(params)

    def dry_run(self, params: Params) -> Optional[str]:
        fake_id = self.simulate(params, "securitygroup")
        self.logger.debug("dry run: update securitygroup ok")
        return fake_id

    def run(self, params: Params) -> Any:
        call, request = self.build(params)
        output = call.execute(request)
        self.logger.info("update securitygroup done")
        return output

    def build(self, params: Params) -> Prepared:
        permission = build_ip_permission(params)
        call, request = self.prepare(
            self._operation(params),
            [Setter(params["id"], "GroupId", CoercionKind.STRING)],
        )
        item = request.new_item("IpPermissions")
        bind(permission["protocol"], item, "IpProtocol", CoercionKind.STRING)
        if permission["from"] is not None:
            bind(permission["from"], item, "FromPort", CoercionKind.INT64)
            bind(permission["to"], item, "ToPort", CoercionKind.INT64)
        bind(permission["cidr"], item.new_item("IpRanges"), "CidrIp", CoercionKind.STRING)
        return call, request

    @staticmethod
    def _operation(params: Params) -> str:
        chosen = [direction for direction in ("inbound", "outbound") if direction in params]
        if len(chosen) != 1:
            raise ParameterError("expect either 'inbound' or 'outbound' parameter")
        direction = chosen[0]
        verb = params.text(direction)
        operation = RULE_OPERATIONS.get((direction, verb))
        if operation is None:
            raise ParameterError(f"'{direction}' parameter expect 'authorize' or 'revoke', got {verb}")
        return operation
