from __future__ import annotations

from typing import Optional

from .base import Action, Prepared
from ..driver import NOT_FOUND_STATE
from ..params import Params
from ..types import CoercionKind, Setter

INSTANCE_STATES = {
    "pending",
    "running",
    "shutting-down",
    "terminated",
    "stopping",
    "stopped",
    NOT_FOUND_STATE,
}


class CheckInstanceAction(Action):
    """Wait for an EC2 instance to reach ``state``."""

    description = "check instance"
    service = "ec2"

    def check(self, params: Params) -> None:
        params.require("id")
        params.require_choice("state", INSTANCE_STATES)
        params.require_int("timeout")

    def dry_run(self, params: Params) -> Optional[str]:
        fake_id = self.simulate(params, "instance")
        self.logger.debug("dry run: check instance ok")
        return fake_id

    def build(self, params: Params) -> Prepared:
        return self.prepare(
            "DescribeInstances",
            [Setter(params["id"], "InstanceIds", CoercionKind.STRING_LIST)],
        )

    def run(self, params: Params) -> None:
        instance_id = params.text("id")
        call, request = self.build(params)

        def fetch() -> str:
            output = call.execute(request)
            for reservation in output.get("Reservations", []):
                for instance in reservation.get("Instances", []):
                    if instance.get("InstanceId") == instance_id:
                        return instance.get("State", {}).get("Name", "")
            return NOT_FOUND_STATE

        checker = self.checker(
            f"instance {instance_id}",
            fetch,
            params.require_str("state"),
            params.require_int("timeout"),
        )
        checker.check()
