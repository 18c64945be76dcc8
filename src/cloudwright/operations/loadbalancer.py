from __future__ import annotations

from .base import Action, Prepared
from ..driver import NOT_FOUND_STATE
from ..params import Params
from ..types import CoercionKind, Setter

LOADBALANCER_STATES = {"provisioning", "active", "failed", NOT_FOUND_STATE}


class CheckLoadBalancerAction(Action):
    description = "check loadbalancer"
    service = "elbv2"

    def check(self, params: Params) -> None:
        params.require("id")
        params.require_choice("state", LOADBALANCER_STATES)
        params.require_int("timeout")

    def build(self, params: Params) -> Prepared:
        return self.prepare(
            "DescribeLoadBalancers",
            [Setter(params["id"], "LoadBalancerArns", CoercionKind.STRING_LIST)],
        )

    def run(self, params: Params) -> None:
        arn = params.text("id")
        call, request = self.build(params)

        def fetch() -> str:
            output = call.execute(request)
            for balancer in output.get("LoadBalancers", []):
                if balancer.get("LoadBalancerArn") == arn:
                    return balancer.get("State", {}).get("Code", "")
            return NOT_FOUND_STATE

        self.checker(
            f"loadbalancer {arn}",
            fetch,
            params.require_str("state"),
            params.require_int("timeout"),
        ).check()
