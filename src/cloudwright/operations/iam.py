from __future__ import annotations

from typing import Any

from .base import Action, Prepared
from ..params import Params
from ..types import CoercionKind, Setter

SECRET_RULER = "*" * 64


class _PolicyAction(Action):
    service = "iam"
    verb = ""
    preposition = ""

    def check(self, params: Params) -> None:
        params.require("arn")
        params.require_any("user", "group")

    def build(self, params: Params) -> Prepared:
        target = params.require_any("user", "group")
        return self.prepare(
            f"{self.verb.capitalize()}{target.capitalize()}Policy",
            [
                Setter(params["arn"], "PolicyArn", CoercionKind.STRING),
                Setter(params[target], f"{target.capitalize()}Name", CoercionKind.STRING),
            ],
            description=f"{self.verb} policy {self.preposition} {target}",
        )

    def run(self, params: Params) -> Any:
        target = params.require_any("user", "group")
        call, request = self.build(params)
        output = call.execute(request)
        self.logger.info("%s '%s' done", call.description, params.text(target))
        return output


class AttachPolicyAction(_PolicyAction):
    description = "attach policy"
    verb = "attach"
    preposition = "to"


class DetachPolicyAction(_PolicyAction):
    description = "detach policy"
    verb = "detach"
    preposition = "from"


class CreateAccessKeyAction(Action):
    """Create an access key and show its secret exactly once."""

    description = "create accesskey"
    service = "iam"

    def check(self, params: Params) -> None:
        params.require("user")

    def build(self, params: Params) -> Prepared:
        return self.prepare(
            "CreateAccessKey",
            [Setter(params["user"], "UserName", CoercionKind.STRING)],
        )

    def run(self, params: Params) -> str:
        call, request = self.build(params)
        output = call.execute(request)
        key = output.get("AccessKey", {})
        self.logger.info("Access key created. Here are the credentials for user %s:", key.get("UserName"))
        print()
        print(SECRET_RULER)
        print(f"aws_access_key_id = {key.get('AccessKeyId')}")
        print(f"aws_secret_access_key = {key.get('SecretAccessKey')}")
        print(SECRET_RULER)
        print()
        self.logger.warning("This is your only opportunity to view the secret access keys.")
        self.logger.warning("Save the user's new access key ID and secret access key in a safe and secure place.")
        self.logger.warning("You will not have access to the secret keys again after this step.")

        key_id = key.get("AccessKeyId")
        self.logger.info("create accesskey '%s' done", key_id)
        return key_id
