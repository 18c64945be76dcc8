from __future__ import annotations

from typing import Any, Optional

from .base import Action, Prepared
from ..binder import bind
from ..params import Params
from ..types import CoercionKind, Setter


class _TagAction(Action):
    service = "ec2"
    operation = ""

    def check(self, params: Params) -> None:
        params.require("resource", "key", "value")

    def dry_run(self, params: Params) -> Optional[str]:
        fake_id = self.simulate(params, "tag")
        self.logger.debug("dry run: %s '%s=%s' ok", self.description, params.text("key"), params.text("value"))
        return fake_id

    def run(self, params: Params) -> Any:
        call, request = self.build(params)
        output = call.execute(request)
        self.logger.info(
            "%s '%s=%s' on '%s' done",
            self.description,
            params.text("key"),
            params.text("value"),
            params.text("resource"),
        )
        return output

    def build(self, params: Params) -> Prepared:
        call, request = self.prepare(
            self.operation,
            [Setter(params["resource"], "Resources", CoercionKind.STRING_LIST)],
        )
        tag = request.new_item("Tags")
        bind(params["key"], tag, "Key", CoercionKind.STRING)
        bind(params["value"], tag, "Value", CoercionKind.STRING)
        return call, request


class CreateTagAction(_TagAction):
    description = "create tag"
    operation = "CreateTags"


class DeleteTagAction(_TagAction):
    description = "delete tag"
    operation = "DeleteTags"
