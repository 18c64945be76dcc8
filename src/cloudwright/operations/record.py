from __future__ import annotations

from typing import Optional

from .base import Action, Prepared
from ..binder import bind, coerce
from ..errors import BindingError, ParameterError
from ..params import Params
from ..types import CoercionKind, Setter


class _RecordAction(Action):
    service = "route53"
    change_action = ""

    def check(self, params: Params) -> None:
        params.require("zone", "name", "type", "value", "ttl")
        try:
            coerce(params["ttl"], CoercionKind.INT64)
        except BindingError:
            raise ParameterError(f"ttl param is not int: '{params.text('ttl')}'") from None

    def build(self, params: Params) -> Prepared:
        setters = [Setter(params["zone"], "HostedZoneId", CoercionKind.STRING)]
        if "comment" in params:
            setters.append(Setter(params["comment"], "ChangeBatch.Comment", CoercionKind.STRING))
        call, request = self.prepare("ChangeResourceRecordSets", setters)

        change = request.child("ChangeBatch").new_item("Changes")
        bind(self.change_action, change, "Action", CoercionKind.STRING)
        bind(params["name"], change, "ResourceRecordSet.Name", CoercionKind.STRING)
        bind(params["type"], change, "ResourceRecordSet.Type", CoercionKind.STRING)
        bind(params["ttl"], change, "ResourceRecordSet.TTL", CoercionKind.INT64)
        record = change.child("ResourceRecordSet").new_item("ResourceRecords")
        bind(params["value"], record, "Value", CoercionKind.STRING)
        return call, request

    def run(self, params: Params) -> Optional[str]:
        call, request = self.build(params)
        output = call.execute(request)
        self.logger.info("%s done", self.description)
        return output.get("ChangeInfo", {}).get("Id")


class CreateRecordAction(_RecordAction):
    description = "create record"
    change_action = "CREATE"


class DeleteRecordAction(_RecordAction):
    description = "delete record"
    change_action = "DELETE"
