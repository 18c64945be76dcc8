import pytest

from cloudwright.driver import Driver
from cloudwright.errors import BindingError, ParameterError
from cloudwright.operations import CreateRecordAction, DeleteRecordAction


class FakeRoute53:
    def __init__(self):
        self.calls: list[dict] = []

    def change_resource_record_sets(self, **kwargs):
        self.calls.append(kwargs)
        return {"ChangeInfo": {"Id": "/change/C123", "Status": "PENDING"}}


PARAMS = {"zone": "Z1", "name": "www.example.com", "type": "A", "value": "1.2.3.4", "ttl": 300}


def test_create_record_builds_change_batch():
    route53 = FakeRoute53()

    change_id = CreateRecordAction(Driver(clients={"route53": route53})).execute(
        {**PARAMS, "comment": "web frontend"}
    )

    assert change_id == "/change/C123"
    assert route53.calls == [
        {
            "HostedZoneId": "Z1",
            "ChangeBatch": {
                "Comment": "web frontend",
                "Changes": [
                    {
                        "Action": "CREATE",
                        "ResourceRecordSet": {
                            "Name": "www.example.com",
                            "Type": "A",
                            "TTL": 300,
                            "ResourceRecords": [{"Value": "1.2.3.4"}],
                        },
                    }
                ],
            },
        }
    ]


def test_delete_record_accepts_string_ttl():
    route53 = FakeRoute53()
    DeleteRecordAction(Driver(clients={"route53": route53})).execute({**PARAMS, "ttl": "60"})

    change = route53.calls[0]["ChangeBatch"]["Changes"][0]
    assert change["Action"] == "DELETE"
    assert change["ResourceRecordSet"]["TTL"] == 60
    assert "Comment" not in route53.calls[0]["ChangeBatch"]


def test_bad_ttl_fails_without_calls():
    route53 = FakeRoute53()
    with pytest.raises(ParameterError, match="ttl param is not int"):
        CreateRecordAction(Driver(clients={"route53": route53})).validate({**PARAMS, "ttl": "soon"})
    assert route53.calls == []


def test_validate_checks_params_only():
    route53 = FakeRoute53()
    assert CreateRecordAction(Driver(clients={"route53": route53})).validate(PARAMS) is None
    assert route53.calls == []


def test_validate_binds_like_execute():
    route53 = FakeRoute53()
    action = CreateRecordAction(Driver(clients={"route53": route53}))

    with pytest.raises(BindingError) as info:
        action.validate({**PARAMS, "name": ["a.example.com", "b.example.com"]})

    assert info.value.field_path == "ResourceRecordSet.Name"
    assert str(info.value).startswith("create record: binding type mismatch")
    assert route53.calls == []
