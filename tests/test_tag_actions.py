import pytest
from botocore.exceptions import ClientError

from cloudwright.driver import Driver
from cloudwright.errors import ParameterError
from cloudwright.operations import CreateTagAction, DeleteTagAction


class FakeEC2:
    def __init__(self):
        self.calls: list[tuple[str, dict]] = []

    def _record(self, name, kwargs):
        self.calls.append((name, kwargs))
        if kwargs.get("DryRun"):
            raise ClientError({"Error": {"Code": "DryRunOperation", "Message": "would succeed"}}, name)
        return {}

    def create_tags(self, **kwargs):
        return self._record("create_tags", kwargs)

    def delete_tags(self, **kwargs):
        return self._record("delete_tags", kwargs)


PARAMS = {"resource": "i-123", "key": "Env", "value": "prod"}


def test_create_tag_validate_simulates_call():
    ec2 = FakeEC2()
    action = CreateTagAction(Driver(clients={"ec2": ec2}))

    fake_id = action.validate(PARAMS)

    assert fake_id.startswith("dryrunid-")
    assert ec2.calls == [
        (
            "create_tags",
            {"Resources": ["i-123"], "Tags": [{"Key": "Env", "Value": "prod"}], "DryRun": True},
        )
    ]


def test_create_tag_execute_issues_real_call():
    ec2 = FakeEC2()
    action = CreateTagAction(Driver(clients={"ec2": ec2}))

    action.execute({**PARAMS, "resource": ["i-1", "i-2"]})

    assert ec2.calls == [
        ("create_tags", {"Resources": ["i-1", "i-2"], "Tags": [{"Key": "Env", "Value": "prod"}]})
    ]


def test_delete_tag_execute():
    ec2 = FakeEC2()
    DeleteTagAction(Driver(clients={"ec2": ec2})).execute(PARAMS)

    assert ec2.calls[0][0] == "delete_tags"


@pytest.mark.parametrize("missing", ["resource", "key", "value"])
def test_missing_param_makes_no_provider_call(missing):
    ec2 = FakeEC2()
    action = CreateTagAction(Driver(clients={"ec2": ec2}))
    params = {k: v for k, v in PARAMS.items() if k != missing}

    with pytest.raises(ParameterError) as info:
        action.validate(params)

    assert ec2.calls == []
    assert str(info.value) == f"create tag: missing required params '{missing}'"
