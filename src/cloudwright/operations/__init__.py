from .base import Action
from .iam import AttachPolicyAction, CreateAccessKeyAction, DetachPolicyAction
from .instance import CheckInstanceAction
from .keypair import CreateKeyPairAction
from .loadbalancer import CheckLoadBalancerAction
from .record import CreateRecordAction, DeleteRecordAction
from .s3object import CreateS3ObjectAction
from .securitygroup import (
    AttachSecurityGroupAction,
    CheckSecurityGroupAction,
    DetachSecurityGroupAction,
    UpdateSecurityGroupAction,
)
from .tag import CreateTagAction, DeleteTagAction

ACTION_REGISTRY = {
    ("attach", "securitygroup"): AttachSecurityGroupAction,
    ("detach", "securitygroup"): DetachSecurityGroupAction,
    ("check", "securitygroup"): CheckSecurityGroupAction,
    ("update", "securitygroup"): UpdateSecurityGroupAction,
    ("check", "instance"): CheckInstanceAction,
    ("check", "loadbalancer"): CheckLoadBalancerAction,
    ("create", "tag"): CreateTagAction,
    ("delete", "tag"): DeleteTagAction,
    ("attach", "policy"): AttachPolicyAction,
    ("detach", "policy"): DetachPolicyAction,
    ("create", "accesskey"): CreateAccessKeyAction,
    ("create", "keypair"): CreateKeyPairAction,
    ("create", "s3object"): CreateS3ObjectAction,
    ("create", "record"): CreateRecordAction,
    ("delete", "record"): DeleteRecordAction,
}


def lookup(verb: str, resource: str) -> type[Action]:
    try:
        return ACTION_REGISTRY[(verb, resource)]
    except KeyError:
        raise KeyError(f"unknown action '{verb} {resource}'") from None


__all__ = [
    "Action",
    "AttachSecurityGroupAction",
    "DetachSecurityGroupAction",
    "CheckSecurityGroupAction",
    "UpdateSecurityGroupAction",
    "CheckInstanceAction",
    "CheckLoadBalancerAction",
    "CreateTagAction",
    "DeleteTagAction",
    "AttachPolicyAction",
    "DetachPolicyAction",
    "CreateAccessKeyAction",
    "CreateKeyPairAction",
    "CreateS3ObjectAction",
    "CreateRecordAction",
    "DeleteRecordAction",
    "ACTION_REGISTRY",
    "lookup",
]
