"""
Tests for the access-control intent schema.
"""

import pytest
from pydantic import ValidationError

from rbac_engine.schemas.access_control import AccessAction, AccessControl


def test_parses_intent():
    intent = AccessControl.model_validate({
        "role": " admin ",
        "permission": "read",
        "resource": "user",
        "scope": "global",
        "action": "Grant",
    })

    assert intent.role == "admin"
    assert intent.action is AccessAction.GRANT


@pytest.mark.parametrize("field", ["action", "grantOrRevoke", "grant_or_revoke"])
def test_action_aliases(field):
    intent = AccessControl.model_validate({
        "role": "admin",
        "permission": "read",
        "resource": "user",
        "scope": "global",
        field: "REVOKE",
    })

    assert intent.action is AccessAction.REVOKE


def test_unknown_action_rejected():
    with pytest.raises(ValidationError):
        AccessControl(role="admin", permission="read", resource="user", scope="global", action="toggle")


def test_blank_name_rejected():
    with pytest.raises(ValidationError):
        AccessControl(role="", permission="read", resource="user", scope="global", action="grant")


def test_intent_is_immutable():
    intent = AccessControl(role="admin", permission="read", resource="user", scope="global", action="grant")

    with pytest.raises(ValidationError):
        intent.role = "editor"


def test_describe():
    intent = AccessControl(role="admin", permission="read", resource="user", scope="global", action="revoke")

    assert intent.describe() == {
        "role": "admin",
        "permission": "read",
        "resource": "user",
        "scope": "global",
        "action": "revoke",
    }
