from __future__ import annotations

import pytest

from resubmit.common.exceptions import CommunicationError
from resubmit.yarn.models.records import ApplicationHandle, AttemptPolicy, LaunchSpec, ResourceRequest, SubmissionParameters
from resubmit.yarn.models.response import ApplicationResponse, DelegationToken, NewApplicationResponse
from resubmit.yarn.models.submit import ApplicationSubmissionContext, Entries


def test_application_handle():
    handle = ApplicationHandle.parse("application_1700000000000_0042")

    assert handle.cluster_timestamp == 1700000000000
    assert handle.sequence == 42
    assert str(handle) == "application_1700000000000_0042"


@pytest.mark.parametrize("application_id", ["", "app_1_1", "application_1", "application_a_1"])
def test_invalid_application_handle(application_id):
    with pytest.raises(ValueError):
        ApplicationHandle.parse(application_id)


def test_new_application_response_from_json():
    response = NewApplicationResponse.decode(
        b'{"application-id":"application_1_3","maximum-resource-capability":{"memory":2048,"vCores":2}}'
    )

    assert response.handle == ApplicationHandle("application_1_3")
    assert response.ceiling.memory == 2048


def test_unknown_application_state():
    with pytest.raises(CommunicationError):
        ApplicationResponse.decode({"app": {"id": "application_1_1", "state": "EXPLODED"}})


def test_delegation_token_to_credential():
    token = DelegationToken.decode({"token": "abc", "kind": "RM_DELEGATION_TOKEN", "expiration-time": 5})
    credential = token.to_credential(service="rm:8088")

    assert credential.token == "abc"
    assert credential.expiration == 5
    assert credential.service == "rm:8088"


def test_empty_entries():
    assert Entries.create({}) is None
    assert Entries.create(None) is None


def test_submission_context_defaults():
    context = ApplicationSubmissionContext.create(
        ApplicationHandle("application_1_1"),
        ResourceRequest(resource_name="*", memory=512),
        LaunchSpec(command=("java", "Launcher")),
        AttemptPolicy(),
        SubmissionParameters(),
    )
    payload = context.to_dict()

    assert payload["application-name"] == "resubmit-driver"
    assert payload["application-type"] == "RESUBMIT"
    assert payload["queue"] == "default"
    assert payload["max-app-attempts"] == 1
    assert payload["keep-containers-across-application-attempts"] is False
    assert payload["unmanaged-AM"] is False
    assert payload["am-container-resource-request"]["relax-locality"] is True
    assert payload["am-container-spec"] == {"commands": {"command": "java Launcher"}}
    assert "application-tags" not in payload
