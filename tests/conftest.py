from __future__ import annotations

import msgspec
import pytest
import requests

from resubmit.hadoop.version import HadoopVersion
from resubmit.submission.helper import SubmissionHelper
from resubmit.yarn.models.records import ApplicationHandle, ResourceCeiling, SecurityCredential

APPLICATION_ID = "application_1700000000000_0042"


class FakeNegotiator:
    """In-memory `ResourceNegotiator` recording the calls it receives."""

    def __init__(
        self,
        max_memory: int = 4096,
        version: str = "3.3.6",
        application_id: str = APPLICATION_ID,
        submit_error: Exception | None = None,
        credential_error: Exception | None = None,
        create_error: Exception | None = None,
    ):
        self.max_memory = max_memory
        self.version = version
        self.application_id = application_id
        self.submit_error = submit_error
        self.credential_error = credential_error
        self.create_error = create_error
        self.calls: list[str] = []
        self.submissions: list[dict] = []
        self.closed = 0

    def create_application(self):
        self.calls.append("create_application")
        if self.create_error is not None:
            raise self.create_error
        return ApplicationHandle(self.application_id), ResourceCeiling(memory=self.max_memory, vcores=8)

    def cluster_version(self):
        self.calls.append("cluster_version")
        return HadoopVersion.parse(self.version)

    def submit(self, handle, request, spec, policy, *, parameters, unmanaged=False):
        self.calls.append("submit")
        if self.submit_error is not None:
            raise self.submit_error
        self.submissions.append(
            {
                "handle": handle,
                "request": request,
                "spec": spec,
                "policy": policy,
                "parameters": parameters,
                "unmanaged": unmanaged,
            }
        )

    def obtain_credential(self, handle):
        self.calls.append("obtain_credential")
        if self.credential_error is not None:
            raise self.credential_error
        return SecurityCredential(token="dG9rZW4", service="rm.example.com:8088", renewer="yarn", owner="alice")

    def close(self):
        self.calls.append("close")
        self.closed += 1


@pytest.fixture
def negotiator():
    return FakeNegotiator()


@pytest.fixture
def helper(negotiator):
    with SubmissionHelper(negotiator, classpath="{{PWD}}<CPS>{{PWD}}/local/*") as _helper:
        yield _helper


def make_response(status_code: int = 200, payload=None, url: str = "http://rm.example.com:8088/") -> requests.Response:
    """A `requests.Response` with a JSON body."""
    response = requests.Response()
    response.status_code = status_code
    response.reason = "OK" if status_code < 400 else "Error"
    response.url = url
    response.encoding = "utf-8"
    response._content = msgspec.json.encode(payload) if payload is not None else b""
    return response


class FakeResourceManagerServer:
    """Replaces `requests.Session.request`, answering from registered routes."""

    def __init__(self):
        self.routes: dict[tuple[str, str], list[tuple[int, object, Exception | None]]] = {}
        self.requests: list[tuple[str, str, dict]] = []

    def route(self, method: str, path: str, status_code: int = 200, payload=None, error: Exception | None = None):
        self.routes[(method, path)] = [(status_code, payload, error)]

    def route_sequence(self, method: str, path: str, payloads: list):
        """Answer with `payloads` in turn, repeating the last one."""
        self.routes[(method, path)] = [(200, payload, None) for payload in payloads]

    def paths(self) -> list[str]:
        return [url.split("/ws/v1/cluster/", 1)[1] for _, url, _ in self.requests]

    def __call__(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        responses = self.routes[(method, url.split("/ws/v1/cluster/", 1)[1])]
        status_code, payload, error = responses.pop(0) if len(responses) > 1 else responses[0]
        if error is not None:
            raise error
        return make_response(status_code, payload, url=url)


@pytest.fixture
def server():
    return FakeResourceManagerServer()
