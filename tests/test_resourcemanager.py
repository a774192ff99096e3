from __future__ import annotations

import pytest
import requests

from resubmit.common import request as request_module
from resubmit.common.exceptions import CommunicationError
from resubmit.yarn.resourcemanager import ResourceManager

ADDRESS = "http://rm.example.com:8088"


@pytest.fixture
def rm(server, monkeypatch):
    _rm = ResourceManager(ADDRESS, timeout=5)
    monkeypatch.setattr(_rm._session, "request", server)
    yield _rm
    _rm.close()


def test_base_address():
    rm = ResourceManager(f"{ADDRESS}/cluster/apps")

    assert rm.address == f"{ADDRESS}/ws/v1/cluster/"
    rm.close()


def test_request_headers_and_timeout(server, rm):
    server.route("GET", "info", payload={"clusterInfo": {"hadoopVersion": "3.3.6"}})

    assert rm.cluster() == {"clusterInfo": {"hadoopVersion": "3.3.6"}}

    _, _, kwargs = server.requests[0]
    assert kwargs["headers"]["Accept"] == "application/json"
    assert kwargs["timeout"] == 5


def test_empty_response(server, rm):
    server.route("POST", "apps", status_code=202)

    assert rm.submit_application({"application-id": "application_1_1"}) == {}


def test_auth_cookie_is_reused(server, rm):
    server.route("GET", "info", payload={})
    rm._session.auth = requests.auth.HTTPBasicAuth("alice", "secret")
    rm._session.cookies.set("hadoop.auth", "u=alice&t=kerberos")

    rm.cluster()
    rm.cluster()

    assert "Cookie" not in server.requests[0][2]["headers"]
    assert server.requests[1][2]["headers"]["Cookie"] == "hadoop.auth=u=alice&t=kerberos"
    assert isinstance(rm._session.auth, requests.auth.HTTPBasicAuth)


def test_close_forgets_auth_cookie(server, rm):
    server.route("GET", "info", payload={})
    rm._session.cookies.set("hadoop.auth", "token")
    session = rm._session
    rm.cluster()

    rm.close()
    rm.close()

    assert rm.closed
    assert not any(key[0] is session for key in request_module._SESSION_AUTH_TOKENS)
    with pytest.raises(CommunicationError):
        rm.cluster()
