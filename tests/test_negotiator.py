from __future__ import annotations

import msgspec
import pytest
from requests import exceptions as request_exceptions
from requests_kerberos import HTTPKerberosAuth

from resubmit.common.auth import HTTPSimpleAuth
from resubmit.common.exceptions import AuthError, CommunicationError, ConfigurationError, RejectedError
from resubmit.common.settings import Settings
from resubmit.hadoop.version import HadoopVersion
from resubmit.yarn.models.records import (
    ApplicationHandle,
    AttemptPolicy,
    LaunchSpec,
    LocalResource,
    ResourceRequest,
    SubmissionParameters,
)
from resubmit.yarn.negotiator import ResourceNegotiator, RestResourceNegotiator

ADDRESS = "http://rm.example.com:8088"
HANDLE = ApplicationHandle("application_1700000000000_0007")


@pytest.fixture
def negotiator(server, monkeypatch):
    _negotiator = RestResourceNegotiator(ADDRESS, auth=HTTPSimpleAuth("alice"), accept_timeout=0, poll_interval=0)
    monkeypatch.setattr(_negotiator._rm._session, "request", server)
    yield _negotiator
    _negotiator.close()


def test_is_a_resource_negotiator(negotiator):
    assert isinstance(negotiator, ResourceNegotiator)


def test_create_application(server, negotiator):
    server.route(
        "POST",
        "apps/new-application",
        payload={
            "application-id": str(HANDLE),
            "maximum-resource-capability": {"memory": 8192, "vCores": 4},
        },
    )

    handle, ceiling = negotiator.create_application()

    assert handle == HANDLE
    assert ceiling.memory == 8192
    assert ceiling.vcores == 4


def test_create_application_with_malformed_response(server, negotiator):
    server.route("POST", "apps/new-application", payload={"application-id": "nope"})

    with pytest.raises(CommunicationError):
        negotiator.create_application()


def test_cluster_version_is_cached(server, negotiator):
    server.route("GET", "info", payload={"clusterInfo": {"id": 1, "hadoopVersion": "3.3.6-SNAPSHOT"}})

    assert negotiator.cluster_version() == HadoopVersion(3, 3, 6)
    assert negotiator.cluster_version() == HadoopVersion(3, 3, 6)
    assert server.paths() == ["info"]


def test_cluster_version_falls_back_to_resource_manager_version(server, negotiator):
    server.route("GET", "info", payload={"clusterInfo": {"resourceManagerVersion": "2.2.0"}})

    assert negotiator.cluster_version() == HadoopVersion(2, 2, 0)


def test_cluster_version_missing(server, negotiator):
    server.route("GET", "info", payload={"clusterInfo": {"id": 1}})

    with pytest.raises(ConfigurationError):
        negotiator.cluster_version()


def test_submit_posts_submission_context(server, negotiator):
    server.route("POST", "apps", status_code=202)
    spec = LaunchSpec(
        command=("{{JAVA_HOME}}/bin/java", "-Xmx1024m", "org.example.Launcher"),
        local_resources={
            "local": LocalResource(location="hdfs://nn:8020/apps/driver.zip", size=10, timestamp=1, type="ARCHIVE")
        },
        environment={"LANG": "C"},
    )
    request = ResourceRequest(resource_name="node-1", memory=1024, relax_locality=False)
    parameters = SubmissionParameters(queue="analytics", priority=3, application_tags=["etl"])

    negotiator.submit(
        HANDLE,
        request,
        spec,
        AttemptPolicy(max_attempts=2, keep_containers=True),
        parameters=parameters,
        unmanaged=True,
    )

    method, url, kwargs = server.requests[0]
    body = msgspec.json.decode(kwargs["data"])
    assert (method, url) == ("POST", f"{ADDRESS}/ws/v1/cluster/apps")
    assert body["application-id"] == str(HANDLE)
    assert body["queue"] == "analytics"
    assert body["priority"] == 3
    assert body["max-app-attempts"] == 2
    assert body["keep-containers-across-application-attempts"] is True
    assert body["unmanaged-AM"] is True
    assert body["resource"] == {"memory": 1024, "vCores": 1}
    assert body["am-container-resource-request"]["relax-locality"] is False
    assert body["am-container-resource-request"]["resource-name"] == "node-1"
    assert body["application-tags"] == {"tag": ["etl"]}
    container = body["am-container-spec"]
    assert container["commands"]["command"] == "{{JAVA_HOME}}/bin/java -Xmx1024m org.example.Launcher"
    assert container["local-resources"]["entry"][0]["key"] == "local"
    assert container["local-resources"]["entry"][0]["value"]["type"] == "ARCHIVE"
    assert container["environment"]["entry"] == [{"key": "LANG", "value": "C"}]
    assert "credentials" not in container


def test_submit_rejected(server, negotiator):
    server.route("POST", "apps", status_code=400, payload={"RemoteException": {"message": "unknown queue"}})

    with pytest.raises(RejectedError) as excinfo:
        negotiator.submit(
            HANDLE,
            ResourceRequest(resource_name="*", memory=512),
            LaunchSpec(command=("java",)),
            AttemptPolicy(),
            parameters=SubmissionParameters(queue="missing"),
        )

    assert excinfo.value.status_code == 400
    assert "unknown queue" in str(excinfo.value)


def test_connection_error(server, negotiator):
    server.route("POST", "apps/new-application", error=request_exceptions.ConnectionError("refused"))

    with pytest.raises(CommunicationError):
        negotiator.create_application()


def test_obtain_credential(server, negotiator):
    server.route("GET", f"apps/{HANDLE}", payload={"app": {"id": str(HANDLE), "state": "ACCEPTED"}})
    server.route(
        "POST",
        "delegation-token",
        payload={"token": "MgASY2xpZW50", "renewer": "yarn", "owner": "alice", "expiration-time": 1700000000000},
    )

    credential = negotiator.obtain_credential(HANDLE)

    assert credential.token == "MgASY2xpZW50"
    assert credential.renewer == "yarn"
    assert credential.expiration == 1700000000000
    assert credential.service == "rm.example.com:8088"
    assert msgspec.json.decode(server.requests[1][2]["data"]) == {"renewer": "yarn"}


@pytest.mark.parametrize("state", ["FAILED", "KILLED", "FINISHED"])
def test_obtain_credential_requires_accepted_application(server, negotiator, state):
    server.route("GET", f"apps/{HANDLE}", payload={"app": {"id": str(HANDLE), "state": state}})

    with pytest.raises(AuthError):
        negotiator.obtain_credential(HANDLE)

    assert server.paths() == [f"apps/{HANDLE}"]


@pytest.mark.parametrize("state", ["NEW", "NEW_SAVING", "SUBMITTED"])
def test_obtain_credential_gives_up_on_pending_application(server, negotiator, state):
    server.route("GET", f"apps/{HANDLE}", payload={"app": {"id": str(HANDLE), "state": state}})

    with pytest.raises(AuthError, match=state):
        negotiator.obtain_credential(HANDLE)

    assert "delegation-token" not in server.paths()


def test_obtain_credential_waits_for_acceptance(server, negotiator, monkeypatch):
    monkeypatch.setattr(negotiator, "_accept_timeout", 30)
    server.route_sequence(
        "GET",
        f"apps/{HANDLE}",
        [{"app": {"id": str(HANDLE), "state": state}} for state in ("NEW_SAVING", "SUBMITTED", "ACCEPTED")],
    )
    server.route("POST", "delegation-token", payload={"token": "dG9rZW4", "renewer": "yarn"})

    credential = negotiator.obtain_credential(HANDLE)

    assert credential.token == "dG9rZW4"
    assert server.paths() == [f"apps/{HANDLE}"] * 3 + ["delegation-token"]


def test_obtain_credential_declined(server, negotiator):
    server.route("GET", f"apps/{HANDLE}", payload={"app": {"id": str(HANDLE), "state": "RUNNING"}})
    server.route("POST", "delegation-token", status_code=403)

    with pytest.raises(AuthError):
        negotiator.obtain_credential(HANDLE)


def test_close_is_idempotent(server, negotiator):
    negotiator.close()
    negotiator.close()

    with pytest.raises(CommunicationError, match="session closed"):
        negotiator.create_application()

    assert server.requests == []


def test_from_settings(tmp_path, monkeypatch):
    monkeypatch.setenv("HADOOP_CONF_DIR", str(tmp_path / "missing"))
    monkeypatch.delenv("HADOOP_AUTH", raising=False)
    settings = Settings(rm_address=ADDRESS, user="alice", renewer="hadoop", timeout=10, verify=False)

    with RestResourceNegotiator.from_settings(settings) as negotiator:
        assert negotiator.address == f"{ADDRESS}/ws/v1/cluster/"
        assert negotiator._renewer == "hadoop"
        assert isinstance(negotiator._rm._session.auth, HTTPSimpleAuth)
        assert negotiator._rm._session.verify is False


def test_from_settings_uses_hadoop_config(tmp_path, monkeypatch):
    (tmp_path / "yarn-site.xml").write_text(
        "<configuration><property><name>yarn.resourcemanager.webapp.address</name>"
        "<value>rm.internal:8088</value></property></configuration>"
    )
    monkeypatch.setenv("HADOOP_CONF_DIR", str(tmp_path))

    with RestResourceNegotiator.from_settings(Settings(user="alice")) as negotiator:
        assert negotiator.address == "http://rm.internal:8088/ws/v1/cluster/"


def test_from_settings_without_address(tmp_path, monkeypatch):
    monkeypatch.setenv("HADOOP_CONF_DIR", str(tmp_path / "missing"))
    monkeypatch.delenv("YARN_CONF_DIR", raising=False)

    with pytest.raises(ConfigurationError):
        RestResourceNegotiator.from_settings(Settings(user="alice"))


def test_from_settings_detects_kerberos(tmp_path, monkeypatch):
    (tmp_path / "core-site.xml").write_text(
        "<configuration><property><name>hadoop.security.authentication</name>"
        "<value>kerberos</value></property></configuration>"
    )
    monkeypatch.setenv("HADOOP_CONF_DIR", str(tmp_path))
    monkeypatch.delenv("HADOOP_AUTH", raising=False)

    with RestResourceNegotiator.from_settings(Settings(rm_address=ADDRESS)) as negotiator:
        assert isinstance(negotiator._rm._session.auth, HTTPKerberosAuth)

    with RestResourceNegotiator.from_settings(Settings(rm_address=ADDRESS, auth="simple")) as negotiator:
        assert isinstance(negotiator._rm._session.auth, HTTPSimpleAuth)
