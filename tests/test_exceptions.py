from __future__ import annotations

import pytest
from conftest import make_response
from requests import exceptions as request_exceptions
from skein.exceptions import SkeinError

from resubmit.common.exceptions import (
    AuthError,
    CommunicationError,
    ConfigurationError,
    RejectedError,
    SubmissionError,
    handle_request_exception,
)


def _http_error(status_code: int, payload=None) -> tuple[request_exceptions.HTTPError, object]:
    response = make_response(status_code, payload)
    return request_exceptions.HTTPError(f"{status_code} Error", response=response), response


def test_errors_are_skein_errors():
    for error in (ConfigurationError, CommunicationError, RejectedError, AuthError):
        assert issubclass(error, SubmissionError)
        assert issubclass(error, SkeinError)


def test_context_attributes():
    error = RejectedError("quota exceeded", status_code=400, application_id="application_1_1", step="submit")

    assert error.status_code == 400
    assert error.application_id == "application_1_1"
    assert error.step == "submit"
    assert str(error) == "quota exceeded"


@pytest.mark.parametrize(
    "status_code, error",
    [(400, RejectedError), (404, RejectedError), (500, RejectedError), (401, AuthError), (403, AuthError)],
)
def test_http_status(monkeypatch, status_code, error):
    monkeypatch.setattr("resubmit.common.exceptions.krb_cache", lambda: "no tickets")
    exception, response = _http_error(status_code, {"RemoteException": {"message": "details"}})

    with pytest.raises(error) as excinfo:
        handle_request_exception(exception, response)

    assert excinfo.value.__cause__ is exception
    assert "details" in str(excinfo.value)
    if error is RejectedError:
        assert excinfo.value.status_code == status_code


def test_unauthorized_lists_kerberos_tickets(monkeypatch):
    monkeypatch.setattr("resubmit.common.exceptions.krb_cache", lambda: "Ticket cache: FILE:/tmp/krb5cc_1000")
    exception, response = _http_error(401)

    with pytest.raises(AuthError, match="krb5cc_1000"):
        handle_request_exception(exception, response)


@pytest.mark.parametrize(
    "exception, hint",
    [
        (request_exceptions.ProxyError("proxy down"), "Proxy Error"),
        (request_exceptions.SSLError("bad certificate"), "SSL Error"),
        (request_exceptions.ConnectionError("refused"), "Connection Error"),
        (request_exceptions.Timeout("slow"), "Connection Error"),
    ],
)
def test_transport_errors(exception, hint):
    with pytest.raises(CommunicationError, match=hint):
        handle_request_exception(exception, proxies={"https": "http://proxy:3128"})


def test_other_exceptions_are_reraised():
    with pytest.raises(KeyError):
        handle_request_exception(KeyError("missing"))
