#!/usr/bin/env python3
"""
common/exceptions.py
====================

This module implements the submission exceptions and warnings and the
translation of failed ResourceManager HTTP requests into them.

Error kinds:
- `ConfigurationError`: a required parameter is missing or invalid.
- `CommunicationError`: the ResourceManager could not be reached.
- `RejectedError`: the ResourceManager declined the request (quota, invalid
  queue, bad priority, ...).
- `AuthError`: authentication failed or a credential was not issued.

All of them carry the `application_id` and the submission `step` they were
raised in, once known.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"


# imports
import os
import subprocess
import sys
from typing import NoReturn

from requests import Response
from requests import exceptions as request_exceptions

# import skein exceptions
from skein.exceptions import SkeinError


class SubmissionError(SkeinError):
    """Basic resubmit exception.

    Parameters
    ----------
    *args
        Exception arguments, the first one is the message.
    application_id : str, optional
        The id of the application the error belongs to.
    step : str, optional
        The submission step that failed.
    """

    def __init__(self, *args, application_id: str | None = None, step: str | None = None):
        super().__init__(*args)
        self.application_id = application_id
        self.step = step


class ConfigurationError(SubmissionError):
    """A required submission parameter is missing or invalid"""


class CommunicationError(SubmissionError):
    """Transport failure talking to the ResourceManager"""


class RejectedError(SubmissionError):
    """The ResourceManager explicitly declined the request"""

    def __init__(self, *args, status_code: int | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.status_code = status_code


class AuthError(SubmissionError):
    """Authentication failed or a credential was not issued"""


class SubmissionWarning(UserWarning):
    """Base warning for submission parameters adjusted before submission"""


class MemoryCappedWarning(SubmissionWarning):
    """The requested driver memory exceeds the cluster maximum"""


class KeepContainersUnsupportedWarning(SubmissionWarning):
    """The cluster can't keep containers across application attempts"""


class KeepContainersNoOpWarning(SubmissionWarning):
    """Keeping containers has no effect with a single application attempt"""


_BAD_REQUEST_HINT = (
    "{exception_msg}\n\n"
    "400 Bad Request: The ResourceManager couldn't process the request. "
    "Check the submission parameters, e.g. the priority, the application "
    "attempts or the resource request."
)

_UNAUTHORIZED_HINT = (
    "{exception_msg}\n\n"
    "401 Unauthorized: The request lacks valid authentication. Users can "
    "authenticate using either `'simple'` or `'kerberos'` (SPNEGO) "
    "authentication. If using `auth='kerberos'`, ensure a valid Kerberos "
    "ticket is present. You might want to `kinit` again."
    "\nDebug info: List of Kerberos tokens:\n{krb5_tokens}"
)

_FORBIDDEN_HINT = (
    "{exception_msg}\n\n"
    "403 Forbidden: The ResourceManager understands the request but won't "
    "authorize it. Check the queue ACLs and your permissions. Delegation "
    "tokens can only be requested on a Kerberos authenticated connection."
)

_NOT_FOUND_HINT = (
    "{exception_msg}\n\n"
    "404 Not Found: The ResourceManager can't find the requested resource. "
    "Check the ResourceManager address and the application id."
)

_SERVER_ERROR_HINT = (
    "{exception_msg}\n\n"
    "{status_code} Server Error: The ResourceManager failed to handle the "
    "request. Check the diagnostics below, e.g. an unknown queue or an "
    "exceeded quota."
)

_CONNECTION_ERROR_HINT = (
    "{exception_msg}\n\n"
    "Connection Error: There's a problem connecting to the ResourceManager. "
    "Check its address, the network connection and the service itself."
)

_PROXY_ERROR_HINT = (
    "{exception_msg}\n\n"
    "Proxy Error: There's an issue with the proxy server. Check your proxy "
    "settings. Proxies used: {proxies}"
)

_SSL_ERROR_HINT = (
    "{exception_msg}\n\n"
    "SSL Error: There's an issue with the SSL/TLS certificates of the "
    "ResourceManager. Provide a certificate bundle file with the `verify` "
    "setting or disable SSL verification (not recommended)."
)

_HTTP_STATUS_HINTS = {
    400: (RejectedError, _BAD_REQUEST_HINT),
    401: (AuthError, _UNAUTHORIZED_HINT),
    403: (AuthError, _FORBIDDEN_HINT),
    404: (RejectedError, _NOT_FOUND_HINT),
}


def krb_cache() -> str:
    """Get the current kerberos cache."""
    try:
        return (
            subprocess.run("klist", text=True, capture_output=True, check=False, shell=True).stdout
            or "Cache is empty"
        )
    except OSError:
        return "Cache is not available"


def handle_request_exception(
    exception: Exception,
    failed_response: Response | None = None,
    proxies: dict[str, str] | None = None,
) -> NoReturn:
    """Translate an exception of a failed HTTP request into a submission error.

    Parameters
    ----------
    exception : requests.exceptions.RequestException
        Exception object for failed request.
    failed_response : Response, optional
        The response of the failed request to handle
    proxies : dict[str, str], optional
        Proxies used for the request. Default is None.

    Raises
    ------
    AuthError
        If the request returns a status code of 401 or 403.
    RejectedError
        If the request returns any other error status code.
    CommunicationError
        If there is an issue with the proxies, the SSL certificates or the
        connection itself.
    """
    exception_msg = str(exception)
    status_code = failed_response.status_code if failed_response is not None else None

    if status_code in _HTTP_STATUS_HINTS:
        _error, _hint = _HTTP_STATUS_HINTS[status_code]
        _message = _hint.format(
            exception_msg=exception_msg,
            krb5_tokens=krb_cache() if status_code == 401 else "",  # noqa: PLR2004
        )
    elif status_code is not None and status_code >= 400:  # noqa: PLR2004
        _error = RejectedError
        _message = _SERVER_ERROR_HINT.format(exception_msg=exception_msg, status_code=status_code)
    elif isinstance(exception, request_exceptions.ProxyError):
        _proxies = proxies or {"http": os.getenv("HTTP_PROXY"), "https": os.getenv("HTTPS_PROXY")}
        _error = CommunicationError
        _message = _PROXY_ERROR_HINT.format(exception_msg=exception_msg, proxies=_proxies)
    elif isinstance(exception, request_exceptions.SSLError):
        _error = CommunicationError
        _message = _SSL_ERROR_HINT.format(exception_msg=exception_msg)
    elif isinstance(exception, request_exceptions.RequestException):
        _error = CommunicationError
        _message = _CONNECTION_ERROR_HINT.format(exception_msg=exception_msg)
    else:
        raise exception

    if failed_response is not None and failed_response.text:
        _message = f"{_message}\n\nOriginal server response:\n{failed_response.text}"

    kwargs = {"status_code": status_code} if _error is RejectedError else {}
    raise _error(_message, **kwargs).with_traceback(sys.exc_info()[2]) from exception
