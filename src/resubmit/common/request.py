#!/usr/bin/env python3
"""
common/request.py
=================

This module offers a high-level interface for HTTP requests to the Hadoop YARN
ResourceManager. It simplifies request dispatch, response and exception
handling.

Failed requests are translated into `resubmit` errors (see
`common/exceptions.py`), successful kerberos (SPNEGO) negotiations are reused
by sending the `hadoop.auth` cookie on subsequent requests of the same session.

To deactivate insecure request warnings, set the environment variable
`IGNORE_INSECURE_REQUEST_WARNINGS` to 'True'.

Example
-------

```python
from requests import Session
from resubmit.common.request import make_request

session = Session()
response = make_request(session, "http://rm:8088/ws/v1/cluster/", path="info")
```
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"


# imports
import os
import warnings
from typing import Any
from urllib.parse import urljoin

from requests import Response, Session, exceptions
from urllib3 import disable_warnings
from urllib3.exceptions import InsecureRequestWarning

from .. import logger
from .exceptions import handle_request_exception

_SESSION_AUTH_TOKENS: dict[tuple[Session, str], str] = {}

# show insecure request warnings only once per session
warnings.filterwarnings("once", category=InsecureRequestWarning)


def forget_session(session: Session):
    """Drop all `hadoop.auth` cookies cached for `session`."""
    for key in [key for key in _SESSION_AUTH_TOKENS if key[0] is session]:
        del _SESSION_AUTH_TOKENS[key]


def make_request(  # noqa: PLR0913
    session: Session,
    url: str,
    path: str | None = "/",
    method: str | None = "GET",
    params: dict[str, Any] | None = None,
    data: dict[str, Any] | bytes | None = None,
    timeout: int | float | None = None,
    raise_for_status: bool = True,
    **kwargs,
) -> Response:
    """
    Make a request to a REST API.

    Parameters
    ----------
    session : request.Session
        The requests session to use for the request.
    url : str
        The base URL of the REST API.
    path : str, optional
        The path of the API endpoint to request, by default `'/'`.
    method : str, optional
        The HTTP method to use for the request. One of {`'GET'`, `'POST'`, `'PUT'`,
        `'DELETE'`}, by default `'GET'`.
    params : dict[str, Any], optional
        Dictionary to send in the query string of the `Session.request`, by
        default `None`.
    data : dict[str, Any] | bytes, optional
        Dictionary or bytes object to send in the body of the `Session.request`,
        by default `None`.
    timeout : int | float, optional
        The number of seconds to wait for the server's response before giving up,
        defaults to `None` (no timeout).
    raise_for_status : bool
        Raises for error status codes, by default `True`.
    **kwargs
        Additional keyword arguments to pass to the `Session.request` method.

    Returns
    -------
    requests.Response
        The response from the server.

    Raises
    ------
    AuthError
        If the request returns a status code of 401 or 403.
    RejectedError
        If the request returns any other error status code.
    CommunicationError
        If the ResourceManager can't be reached.
    """
    if os.getenv("IGNORE_INSECURE_REQUEST_WARNINGS", "False").lower() == "true":
        disable_warnings(InsecureRequestWarning)

    # make sure we recieve json response and not xml
    headers = {"Content-Type": "application/json", "Accept": "application/json"}

    # skip user or kerberos negotiation if we have a 'hadoop.auth' cookie
    # from any previous request
    _auth_bak = session.auth
    if (session, url) in _SESSION_AUTH_TOKENS:
        session.auth = None
        headers["Cookie"] = f"hadoop.auth={_SESSION_AUTH_TOKENS[(session, url)]}"

    _url = urljoin(url, path)
    response = None
    try:
        logger.debug(f"Sending request to '{_url}' with: {method=}, {params=}")
        response = session.request(
            method=method,
            url=_url,
            headers=headers,
            timeout=timeout,
            params=params,
            data=data,
            **kwargs,
        )
        logger.debug(f"Got response: {response.status_code=}, {response.reason=}")

        if raise_for_status:
            response.raise_for_status()

        _cookie = session.cookies.get_dict().get("hadoop.auth")
        if _cookie:
            _SESSION_AUTH_TOKENS[(session, url)] = _cookie
            logger.debug("Request session auth cookie stored")

        return response
    except exceptions.RequestException as exc:
        handle_request_exception(exc, response, session.proxies)
    finally:
        session.auth = _auth_bak
