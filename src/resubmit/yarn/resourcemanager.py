#!/usr/bin/env python3
"""
yarn/resourcemanager.py
=======================

Python wrapper for the parts of YARN's RessourceManager web services [REST
API][1] needed to submit applications.

[1]: https://hadoop.apache.org/docs/stable/hadoop-yarn/hadoop-yarn-site/ResourceManagerRest.html
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

# imports
import pathlib
from typing import Any
from urllib.parse import urljoin

import msgspec
import requests
from requests import auth

from .. import PathType, logger
from ..common.exceptions import CommunicationError
from ..common.request import forget_session, make_request


class ResourceManager:
    """
    YARN RessourceManager web services REST API wrapper.

    Parameters
    ----------
    address : str
        ResourceManager HTTP(S) address, e.g. `'http://rm.example.com:8088'`.
    auth : requests.auth.AuthBase, optional
        The `requests` authentication handler, e.g. `HTTPSimpleAuth` or
        `HTTPKerberosAuth`, by default `None`.
    timeout : int, optional
        How many seconds to wait for the server to send data before giving up, by
        default `90`
    verify : bool
        Either a boolean, in which case it controls whether we verify the server's TLS
        certificate, or a string, in which case it must be a path to a CA bundle to use,
        by default to `True`
    proxies : dict[str, str], optional
        Dictionary mapping protocol to the URL of the proxy, by default to `None`
    """

    def __init__(
        self,
        address: str,
        auth: auth.AuthBase | None = None,
        timeout: int | float | None = None,
        verify: bool | PathType | None = None,
        proxies: dict[str, str] | None = None,
    ):
        self._address = urljoin(address, "/ws/v1/cluster/")
        self._timeout = timeout or 90
        self._verify = verify if verify is not None else True

        # setup request session
        self._session: requests.Session | None = requests.Session()
        self._session.verify = (
            str(self._verify) if isinstance(self._verify, pathlib.Path) else self._verify
        )
        self._session.proxies = proxies or {}
        self._session.auth = auth

    def __repr__(self):
        return f"ResourceManager<{self._address}>"

    @property
    def address(self) -> str:
        return self._address

    @property
    def closed(self) -> bool:
        return self._session is None

    def _request(
        self,
        api_path: str,
        method: str = "GET",
        timeout: int | float | None = None,
        json: Any | None = None,
        **kwargs,
    ) -> dict[str, Any] | str:
        """Execute request and handle response

        Parameters
        ----------
        api_path : str
            The path of the API endpoint to request.
        method : str, optional
            The HTTP method to use for the request. One of {`'GET'`, `'POST'`, `'PUT'`,
             `'DELETE'`}, by default `'GET'`.
        timeout : int or float, optional
            The number of seconds to wait for the server's response before giving up,
            defaults to the timeout of the `ResourceManager`.
        json : Any, optional
            Payload encoded as JSON body, by default `None`.
        **kwargs
            Additional keyword arguments to pass to `make_request`.

        Returns
        -------
        dict or str
            The response from the server, either as a JSON dictionary or raw string.

        Raises
        ------
        CommunicationError
            If the session was closed already or the ResourceManager can't be
            reached.
        RejectedError
            If the ResourceManager returns an error status code.
        """
        if self._session is None:
            raise CommunicationError(f"Session to {self._address} is closed")

        if "params" in kwargs and kwargs["params"] is not None:
            kwargs["params"] = {k: v for k, v in kwargs["params"].items() if v is not None}

        response = make_request(
            session=self._session,
            url=self._address,
            path=api_path,
            method=method,
            timeout=timeout or self._timeout,
            data=msgspec.json.encode(json) if json is not None else None,
            **kwargs,
        )
        try:
            return msgspec.json.decode(response.content) if response.content else {}
        except msgspec.DecodeError:
            return response.text

    def cluster(self, **kwargs) -> dict[str, Any]:
        """
        Get cluster information

        The cluster information resource provides overall information about the
        cluster, including the Hadoop and ResourceManager versions.

        Returns
        -------
        dict[str, Any]
            API response content with JSON data.
        """
        return self._request("info", **kwargs)

    def new_application(self, **kwargs) -> dict[str, Any]:
        """
        Create a new application.

        With the New Application API, you can obtain an application-id which
        can then be used as part of the Submit Applications API to
        submit applications. The response also includes the maximum resource
        capabilities available on the cluster.

        Returns
        -------
        dict[str, Any]
            API response content with JSON data.
        """
        return self._request("apps/new-application", "POST", **kwargs)

    def submit_application(self, context: dict[str, Any], **kwargs) -> dict[str, Any] | str:
        """
        Submit an application.

        For the context definition refer to [YARN's Submit Application API][1]

        Parameters
        ----------
        context : dict[str, Any]
            The application submission context.

        Returns
        -------
        dict[str, Any] | str
            API response content, usually empty.

        [1]: https://hadoop.apache.org/docs/current/hadoop-yarn/hadoop-yarn-site/ResourceManagerRest.html#Cluster_Applications_API.28Submit_Application.29
        """
        logger.debug(f"Submitting application context: {context}")
        return self._request("apps", "POST", json=context, **kwargs)

    def application(self, application_id: str, **kwargs) -> dict[str, Any]:
        """
        Get information about application with `application_id`

        Parameters
        ----------
        application_id : str
            The application Id

        Returns
        -------
        dict[str, Any]
            API response content with JSON data.
        """
        return self._request(f"apps/{application_id}", **kwargs)

    def delegation_token(self, renewer: str, **kwargs) -> dict[str, Any]:
        """
        Get a ResourceManager delegation token

        All delegation token requests must be carried out on a Kerberos
        authenticated connection (using SPNEGO). Carrying out operations on a
        non-kerberos connection will result in a FORBIDDEN response. Only the
        renewer specified when creating the token can renew the token.

        Parameters
        ----------
        renewer : str
            The user who is allowed to renew the delegation token.

        Returns
        -------
        dict[str, Any]
            API response content with JSON data.
        """
        return self._request("delegation-token", "POST", json={"renewer": renewer}, **kwargs)

    def close(self):
        """Close the request session. Closing a closed session does nothing."""
        if self._session is None:
            return

        logger.debug(f"Closing session to {self._address}")
        forget_session(self._session)
        self._session.close()
        self._session = None
