#!/usr/bin/env python3
"""
yarn/negotiator.py
==================

The narrow interface the `SubmissionHelper` uses to talk to the cluster
resource manager, and its implementation over the YARN ResourceManager REST
API.

`ResourceNegotiator` is a `typing.Protocol`, so any object with the five
operations can be used, e.g. an in-memory fake in tests.

Example
-------

```python
from resubmit import RestResourceNegotiator, Settings

with RestResourceNegotiator.from_settings(Settings.load()) as negotiator:
    handle, ceiling = negotiator.create_application()
    negotiator.cluster_version()
```
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

import time
from typing import TYPE_CHECKING, Protocol, runtime_checkable
from urllib.parse import urlparse

from .. import logger
from ..common.auth import make_auth_handler
from ..common.exceptions import AuthError, CommunicationError, ConfigurationError, RejectedError
from ..hadoop.config import HadoopConfig
from ..hadoop.version import HadoopVersion
from .models.response import (
    ApplicationResponse,
    ClusterInfoResponse,
    DelegationToken,
    NewApplicationResponse,
)
from .models.submit import ApplicationSubmissionContext
from .resourcemanager import ResourceManager

if TYPE_CHECKING:
    from requests import auth

    from ..common.settings import Settings
    from .models.records import (
        ApplicationHandle,
        AttemptPolicy,
        LaunchSpec,
        ResourceCeiling,
        ResourceRequest,
        SecurityCredential,
        SubmissionParameters,
    )
    from .models.response import ApplicationReport


@runtime_checkable
class ResourceNegotiator(Protocol):
    """The operations a submission needs from the cluster resource manager."""

    def create_application(self) -> tuple[ApplicationHandle, ResourceCeiling]:
        """Reserve a new application id and read the maximum container capability."""
        ...

    def cluster_version(self) -> HadoopVersion:
        """The version the resource manager reports."""
        ...

    def submit(
        self,
        handle: ApplicationHandle,
        request: ResourceRequest,
        spec: LaunchSpec,
        policy: AttemptPolicy,
        *,
        parameters: SubmissionParameters,
        unmanaged: bool = False,
    ) -> None:
        """Submit the application."""
        ...

    def obtain_credential(self, handle: ApplicationHandle) -> SecurityCredential:
        """Obtain a credential for the submitted application."""
        ...

    def close(self) -> None:
        """Release the session. Closing twice does nothing."""
        ...


class RestResourceNegotiator:
    """
    `ResourceNegotiator` talking to the YARN ResourceManager REST API.

    Parameters
    ----------
    address : str
        ResourceManager HTTP(S) address, e.g. `'http://rm.example.com:8088'`.
    auth : requests.auth.AuthBase, optional
        The `requests` authentication handler, by default `None`.
    renewer : str, optional
        The renewer of requested delegation tokens, by default `'yarn'`.
    timeout : int, optional
        HTTP timeout in seconds, by default `90`.
    verify : bool | str, optional
        Whether to verify the server's TLS certificate, or the path of a CA
        bundle, by default `True`.
    proxies : dict[str, str], optional
        Proxies used for the requests.
    accept_timeout : float, optional
        Seconds `obtain_credential` waits for a submitted application to be
        accepted, by default `30`.
    poll_interval : float, optional
        Seconds between two application state requests, by default `0.5`.
    """

    def __init__(  # noqa: PLR0913
        self,
        address: str,
        auth: auth.AuthBase | None = None,
        renewer: str = "yarn",
        timeout: int | None = None,
        verify: bool | str | None = None,
        proxies: dict[str, str] | None = None,
        accept_timeout: float = 30,
        poll_interval: float = 0.5,
    ):
        self._rm = ResourceManager(address, auth=auth, timeout=timeout, verify=verify, proxies=proxies)
        self._renewer = renewer
        self._accept_timeout = accept_timeout
        self._poll_interval = poll_interval
        self._version: HadoopVersion | None = None

    def __repr__(self):
        return f"RestResourceNegotiator<{self._rm.address}>"

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    @classmethod
    def from_settings(cls, settings: Settings) -> RestResourceNegotiator:
        """
        Create a negotiator from `Settings`.

        If `settings.rm_address` isn't set, the first ResourceManager address of
        the Hadoop configuration is used. If `settings.auth` isn't set,
        Kerberos is used when the Hadoop configuration enables it.

        Parameters
        ----------
        settings : Settings
            The connection settings.

        Returns
        -------
        RestResourceNegotiator
            The negotiator.

        Raises
        ------
        ConfigurationError
            If no ResourceManager address is configured.
        """
        config = HadoopConfig()
        address = settings.rm_address
        if not address:
            addresses = config.resource_manager_addresses
            if not addresses:
                raise ConfigurationError(
                    "No ResourceManager address configured. Set `rm_address` or "
                    "`HADOOP_CONF_DIR`."
                )
            address = addresses[0]
            logger.debug(f"Using ResourceManager address '{address}' from Hadoop configuration")

        return cls(
            address,
            auth=make_auth_handler(
                settings.auth or ("kerberos" if config.is_kerberos_enabled else "simple"), user=settings.user
            ),
            renewer=settings.renewer,
            timeout=settings.timeout,
            verify=settings.verify,
            proxies=settings.proxies,
        )

    @property
    def address(self) -> str:
        return self._rm.address

    def _check_open(self):
        if self._rm.closed:
            raise CommunicationError("session closed")

    def create_application(self) -> tuple[ApplicationHandle, ResourceCeiling]:
        """
        Reserve a new application id and read the maximum container capability.

        Returns
        -------
        tuple[ApplicationHandle, ResourceCeiling]
            The application id and the maximum resources of a single container.

        Raises
        ------
        CommunicationError
            If the ResourceManager can't be reached or the session is closed.
        RejectedError
            If the ResourceManager declines the request.
        """
        self._check_open()
        response = NewApplicationResponse.decode(self._rm.new_application())
        logger.debug(f"New application '{response.application_id}' created")

        return response.handle, response.ceiling

    def cluster_version(self) -> HadoopVersion:
        """
        The Hadoop version the ResourceManager reports.

        The version is requested once and cached afterwards.

        Returns
        -------
        HadoopVersion
            The cluster version.

        Raises
        ------
        ConfigurationError
            If the reported version can't be parsed.
        """
        self._check_open()
        if self._version is None:
            info = ClusterInfoResponse.decode(self._rm.cluster()).clusterInfo
            if info.version is None:
                raise ConfigurationError("The ResourceManager didn't report its version")

            self._version = HadoopVersion.parse(info.version)
            logger.debug(f"Cluster reports Hadoop version {self._version}")

        return self._version

    def submit(  # noqa: PLR0913
        self,
        handle: ApplicationHandle,
        request: ResourceRequest,
        spec: LaunchSpec,
        policy: AttemptPolicy,
        *,
        parameters: SubmissionParameters,
        unmanaged: bool = False,
    ) -> None:
        """
        Submit the application.

        Parameters
        ----------
        handle : ApplicationHandle
            The application id from `create_application`.
        request : ResourceRequest
            The Application Master container request.
        spec : LaunchSpec
            The driver launch specification.
        policy : AttemptPolicy
            The attempt policy.
        parameters : SubmissionParameters
            Name, queue, priority, type and tags of the application.
        unmanaged : bool, optional
            Whether the driver runs as an unmanaged Application Master.

        Raises
        ------
        CommunicationError
            If the ResourceManager can't be reached or the session is closed.
        RejectedError
            If the ResourceManager declines the submission.
        """
        self._check_open()
        context = ApplicationSubmissionContext.create(
            handle, request, spec, policy, parameters, unmanaged=unmanaged
        )
        self._rm.submit_application(context.to_dict())
        logger.info(f"Application '{handle}' submitted to queue '{parameters.queue}'")

    def obtain_credential(self, handle: ApplicationHandle) -> SecurityCredential:
        """
        Obtain a ResourceManager delegation token for a submitted application.

        Submitting over REST is asynchronous, so the application state is
        polled until it leaves `NEW`, `NEW_SAVING` and `SUBMITTED`, for at
        most `accept_timeout` seconds.

        Parameters
        ----------
        handle : ApplicationHandle
            The submitted application.

        Returns
        -------
        SecurityCredential
            The delegation token.

        Raises
        ------
        AuthError
            If the application wasn't accepted within `accept_timeout`, or the
            ResourceManager declines to issue a token.
        CommunicationError
            If the ResourceManager can't be reached or the session is closed.
        """
        self._check_open()
        report = self._wait_for_acceptance(handle)
        if not report.accepted:
            raise AuthError(
                f"No credential for application '{handle}' in state {report.state}: "
                f"{report.diagnostics}"
            )

        try:
            token = DelegationToken.decode(self._rm.delegation_token(self._renewer))
        except RejectedError as e:
            raise AuthError(f"The ResourceManager declined the delegation token request: {e}") from e

        logger.debug(f"Obtained {token.kind} for application '{handle}'")
        return token.to_credential(service=urlparse(self._rm.address).netloc)

    def _wait_for_acceptance(self, handle: ApplicationHandle) -> ApplicationReport:
        deadline = time.monotonic() + self._accept_timeout
        while True:
            try:
                report = ApplicationResponse.decode(self._rm.application(str(handle))).app
            except RejectedError as e:
                raise AuthError(f"Application '{handle}' is unknown to the ResourceManager") from e

            if not report.pending or time.monotonic() >= deadline:
                return report

            logger.debug(f"Application '{handle}' is {report.state}, waiting to be accepted")
            time.sleep(self._poll_interval)

    def close(self) -> None:
        """Close the session to the ResourceManager. Closing twice does nothing."""
        self._rm.close()
