#!/usr/bin/env python3
"""
yarn/models/response.py
=======================

This module defines the response message models of the YARN REST API
endpoints used during a submission.

The module includes the following classes:
- *NewApplicationResponse*: the new application id and maximum resource
  capability.
- *ClusterInfo*: cluster information, including the Hadoop version.
- *ApplicationReport*: the report of a submitted application.
- *DelegationToken*: a ResourceManager delegation token.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"


from typing import Annotated, Literal

import msgspec
from skein import model as skein_model

from . import ResourceManagerMessage, _todash
from .records import ApplicationHandle, ResourceCeiling, SecurityCredential


class Capability(ResourceManagerMessage):
    """
    A resource capability.

    Attributes
    ----------
    memory : int
        Memory in MB.
    vcores : int
        Virtual cores.
    """

    memory: Annotated[int, msgspec.Meta(ge=0)]
    vcores: Annotated[int, msgspec.Meta(ge=0)] = msgspec.field(default=1, name="vCores")


class NewApplicationResponse(ResourceManagerMessage, rename=_todash):
    """
    Response of the Cluster New Application API.

    Attributes
    ----------
    application_id : str
        The newly created application id.
    maximum_resource_capability : Capability
        The maximum resources available for a single container.
    """

    application_id: Annotated[str, msgspec.Meta(pattern=r"^application_\d+_\d+$")]
    maximum_resource_capability: Capability

    @property
    def handle(self) -> ApplicationHandle:
        return ApplicationHandle(self.application_id)

    @property
    def ceiling(self) -> ResourceCeiling:
        return ResourceCeiling(
            memory=self.maximum_resource_capability.memory,
            vcores=self.maximum_resource_capability.vcores,
        )


class ClusterInfo(ResourceManagerMessage):
    """
    Cluster information from the Cluster Information API.

    Attributes
    ----------
    id : int
        The cluster id.
    state : str
        The ResourceManager state.
    hadoopVersion : str
        The Hadoop common version.
    resourceManagerVersion : str
        The ResourceManager version.
    """

    id: int | None = None
    state: str | None = None
    hadoopVersion: str | None = None
    resourceManagerVersion: str | None = None

    @property
    def version(self) -> str | None:
        """The reported version, preferring the Hadoop common version."""
        return self.hadoopVersion or self.resourceManagerVersion


class ClusterInfoResponse(ResourceManagerMessage):
    """Envelope of the Cluster Information API response."""

    clusterInfo: ClusterInfo


class ApplicationReport(ResourceManagerMessage):
    """
    Application report from the Cluster Application API.

    Attributes
    ----------
    id : str
        The application id.
    state : Literal[skein_model.ApplicationState._values]
        The state of the application.
    diagnostics : str
        The diagnostics for the application.
    """

    id: str
    state: Literal[skein_model.ApplicationState._values]  # type: ignore[valid-type]
    diagnostics: str = ""
    queue: str | None = None
    unmanagedApplication: bool = False

    @property
    def pending(self) -> bool:
        """Whether the ResourceManager is still saving the submitted application."""
        return self.state in ("NEW", "NEW_SAVING", "SUBMITTED")

    @property
    def accepted(self) -> bool:
        """Whether the ResourceManager accepted the application and it is still alive."""
        return self.state in ("ACCEPTED", "RUNNING")


class ApplicationResponse(ResourceManagerMessage):
    """Envelope of the Cluster Application API response."""

    app: ApplicationReport


class DelegationToken(ResourceManagerMessage, rename=_todash):
    """
    A ResourceManager delegation token from the Delegation Tokens API.

    Attributes
    ----------
    token : str
        The URL-safe encoded token.
    renewer : str
        The user allowed to renew the token.
    owner : str
        The owner of the token.
    kind : str
        The token kind.
    expiration_time : int
        The expiration time in ms since epoch.
    """

    token: Annotated[str, msgspec.Meta(min_length=1)]
    renewer: str | None = None
    owner: str | None = None
    kind: str = "RM_DELEGATION_TOKEN"
    expiration_time: int | None = None

    def to_credential(self, service: str) -> SecurityCredential:
        return SecurityCredential(
            token=self.token,
            kind=self.kind,
            service=service,
            renewer=self.renewer,
            owner=self.owner,
            expiration=self.expiration_time,
        )
