#!/usr/bin/env python3
"""
yarn/models/records.py
======================

Records passed between the submission components:

- *ApplicationHandle*: the application id assigned by the ResourceManager.
- *ResourceCeiling*: the maximum resource capability of a single container.
- *LocalResource*: a file to be localized alongside the driver.
- *SubmissionParameters*: the mutable parameters collected by the
  `SubmissionHelper` setters.
- *ResourceRequest*: the Application Master container request.
- *LaunchSpec*: the driver launch command and its local resources.
- *AttemptPolicy*: the resolved application attempt settings.
- *SecurityCredential*: a ResourceManager delegation token.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

import re
from typing import Annotated, Literal

import msgspec

from ...submission import (
    DEFAULT_APPLICATION_NAME,
    DEFAULT_APPLICATION_TYPE,
    DEFAULT_LAUNCHER,
    DEFAULT_QUEUE,
    DRIVER_CONFIGURATION_PATH,
    DRIVER_STDERR_PATH,
    DRIVER_STDOUT_PATH,
)

_APPLICATION_ID_PATTERN = re.compile(r"^application_(\d+)_(\d+)$")

ANY_HOST = "*"
"""Resource name of a request that may be placed on any host."""


class ApplicationHandle(msgspec.Struct, frozen=True):
    """
    The application id assigned by the ResourceManager.

    Parameters
    ----------
    id : str
        The application id, e.g. `'application_1700000000000_0042'`.
    """

    id: Annotated[str, msgspec.Meta(pattern=r"^application_\d+_\d+$")]

    @classmethod
    def parse(cls, application_id: str) -> ApplicationHandle:
        """Create a handle from an application id string."""
        if not _APPLICATION_ID_PATTERN.match(application_id or ""):
            raise ValueError(f"'{application_id}' is not a YARN application id")
        return cls(application_id)

    @property
    def cluster_timestamp(self) -> int:
        """The start time of the ResourceManager that issued the id."""
        return int(_APPLICATION_ID_PATTERN.match(self.id).group(1))

    @property
    def sequence(self) -> int:
        """The sequence number of the application."""
        return int(_APPLICATION_ID_PATTERN.match(self.id).group(2))

    def __str__(self):
        return self.id


class ResourceCeiling(msgspec.Struct, frozen=True):
    """
    The maximum resources the ResourceManager grants a single container.

    Parameters
    ----------
    memory : int
        Memory in MB.
    vcores : int
        Virtual cores.
    """

    memory: Annotated[int, msgspec.Meta(ge=0)]
    vcores: Annotated[int, msgspec.Meta(ge=0)] = 1


class LocalResource(msgspec.Struct, frozen=True, kw_only=True):
    """
    A file to be localized alongside the driver.

    Parameters
    ----------
    location : str
        The URL of the resource, e.g. `'hdfs://nn:8020/user/me/app.jar'`.
    size : int
        The size of the resource in bytes.
    timestamp : int
        The modification time of the resource in ms since epoch.
    type : Literal['ARCHIVE', 'FILE', 'PATTERN'], optional
        Type of the resource, by default `'FILE'`.
    visibility : Literal['PUBLIC', 'PRIVATE', 'APPLICATION'], optional
        Visibility of the resource, by default `'APPLICATION'`.
    """

    location: Annotated[str, msgspec.Meta(min_length=1)]
    size: Annotated[int, msgspec.Meta(ge=0)]
    timestamp: Annotated[int, msgspec.Meta(ge=0)]
    type: Literal["ARCHIVE", "FILE", "PATTERN"] = "FILE"
    visibility: Literal["PUBLIC", "PRIVATE", "APPLICATION"] = "APPLICATION"


class SubmissionParameters(msgspec.Struct, kw_only=True):
    """
    Parameters of a submission, collected by the `SubmissionHelper` setters.

    Every field has a default except `driver_host`, which has to be set before
    submitting.
    """

    application_name: str = DEFAULT_APPLICATION_NAME
    application_type: str = DEFAULT_APPLICATION_TYPE
    application_tags: list[str] = msgspec.field(default_factory=list)
    driver_memory: int = 512
    driver_host: str | None = None
    priority: int = 0
    queue: str = DEFAULT_QUEUE
    max_attempts: int = 1
    keep_containers: bool = False
    launcher: str | None = DEFAULT_LAUNCHER
    configuration_paths: list[str] = msgspec.field(
        default_factory=lambda: [DRIVER_CONFIGURATION_PATH]
    )
    stdout_path: str = DRIVER_STDOUT_PATH
    stderr_path: str = DRIVER_STDERR_PATH
    command_prefix: list[str] = msgspec.field(default_factory=list)
    local_resources: dict[str, LocalResource] = msgspec.field(default_factory=dict)
    environment: dict[str, str] = msgspec.field(default_factory=dict)


class ResourceRequest(msgspec.Struct, frozen=True, kw_only=True):
    """
    The container request of the Application Master.

    Parameters
    ----------
    resource_name : str
        The host the driver should run on, or `'*'` for any host.
    memory : int
        Memory in MB, already capped to the cluster maximum.
    vcores : int
        Virtual cores, by default `1`.
    num_containers : int
        Number of containers, by default `1`.
    relax_locality : bool
        Whether the container may be placed on another host than
        `resource_name`.
    """

    resource_name: str
    memory: Annotated[int, msgspec.Meta(ge=1)]
    vcores: Annotated[int, msgspec.Meta(ge=1)] = 1
    num_containers: Annotated[int, msgspec.Meta(ge=1)] = 1
    relax_locality: bool = True


class LaunchSpec(msgspec.Struct, frozen=True, kw_only=True):
    """
    The driver launch specification handed to the ResourceManager.

    Parameters
    ----------
    command : tuple[str, ...]
        The ordered command tokens.
    local_resources : dict[str, LocalResource]
        The files to localize, keyed by their name in the container.
    environment : dict[str, str]
        Environment variables of the driver container.
    tokens : dict[str, str]
        Credentials handed to the driver container, keyed by service.
    """

    command: tuple[str, ...]
    local_resources: dict[str, LocalResource] = msgspec.field(default_factory=dict)
    environment: dict[str, str] = msgspec.field(default_factory=dict)
    tokens: dict[str, str] = msgspec.field(default_factory=dict)


class AttemptPolicy(msgspec.Struct, frozen=True):
    """
    The resolved application attempt settings.

    Parameters
    ----------
    max_attempts : int
        The maximum number of application attempts.
    keep_containers : bool
        Whether containers are kept across application attempts.
    """

    max_attempts: Annotated[int, msgspec.Meta(ge=1)] = 1
    keep_containers: bool = False


class SecurityCredential(msgspec.Struct, frozen=True, kw_only=True):
    """
    A renewable ResourceManager delegation token.

    Parameters
    ----------
    token : str
        The URL-safe encoded token.
    kind : str
        The token kind, by default `'RM_DELEGATION_TOKEN'`.
    service : str
        The service the token is valid for.
    renewer : str, optional
        The user allowed to renew the token.
    owner : str, optional
        The owner of the token.
    expiration : int, optional
        The expiration time in ms since epoch.
    """

    token: Annotated[str, msgspec.Meta(min_length=1)]
    kind: str = "RM_DELEGATION_TOKEN"
    service: str = ""
    renewer: str | None = None
    owner: str | None = None
    expiration: int | None = None

    def serialize(self) -> bytes:
        """Serialize the credential for other token consumers."""
        return msgspec.json.encode(self)

    @classmethod
    def deserialize(cls, data: bytes) -> SecurityCredential:
        """Restore a credential serialized with `serialize`."""
        return msgspec.json.decode(data, type=cls)
