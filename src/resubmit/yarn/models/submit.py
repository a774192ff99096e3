#!/usr/bin/env python3
"""
yarn/models/submit.py
=====================

Implementation of YARN's `ApplicationSubmissionContext` message and its related
sub-messages used to submit an application via [YARN's ResourceManager
Applications API][1]. This context is used to provide the ResourceManager with
details about the application you're submitting.

The context is created from the submission records with
`ApplicationSubmissionContext.create`.

[1]: https://hadoop.apache.org/docs/stable/hadoop-yarn/hadoop-yarn-site/ResourceManagerRest.html#Cluster_Applications_API.28Submit_Application.29
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

from typing import TYPE_CHECKING, Annotated, Literal

import msgspec

from ...common.utils import join_command
from . import ResourceManagerMessage, _todash

if TYPE_CHECKING:
    from .records import (
        ApplicationHandle,
        AttemptPolicy,
        LaunchSpec,
        ResourceRequest,
        SubmissionParameters,
    )


class ResourceDetails(ResourceManagerMessage, rename=_todash):
    """
    The specification of a resource to be localized.

    Parameters
    ----------
    resource : str
        Location of the resource to be localized.
    type : Literal['ARCHIVE', 'FILE', 'PATTERN']
        Type of the resource.
    visibility : Literal['PUBLIC', 'PRIVATE', 'APPLICATION']
        Visibility of the resource to be localized.
    size : int
        Size of the resource to be localized.
    timestamp : int
        Timestamp of the resource to be localized.
    """

    resource: Annotated[str, msgspec.Meta(min_length=1)]
    type: Literal["ARCHIVE", "FILE", "PATTERN"]
    visibility: Literal["PUBLIC", "PRIVATE", "APPLICATION"]
    size: Annotated[int, msgspec.Meta(ge=0)]
    timestamp: Annotated[int, msgspec.Meta(ge=0)]


class KeyValue(ResourceManagerMessage):
    """A `key`/`value` entry as used by the YARN REST API for maps."""

    key: Annotated[str, msgspec.Meta(min_length=1)]
    value: ResourceDetails | str


class Entries(ResourceManagerMessage):
    """A map in YARN REST API notation, `{"entry": [{"key": ..., "value": ...}]}`."""

    entry: list[KeyValue] = msgspec.field(default_factory=list)

    @classmethod
    def create(cls, mapping: dict[str, ResourceDetails | str] | None) -> Entries | None:
        if not mapping:
            return None
        return cls(entry=[KeyValue(key=key, value=value) for key, value in mapping.items()])


class Commands(ResourceManagerMessage):
    """
    The command launching the Application Master container.

    Parameters
    ----------
    command : str
        The command line to execute.
    """

    command: Annotated[str, msgspec.Meta(min_length=1)]


class Credentials(ResourceManagerMessage):
    """
    The credentials handed to the Application Master.

    Parameters
    ----------
    tokens : Entries, optional
        Tokens keyed by their service.
    secrets : Entries, optional
        Base-64 encoded secrets keyed by an identifier.
    """

    tokens: Entries | None = None
    secrets: Entries | None = None


class AMContainer(ResourceManagerMessage, rename=_todash):
    """
    The container launch context for the application master.

    Parameters
    ----------
    commands : Commands
        The commands for launching your container.
    local_resources : Entries, optional
        Object describing the resources that need to be localized.
    environment : Entries, optional
        Environment variables for your containers.
    credentials : Credentials, optional
        The credentials required for your application to run.
    """

    commands: Commands
    local_resources: Entries | None = None
    environment: Entries | None = None
    credentials: Credentials | None = None

    @classmethod
    def from_launch_spec(cls, spec: LaunchSpec) -> AMContainer:
        return cls(
            commands=Commands(command=join_command(spec.command)),
            local_resources=Entries.create(
                {
                    name: ResourceDetails(
                        resource=resource.location,
                        type=resource.type,
                        visibility=resource.visibility,
                        size=resource.size,
                        timestamp=resource.timestamp,
                    )
                    for name, resource in spec.local_resources.items()
                }
            ),
            environment=Entries.create(dict(spec.environment)),
            credentials=Credentials(tokens=Entries.create(dict(spec.tokens))) if spec.tokens else None,
        )


class Resource(ResourceManagerMessage, omit_defaults=False):
    """
    The resources required by the Application Master container.

    Parameters
    ----------
    memory : int
        Memory in MB.
    vcores : int
        Virtual cores.
    """

    memory: Annotated[int, msgspec.Meta(ge=1)]
    vcores: Annotated[int, msgspec.Meta(ge=1)] = msgspec.field(default=1, name="vCores")


class AMResourceRequest(ResourceManagerMessage, rename=_todash, omit_defaults=False):
    """
    The placement request of the Application Master container.

    Parameters
    ----------
    resource_name : str
        The host to place the container on, `'*'` for any host.
    capability : Resource
        The container resources.
    num_containers : int
        The number of containers.
    relax_locality : bool
        Whether the container may be placed elsewhere than `resource_name`.
    """

    resource_name: str
    capability: Resource
    num_containers: Annotated[int, msgspec.Meta(ge=1)] = 1
    relax_locality: bool = True


class ApplicationTags(ResourceManagerMessage):
    """The application tags."""

    tag: list[str] = msgspec.field(default_factory=list)


class ApplicationSubmissionContext(
    ResourceManagerMessage, rename=_todash, kw_only=True, omit_defaults=False
):
    """
    The context for submitting a YARN application.

    Parameters
    ----------
    application_id : str
        The application id
    application_name : str
        The application name
    queue : str
        The name of the queue to which the application should be submitted
    priority : int
        The priority of the application
    am_container_spec : AMContainer
        The application master container launch context
    resource : Resource
        The resources the application master requires
    am_container_resource_request : AMResourceRequest
        Where the application master container should be placed
    max_app_attempts : int
        The max number of attempts for this application
    keep_containers_across_application_attempts : bool
        Whether containers survive a failed application attempt
    unmanaged_AM : bool
        Whether the application uses an unmanaged application master
    application_type : str
        The application type
    application_tags : ApplicationTags, optional
        The application tags
    """

    application_id: Annotated[str, msgspec.Meta(pattern=r"^application_\d+_\d+$")]
    application_name: Annotated[str, msgspec.Meta(min_length=1)]
    queue: Annotated[str, msgspec.Meta(min_length=1)]
    priority: Annotated[int, msgspec.Meta(ge=0)] = 0
    am_container_spec: AMContainer
    resource: Resource
    am_container_resource_request: AMResourceRequest | None = None
    max_app_attempts: Annotated[int, msgspec.Meta(ge=1)] = 1
    keep_containers_across_application_attempts: bool = False
    unmanaged_AM: bool = False
    application_type: Annotated[str, msgspec.Meta(min_length=1)] = "RESUBMIT"
    application_tags: ApplicationTags | None = None

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        handle: ApplicationHandle,
        request: ResourceRequest,
        spec: LaunchSpec,
        policy: AttemptPolicy,
        parameters: SubmissionParameters,
        unmanaged: bool = False,
    ) -> ApplicationSubmissionContext:
        """
        Create the submission context from the submission records.

        Parameters
        ----------
        handle : ApplicationHandle
            The application id.
        request : ResourceRequest
            The resolved Application Master container request.
        spec : LaunchSpec
            The driver launch specification.
        policy : AttemptPolicy
            The resolved attempt policy.
        parameters : SubmissionParameters
            Name, queue, priority, type and tags of the application.
        unmanaged : bool, optional
            Whether the driver runs as an unmanaged application master, by
            default `False`.

        Returns
        -------
        ApplicationSubmissionContext
            The context to post to the ResourceManager.
        """
        capability = Resource(memory=request.memory, vcores=request.vcores)
        return cls(
            application_id=str(handle),
            application_name=parameters.application_name,
            queue=parameters.queue,
            priority=parameters.priority,
            am_container_spec=AMContainer.from_launch_spec(spec),
            resource=capability,
            am_container_resource_request=AMResourceRequest(
                resource_name=request.resource_name,
                capability=capability,
                num_containers=request.num_containers,
                relax_locality=request.relax_locality,
            ),
            max_app_attempts=policy.max_attempts,
            keep_containers_across_application_attempts=policy.keep_containers,
            unmanaged_AM=unmanaged,
            application_type=parameters.application_type,
            application_tags=(
                ApplicationTags(tag=list(parameters.application_tags))
                if parameters.application_tags
                else None
            ),
        )
