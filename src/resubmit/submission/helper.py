#!/usr/bin/env python3
"""
submission/helper.py
====================

This module implements the `SubmissionHelper`, which submits a driver process
as Application Master to YARN.

Creating the helper reserves an application id and reads the maximum container
capability from the ResourceManager. The submission parameters are then set
with fluent setters, and a single call to `submit` resolves them into a
resource request, a launch specification and an attempt policy and hands the
application to the ResourceManager.

Two adjustments are made silently apart from a warning:

- a driver memory above the cluster maximum is capped to the maximum
  (`MemoryCappedWarning`),
- keeping containers across application attempts is disabled if the cluster
  doesn't support it (`KeepContainersUnsupportedWarning`). If it is kept but
  only a single attempt is allowed, a `KeepContainersNoOpWarning` is issued.

Example
-------

```python
from resubmit import Settings, SubmissionHelper
from resubmit.yarn.models.records import LocalResource

with SubmissionHelper.from_settings(Settings.load(), classpath="{{PWD}}<CPS>{{PWD}}/local/*") as helper:
    report = (
        helper.set_application_name("my-driver")
        .set_driver_node("*")
        .set_driver_memory(2048)
        .add_local_resource(
            "local", LocalResource(location="hdfs:///apps/driver.zip", size=1024, timestamp=0, type="ARCHIVE")
        )
        .set_max_application_attempts(2)
        .set_preserve_evaluators(True)
        .submit()
    )
```
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

import contextlib
import warnings
from collections.abc import Iterable, Iterator, Mapping
from typing import TYPE_CHECKING

import msgspec
from skein.objects import Enum

from .. import logger
from ..common.exceptions import (
    ConfigurationError,
    KeepContainersNoOpWarning,
    KeepContainersUnsupportedWarning,
    MemoryCappedWarning,
    SubmissionError,
    SubmissionWarning,
)
from ..common.utils import as_iterable, join_command
from ..hadoop.version import MIN_VERSION_KEEP_CONTAINERS_AVAILABLE, supports_keep_containers
from ..yarn.models.records import (
    ANY_HOST,
    ApplicationHandle,
    AttemptPolicy,
    LaunchSpec,
    LocalResource,
    ResourceCeiling,
    ResourceRequest,
    SecurityCredential,
    SubmissionParameters,
)
from ..yarn.negotiator import ResourceNegotiator, RestResourceNegotiator
from . import DEFAULT_CLASSPATH
from .launch import LaunchCommandBuilder
from .security import CredentialSink, SecurityTokenManager

if TYPE_CHECKING:
    from ..common.settings import Settings


class SubmissionState(Enum):
    """Lifecycle state of a `SubmissionHelper`

    Attributes
    ----------
    CONFIGURING : SubmissionState
        Parameters can be set, the application wasn't submitted yet.
    SUBMITTED : SubmissionState
        The application was submitted.
    CLOSED : SubmissionState
        The session to the ResourceManager is closed.
    """

    _values = ("CONFIGURING", "SUBMITTED", "CLOSED")


class SubmissionReport(msgspec.Struct, frozen=True, kw_only=True):
    """
    What was submitted.

    Attributes
    ----------
    handle : ApplicationHandle
        The application id.
    request : ResourceRequest
        The Application Master container request, with the memory capped.
    spec : LaunchSpec
        The driver launch specification.
    policy : AttemptPolicy
        The attempt policy after gating on the cluster version.
    credential : SecurityCredential, optional
        The credential of an unmanaged driver.
    """

    handle: ApplicationHandle
    request: ResourceRequest
    spec: LaunchSpec
    policy: AttemptPolicy
    credential: SecurityCredential | None = None


class SubmissionHelper:
    """
    Submits a single driver application to YARN.

    Parameters
    ----------
    negotiator : ResourceNegotiator
        The negotiator talking to the ResourceManager. The helper owns it and
        closes it with `close`.
    classpath : str, optional
        The classpath of the driver JVM.
    unmanaged : bool, optional
        Submit the driver as an unmanaged Application Master, by default
        `False`.
    command_prefix : Iterable[str], optional
        Tokens placed before the java invocation of the launch command.
    token_manager : SecurityTokenManager, optional
        Obtains and records the credential of an unmanaged driver.
    token_sink : CredentialSink, optional
        Receives the token of an unmanaged driver credential. Tokens it
        already holds are handed to the driver container.

    Raises
    ------
    CommunicationError
        If the ResourceManager can't be reached.
    RejectedError
        If the ResourceManager declines to create an application.
    """

    def __init__(  # noqa: PLR0913
        self,
        negotiator: ResourceNegotiator,
        classpath: str = DEFAULT_CLASSPATH,
        unmanaged: bool = False,
        command_prefix: Iterable[str] | None = None,
        token_manager: SecurityTokenManager | None = None,
        token_sink: CredentialSink | None = None,
    ):
        self._negotiator = negotiator
        self._classpath = classpath
        self._unmanaged = unmanaged
        self._token_manager = token_manager or SecurityTokenManager()
        self._token_sink = token_sink if token_sink is not None else CredentialSink()
        self._parameters = SubmissionParameters(command_prefix=as_iterable(command_prefix, list))
        self._state = SubmissionState.CONFIGURING

        logger.debug("Requesting application id from YARN")
        try:
            self._handle, self._ceiling = negotiator.create_application()
        except BaseException:
            negotiator.close()
            raise
        logger.info(f"YARN application id: {self._handle}")

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> SubmissionHelper:
        """
        Create a helper talking to the ResourceManager configured in `settings`.

        Parameters
        ----------
        settings : Settings
            The connection settings, `settings.unmanaged` sets the submission
            mode.
        **kwargs
            Additional keyword arguments passed to `SubmissionHelper`.

        Returns
        -------
        SubmissionHelper
            The helper.
        """
        kwargs.setdefault("unmanaged", settings.unmanaged)
        return cls(RestResourceNegotiator.from_settings(settings), **kwargs)

    def __repr__(self):
        return f"SubmissionHelper<{self._handle}, {self._state}>"

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    @property
    def state(self) -> SubmissionState:
        return self._state

    @property
    def handle(self) -> ApplicationHandle:
        return self._handle

    @property
    def ceiling(self) -> ResourceCeiling:
        return self._ceiling

    @property
    def application_id(self) -> int:
        """The sequence number of the application id assigned by YARN."""
        return self._handle.sequence

    @property
    def application_id_string(self) -> str:
        """The application id assigned by YARN, e.g. `'application_1700000000000_0042'`."""
        return str(self._handle)

    @property
    def parameters(self) -> SubmissionParameters:
        """A shallow copy of the current submission parameters."""
        return msgspec.structs.replace(self._parameters)

    @property
    def unmanaged(self) -> bool:
        return self._unmanaged

    # setters

    def _check_configuring(self):
        if self._state != SubmissionState.CONFIGURING:
            raise ConfigurationError(
                f"Can't change the parameters of application '{self._handle}' in state {self._state}",
                application_id=str(self._handle),
            )

    def _set(self, **kwargs) -> SubmissionHelper:
        self._check_configuring()
        for name, value in kwargs.items():
            setattr(self._parameters, name, value)
        return self

    def _invalid(self, message: str) -> ConfigurationError:
        return ConfigurationError(message, application_id=str(self._handle))

    def set_application_name(self, name: str) -> SubmissionHelper:
        if not name:
            raise self._invalid("The application name must not be empty")
        return self._set(application_name=name)

    def set_driver_memory(self, megabytes: int) -> SubmissionHelper:
        """
        Set the memory of the driver in MB.

        A request above the cluster maximum is capped when submitting.
        """
        if isinstance(megabytes, bool) or not isinstance(megabytes, int) or megabytes <= 0:
            raise self._invalid(f"Driver memory must be a positive number of MB, got {megabytes!r}")
        return self._set(driver_memory=megabytes)

    def set_driver_node(self, host: str) -> SubmissionHelper:
        """Set the host the driver runs on, `'*'` for any host."""
        if not host:
            raise self._invalid("The driver host must not be empty, use '*' for any host")
        return self._set(driver_host=host)

    def add_local_resource(self, name: str, resource: LocalResource) -> SubmissionHelper:
        """Add a file to be localized alongside the driver under `name`."""
        if not name:
            raise self._invalid("The local resource name must not be empty")
        if not isinstance(resource, LocalResource):
            raise self._invalid(f"Expected a LocalResource for '{name}', got {type(resource).__name__}")

        self._check_configuring()
        self._parameters.local_resources[name] = resource
        return self

    def set_priority(self, priority: int) -> SubmissionHelper:
        if isinstance(priority, bool) or not isinstance(priority, int) or priority < 0:
            raise self._invalid(f"The priority must be a non-negative integer, got {priority!r}")
        return self._set(priority=priority)

    def set_preserve_evaluators(self, preserve: bool) -> SubmissionHelper:
        """Set whether containers are kept when the driver is restarted."""
        return self._set(keep_containers=bool(preserve))

    def set_max_application_attempts(self, attempts: int) -> SubmissionHelper:
        if isinstance(attempts, bool) or not isinstance(attempts, int) or attempts < 1:
            raise self._invalid(f"The application attempts must be at least 1, got {attempts!r}")
        return self._set(max_attempts=attempts)

    def set_queue(self, queue: str) -> SubmissionHelper:
        if not queue:
            raise self._invalid("The queue name must not be empty")
        return self._set(queue=queue)

    def set_launcher(self, launcher: str) -> SubmissionHelper:
        """Set the fully qualified entry point class of the driver."""
        if not launcher:
            raise self._invalid("The launcher must not be empty")
        return self._set(launcher=launcher)

    def set_configuration_file_paths(self, paths: Iterable[str] | str) -> SubmissionHelper:
        """Set the configuration files passed to the launcher."""
        return self._set(configuration_paths=[str(path) for path in as_iterable(paths)])

    def set_driver_stdout_path(self, path: str) -> SubmissionHelper:
        return self._set(stdout_path=path)

    def set_driver_stderr_path(self, path: str) -> SubmissionHelper:
        return self._set(stderr_path=path)

    def set_application_type(self, application_type: str) -> SubmissionHelper:
        if not application_type:
            raise self._invalid("The application type must not be empty")
        return self._set(application_type=application_type)

    def add_application_tags(self, *tags: str) -> SubmissionHelper:
        self._check_configuring()
        for tag in tags:
            if tag and tag not in self._parameters.application_tags:
                self._parameters.application_tags.append(tag)
        return self

    def set_environment(self, environment: Mapping[str, str] | None = None, **kwargs: str) -> SubmissionHelper:
        """Add environment variables of the driver container."""
        self._check_configuring()
        self._parameters.environment.update({str(k): str(v) for k, v in {**(environment or {}), **kwargs}.items()})
        return self

    # submission

    @contextlib.contextmanager
    def _step(self, name: str) -> Iterator[None]:
        logger.debug(f"Submission step '{name}' of application '{self._handle}'")
        try:
            yield
        except Exception as e:
            if isinstance(e, SubmissionError):
                e.application_id = e.application_id or str(self._handle)
                e.step = e.step or name
            e.add_note(f"Submission step '{name}' of application '{self._handle}' failed")
            raise

    def _warn(self, category: type[SubmissionWarning], message: str):
        logger.warning(message)
        warnings.warn(message, category, stacklevel=3)

    def _resource_request(self) -> ResourceRequest:
        requested = self._parameters.driver_memory
        memory = min(requested, self._ceiling.memory)
        if memory < requested:
            self._warn(
                MemoryCappedWarning,
                f"Requested {requested}MB of memory for the driver. The max on this YARN "
                f"installation is {self._ceiling.memory}. Using {self._ceiling.memory} as the "
                "memory for the driver.",
            )

        host = self._parameters.driver_host
        return ResourceRequest(
            resource_name=host,
            memory=memory,
            vcores=1,
            num_containers=1,
            relax_locality=host == ANY_HOST,
        )

    def _launch_spec(self, request: ResourceRequest) -> LaunchSpec:
        command = (
            LaunchCommandBuilder()
            .with_command_prefix(self._parameters.command_prefix)
            .with_launcher(self._parameters.launcher)
            .with_configuration_paths(self._parameters.configuration_paths)
            .with_classpath(self._classpath)
            .with_memory(request.memory)
            .with_stdout_path(self._parameters.stdout_path)
            .with_stderr_path(self._parameters.stderr_path)
            .build()
        )
        return LaunchSpec(
            command=tuple(command),
            local_resources=dict(self._parameters.local_resources),
            environment=dict(self._parameters.environment),
            tokens=self._token_sink.tokens,
        )

    def _attempt_policy(self) -> AttemptPolicy:
        max_attempts = self._parameters.max_attempts
        keep_containers = self._parameters.keep_containers

        if keep_containers:
            version = self._negotiator.cluster_version()
            if supports_keep_containers(version):
                logger.debug(
                    f"Hadoop version {version} is {MIN_VERSION_KEEP_CONTAINERS_AVAILABLE} or after, "
                    "containers are kept across application attempts"
                )
            else:
                self._warn(
                    KeepContainersUnsupportedWarning,
                    f"Hadoop version {version} does not yet support keeping containers across "
                    "application attempts. Driver restarts will not support recovering evaluators.",
                )
                keep_containers = False

        if keep_containers and max_attempts == 1:
            self._warn(
                KeepContainersNoOpWarning,
                "Application will not be restarted even though preserve evaluators is set to true "
                "since the max application attempts is 1. Proceeding to submit application...",
            )

        return AttemptPolicy(max_attempts=max_attempts, keep_containers=keep_containers)

    def submit(self) -> SubmissionReport:
        """
        Submit the application.

        Returns
        -------
        SubmissionReport
            The resolved resource request, launch specification, attempt policy
            and, for unmanaged drivers, the credential.

        Raises
        ------
        ConfigurationError
            If the driver host isn't set, a parameter is invalid or the
            application was already submitted or the helper is closed.
        CommunicationError
            If the ResourceManager can't be reached.
        RejectedError
            If the ResourceManager declines the submission.
        AuthError
            If the credential of an unmanaged driver can't be obtained.
        """
        with self._step("validate"):
            if self._state != SubmissionState.CONFIGURING:
                raise ConfigurationError(f"Application '{self._handle}' can't be submitted in state {self._state}")
            if not self._parameters.driver_host:
                raise ConfigurationError(
                    "No driver host set. Use `set_driver_node` with a host name or '*' for any host"
                )

        with self._step("resource-request"):
            request = self._resource_request()

        with self._step("launch-command"):
            spec = self._launch_spec(request)

        with self._step("attempt-policy"):
            policy = self._attempt_policy()

        with self._step("submit"):
            logger.info(f"Submitting application '{self._handle}' to YARN")
            logger.info(f"Driver command: {join_command(spec.command)}")
            self._negotiator.submit(
                self._handle,
                request,
                spec,
                policy,
                parameters=self.parameters,
                unmanaged=self._unmanaged,
            )

        credential = None
        if self._unmanaged:
            with self._step("credential"):
                credential = self._token_manager.issue(self._handle, self._negotiator)
                self._token_sink.add_credential(credential)

        self._state = SubmissionState.SUBMITTED
        return SubmissionReport(handle=self._handle, request=request, spec=spec, policy=policy, credential=credential)

    def close(self):
        """Close the session to the ResourceManager. Closing twice does nothing."""
        if self._state == SubmissionState.CLOSED:
            return

        logger.debug(f"Closing YARN application: {self._handle}")
        try:
            self._negotiator.close()
        finally:
            self._state = SubmissionState.CLOSED
