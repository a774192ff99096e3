#!/usr/bin/env python3
"""
submission/launch.py
====================

Builder for the command launching the driver JVM inside the Application
Master container.

The command is an ordered list of tokens:

    *prefix, <java>, [-ea], -Xmx<memory>m, [*jvm_options], -classpath <classpath>,
    <launcher>, *configuration_paths, 1><stdout>, 2><stderr>

Example
-------

```python
from resubmit.submission.launch import LaunchCommandBuilder

command = (
    LaunchCommandBuilder()
    .with_launcher("org.apache.reef.runtime.common.REEFLauncher")
    .with_configuration_paths(["local/driver.conf"])
    .with_classpath("{{PWD}}<CPS>{{PWD}}/local/*")
    .with_memory(1024)
    .with_stdout_path("<LOG_DIR>/driver.stdout")
    .with_stderr_path("<LOG_DIR>/driver.stderr")
    .build()
)
```
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

from collections.abc import Iterable

from ..common.exceptions import ConfigurationError
from ..common.utils import as_iterable
from . import DEFAULT_CLASSPATH, DEFAULT_JAVA_PATH


class LaunchCommandBuilder:
    """
    Assembles the driver launch command.

    All `with_*` methods return the builder. `build` can be called any number of
    times and always returns a new list.
    """

    def __init__(self):
        self._prefix: list[str] = []
        self._java_path = DEFAULT_JAVA_PATH
        self._assertions = False
        self._memory: int | None = None
        self._jvm_options: list[str] = []
        self._classpath = DEFAULT_CLASSPATH
        self._launcher: str | None = None
        self._configuration_paths: list[str] = []
        self._stdout_path: str | None = None
        self._stderr_path: str | None = None

    def with_command_prefix(self, prefix: Iterable[str] | str | None) -> LaunchCommandBuilder:
        """Tokens placed before the java invocation, e.g. a wrapper script."""
        self._prefix = [str(token) for token in as_iterable(prefix)]
        return self

    def with_java_path(self, java_path: str) -> LaunchCommandBuilder:
        self._java_path = java_path or DEFAULT_JAVA_PATH
        return self

    def with_assertions(self, enabled: bool = True) -> LaunchCommandBuilder:
        self._assertions = enabled
        return self

    def with_memory(self, memory: int | None) -> LaunchCommandBuilder:
        """
        The maximum heap size of the driver JVM.

        Parameters
        ----------
        memory : int, optional
            Heap size in MB, `None` to leave the JVM default.

        Raises
        ------
        ConfigurationError
            If `memory` isn't positive.
        """
        if memory is not None and memory <= 0:
            raise ConfigurationError(f"Driver memory must be positive, got {memory} MB")
        self._memory = memory
        return self

    def with_jvm_options(self, options: Iterable[str] | str | None) -> LaunchCommandBuilder:
        self._jvm_options = [str(option) for option in as_iterable(options)]
        return self

    def with_classpath(self, classpath: str) -> LaunchCommandBuilder:
        self._classpath = classpath or DEFAULT_CLASSPATH
        return self

    def with_launcher(self, launcher: str | None) -> LaunchCommandBuilder:
        self._launcher = launcher
        return self

    def with_configuration_paths(self, paths: Iterable[str] | str | None) -> LaunchCommandBuilder:
        self._configuration_paths = [str(path) for path in as_iterable(paths)]
        return self

    def with_stdout_path(self, path: str | None) -> LaunchCommandBuilder:
        self._stdout_path = path
        return self

    def with_stderr_path(self, path: str | None) -> LaunchCommandBuilder:
        self._stderr_path = path
        return self

    def build(self) -> list[str]:
        """
        Build the launch command.

        Returns
        -------
        list[str]
            The ordered command tokens.

        Raises
        ------
        ConfigurationError
            If no launcher entry point is set.
        """
        if not self._launcher:
            raise ConfigurationError("No launcher entry point set for the driver command")

        command = [*self._prefix, self._java_path]
        if self._assertions:
            command.append("-ea")
        if self._memory is not None:
            command.append(f"-Xmx{self._memory}m")
        command.extend(self._jvm_options)
        command.extend(("-classpath", self._classpath))
        command.append(self._launcher)
        command.extend(self._configuration_paths)
        if self._stdout_path:
            command.append(f"1>{self._stdout_path}")
        if self._stderr_path:
            command.append(f"2>{self._stderr_path}")

        return command
