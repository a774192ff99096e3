#!/usr/bin/env python3
"""
submission
==========

Submodule implementing the driver submission workflow: the launch command
builder, the security token manager and the `SubmissionHelper` orchestrating
a single submission.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

LOG_DIR_EXPANSION_VAR = "<LOG_DIR>"
"""Expanded by the NodeManager to the container log directory."""
CLASSPATH_SEPARATOR = "<CPS>"
"""Expanded by the NodeManager to the platform classpath separator."""

DEFAULT_APPLICATION_NAME = "resubmit-driver"
DEFAULT_APPLICATION_TYPE = "RESUBMIT"
DEFAULT_QUEUE = "default"
DEFAULT_LAUNCHER = "org.apache.reef.runtime.common.REEFLauncher"
DEFAULT_JAVA_PATH = "{{JAVA_HOME}}/bin/java"
DEFAULT_CLASSPATH = CLASSPATH_SEPARATOR.join(
    ("{{PWD}}", "{{PWD}}/local/*", "{{PWD}}/global/*", "$HADOOP_CONF_DIR")
)

DRIVER_CONFIGURATION_PATH = "local/driver.conf"
DRIVER_STDOUT_PATH = f"{LOG_DIR_EXPANSION_VAR}/driver.stdout"
DRIVER_STDERR_PATH = f"{LOG_DIR_EXPANSION_VAR}/driver.stderr"

PROXY_USER = "resubmit-proxy"
"""The identity credentials of unmanaged drivers are stored under."""
