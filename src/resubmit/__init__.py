#!/usr/bin/env python3
"""
Resubmit
========

`Resubmit` submits a long-running driver process as an Application Master to
an Apache Hadoop cluster using the [YARN ResourceManager REST API][1].

Features:
---------
- **Single submission workflow**: The `SubmissionHelper` negotiates an
  application id and the maximum container capability with the
  ResourceManager, builds the driver launch command, resolves the attempt
  policy against the cluster version and submits the application.
- **Unmanaged Application Masters**: For drivers running outside of the
  cluster, a ResourceManager delegation token is requested after the
  submission and handed to the component signing requests on the driver's
  behalf.
- **No Java Requirement**: Only the driver itself runs on the JVM; the
  submission talks to the ResourceManager over HTTP(S) with `simple` or
  `kerberos` (SPNEGO) authentication.

Example
-------

```python
from resubmit import RestResourceNegotiator, Settings, SubmissionHelper

negotiator = RestResourceNegotiator.from_settings(Settings.load())

with SubmissionHelper(negotiator, classpath="{{PWD}}<CPS>lib/*") as helper:
    helper.set_application_name("my-driver").set_driver_node("*").set_driver_memory(2048)
    report = helper.submit()
```

[1]: https://hadoop.apache.org/docs/stable/hadoop-yarn/hadoop-yarn-site/ResourceManagerRest.html
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"


# version
try:
    from ._version import __version__, __version_tuple__, version
except ImportError:
    __version__ = version = "0.0.0"
    __version_tuple__ = (0, 0, 0)

import os
import pathlib

LIBRARY_NAME = __name__

# set up logging
from .common.logging import get_logger  # noqa: E402

logger = get_logger(__name__)

# type definitions
PathType = str | pathlib.Path

# specify the configuration directory
CONFIG_DIR = pathlib.Path(
    os.getenv("RESUBMIT_CONFIG_DIR")
    or (
        pathlib.Path.cwd() / ".resubmit"
        if (pathlib.Path.cwd() / ".resubmit").exists()
        else pathlib.Path("~/.resubmit").expanduser()
    )
)

# public api
from .common.exceptions import (  # noqa: E402, F401
    AuthError,
    CommunicationError,
    ConfigurationError,
    RejectedError,
    SubmissionError,
)
from .common.settings import Settings  # noqa: E402, F401
from .submission.helper import SubmissionHelper, SubmissionReport, SubmissionState  # noqa: E402, F401
from .yarn.negotiator import ResourceNegotiator, RestResourceNegotiator  # noqa: E402, F401
