#!/usr/bin/env python3
"""
hadoop/version.py
=================

Hadoop version handling and the version gated YARN features.

Some submission features are only available starting with a certain Hadoop
release. Keeping containers alive across application attempts (so a restarted
Application Master can reconnect to its running containers) was added with
Hadoop 2.4.0 (YARN-1489).

Example
-------

```python
from resubmit.hadoop.version import HadoopVersion, supports_keep_containers

supports_keep_containers(HadoopVersion.parse("3.3.6"))  # True
supports_keep_containers(HadoopVersion.parse("2.2.0"))  # False
```
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

import re
from typing import NamedTuple

from ..common.exceptions import ConfigurationError

_VERSION_PATTERN = re.compile(r"^\s*v?(\d+)(?:\.(\d+))?(?:\.(\d+))?")


class HadoopVersion(NamedTuple):
    """A Hadoop release version, ordered by `(major, minor, patch)`."""

    major: int
    minor: int = 0
    patch: int = 0

    @classmethod
    def parse(cls, version: str | HadoopVersion) -> HadoopVersion:
        """
        Parse a version string as reported by the ResourceManager.

        Vendor and build suffixes are ignored, e.g. `"3.3.6-SNAPSHOT"` or
        `"3.1.1.7.1.7.0-551"` parse to `(3, 3, 6)` and `(3, 1, 1)`.

        Parameters
        ----------
        version : str | HadoopVersion
            The version to parse.

        Returns
        -------
        HadoopVersion
            The parsed version.

        Raises
        ------
        ConfigurationError
            If `version` doesn't start with a version number.
        """
        if isinstance(version, HadoopVersion):
            return version

        match = _VERSION_PATTERN.match(str(version))
        if match is None:
            raise ConfigurationError(f"Can't parse Hadoop version from '{version}'")

        return cls(*(int(part) for part in match.groups() if part is not None))

    def __str__(self):
        return ".".join(str(part) for part in self)


MIN_VERSION_KEEP_CONTAINERS_AVAILABLE = HadoopVersion(2, 4, 0)


def is_at_or_after(version: HadoopVersion | str, minimum: HadoopVersion | str) -> bool:
    """Whether `version` is the same as or later than `minimum`."""
    return HadoopVersion.parse(version) >= HadoopVersion.parse(minimum)


def supports_keep_containers(version: HadoopVersion | str) -> bool:
    """Whether YARN `version` can keep containers across application attempts."""
    return is_at_or_after(version, MIN_VERSION_KEEP_CONTAINERS_AVAILABLE)
