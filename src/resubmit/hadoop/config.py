#!/usr/bin/env python3
"""
hadoop/config.py
================

This module implements the parts of the Hadoop core and YARN config handling
needed to locate and talk to the ResourceManager. It parses the Hadoop
`*-site.xml` configuration files and represents them as a `HadoopConfig`
object.

Parsed files are cached; a file is parsed again once its modification time
changes.

Example
-------

```python
from resubmit.hadoop.config import HadoopConfig

config = HadoopConfig('/path/to/hadoop/config/files')

# ResourceManager web service address(es), HA aware
config.resource_manager_addresses
```

If no path is given, the `HADOOP_CONF_DIR` or `YARN_CONF_DIR` environment
variables are used, falling back to `/etc/hadoop/conf`.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

# imports
import os
import pathlib
import re
import xml.etree.ElementTree as ET
from functools import lru_cache

# module imports
from .. import PathType, logger
from ..common.exceptions import ConfigurationError

_DEFAULT_CONFIG_DIR = "/etc/hadoop/conf"
_INTERPOLATION = re.compile(r"\$\{(.*?)\}")


@lru_cache(maxsize=32)
def _parse_cached(config: str, mtime: float) -> dict[str, str]:
    tree = ET.parse(config)
    properties = [{el.tag: el.text for el in p} for p in tree.getroot().findall("./property")]
    return {prop["name"]: prop.get("value") for prop in properties if "name" in prop}


def _parse_hadoop_config(config: PathType) -> dict[str, str]:
    """
    Parse a Hadoop configuration file and return a dictionary of configuration
    properties.

    Parameters
    ----------
    config : PathType
        The path to the Hadoop configuration file (e.g. `yarn-site.xml`).

    Returns
    -------
    dict[str, str]
        A dictionary where the keys are the names of the properties and the
        values are the corresponding property values.
    """
    _path = pathlib.Path(config)
    # the modification time is part of the cache key, so changed files are
    # parsed again
    return _parse_cached(str(_path), _path.stat().st_mtime)


class HadoopConfig:
    """
    Read access to the Hadoop configuration files (`core-site.xml`,
    `yarn-site.xml`, ...) of a configuration directory.

    Parameters
    ----------
    config_path : PathType, optional
        The path to the Hadoop configuration directory or to one of its
        `*-site.xml` files. If not provided, the path is determined by the
        `HADOOP_CONF_DIR` or `YARN_CONF_DIR` environment variables and
        defaults to `"/etc/hadoop/conf"`.
    """

    def __init__(self, config_path: PathType | None = None):
        self._config_path = config_path

    def __repr__(self):
        return f"HadoopConfig<{self.config_dir}>"

    @property
    def config_dir(self) -> pathlib.Path:
        """The Hadoop configuration directory."""
        _path = pathlib.Path(
            self._config_path
            or os.getenv("HADOOP_CONF_DIR")
            or os.getenv("YARN_CONF_DIR")
            or _DEFAULT_CONFIG_DIR
        )
        return _path.parent if _path.name.endswith("-site.xml") else _path

    @property
    def available(self) -> bool:
        """`True` if the configuration directory contains any config files."""
        return self.config_dir.is_dir() and any(self.config_dir.glob("*-site.xml"))

    def get(self, key: str, default: str | None = None, _resolving: frozenset[str] = frozenset()) -> str | None:
        """
        Get the value of `key` from the Hadoop configuration files.

        Values referencing other keys (`${other.key}`) are interpolated.

        Parameters
        ----------
        key : str
            The name of the key to retrieve the value for.
        default : str, optional
            The value returned if the key isn't found, by default `None`.

        Returns
        -------
        str | None
            The value of the key.

        Raises
        ------
        ConfigurationError
            If there are no configuration files in the configuration directory,
            or a value references itself.
        """
        if key in _resolving:
            raise ConfigurationError(f"Hadoop configuration key '{key}' is part of an interpolation cycle")
        if not self.available:
            raise ConfigurationError(
                f"No config files found in the directory '{self.config_dir}'. "
                "You can specify the Hadoop configuration directory by setting "
                "the `HADOOP_CONF_DIR` or `YARN_CONF_DIR` environment variables."
            )

        _value = default
        for _conf_file in sorted(self.config_dir.glob("*-site.xml")):
            _properties = _parse_hadoop_config(_conf_file)
            if key in _properties:
                _value = _properties[key]
                logger.debug(f"Got key '{key}' with value '{_value}' from '{_conf_file}'")
                break

        # Note: hadoop config files can use value interpolation like,
        # <property>
        #     <name>yarn.resourcemanager.webapp.address</name>
        #     <value>${yarn.resourcemanager.hostname}:8088</value>
        # </property>
        if _value and "${" in _value:
            _resolving = _resolving | {key}
            _value = _INTERPOLATION.sub(lambda m: self.get(m.group(1), _resolving=_resolving) or "", _value)

        return _value

    @property
    def high_availability_enabled(self) -> bool:
        """`yarn.resourcemanager.ha.enabled`"""
        return self.get("yarn.resourcemanager.ha.enabled") in ("true", "1")

    @property
    def resource_manager_ids(self) -> list[str] | None:
        """The ResourceManager ids of an HA cluster (`yarn.resourcemanager.ha.rm-ids`)."""
        rm_ids = self.get("yarn.resourcemanager.ha.rm-ids")
        return [rm_id.strip() for rm_id in rm_ids.split(",")] if rm_ids else None

    @property
    def yarn_https_only(self) -> bool:
        """`True` if `yarn.http.policy` is `HTTPS_ONLY`."""
        return self.get("yarn.http.policy") == "HTTPS_ONLY"

    @property
    def resource_manager_addresses(self) -> list[str] | None:
        """
        The ResourceManager web service address(es), from
        `yarn.resourcemanager.webapp.https.address` or
        `yarn.resourcemanager.webapp.address`.
        """
        if self.yarn_https_only:
            _key, _scheme = "yarn.resourcemanager.webapp.https.address", "https"
        else:
            _key, _scheme = "yarn.resourcemanager.webapp.address", "http"

        # HA cluster, return all RM nodes
        if self.high_availability_enabled and self.resource_manager_ids:
            _addresses = [self.get(f"{_key}.{rm_id}") for rm_id in self.resource_manager_ids]
            return [f"{_scheme}://{_address}" for _address in _addresses if _address] or None

        if self.get(_key):
            return [f"{_scheme}://{self.get(_key)}"]

        if self.get("yarn.resourcemanager.hostname"):
            _port = 8090 if self.yarn_https_only else 8088
            return [f"{_scheme}://{self.get('yarn.resourcemanager.hostname')}:{_port}"]

        return None

    @property
    def is_kerberos_enabled(self) -> bool:
        """
        Checks if Kerberos authentication is enabled, either with the
        `HADOOP_AUTH` environment variable or the `hadoop.security.authentication`
        configuration key. Without configuration files it is disabled.
        """
        _auth = os.getenv("HADOOP_AUTH", "").lower()
        if _auth in ("kerberos", "simple"):
            return _auth == "kerberos"

        if not self.available:
            return False

        return (self.get("hadoop.security.authentication") or "simple").lower() == "kerberos"
