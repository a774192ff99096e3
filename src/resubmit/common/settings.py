#!/usr/bin/env python3
"""
common/settings.py
==================

This module provides the `Settings` class holding the connection settings used
to talk to the YARN ResourceManager.

Settings are merged from several sources, lowest precedence first:

1. the defaults of the `Settings` fields,
2. the YAML settings file `submit.yaml` in the configuration directory
   (`./.resubmit` or `~/.resubmit`),
3. `.env` files in the configuration directory and the working directory, loaded
   into the environment without overriding variables already set,
4. `RESUBMIT_*` environment variables, e.g. `RESUBMIT_RM_ADDRESS` or
   `RESUBMIT_AUTH`,
5. keyword arguments passed to `Settings.load`.

Example
-------

```python
from resubmit import Settings

settings = Settings.load(auth="kerberos")
settings.write()  # persist to ~/.resubmit/submit.yaml
```
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

import os
import pathlib
from typing import Any, Literal

import msgspec
from dotenv import dotenv_values

from .. import CONFIG_DIR, LIBRARY_NAME, PathType, logger
from .exceptions import ConfigurationError
from .logging import get_logger

SETTINGS_FILE = CONFIG_DIR / "submit.yaml"
"""The default settings file."""
_ENV_FILE = CONFIG_DIR / ".env"
_ENV_PREFIX = "RESUBMIT_"


class Settings(msgspec.Struct, kw_only=True, omit_defaults=True):
    """
    Connection settings for the YARN ResourceManager.

    Attributes
    ----------
    rm_address : str, optional
        The ResourceManager web address, e.g. `'http://rm.example.com:8088'`.
        If not set, the address is taken from the Hadoop configuration.
    auth : Literal['simple', 'kerberos'], optional
        The authentication method. If not set, `'kerberos'` is used when the
        Hadoop configuration enables it, `'simple'` otherwise.
    user : str, optional
        The user name used for simple authentication.
    timeout : int
        HTTP timeout in seconds, by default `90`.
    verify : bool | str
        Whether to verify the server's TLS certificate, or the path of a CA
        bundle, by default `True`.
    proxies : dict[str, str]
        Proxies used for the requests.
    renewer : str
        The renewer of requested delegation tokens, by default `'yarn'`.
    unmanaged : bool
        Whether drivers are submitted as unmanaged Application Masters, by
        default `False`.
    log_level : str, optional
        The log level of the `resubmit` logger.
    """

    rm_address: str | None = None
    auth: Literal["simple", "kerberos"] | None = None
    user: str | None = None
    timeout: int = 90
    verify: bool | str = True
    proxies: dict[str, str] = msgspec.field(default_factory=dict)
    renewer: str = "yarn"
    unmanaged: bool = False
    log_level: str | None = None

    @classmethod
    def load(cls, path: PathType | None = None, **overrides) -> Settings:
        """
        Load the settings, merging all settings sources.

        Parameters
        ----------
        path : PathType, optional
            The YAML settings file, by default `CONFIG_DIR / 'submit.yaml'`.
        **overrides
            Settings taking precedence over all other sources.

        Returns
        -------
        Settings
            The merged settings.

        Raises
        ------
        ConfigurationError
            If a settings source holds an invalid value.
        """
        merged = _read_settings_file(pathlib.Path(path or SETTINGS_FILE))

        load_env_vars()
        merged |= _read_environment()
        merged |= {k: v for k, v in overrides.items() if v is not None}

        logger.debug(f"Loaded settings: {merged}")
        try:
            settings = msgspec.convert(merged, cls, strict=False)
        except msgspec.ValidationError as e:
            raise ConfigurationError(f"Invalid settings: {e}") from e

        if settings.log_level:
            get_logger(LIBRARY_NAME, settings.log_level.upper())

        return settings

    def write(self, path: PathType | None = None) -> pathlib.Path:
        """
        Write the settings to a YAML file.

        Parameters
        ----------
        path : PathType, optional
            The YAML settings file, by default `CONFIG_DIR / 'submit.yaml'`.

        Returns
        -------
        pathlib.Path
            The written file.
        """
        path = pathlib.Path(path or SETTINGS_FILE)
        logger.debug(f"Writing settings to {path}")

        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("wb") as fil:
            fil.write(msgspec.yaml.encode(self))

        return path


def _read_settings_file(path: pathlib.Path) -> dict[str, Any]:
    try:
        with path.open("rb") as fil:
            settings = msgspec.yaml.decode(fil.read()) or {}
    except FileNotFoundError:
        logger.debug(f"No settings file at {path}")
        return {}
    except msgspec.DecodeError as e:
        raise ConfigurationError(f"Can't read settings file {path}: {e}") from e

    if not isinstance(settings, dict):
        raise ConfigurationError(f"Settings file {path} must hold a mapping")

    return settings


def _read_environment() -> dict[str, Any]:
    settings = {}
    for field in msgspec.structs.fields(Settings):
        value = os.getenv(f"{_ENV_PREFIX}{field.name.upper()}")
        if value is None or field.name == "proxies":
            continue
        if field.name == "verify":
            settings[field.name] = _parse_verify(value)
        else:
            settings[field.name] = value.lower() if field.name == "auth" else value

    return settings


def _parse_verify(value: str) -> bool | str:
    if value.strip().lower() in ("1", "true", "yes"):
        return True
    if value.strip().lower() in ("0", "false", "no"):
        return False
    return value


def load_env_vars():
    """
    Load the environment variables from the `.env` files in the configuration
    directory and the working directory.

    Variables already present in the environment are not overridden.
    """
    logger.debug("Loading environment variables from .env files...")
    _env_vars = dotenv_values(_ENV_FILE) | dotenv_values(pathlib.Path.cwd() / ".env")

    for k, v in _env_vars.items():
        if k in os.environ:
            continue
        if v is not None:
            os.environ[k] = v
