#!/usr/bin/env python3
"""
common/auth.py
==============

Authentication handlers for requests to the YARN ResourceManager REST API.

`HTTPSimpleAuth` implements Hadoop's pseudo/simple authentication by attaching
the `user.name` query parameter to each request. The username can be given
directly or is read from the environment variables `'RESUBMIT_USER_NAME'`,
`'HADOOP_USER_NAME'`, `'USER'` or `'USERNAME'`.

Kerberos (SPNEGO) authentication is provided by `HTTPKerberosAuth` from the
`requests_kerberos` package.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

import getpass
import os

from requests import PreparedRequest, auth
from skein.objects import Enum

# import auth handlers
try:
    from requests_kerberos import OPTIONAL, HTTPKerberosAuth
except (ImportError, ModuleNotFoundError) as e:
    import inspect
    import sys

    msg = inspect.cleandoc(
        """
        Package 'requests-kerberos' missing. Install with `conda`:
        $ conda install -c conda-forge requests-kerberos

        or `pip`:
        $ pip install requests-kerberos
        """
    )

    raise type(e)(str(e) + "\n\n" + msg).with_traceback(sys.exc_info()[2]) from e

from .. import logger


def default_user() -> str:
    """The user name for simple authentication taken from the environment."""
    return (
        os.getenv("RESUBMIT_USER_NAME")
        or os.getenv("HADOOP_USER_NAME")
        or os.getenv("USER")
        or os.getenv("USERNAME")
        or getpass.getuser()
    )


class HTTPSimpleAuth(auth.AuthBase):
    """Attaches HTTP simple username Authentication to the given Request
    object.

    Parameters
    ----------
    username : str, optional
        User name to authenticate with. If not given the value of
        `'RESUBMIT_USER_NAME'` environment varibale or the current system
        user's username is used.
    """

    def __init__(self, username: str | None = None):
        self.username = username or default_user()
        logger.debug(f"Using simple HTTP authentication with username '{self.username}'")

    def __call__(self, request: PreparedRequest):
        request.prepare_url(request.url, {"user.name": self.username})
        return request


class Authentication(Enum):
    """Authentication method to use

    Attributes
    ----------
    SIMPLE : Authentication
        Simple authentication
    KERBEROS : Authentication
        Kerberos authentication
    """

    _values = ("SIMPLE", "KERBEROS")


def make_auth_handler(method: Authentication | str, user: str | None = None, **kwargs) -> auth.AuthBase:
    """Create the `requests` auth handler for the given authentication method.

    Parameters
    ----------
    method : Authentication | str
        `'simple'` or `'kerberos'`.
    user : str, optional
        The user name used for simple authentication.
    **kwargs
        Additional keyword arguments passed to `HTTPKerberosAuth`.

    Returns
    -------
    requests.auth.AuthBase
        The auth handler.
    """
    if Authentication(method) == Authentication.SIMPLE:
        return HTTPSimpleAuth(username=user)

    logger.debug("Kerberos authentication handler set up")
    return HTTPKerberosAuth(
        mutual_authentication=kwargs.pop("mutual_authentication", None) or OPTIONAL,
        sanitize_mutual_error_response=kwargs.pop("sanitize_mutual_error_response", False),
        **kwargs,
    )
