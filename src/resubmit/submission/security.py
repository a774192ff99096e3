#!/usr/bin/env python3
"""
submission/security.py
======================

Credentials of unmanaged drivers.

An unmanaged Application Master runs outside of the cluster and needs a
credential to talk to the ResourceManager on its own behalf. After the
submission the `SecurityTokenManager` obtains the credential from the
`ResourceNegotiator`, records it in an explicit `TokenStore` under the proxy
identity and returns it. The token of the credential is then handed to a
`CredentialSink`, the component that signs later requests of the driver.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

import base64
from typing import TYPE_CHECKING

from .. import logger
from . import PROXY_USER

if TYPE_CHECKING:
    from ..yarn.models.records import ApplicationHandle, SecurityCredential
    from ..yarn.negotiator import ResourceNegotiator


class TokenStore:
    """Credentials recorded per identity."""

    def __init__(self):
        self._credentials: dict[str, list[SecurityCredential]] = {}

    def __repr__(self):
        return f"TokenStore<{list(self._credentials)}>"

    def __contains__(self, user: str) -> bool:
        return user in self._credentials

    def add(self, user: str, credential: SecurityCredential):
        self._credentials.setdefault(user, []).append(credential)

    def get(self, user: str) -> list[SecurityCredential]:
        """The credentials recorded for `user`, oldest first."""
        return list(self._credentials.get(user, []))

    def clear(self):
        self._credentials.clear()


class CredentialSink:
    """
    Default consumer of serialized credentials.

    Tokens added to the sink are handed to the driver container with the next
    submission, encoded URL-safe base64 as the ResourceManager expects.
    """

    def __init__(self):
        self._tokens: dict[str, str] = {}

    def __len__(self):
        return len(self._tokens)

    def _alias(self, alias: str | None) -> str:
        return alias or f"token-{len(self._tokens)}"

    def add_tokens(self, data: bytes, alias: str | None = None):
        """
        Add serialized tokens.

        Parameters
        ----------
        data : bytes
            The serialized tokens, not interpreted by the sink.
        alias : str, optional
            The key of the tokens, by default `'token-<n>'`.
        """
        alias = self._alias(alias)
        logger.debug(f"Adding {len(data)} bytes of tokens as '{alias}'")
        self._tokens[alias] = base64.urlsafe_b64encode(bytes(data)).decode()

    def add_credential(self, credential: SecurityCredential):
        """
        Add the token of a ResourceManager credential.

        The token is already URL-safe encoded and kept as is, under the
        service of the credential.
        """
        alias = self._alias(credential.service)
        logger.debug(f"Adding {credential.kind} as '{alias}'")
        self._tokens[alias] = credential.token

    @property
    def tokens(self) -> dict[str, str]:
        """The tokens keyed by alias, URL-safe base64 encoded."""
        return dict(self._tokens)


class SecurityTokenManager:
    """
    Obtains and records the credential of an unmanaged driver.

    Parameters
    ----------
    store : TokenStore, optional
        The store credentials are recorded in, by default a new one.
    proxy_user : str, optional
        The identity credentials are recorded under, by default
        `'resubmit-proxy'`.
    """

    def __init__(self, store: TokenStore | None = None, proxy_user: str = PROXY_USER):
        self.store = store if store is not None else TokenStore()
        self.proxy_user = proxy_user

    def issue(self, handle: ApplicationHandle, negotiator: ResourceNegotiator) -> SecurityCredential:
        """
        Obtain the credential of a submitted application.

        Parameters
        ----------
        handle : ApplicationHandle
            The submitted application.
        negotiator : ResourceNegotiator
            The negotiator the application was submitted with.

        Returns
        -------
        SecurityCredential
            The credential, also recorded in `store` under `proxy_user`.

        Raises
        ------
        AuthError
            If the resource manager declines to issue the credential.
        """
        credential = negotiator.obtain_credential(handle)
        self.store.add(self.proxy_user, credential)
        logger.debug(f"Recorded {credential.kind} of '{handle}' for '{self.proxy_user}'")

        return credential
