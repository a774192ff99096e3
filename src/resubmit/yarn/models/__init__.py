#!/usr/bin/env python3
"""
yarn/models
===========

This module contains the implementation of the yarn models used for handling
payload and response messages for the Hadoop `YARN` REST API, and the records
passed between the submission components.

The module provides a base class `ResourceManagerMessage` with methods to
decode messages, to convert them to a dictionary and to encode them. Derived
classes define the specific fields of the messages they handle.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

from typing import Any

import msgspec

from ...common.exceptions import CommunicationError


def _todash(name: str) -> str:
    """Rename snake case attribute names to '-'-seperated"""
    return name.replace("_", "-")


class ResourceManagerMessage(msgspec.Struct, omit_defaults=True, kw_only=True):
    """
    Base class for handling payload and response messages for the Hadoop `YARN`
    REST API.

    Methods
    -------
    decode(message: bytes | str) -> ResourceManagerMessage
        Decodes a message.
    to_dict()
        Converts the message to a dictionary.
    encode()
        Encodes the message to JSON.
    """

    @classmethod
    def decode(cls, message: bytes | str | dict[str, Any]):
        """
        Decode a message.

        Parameters
        ----------
        message : bytes | str | dict[str, Any]
            The message to decode, either raw JSON or already decoded.

        Returns
        -------
        ResourceManagerMessage
            The decoded message.

        Raises
        ------
        CommunicationError
            If the message doesn't match the expected model.
        """
        try:
            if isinstance(message, dict):
                return msgspec.convert(message, type=cls, strict=False)
            return msgspec.json.decode(message, type=cls, strict=False)
        except (msgspec.ValidationError, msgspec.DecodeError) as e:
            raise CommunicationError(f"Unexpected {cls.__name__} message: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the message to a dictionary.

        Unset values, `None` and empty containers are dropped.

        Returns
        -------
        dict
            The message as a dictionary.
        """

        def _is_valid_field(value):
            return not (
                isinstance(value, msgspec.UnsetType)
                or value is None
                or (isinstance(value, list | tuple | set | dict) and not value)
            )

        def _to_dict(obj):
            if isinstance(obj, dict):
                return {
                    _field: _to_dict(_value)
                    for _field, _value in obj.items()
                    if _is_valid_field(_value)
                }
            elif isinstance(obj, list | tuple | set):
                return type(obj)(_to_dict(_item) for _item in obj if _is_valid_field(_item))
            return obj

        return _to_dict(msgspec.to_builtins(self))

    def encode(self) -> bytes:
        """
        Serialize the message to bytes using JSON encoding.

        Returns
        -------
        bytes
            The serialized message.
        """
        return msgspec.json.encode(self.to_dict())
