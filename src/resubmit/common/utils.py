#!/usr/bin/env python3
"""
common/utils.py
===============

Implements utiliy functions
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

# imports
from collections.abc import Iterable
from typing import Any


def as_iterable(obj: Any | list[Any], type_: type | None = None) -> Iterable:
    """Helper function ensuring the given `obj` is returned as iterable.

    Strings are not treated as iterables but wrapped into a list, `None`
    becomes an empty list.

    Parameters
    ----------
    obj : Union[Any, List[Any]]
        The object to ensure to be iterable.
    type_ : type, optional
        The type to convert the iterable to, by default `None`

    Returns
    -------
    Iterable
        Iterable object.
    """
    if obj is None:
        iterable = []
    elif isinstance(obj, str | bytes):
        iterable = [obj]
    else:
        try:
            iter(obj)
            iterable = obj
        except TypeError:
            iterable = [obj]

    return type_(iterable) if type_ is not None else iterable


def join_command(command: Iterable[str]) -> str:
    """Join command tokens into the single command line YARN executes."""
    return " ".join(str(token) for token in command if str(token))
