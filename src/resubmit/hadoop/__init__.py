#!/usr/bin/env python3
"""
hadoop
======

Submodule implementing the Hadoop configuration and version handling needed to
locate the YARN ResourceManager and to gate version dependent features.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"
