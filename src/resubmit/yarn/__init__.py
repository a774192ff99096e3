#!/usr/bin/env python3
"""
yarn
====

Submodule implementing the parts of the [YARN ResourceManager REST API][1]
used to submit applications, the message models exchanged with it and the
`ResourceNegotiator` facade the submission workflow talks to.

[1]: https://hadoop.apache.org/docs/stable/hadoop-yarn/hadoop-yarn-site/ResourceManagerRest.html
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"
