from __future__ import annotations

import pytest

from resubmit.common.exceptions import ConfigurationError
from resubmit.hadoop.version import (
    MIN_VERSION_KEEP_CONTAINERS_AVAILABLE,
    HadoopVersion,
    is_at_or_after,
    supports_keep_containers,
)


@pytest.mark.parametrize(
    "version, expected",
    [
        ("2.7.3", HadoopVersion(2, 7, 3)),
        ("3.3.6-SNAPSHOT", HadoopVersion(3, 3, 6)),
        ("3.1.1.7.1.7.0-551", HadoopVersion(3, 1, 1)),
        ("v3.2", HadoopVersion(3, 2, 0)),
        ("3", HadoopVersion(3, 0, 0)),
        (" 2.4.0 ", HadoopVersion(2, 4, 0)),
    ],
)
def test_parse(version, expected):
    assert HadoopVersion.parse(version) == expected


@pytest.mark.parametrize("version", ["", "unknown", "-2.4.0", "hadoop-3.3.6"])
def test_parse_invalid(version):
    with pytest.raises(ConfigurationError):
        HadoopVersion.parse(version)


def test_str():
    assert str(HadoopVersion.parse("3.3.6-SNAPSHOT")) == "3.3.6"


@pytest.mark.parametrize(
    "version, supported",
    [
        ("2.2.0", False),
        ("2.3.9", False),
        ("2.4.0", True),
        ("2.10.2", True),
        ("3.3.6", True),
    ],
)
def test_supports_keep_containers(version, supported):
    assert supports_keep_containers(HadoopVersion.parse(version)) is supported
    assert supports_keep_containers(version) is supported


def test_is_at_or_after_is_a_total_order():
    assert is_at_or_after("2.4.0", MIN_VERSION_KEEP_CONTAINERS_AVAILABLE)
    assert is_at_or_after("2.10.0", "2.9.9")
    assert not is_at_or_after("1.99.99", "2.0.0")
