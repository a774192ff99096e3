from __future__ import annotations

import logging

import pytest

from resubmit.common.auth import Authentication, HTTPSimpleAuth, make_auth_handler
from resubmit.common.logging import get_logger
from resubmit.common.utils import as_iterable, join_command


@pytest.mark.parametrize(
    "obj, expected",
    [(None, []), ("a b", ["a b"]), (b"x", [b"x"]), (["a", "b"], ["a", "b"]), (3, [3]), (("a",), ("a",))],
)
def test_as_iterable(obj, expected):
    assert as_iterable(obj) == expected


def test_join_command_skips_empty_tokens():
    assert join_command(["java", "", "-Xmx1m", "Main"]) == "java -Xmx1m Main"


def test_simple_auth_user_from_environment(monkeypatch):
    monkeypatch.setenv("RESUBMIT_USER_NAME", "alice")

    handler = make_auth_handler("simple")

    assert isinstance(handler, HTTPSimpleAuth)
    assert handler.username == "alice"


def test_authentication_values():
    assert Authentication("kerberos") == Authentication.KERBEROS
    with pytest.raises(ValueError):
        Authentication("token")


def test_file_logger(tmp_path):
    log_file = tmp_path / "submit.log"
    logger = get_logger("resubmit.tests", "DEBUG", log_file)

    logger.debug("submitted")
    for handler in logger.handlers:
        handler.flush()

    assert isinstance(logger.handlers[0], logging.FileHandler)
    assert "submitted" in log_file.read_text()


def test_logger_without_level_only_warns(monkeypatch):
    monkeypatch.delenv("RESUBMIT_LOG_LEVEL", raising=False)

    assert get_logger("resubmit.tests.quiet").level == logging.WARNING
