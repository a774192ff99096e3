#!/usr/bin/env python3
"""
common/logging.py
=================

Logging setup for resubmit. Console output is rendered with `rich`, file
output uses a plain `logging.FileHandler`.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"

import logging
import os
import pathlib
from typing import TYPE_CHECKING

from rich.console import Console, _is_jupyter
from rich.logging import LogRender, RichHandler
from rich.text import Text, TextType
from rich.theme import Theme

from .. import LIBRARY_NAME

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from rich._log_render import FormatTimeCallable
    from rich.console import ConsoleRenderable
    from rich.table import Table

_LOG_LEVEL_ENV = "RESUBMIT_LOG_LEVEL"
_FILE_FORMAT = "[%(levelname)s %(asctime)s %(name)s] : %(message)s"
_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_logging_theme = Theme(
    {
        "repr.str": "not bold not italic grey39",
        "repr.number": "#598A44",
        "repr.url": "not bold not italic underline #4585C9",
        "logging.level.debug": "not dim bold #598A44",
        "logging.level.info": "not dim #4585C9",
        "logging.level.warning": "not dim #FED00B",
        "logging.level.error": "not dim bold red3",
        "logging.level.critical": "not dim bright_white on red3",
        "traceback.border": "#4585C9",
        "traceback.exc_type": "bold red3",
    }
)


class _LogRender(LogRender):
    """Render a log record as `[LEVEL time] message path:line` table row."""

    def __call__(  # noqa: PLR0913
        self,
        console: Console,
        renderables: Iterable[ConsoleRenderable],
        log_time: datetime | None = None,
        time_format: str | FormatTimeCallable | None = None,
        level: TextType = "",
        path: str | None = None,
        line_no: int | None = None,
        link_path: str | None = None,
    ) -> Table:
        from rich.containers import Renderables
        from rich.table import Table

        style = _logging_theme.styles.get(f"logging.level.{str(level).strip().lower()}")

        output = Table.grid(padding=(0, 1), expand=True)
        output.add_column(style="log.level", width=self.level_width)
        output.add_column(style="log.time")
        output.add_column(ratio=1, style="log.message", overflow="fold")
        output.add_column(style="log.path")

        log_time = log_time or console.get_datetime()
        time_format = time_format or self.time_format
        if callable(time_format):
            time_text = time_format(log_time)
        else:
            time_text = Text(f"{log_time.strftime(time_format)}]", style=style)

        location = Text()
        if path:
            location.append(path, style=f"link file://{link_path}" if link_path else "")
            if line_no:
                location.append(f":{line_no}")

        output.add_row(
            Text("[", style=style) + level,
            time_text,
            Renderables(renderables),
            location,
        )
        return output


class _RichHandler(RichHandler):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._log_render = _LogRender(time_format=kwargs.get("log_time_format"))
        self.setFormatter(logging.Formatter("[bold]%(name)s[/] - %(message)s"))


def _make_handler(log: pathlib.Path | str | bool) -> logging.Handler:
    if isinstance(log, str | pathlib.Path):
        handler = logging.FileHandler(log)
        handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_TIME_FORMAT))
        return handler

    return _RichHandler(
        rich_tracebacks=True,
        console=Console(
            color_system="truecolor",
            theme=_logging_theme,
            width=150 if _is_jupyter() else None,
        ),
        log_time_format=_TIME_FORMAT,
        markup=True,
    )


def get_logger(
    name: str | None = None,
    log_level: str | int | None = None,
    log: pathlib.Path | str | bool | None = None,
) -> logging.Logger:
    """
    Get a logger with the given name.

    Parameters
    ----------
    name : str, optional
        The name of the logger, by default the library name.
    log_level : str | int, optional
        The log level of the logger. If not given, the value of the
        `RESUBMIT_LOG_LEVEL` environment variable is used.
    log : pathlib.Path | str | bool, optional
        Sets the logging behavior. Values may be a path for logs to be written
        to, `True` to log to the console, or `False` to only show warnings and
        errors. By default logging is enabled if a log level is set.

    Returns
    -------
    logging.Logger
        The logger with the given name.
    """
    log_level = log_level or os.getenv(_LOG_LEVEL_ENV)
    log = log if log is not None else log_level is not None

    _logger = logging.getLogger(name or LIBRARY_NAME)
    _logger.propagate = False

    wants_file = isinstance(log, str | pathlib.Path)
    has_file = any(isinstance(h, logging.FileHandler) for h in _logger.handlers)
    has_console = any(isinstance(h, _RichHandler) for h in _logger.handlers)

    # replace the handler if the requested target changed
    if (wants_file and not has_file) or (not wants_file and not has_console):
        for _handler in list(_logger.handlers):
            _logger.removeHandler(_handler)
            _handler.close()
        _logger.addHandler(_make_handler(log))

    _logger.setLevel((log_level or logging.INFO) if log else logging.WARNING)

    return _logger
