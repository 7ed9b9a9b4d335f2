"""Console formatting for the ``gamelink`` logger hierarchy.

Modules log through ``logging.getLogger(__name__)``. Nothing is attached at
import time; applications call ``configure`` once to get colored,
location-tagged output on stderr.

The session attaches structured fields to its records with
``extra={"fields": {...}}``; they are rendered after the message as
``key=value`` pairs::

    12:30:45.123 [WARN] gamelink.session:_handle_datagram:88 Unknown packet type 250 conn=3f2a9c1e tag=250 size=31
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from enum import IntEnum
from typing import Any, Protocol

# Connection ids are UUIDs; the first block is enough to tell sessions apart.
_SHORT_ID_FIELDS = frozenset({"conn"})


class Level(IntEnum):
    """Levels exposed to users, valued as their ``logging`` counterparts."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARN = logging.WARNING
    ERROR = logging.ERROR
    OFF = logging.CRITICAL + 1

    @classmethod
    def parse(cls, name: str) -> Level:
        try:
            return cls[name.upper()]
        except KeyError:
            raise ValueError(f"Unknown log level: {name!r}") from None

    @classmethod
    def of(cls, levelno: int) -> Level:
        """Bucket a ``logging`` level number; CRITICAL shows as ERROR."""
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARN
        if levelno >= logging.INFO:
            return cls.INFO
        return cls.DEBUG


# ANSI SGR parameters.
_DIM = "2"
_BOLD = "1"
_RED = "31"
_GREEN = "32"
_YELLOW = "33"
_BLUE = "34"
_MAGENTA = "35"
_CYAN = "36"

_LEVEL_STYLE: dict[Level, tuple[str, ...]] = {
    Level.DEBUG: (_MAGENTA,),
    Level.INFO: (_CYAN,),
    Level.WARN: (_YELLOW, _BOLD),
    Level.ERROR: (_RED, _BOLD),
}

_MESSAGE_STYLE: dict[Level, tuple[str, ...]] = {
    Level.WARN: (_YELLOW,),
    Level.ERROR: (_RED,),
}


class FormatterFn(Protocol):
    def __call__(
        self,
        *,
        time: datetime,
        level: Level,
        location: str,
        message: str,
        fields: dict[str, Any],
    ) -> str: ...


_use_colors: bool = sys.stderr.isatty()


def _paint(text: str, style: tuple[str, ...]) -> str:
    if not _use_colors or not style:
        return text
    return f"\033[{';'.join(style)}m{text}\033[0m"


def _level_tag(level: Level) -> str:
    return _paint(f"[{level.name}]", _LEVEL_STYLE.get(level, ()))


def _field_value(key: str, value: Any) -> str:
    if key in _SHORT_ID_FIELDS and isinstance(value, str):
        return value.split("-", 1)[0]
    if isinstance(value, str):
        return _paint(repr(value), (_GREEN,))
    return str(int(value) if isinstance(value, IntEnum) else value)


def _fields_suffix(fields: dict[str, Any]) -> str:
    return "".join(
        f" {_paint(key, (_DIM,))}={_field_value(key, value)}" for key, value in fields.items()
    )


class formatters:
    """Built-in formatters, selectable by name in ``gamelink.toml``."""

    @staticmethod
    def verbose(
        *,
        time: datetime,
        level: Level,
        location: str,
        message: str,
        fields: dict[str, Any],
    ) -> str:
        stamp = _paint(time.strftime("%H:%M:%S.%f")[:-3], (_DIM,))
        body = _paint(message, _MESSAGE_STYLE.get(level, ()))
        where = _paint(location, (_BLUE,))
        return f"{stamp} {_level_tag(level)} {where} {body}{_fields_suffix(fields)}"

    @staticmethod
    def compact(
        *,
        time: datetime,
        level: Level,
        location: str,
        message: str,
        fields: dict[str, Any],
    ) -> str:
        stamp = _paint(time.strftime("%H:%M:%S"), (_DIM,))
        return f"{stamp} {_level_tag(level)} {message}{_fields_suffix(fields)}"

    @staticmethod
    def minimal(
        *,
        time: datetime,
        level: Level,
        location: str,
        message: str,
        fields: dict[str, Any],
    ) -> str:
        return f"{_level_tag(level)} {message}"


_BY_NAME: dict[str, FormatterFn] = {
    "verbose": formatters.verbose,
    "compact": formatters.compact,
    "minimal": formatters.minimal,
}


def formatter_named(name: str) -> FormatterFn:
    try:
        return _BY_NAME[name]
    except KeyError:
        raise ValueError(f"Unknown log formatter: {name!r}") from None


_formatter: FormatterFn = formatters.verbose


class GamelinkFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        text = _formatter(
            time=datetime.fromtimestamp(record.created),
            level=Level.of(record.levelno),
            location=f"{record.name}:{record.funcName}:{record.lineno}",
            message=record.getMessage(),
            fields=getattr(record, "fields", {}),
        )
        if record.exc_info:
            text = f"{text}\n{self.formatException(record.exc_info)}"
        return text


_logger = logging.getLogger("gamelink")
_handler: logging.Handler | None = None


def set_level(level: Level) -> None:
    _logger.setLevel(int(level))


def set_formatter(fn: FormatterFn) -> None:
    global _formatter
    _formatter = fn


def set_colors(enabled: bool) -> None:
    global _use_colors
    _use_colors = enabled


def configure(
    level: Level = Level.INFO,
    formatter: FormatterFn | None = None,
    *,
    colors: bool | None = None,
) -> logging.Handler:
    """Attach the stderr handler to the ``gamelink`` logger (once)."""
    global _handler
    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(GamelinkFormatter())
        _logger.addHandler(_handler)
        _logger.propagate = False
    set_level(level)
    if formatter is not None:
        set_formatter(formatter)
    if colors is not None:
        set_colors(colors)
    return _handler
