"""Configuration for the coloured terminal log handler."""

from __future__ import annotations

import enum
import logging
import os
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import IO, Any

COLOR = "_c"
"""Default attribute key that sets the colour of a whole line."""

DEFAULT_LEVEL_COLORS: dict[int, str] = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[37m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
}

COLOR_NAME_MAP: dict[str, str] = {
    "black": "\033[30m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "magenta": "\033[35m",
    "cyan": "\033[36m",
    "white": "\033[37m",
    "bright_black": "\033[90m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
    "bright_yellow": "\033[93m",
    "bright_blue": "\033[94m",
    "bright_magenta": "\033[95m",
    "bright_cyan": "\033[96m",
    "bright_white": "\033[97m",
    "bg_black": "\033[40m",
    "bg_red": "\033[41m",
    "bg_green": "\033[42m",
    "bg_yellow": "\033[43m",
    "bg_blue": "\033[44m",
    "bg_magenta": "\033[45m",
    "bg_cyan": "\033[46m",
    "bg_white": "\033[47m",
}


class HandlerType(enum.Enum):
    """Output format of the handler."""

    TEXT = "text"
    JSON = "json"


@dataclass
class ColorConfig:
    """Settings for colouring keys, values and whole lines.

    ``level_colors`` is None until level colours are configured.
    """

    enabled: bool = True
    dim_color: str = ""
    brighten_color: str = ""
    reset_color: str = ""
    key_colors: dict[str, str] = field(default_factory=dict)
    level_colors: dict[int, str] | None = None
    color_entire_line: bool = False
    color_attr_key: str = COLOR


def default_color_config() -> ColorConfig:
    """A fresh copy of the default colour settings."""
    return ColorConfig(
        enabled=True,
        dim_color="\033[2m",
        brighten_color="\033[22m",
        reset_color="\033[0m",
        color_attr_key=COLOR,
    )


def parse_color_value(value: str) -> str:
    """An escape sequence for a colour name or escape sequence, "" if unknown."""
    if value.startswith("\033["):
        return value
    return COLOR_NAME_MAP.get(value, "")


@dataclass
class Options:
    """Everything the handler is built from.

    ``writer`` is a text stream; ``timestamp_format`` is a strftime format.
    """

    handler_type: HandlerType = HandlerType.TEXT
    writer: Any = field(default_factory=lambda: sys.stdout)
    color_config: ColorConfig = field(default_factory=default_color_config)
    level: int = logging.INFO
    add_source: bool = False
    timestamp_format: str = ""
    remove_timestamp: bool = False


Option = Callable[[Options], None]


class _ForkedWriter:
    """Text stream that writes to a primary stream and to a log file."""

    def __init__(self, primary: Any, file: IO[str]) -> None:
        self.primary = primary
        self.file = file

    def write(self, text: str) -> int:
        self.primary.write(text)
        self.file.write(text)
        return len(text)

    def flush(self) -> None:
        flush = getattr(self.primary, "flush", None)
        if callable(flush):
            flush()
        self.file.flush()

    def close(self) -> None:
        """Close the log file; the primary stream is left open."""
        self.file.close()

    def __enter__(self) -> _ForkedWriter:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def _open_log(path: str | os.PathLike[str]) -> IO[str]:
    descriptor = os.open(path, os.O_APPEND | os.O_CREAT | os.O_WRONLY, 0o644)
    return os.fdopen(descriptor, "a", encoding="utf-8")


def with_handler_type(handler_type: HandlerType) -> Option:
    """Set the output format."""

    def apply(options: Options) -> None:
        options.handler_type = handler_type

    return apply


def with_writer(writer: Any) -> Option:
    """Set the output stream."""

    def apply(options: Options) -> None:
        options.writer = writer

    return apply


def with_forked_outfile(path: str | os.PathLike[str]) -> Option:
    """Write to the current stream and also append to the file at path.

    The file is opened when the option is applied; OSError propagates.
    """

    def apply(options: Options) -> None:
        options.writer = _ForkedWriter(options.writer, _open_log(path))

    return apply


def with_forked_outfile_closer(path: str | os.PathLike[str]) -> tuple[Option, Any]:
    """Like with_forked_outfile, also returning an object whose close() closes the file.

    The file is opened immediately; OSError propagates.
    """
    forked = _ForkedWriter(None, _open_log(path))

    def apply(options: Options) -> None:
        forked.primary = options.writer
        options.writer = forked

    return apply, forked


def with_color_config(config: ColorConfig) -> Option:
    """Replace the colour settings."""

    def apply(options: Options) -> None:
        options.color_config = replace(
            config,
            key_colors=dict(config.key_colors),
            level_colors=None if config.level_colors is None else dict(config.level_colors),
        )

    return apply


def with_colors() -> Option:
    """Enable colours with the default settings."""

    def apply(options: Options) -> None:
        options.color_config = default_color_config()

    return apply


def without_colors() -> Option:
    """Disable colour output."""

    def apply(options: Options) -> None:
        options.color_config = ColorConfig(
            enabled=False,
            key_colors={},
            level_colors={},
            color_entire_line=False,
            color_attr_key=COLOR,
        )

    return apply


def with_color_attr_key(key: str) -> Option:
    """Set the attribute key used to colour a whole line."""

    def apply(options: Options) -> None:
        options.color_config.color_attr_key = key

    return apply


def with_key_color(key: str, color: str) -> Option:
    """Colour the given field key and its value."""

    def apply(options: Options) -> None:
        options.color_config.key_colors[key] = color

    return apply


def with_key_colors(colors: Mapping[str, str]) -> Option:
    """Colour several field keys and their values."""

    def apply(options: Options) -> None:
        options.color_config.key_colors.update(colors)

    return apply


def with_level_colors() -> Option:
    """Use the default colour for each level."""

    def apply(options: Options) -> None:
        options.color_config.level_colors = dict(DEFAULT_LEVEL_COLORS)

    return apply


def with_custom_level_colors(colors: Mapping[int, str]) -> Option:
    """Set the colours of the given levels."""

    def apply(options: Options) -> None:
        if options.color_config.level_colors is None:
            options.color_config.level_colors = {}
        options.color_config.level_colors.update(colors)

    return apply


def with_level_line_coloring() -> Option:
    """Colour each whole line by its level."""

    def apply(options: Options) -> None:
        options.color_config.color_entire_line = True
        if options.color_config.level_colors is None:
            options.color_config.level_colors = dict(DEFAULT_LEVEL_COLORS)

    return apply


def with_level(level: int) -> Option:
    """Set the minimum level logged."""

    def apply(options: Options) -> None:
        options.level = level

    return apply


def with_source() -> Option:
    """Include the source location in each record."""

    def apply(options: Options) -> None:
        options.add_source = True

    return apply


def with_timestamp_format(layout: str) -> Option:
    """Format timestamps with the strftime format layout."""

    def apply(options: Options) -> None:
        options.timestamp_format = layout
        options.remove_timestamp = False

    return apply


def without_timestamp() -> Option:
    """Leave timestamps out of the output."""

    def apply(options: Options) -> None:
        options.remove_timestamp = True
        options.timestamp_format = ""

    return apply