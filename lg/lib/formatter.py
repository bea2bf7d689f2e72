# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

from dataclasses import dataclass
from datetime import datetime

from lg.lib.config import DEFAULT_LINE_TIME_FORMAT
from lg.lib.enums import StreamTag
from lg.lib.framer import NEWLINE

MILLIS_DIRECTIVE = "%3f"


@dataclass(frozen=True)
class LineRecord:
    tag: StreamTag
    timestamp: datetime
    # The raw line including its b"\n" terminator, if it had one.
    line: bytes

    @property
    def content(self) -> bytes:
        return self.line[:-1] if self.line.endswith(NEWLINE) else self.line

    @property
    def terminator(self) -> bytes:
        return NEWLINE if self.line.endswith(NEWLINE) else b""


def format_timestamp(ts: datetime, fmt: str) -> str:
    # strftime only knows microseconds; %3f is expanded to milliseconds first.
    if MILLIS_DIRECTIVE in fmt:
        fmt = fmt.replace(MILLIS_DIRECTIVE, f"{ts.microsecond // 1000:03d}")
    return ts.strftime(fmt)


class LineFormatter(object):
    """
    Turns a LineRecord into the bytes written to one log destination.

    With plain_lines the raw bytes are passed through untouched. Otherwise each line gets an
    optional [timestamp] prefix and, for a destination shared by both streams, a [STDOUT] or
    [STDERR] tag.
    """

    def __init__(
        self,
        combined: bool,
        timestamp_each_line: bool = True,
        plain_lines: bool = False,
        line_time_format: str = DEFAULT_LINE_TIME_FORMAT,
    ):
        self.combined = combined
        self.timestamp_each_line = timestamp_each_line
        self.plain_lines = plain_lines
        self.line_time_format = line_time_format

    @classmethod
    def from_config(cls, config, combined: bool) -> "LineFormatter":
        return cls(
            combined=combined,
            timestamp_each_line=config.timestamp_each_line,
            plain_lines=config.plain_lines,
            line_time_format=config.line_time_format,
        )

    def prefix(self, record: LineRecord) -> str:
        prefix = ""
        if self.timestamp_each_line:
            prefix += f"[{format_timestamp(record.timestamp, self.line_time_format)}]"
        if self.combined:
            prefix += f"[{record.tag.value}]"
        return prefix

    def format(self, record: LineRecord) -> bytes:
        if self.plain_lines:
            return record.line

        text = record.content.decode("utf-8", errors="replace")
        prefix = self.prefix(record)
        if prefix:
            text = f"{prefix} {text}"
        return text.encode("utf-8") + NEWLINE


HEADER_TITLE = "# lg log"
HEADER_END = "----- BEGIN OUTPUT -----"


def format_header(ctx, log_env: bool = False, environ=None) -> bytes:
    """The block written at the top of every log file, before any child output."""
    lines = [HEADER_TITLE, f"cmd: {ctx.cmd}"]
    if ctx.args:
        lines.append(f"args: {ctx.args}")
    lines.append(f"date: {ctx.date} {ctx.time}")
    lines.append(f"cwd: {ctx.cwd}")
    lines.append(f"host: {ctx.hostname}")
    if log_env and environ:
        for k, v in environ.items():
            lines.append(f"env[{k}]={v}")
    lines.append(HEADER_END)
    return ("\n".join(lines) + "\n").encode("utf-8", errors="replace")


def format_footer(exit_code: int) -> bytes:
    return f"\n[exit_code] {exit_code}\n".encode("utf-8")
