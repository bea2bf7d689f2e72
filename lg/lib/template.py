# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

import dataclasses
import os
import re
import socket
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence, Set

from lg.lib.config import Config
from lg.lib.utils import Utils

PLACEHOLDERS = ("cmd", "args", "date", "time", "ts", "exit_code", "hostname", "cwd")
UNKNOWN_VALUE = "NA"

_PLACEHOLDER_RE = re.compile(r"\{(" + "|".join(PLACEHOLDERS) + r")\}")
_REPEATED_UNDERSCORES = re.compile(r"_{2,}")


def get_hostname() -> str:
    try:
        return socket.gethostname() or "unknown"
    except OSError:
        return "unknown"


@dataclass(frozen=True)
class FilenameContext:
    cmd: str
    args: str
    date: str
    time: str
    ts: str
    hostname: str
    cwd: str
    exit_code: Optional[int] = None

    @classmethod
    def capture(
        cls,
        cmd: str,
        args: Sequence[str],
        config: Config,
        now: datetime | None = None,
        hostname: str | None = None,
        cwd: str | None = None,
    ) -> "FilenameContext":
        """
        Snapshot the values available to filename templates at session start. The hostname and
        working directory are read here once and never again for the session.
        """
        now = now if now is not None else datetime.now().astimezone()
        if cwd is None:
            try:
                cwd = os.getcwd()
            except OSError:
                cwd = "."
        return cls(
            cmd=cmd,
            args=Utils.join_args(args, config.include_full_args),
            date=now.strftime(config.date_format),
            time=now.strftime(config.time_format),
            ts=str(int(now.timestamp())),
            hostname=hostname if hostname is not None else get_hostname(),
            cwd=cwd,
        )

    def with_exit_code(self, exit_code: int) -> "FilenameContext":
        return dataclasses.replace(self, exit_code=exit_code)


def referenced_placeholders(template: str) -> Set[str]:
    return set(_PLACEHOLDER_RE.findall(template))


def unresolved_placeholders(template: str, ctx: FilenameContext) -> Set[str]:
    """The placeholders in template whose value is not known yet for ctx."""
    return {p for p in referenced_placeholders(template) if getattr(ctx, p) is None}


def render_template(
    template: str,
    ctx: FilenameContext,
    sanitize: bool = True,
    include_args_in_name: bool = False,
) -> str:
    """
    Substitute the placeholders in template with the values from ctx.

    {args} is empty unless include_args_in_name. An unknown value renders as 'NA'. After
    substitution '..' is reduced to '.', runs of '_' are collapsed and leading and trailing '_'
    and '.' are trimmed.
    """

    def clean(value: str) -> str:
        return Utils.sanitize_component(value) if sanitize else value

    values = {
        "cmd": clean(ctx.cmd),
        "args": clean(ctx.args) if include_args_in_name else "",
        "date": ctx.date,
        "time": ctx.time,
        "ts": ctx.ts,
        "exit_code": UNKNOWN_VALUE if ctx.exit_code is None else str(ctx.exit_code),
        "hostname": clean(ctx.hostname),
        "cwd": clean(ctx.cwd),
    }
    out = _PLACEHOLDER_RE.sub(lambda m: values[m.group(1)], template)
    out = out.replace("..", ".")
    out = _REPEATED_UNDERSCORES.sub("_", out)
    return out.strip("_.")
