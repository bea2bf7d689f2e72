# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

import os
from dataclasses import dataclass
from typing import List, Tuple

from lg.lib.config import Config
from lg.lib.enums import Compress, StreamTag
from lg.lib.errors import RenameFailure
from lg.lib.logging import Logger
from lg.lib.sink import FileSink
from lg.lib.template import FilenameContext, render_template, unresolved_placeholders

LOG_SUFFIX = ".log"
OUT_SUFFIX = ".out.log"
ERR_SUFFIX = ".err.log"
GZ_SUFFIX = ".gz"
TEMP_SUFFIX = ".partial"


@dataclass
class Destination:
    streams: Tuple[StreamTag, ...]
    # Where the sink writes: the final path, or a hidden temp path when deferred.
    path: str
    deferred: bool
    sink: FileSink
    final_path: str | None = None

    @property
    def combined(self) -> bool:
        return len(self.streams) > 1


class Finalizer(object):
    """
    Decides where log files are written and gives deferred files their final names.

    When the filename template needs a value that only exists once the child has exited (the
    exit code), files are written to a hidden sibling '.<name>.partial' and renamed at the end.
    """

    def __init__(self, logger: Logger, config: Config, output_dir: str):
        self.logger = logger
        self.config = config
        self.output_dir = output_dir

    def is_deferred(self, ctx: FilenameContext) -> bool:
        return len(unresolved_placeholders(self.config.filename_template, ctx)) > 0

    def file_names(self, ctx: FilenameContext) -> List[Tuple[Tuple[StreamTag, ...], str]]:
        base = render_template(
            self.config.filename_template,
            ctx,
            sanitize=self.config.sanitize_filename,
            include_args_in_name=self.config.include_args_in_name,
        )
        if self.config.is_split:
            stem = base[: -len(LOG_SUFFIX)] if base.endswith(LOG_SUFFIX) else base
            names = [
                ((StreamTag.OUT,), stem + OUT_SUFFIX),
                ((StreamTag.ERR,), stem + ERR_SUFFIX),
            ]
        else:
            name = base if os.path.splitext(base)[1] else base + LOG_SUFFIX
            names = [((StreamTag.OUT, StreamTag.ERR), name)]

        if self.config.compress == Compress.GZ:
            names = [(s, n if n.endswith(GZ_SUFFIX) else n + GZ_SUFFIX) for s, n in names]
        return names

    def plan(self, ctx: FilenameContext) -> List[Destination]:
        deferred = self.is_deferred(ctx)
        destinations = []
        for streams, name in self.file_names(ctx):
            if deferred:
                # A sibling of the final file, also when the name has a directory part.
                head, tail = os.path.split(name)
                path = os.path.join(self.output_dir, head, f".{tail}{TEMP_SUFFIX}")
                final_path = None
            else:
                path = os.path.join(self.output_dir, name)
                final_path = path
            sink = FileSink(self.logger, path, self.config.compress)
            destinations.append(
                Destination(
                    streams=streams, path=path, deferred=deferred, sink=sink, final_path=final_path
                )
            )
        self.logger.debug("planned log destinations", paths=[d.path for d in destinations])
        return destinations

    def finalize(self, destinations: List[Destination], ctx: FilenameContext) -> List[str]:
        """
        Close every sink and rename deferred files using the completed context.

        Returns the path where each destination's output can be found. A failed rename is logged
        and the temp path is returned in its place.
        """
        names = self.file_names(ctx)
        paths = []
        for dest, (_, name) in zip(destinations, names):
            dest.sink.close()
            if not os.path.exists(dest.path):
                # The sink never opened; there is nothing to rename.
                continue
            if not dest.deferred:
                paths.append(dest.path)
                continue

            final_path = os.path.join(self.output_dir, name)
            try:
                parent = os.path.dirname(final_path)
                if parent:
                    os.makedirs(parent, exist_ok=True)
                os.replace(dest.path, final_path)
            except OSError as e:
                err = RenameFailure(dest.path, final_path, e)
                self.logger.error(str(err), temp_path=dest.path)
                paths.append(dest.path)
                continue
            dest.final_path = final_path
            paths.append(final_path)
        return paths
