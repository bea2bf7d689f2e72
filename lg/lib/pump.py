# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

import os
import selectors
import time
from datetime import datetime
from threading import Event, Thread
from typing import BinaryIO, Callable, List, Sequence, Tuple

from lg.lib.enums import StreamTag
from lg.lib.errors import PumpReadError
from lg.lib.formatter import LineFormatter, LineRecord
from lg.lib.framer import LineFramer
from lg.lib.logging import Logger
from lg.lib.sink import Sink

Route = Tuple[LineFormatter, Sink]


class StreamPump(Thread):
    """
    Drains one of the child's output pipes.

    Raw chunks go to the tee sink as soon as they are read. Complete lines are stamped, formatted
    once per route and written to the route's sink. The pump runs until end of file, or, once
    drain() has been called after the child exited, until the pipe has been idle for
    drain_idle_seconds (a grandchild may still hold the write end open).
    """

    READ_CHUNK_BYTES = 64 * 1024
    POLL_INTERVAL_SECONDS = float(0.1)
    DRAIN_IDLE_SECONDS = float(1)

    def __init__(
        self,
        logger: Logger,
        tag: StreamTag,
        stream: BinaryIO,
        routes: Sequence[Route],
        tee: Sink | None = None,
        drain_idle_seconds: float = DRAIN_IDLE_SECONDS,
        clock: Callable[[], datetime] = datetime.now,
    ):
        Thread.__init__(self, name=f"pump-{tag.name.lower()}", daemon=True)
        self.logger = logger.bind(stream=tag.value)
        self.tag = tag
        self.stream = stream
        self.routes: List[Route] = list(routes)
        self.tee = tee
        self.drain_idle_seconds = drain_idle_seconds
        self.clock = clock
        self.framer = LineFramer()
        self.draining = Event()

        self.error: PumpReadError | None = None
        self.reached_eof = False
        self.bytes_read = 0
        self.lines = 0

    def drain(self) -> None:
        """Called once the child has exited; the pump stops when its pipe goes quiet."""
        self.draining.set()

    def run(self) -> None:
        idle_since = None
        selector = selectors.DefaultSelector()
        try:
            fd = self.stream.fileno()
            selector.register(fd, selectors.EVENT_READ)
            while True:
                ready = selector.select(StreamPump.POLL_INTERVAL_SECONDS)
                if not ready:
                    if not self.draining.is_set():
                        continue
                    now = time.monotonic()
                    if idle_since is None:
                        idle_since = now
                    elif now - idle_since >= self.drain_idle_seconds:
                        self.logger.info(
                            "pipe still open after child exited, stopping", bytes_read=self.bytes_read
                        )
                        break
                    continue

                idle_since = None
                chunk = os.read(fd, StreamPump.READ_CHUNK_BYTES)
                if not chunk:
                    self.reached_eof = True
                    break
                self.bytes_read += len(chunk)
                if self.tee is not None:
                    self.tee.write(chunk)
                for line in self.framer.feed(chunk):
                    self.dispatch(line)
        except OSError as e:
            self.error = PumpReadError(self.tag.value, e)
            self.logger.error(str(self.error))
        finally:
            selector.close()
            last = self.framer.finish()
            if last is not None:
                self.dispatch(last)
            self.logger.debug("pump finished", bytes_read=self.bytes_read, lines=self.lines)

    def dispatch(self, line: bytes) -> None:
        record = LineRecord(tag=self.tag, timestamp=self.clock(), line=line)
        self.lines += 1
        for formatter, sink in self.routes:
            sink.write(formatter.format(record))
