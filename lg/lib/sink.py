# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

import gzip
import os
import threading
from abc import ABC, abstractmethod
from typing import BinaryIO

from lg.lib.enums import Compress
from lg.lib.errors import SinkWriteError
from lg.lib.logging import Logger


class Sink(ABC):

    @abstractmethod
    def write(self, data: bytes) -> None:
        pass

    @abstractmethod
    def flush(self) -> None:
        pass

    @abstractmethod
    def close(self) -> None:
        pass


class FileSink(Sink):
    """
    A log file, optionally gzip compressed.

    Both pumps may write to the same FileSink when streams are combined, so every operation holds
    the sink's lock. The first write error is logged and the sink stops accepting data; the
    wrapped command keeps running.
    """

    def __init__(self, logger: Logger, path: str, compress: Compress = Compress.NONE):
        self.logger = logger
        self.path = path
        self.compress = compress
        self.lock = threading.Lock()
        self.raw: BinaryIO | None = None
        self.fh: BinaryIO | None = None
        self.error: SinkWriteError | None = None
        self.bytes_written = 0

    @property
    def is_open(self) -> bool:
        return self.fh is not None

    def open(self) -> None:
        with self.lock:
            try:
                parent = os.path.dirname(self.path)
                if parent:
                    os.makedirs(parent, exist_ok=True)
                self.raw = open(self.path, "wb")
                if self.compress == Compress.GZ:
                    # Compress incrementally, the stream is never held in memory.
                    self.fh = gzip.GzipFile(filename="", mode="wb", fileobj=self.raw)
                else:
                    self.fh = self.raw
            except OSError as e:
                self.__close_quietly()
                self.error = SinkWriteError(self.path, e)
                raise self.error from e
        self.logger.debug("opened log file", path=self.path, compress=self.compress.value)

    def write(self, data: bytes) -> None:
        with self.lock:
            if self.fh is None or self.error is not None:
                return
            try:
                self.fh.write(data)
                self.bytes_written += len(data)
            except OSError as e:
                self.__fail(e)

    def flush(self) -> None:
        with self.lock:
            if self.fh is None or self.error is not None:
                return
            try:
                self.fh.flush()
            except OSError as e:
                self.__fail(e)

    def close(self) -> None:
        with self.lock:
            if self.fh is None:
                return
            try:
                # Closing the GzipFile writes the trailer; the underlying file is ours to close.
                self.fh.close()
                if self.raw is not self.fh:
                    self.raw.close()
            except OSError as e:
                if self.error is None:
                    self.error = SinkWriteError(self.path, e)
                    self.logger.error(str(self.error))
                self.__close_quietly()
            finally:
                self.fh = None
                self.raw = None

    def __fail(self, e: OSError) -> None:
        self.error = SinkWriteError(self.path, e)
        self.logger.error(str(self.error), bytes_written=self.bytes_written)

    def __close_quietly(self) -> None:
        for fh in (self.fh, self.raw):
            if fh is None:
                continue
            try:
                fh.close()
            except OSError as e:
                self.logger.debug("closing log file after error", path=self.path, err=str(e))


class TeeSink(Sink):
    """
    Writes the child's raw bytes to one of our own standard streams.

    Each child stream has its own TeeSink so no locking is needed.
    """

    def __init__(self, logger: Logger, stream: BinaryIO, name: str):
        self.logger = logger
        self.stream = stream
        self.name = name
        self.failed = False

    def write(self, data: bytes) -> None:
        if self.failed:
            return
        try:
            self.stream.write(data)
            self.stream.flush()
        except (OSError, ValueError) as e:
            # A closed terminal or pipe only ends the tee, never the logging.
            self.failed = True
            self.logger.warning("tee disabled", stream=self.name, err=str(e))

    def flush(self) -> None:
        if self.failed:
            return
        try:
            self.stream.flush()
        except (OSError, ValueError) as e:
            self.failed = True
            self.logger.warning("tee disabled", stream=self.name, err=str(e))

    def close(self) -> None:
        # The parent's standard streams stay open.
        self.flush()
