# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

from typing import Iterable, Iterator, List, Optional

NEWLINE = b"\n"


class LineFramer(object):
    """
    Splits a byte stream into lines on b"\\n".

    Bytes are fed in arbitrarily sized chunks, as they come off a pipe. Only the current
    incomplete line is buffered. Lines keep their terminator and any b"\\r" is kept as data.
    """

    def __init__(self):
        self.buffer = bytearray()

    def feed(self, chunk: bytes) -> List[bytes]:
        if not chunk:
            return []
        self.buffer += chunk
        last_nl = self.buffer.rfind(NEWLINE)
        if last_nl < 0:
            return []

        complete = bytes(self.buffer[: last_nl + 1])
        del self.buffer[: last_nl + 1]
        return _split_on_nl(complete)

    def finish(self) -> Optional[bytes]:
        """Return the trailing line that had no terminator at end of stream, if any."""
        if not self.buffer:
            return None
        line = bytes(self.buffer)
        self.buffer.clear()
        return line


def _split_on_nl(data: bytes) -> List[bytes]:
    # Not bytes.splitlines(), which also breaks on b"\r".
    lines = []
    start = 0
    while True:
        idx = data.find(NEWLINE, start)
        if idx < 0:
            break
        lines.append(data[start : idx + 1])
        start = idx + 1
    return lines


def iter_lines(chunks: Iterable[bytes]) -> Iterator[bytes]:
    framer = LineFramer()
    for chunk in chunks:
        yield from framer.feed(chunk)
    last = framer.finish()
    if last is not None:
        yield last
