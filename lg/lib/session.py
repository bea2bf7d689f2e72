# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

import os
import subprocess
import sys
from datetime import datetime
from typing import BinaryIO, Dict, List, Mapping, Sequence

import psutil

from lg.lib.config import Config
from lg.lib.enums import SessionState, StreamTag
from lg.lib.errors import LaunchFailure, LgError, PumpReadError, SinkWriteError
from lg.lib.finalizer import Destination, Finalizer
from lg.lib.formatter import LineFormatter, format_footer, format_header
from lg.lib.logging import Logger
from lg.lib.pump import StreamPump
from lg.lib.sink import TeeSink
from lg.lib.template import FilenameContext
from lg.lib.utils import Utils

# Exit status of the wrapper when the command could not be started at all, as a shell does for
# a command that is not found.
LAUNCH_FAILURE_EXIT_CODE = 127


class Session(object):
    """
    Runs one command and logs its output.

    The child is spawned with its stdout and stderr on pipes, one StreamPump thread drains each
    pipe while this thread waits for the child. After the child exits both pumps are drained
    before the exit code is recorded, then the log files are finalized. run() returns the child's
    exit code (128 + N when it was killed by signal N).
    """

    def __init__(
        self,
        logger: Logger,
        config: Config,
        cmd: str,
        args: Sequence[str] | None = None,
        stdout: BinaryIO | None = None,
        stderr: BinaryIO | None = None,
        environ: Mapping[str, str] | None = None,
        now: datetime | None = None,
        hostname: str | None = None,
        cwd: str | None = None,
        drain_idle_seconds: float = StreamPump.DRAIN_IDLE_SECONDS,
    ):
        self.logger = logger
        self.config = config
        self.cmd = cmd
        self.args = list(args) if args else []
        self.stdout = stdout if stdout is not None else sys.stdout.buffer
        self.stderr = stderr if stderr is not None else sys.stderr.buffer
        self.environ = dict(environ) if environ is not None else dict(os.environ)
        self.started_at = now if now is not None else datetime.now().astimezone()
        self.drain_idle_seconds = drain_idle_seconds

        self.context = FilenameContext.capture(
            cmd, self.args, config, now=self.started_at, hostname=hostname, cwd=cwd
        )
        output_dir = config.output_dir if config.output_dir else self.context.cwd
        self.finalizer = Finalizer(logger, config, output_dir)

        self.state = SessionState.SPAWNING
        self.process: psutil.Popen | None = None
        self.exit_code: int | None = None
        self.destinations: List[Destination] = []
        self.pumps: List[StreamPump] = []
        self.log_paths: List[str] = []
        self.pending_signals: List[int] = []

    @property
    def pump_errors(self) -> List[PumpReadError]:
        return [p.error for p in self.pumps if p.error is not None]

    @property
    def sink_errors(self) -> List[SinkWriteError]:
        return [d.sink.error for d in self.destinations if d.sink.error is not None]

    def forward_signal(self, signum: int) -> bool:
        """
        Send signum to the child if it is still running. Returns whether it was sent. A signal
        that arrives before the child is spawned is held and sent right after the spawn.
        """
        if self.exit_code is not None:
            return False
        if self.process is None:
            self.pending_signals.append(signum)
            self.logger.info("holding signal until command starts", signum=signum)
            return False
        try:
            self.process.send_signal(signum)
        except (psutil.NoSuchProcess, ProcessLookupError):
            return False
        self.logger.info("forwarded signal to child", signum=signum, pid=self.process.pid)
        return True

    def run(self) -> int:
        self.__spawn()
        try:
            self.__open_destinations()
            self.__start_pumps()

            self.__set_state(SessionState.RUNNING)
            returncode = self.process.wait()

            # The child may have exited with output still sitting in the pipes.
            self.__set_state(SessionState.DRAINING)
            for pump in self.pumps:
                pump.drain()
            for pump in self.pumps:
                pump.join()
            self.__set_exit_code(Utils.exit_code_from_returncode(returncode))

            self.__set_state(SessionState.FINALIZING)
            footer = format_footer(self.exit_code)
            for dest in self.destinations:
                dest.sink.write(footer)
            self.log_paths = self.finalizer.finalize(
                self.destinations, self.context.with_exit_code(self.exit_code)
            )
        finally:
            self.__close_pipes()

        self.__set_state(SessionState.DONE)
        self.logger.info("command finished", exit_code=self.exit_code, log_paths=self.log_paths)
        return self.exit_code

    def __spawn(self) -> None:
        argv = [self.cmd] + self.args
        self.logger.info("running command", cmd=self.cmd, args=self.args)
        try:
            self.process = psutil.Popen(
                argv,
                stdin=None,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                bufsize=0,
            )
        except OSError as e:
            raise LaunchFailure(self.cmd, e) from e

        pending, self.pending_signals = self.pending_signals, []
        for signum in pending:
            self.forward_signal(signum)

    def __open_destinations(self) -> None:
        self.destinations = self.finalizer.plan(self.context)
        header = format_header(self.context, self.config.log_env, self.environ)
        for dest in self.destinations:
            try:
                dest.sink.open()
            except SinkWriteError as e:
                # Keep running the command; its output still reaches the terminal.
                self.logger.error(str(e))
                continue
            dest.sink.write(header)

    def __routes_for(self, tag: StreamTag):
        return [
            (LineFormatter.from_config(self.config, combined=dest.combined), dest.sink)
            for dest in self.destinations
            if tag in dest.streams
        ]

    def __start_pumps(self) -> None:
        pipes: Dict[StreamTag, BinaryIO] = {
            StreamTag.OUT: self.process.stdout,
            StreamTag.ERR: self.process.stderr,
        }
        tees = {StreamTag.OUT: (self.stdout, "stdout"), StreamTag.ERR: (self.stderr, "stderr")}
        for tag, pipe in pipes.items():
            tee = None
            if self.config.tee:
                stream, name = tees[tag]
                tee = TeeSink(self.logger, stream, name)
            pump = StreamPump(
                self.logger,
                tag,
                pipe,
                self.__routes_for(tag),
                tee=tee,
                drain_idle_seconds=self.drain_idle_seconds,
            )
            self.pumps.append(pump)
            pump.start()

    def __set_exit_code(self, exit_code: int) -> None:
        if self.exit_code is not None:
            raise LgError(f"exit code already recorded; exit_code={self.exit_code}")
        self.exit_code = exit_code

    def __set_state(self, state: SessionState) -> None:
        self.logger.debug("session state", state=state.value)
        self.state = state

    def __close_pipes(self) -> None:
        if self.process is None:
            return
        for pipe in (self.process.stdout, self.process.stderr):
            if pipe is None:
                continue
            try:
                pipe.close()
            except OSError as e:
                self.logger.debug("closing child pipe", err=str(e))
