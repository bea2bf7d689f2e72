# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

import argparse
import dataclasses
import os
import signal
import sys
from typing import List, Sequence

import lg.lib.config as cfg
from lg.lib.config import Config
from lg.lib.envvars import EnvVars
from lg.lib.errors import ConfigError, LaunchFailure
from lg.lib.logging import LOG_FORMAT_CONSOLE, Logger, get_logger
from lg.lib.session import LAUNCH_FAILURE_EXIT_CODE, Session

CONFIG_ERROR_EXIT_CODE = 1

FORWARDED_SIGNALS = [signal.SIGINT, signal.SIGTERM, signal.SIGHUP]


class SignalForwarder(object):
    """
    Passes the signals we receive on to the child, so it is not orphaned and its log is finalized
    normally once it exits. A third SIGINT kills the child.
    """

    def __init__(self, logger: Logger, session: Session):
        self.logger = logger
        self.session = session
        self.sigint_count = 0

    def install(self) -> None:
        for signum in FORWARDED_SIGNALS:
            signal.signal(signum, self.handle_signal)

    def handle_signal(self, signal_number, _frame):
        if signal_number == signal.SIGINT:
            self.sigint_count += 1
            if self.sigint_count >= 3:
                self.logger.warning("received third SIGINT, killing command")
                self.session.forward_signal(signal.SIGKILL)
                return
        self.logger.info("passing signal to command", signal_number=signal_number)
        self.session.forward_signal(signal_number)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lg",
        description="Log any command's output and metadata",
    )
    parser.add_argument("--output", metavar="DIR", help="Override output directory")
    parser.add_argument("--filename-template", metavar="TPL", help="Override filename template")
    parser.add_argument(
        "-a", "--include-args", action="store_true", help="Include arguments in filename"
    )
    parser.add_argument(
        "--split-streams", action="store_true", help="Split stdout/stderr into separate files"
    )
    parser.add_argument(
        "--plain-lines",
        action="store_true",
        help="Write logged lines without timestamps or stream markers",
    )
    parser.add_argument("--compress", metavar="none|gz", help="Compress logs: none|gz")
    parser.add_argument("--no-tee", action="store_true", help="Disable tee to terminal")
    parser.add_argument("cmd", help="The command to run")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="Arguments for the command")
    return parser


def apply_overrides(config: Config, ns: argparse.Namespace, logger: Logger) -> Config:
    overrides = {}
    if ns.output:
        overrides["output_dir"] = os.path.expanduser(ns.output)
    if ns.filename_template:
        overrides["filename_template"] = ns.filename_template
    if ns.include_args:
        overrides["include_args_in_name"] = True
    if ns.split_streams:
        overrides["split_streams"] = True
        overrides["combine_streams"] = False
    if ns.plain_lines:
        overrides["plain_lines"] = True
    if ns.compress is not None:
        overrides["compress"] = Config.parse_compress(ns.compress, logger)
    if ns.no_tee:
        overrides["tee"] = False
    return dataclasses.replace(config, **overrides)


def load_config(env_vars: dict, logger: Logger) -> Config:
    path = env_vars.get(cfg.CONFIG_ENV_VAR_KEY) or Config.default_path()
    if not Config.ensure_config_file(path, logger):
        return Config()
    return Config.load(path, logger)


def run(argv: Sequence[str] | None = None) -> int:
    env_vars = EnvVars.get_env_vars(cfg.ENV_VAR_PREFIX)
    logger = get_logger(
        "lg",
        log_level=env_vars.get(cfg.LOGLEVEL_ENV_VAR_KEY, "WARNING"),
        log_format=env_vars.get(cfg.LOGFORMAT_ENV_VAR_KEY, LOG_FORMAT_CONSOLE).lower(),
    )

    ns = build_parser().parse_args(argv)
    try:
        config = apply_overrides(load_config(env_vars, logger), ns, logger)
    except ConfigError as e:
        logger.error(str(e))
        return CONFIG_ERROR_EXIT_CODE

    session = Session(logger, config, ns.cmd, ns.args)
    SignalForwarder(logger, session).install()
    try:
        return session.run()
    except LaunchFailure as e:
        logger.error(str(e))
        return LAUNCH_FAILURE_EXIT_CODE


def main(argv: List[str] | None = None) -> None:
    sys.exit(run(argv))


if __name__ == "__main__":
    main()
