# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

import dataclasses
import os
from dataclasses import dataclass
from typing import Any, Dict

import yaml

from lg.lib.enums import Compress
from lg.lib.errors import ConfigError

ENV_VAR_PREFIX = "LG"
ENV_VAR_CONFIG = "CONFIG"
ENV_VAR_LOGLEVEL = "LOGLEVEL"
ENV_VAR_LOGFORMAT = "LOGFORMAT"

CONFIG_ENV_VAR_KEY = f"{ENV_VAR_PREFIX}_{ENV_VAR_CONFIG}"
LOGLEVEL_ENV_VAR_KEY = f"{ENV_VAR_PREFIX}_{ENV_VAR_LOGLEVEL}"
LOGFORMAT_ENV_VAR_KEY = f"{ENV_VAR_PREFIX}_{ENV_VAR_LOGFORMAT}"

CONFIG_FILE_NAME = ".lg"

DEFAULT_FILENAME_TEMPLATE = "{cmd}_{date}_{time}.log"
DEFAULT_DATE_FORMAT = "%Y-%m-%d"
DEFAULT_TIME_FORMAT = "%H-%M-%S"
DEFAULT_LINE_TIME_FORMAT = "%H:%M:%S.%3f"

DEFAULT_CONFIG_TEMPLATE = """\
# lg configuration (YAML). Every key is optional.
#
# Directory to write logs into. Defaults to the current working directory.
# output_dir: ~/logs
#
# Placeholders: {cmd} {args} {date} {time} {ts} {exit_code} {hostname} {cwd}
# A template containing {exit_code} is written to a hidden temp file and
# renamed once the command exits.
filename_template: "{cmd}_{date}_{time}.log"
date_format: "%Y-%m-%d"
time_format: "%H-%M-%S"
# Per-line timestamp format; %3f is milliseconds.
line_time_format: "%H:%M:%S.%3f"
include_args_in_name: false
include_full_args: true
sanitize_filename: true
timestamp_each_line: true
plain_lines: false
combine_streams: true
split_streams: false
tee: true
log_env: false
# none | gz
compress: none
"""


@dataclass(frozen=True)
class Config:
    output_dir: str | None = None
    include_args_in_name: bool = False
    include_full_args: bool = True
    sanitize_filename: bool = True
    filename_template: str = DEFAULT_FILENAME_TEMPLATE
    date_format: str = DEFAULT_DATE_FORMAT
    time_format: str = DEFAULT_TIME_FORMAT
    line_time_format: str = DEFAULT_LINE_TIME_FORMAT
    timestamp_each_line: bool = True
    plain_lines: bool = False
    combine_streams: bool = True
    split_streams: bool = False
    tee: bool = True
    log_env: bool = False
    compress: Compress = Compress.NONE

    @property
    def is_split(self) -> bool:
        return self.split_streams or not self.combine_streams

    @staticmethod
    def load_configs(config: str) -> Dict:
        with open(config, "r") as fh:
            return yaml.load(fh, Loader=yaml.FullLoader)

    @classmethod
    def from_dict(cls, values: Dict[str, Any] | None, logger=None) -> "Config":
        """
        Build a Config from a dict of raw values, as read from the YAML config file.

        Unknown keys are ignored (with a warning when a logger is provided). Values of the wrong
        type raise a ConfigError.
        """
        if values is None:
            return cls()
        if not isinstance(values, dict):
            raise ConfigError(f"config must be a mapping; type={type(values).__name__}")

        fields = {f.name: f for f in dataclasses.fields(cls)}
        kwargs = {}
        for k, v in values.items():
            if k not in fields:
                if logger is not None:
                    logger.warning("ignoring unknown config key", key=k)
                continue
            if k == "compress":
                kwargs[k] = Config.parse_compress(v, logger)
            elif k == "output_dir":
                kwargs[k] = None if v is None else os.path.expanduser(str(v))
            elif isinstance(fields[k].default, bool):
                if not isinstance(v, bool):
                    raise ConfigError(f"config value must be a boolean; key={k}, value={v!r}")
                kwargs[k] = v
            else:
                if not isinstance(v, str):
                    raise ConfigError(f"config value must be a string; key={k}, value={v!r}")
                kwargs[k] = v
        return cls(**kwargs)

    @classmethod
    def load(cls, path: str, logger=None) -> "Config":
        try:
            values = Config.load_configs(path)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"reading config; path={path}, err={e}") from e
        return cls.from_dict(values, logger)

    @staticmethod
    def parse_compress(value: Any, logger=None) -> Compress:
        if isinstance(value, Compress):
            return value
        if value is None or value is False or value == "":
            return Compress.NONE
        compress = Compress.get_enum_value_from_string(str(value))
        if compress is None:
            if logger is not None:
                logger.warning("unknown compress value, using 'none'", compress=value)
            return Compress.NONE
        return compress

    @staticmethod
    def default_path() -> str:
        return os.path.join(os.path.expanduser("~"), CONFIG_FILE_NAME)

    @staticmethod
    def ensure_config_file(path: str, logger=None) -> bool:
        """
        Write the commented default config to path if nothing exists there yet.

        Returns whether a config file exists at path afterwards.
        """
        if os.path.exists(path):
            return True
        try:
            with open(path, "w") as fh:
                fh.write(DEFAULT_CONFIG_TEMPLATE)
        except OSError as e:
            if logger is not None:
                logger.warning("unable to create default config", path=path, err=str(e))
            return False
        return True
