# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

import logging
import os
import shlex
import sys
from dataclasses import dataclass
from typing import List, Optional

import yaml
from dataclass_wizard import JSONWizard
from invoke import Result, run

import lg.lib.config as cfg

logging.basicConfig(
    format="%(asctime)s,%(levelname)s,%(module)s,%(message)s",
    level=logging.INFO,
    stream=sys.stdout,
)

logger = logging.getLogger(__name__)


@dataclass
class LgFileConfig(JSONWizard):
    class _(JSONWizard.Meta):
        key_transform_with_dump = "SNAKE"

    output_dir: Optional[str] = None
    filename_template: Optional[str] = None
    include_args_in_name: Optional[bool] = None
    split_streams: Optional[bool] = None
    plain_lines: Optional[bool] = None
    timestamp_each_line: Optional[bool] = None
    tee: Optional[bool] = None
    log_env: Optional[bool] = None
    compress: Optional[str] = None


class IntegrationTestUtils(object):

    @staticmethod
    def lg_command(args: List[str]) -> List[str]:
        return [sys.executable, "-m", "lg.main"] + args

    @staticmethod
    def run_lg(args: List[str], config_path: str, env: dict | None = None) -> Result:
        env_vars = {cfg.CONFIG_ENV_VAR_KEY: config_path}
        if env is not None:
            env_vars.update(env)
        cmd = shlex.join(IntegrationTestUtils.lg_command(args))
        logger.info(f"running lg; cmd={cmd}")
        return run(cmd, warn=True, hide=True, env=env_vars, in_stream=False)

    @staticmethod
    def remove_nulls_from_dict(d):
        retval = {}
        for k, v in d.items():
            if isinstance(v, dict):
                sub_dict = IntegrationTestUtils.remove_nulls_from_dict(v)
                if sub_dict is not None:
                    retval[k] = sub_dict
            elif v is not None:
                retval[k] = v

        return retval

    @staticmethod
    def write_lg_config(output_path: str, lg_config: LgFileConfig) -> None:
        c = lg_config.to_dict(skip_defaults=True)
        c = IntegrationTestUtils.remove_nulls_from_dict(c)
        IntegrationTestUtils.write_yaml_file(output_path, c)

    @staticmethod
    def write_yaml_file(output_path, data):
        os.makedirs(os.path.dirname(output_path), exist_ok=True)
        with open(output_path, "w") as fh:
            yaml.dump(data, fh)
