# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

import logging
import os
import shutil
import sys
import tempfile
import unittest
from typing import List

from invoke import Result

from lg.integration_tests.int_test_utils import IntegrationTestUtils, LgFileConfig
from lg.lib.formatter import HEADER_END

logging.basicConfig(
    format="%(asctime)s,%(levelname)s,%(module)s,%(message)s",
    level=logging.INFO,
    stream=sys.stdout,
)

logger = logging.getLogger(__name__)


class ITBase(unittest.TestCase):

    def setup_base(self) -> None:
        logger.info("Running setup_base")
        self.test_dir = tempfile.mkdtemp(prefix="lg-it-")
        self.config_dir = os.path.join(self.test_dir, "config")
        self.log_dir = os.path.join(self.test_dir, "logs")
        self.config_path = os.path.join(self.config_dir, "lg.yaml")
        for d in [self.config_dir, self.log_dir]:
            shutil.rmtree(d, ignore_errors=True)
            os.makedirs(d, exist_ok=True)

    def teardown_base(self) -> None:
        shutil.rmtree(self.test_dir, ignore_errors=True)

    def write_config(self, lg_config: LgFileConfig | None = None) -> None:
        if lg_config is None:
            lg_config = LgFileConfig()
        if lg_config.output_dir is None:
            lg_config.output_dir = self.log_dir
        IntegrationTestUtils.write_lg_config(self.config_path, lg_config)

    def run_lg(self, args: List[str], env: dict | None = None) -> Result:
        result = IntegrationTestUtils.run_lg(args, self.config_path, env)
        logger.info(f"lg exited; exited={result.exited}, stderr={result.stderr}")
        return result

    def log_files(self) -> List[str]:
        return sorted(os.listdir(self.log_dir))

    def read_log(self, name: str) -> str:
        with open(os.path.join(self.log_dir, name), "r") as fh:
            return fh.read()

    def log_body(self, name: str) -> str:
        data = self.read_log(name)
        body = data.split(HEADER_END + "\n", 1)[1]
        return body.rsplit("\n[exit_code] ", 1)[0]
