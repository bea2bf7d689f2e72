from dataclasses import dataclass
import os
import shutil
import tempfile
import unittest
from typing import Any, Dict
from lg.lib.config import DEFAULT_FILENAME_TEMPLATE, Config
from lg.lib.enums import Compress
from lg.lib.errors import ConfigError


@dataclass
class CompressCase:
    name: str
    value: Any
    expected: Compress


class ConfigTest(unittest.TestCase):

    def setUp(self):
        self.tmp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.tmp_dir, ignore_errors=True)

    def write_config(self, content: str) -> str:
        path = os.path.join(self.tmp_dir, "lg.yaml")
        with open(path, "w") as fh:
            fh.write(content)
        return path

    def test_defaults(self):
        config = Config()
        self.assertIsNone(config.output_dir)
        self.assertEqual(DEFAULT_FILENAME_TEMPLATE, config.filename_template)
        self.assertTrue(config.timestamp_each_line)
        self.assertTrue(config.tee)
        self.assertTrue(config.combine_streams)
        self.assertFalse(config.split_streams)
        self.assertFalse(config.is_split)
        self.assertEqual(Compress.NONE, config.compress)

    def test_is_split(self):
        self.assertTrue(Config(split_streams=True).is_split)
        self.assertTrue(Config(combine_streams=False).is_split)

    def test_load(self):
        path = self.write_config(
            "output_dir: /var/tmp/logs\n"
            "filename_template: '{cmd}_{exit_code}.log'\n"
            "split_streams: true\n"
            "tee: false\n"
            "compress: gz\n"
        )
        config = Config.load(path)
        self.assertEqual("/var/tmp/logs", config.output_dir)
        self.assertEqual("{cmd}_{exit_code}.log", config.filename_template)
        self.assertTrue(config.split_streams)
        self.assertFalse(config.tee)
        self.assertEqual(Compress.GZ, config.compress)

    def test_load_empty_file(self):
        path = self.write_config("")
        self.assertEqual(Config(), Config.load(path))

    def test_load_ignores_unknown_keys(self):
        path = self.write_config("no_such_option: 1\nplain_lines: true\n")
        config = Config.load(path)
        self.assertTrue(config.plain_lines)

    def test_load_rejects_bad_types(self):
        test_cases = ["tee: 'yes please'\n", "filename_template: 12\n", "- a\n- b\n"]
        for content in test_cases:
            with self.subTest(content=content):
                path = self.write_config(content)
                with self.assertRaises(ConfigError):
                    Config.load(path)

    def test_load_missing_file(self):
        with self.assertRaises(ConfigError):
            Config.load(os.path.join(self.tmp_dir, "missing.yaml"))

    def test_parse_compress(self):
        test_cases = [
            CompressCase("gz", "gz", Compress.GZ),
            CompressCase("upper case", "GZ", Compress.GZ),
            CompressCase("none", "none", Compress.NONE),
            CompressCase("empty", "", Compress.NONE),
            CompressCase("null", None, Compress.NONE),
            CompressCase("unknown value", "zstd", Compress.NONE),
            CompressCase("enum", Compress.GZ, Compress.GZ),
        ]
        for test_case in test_cases:
            with self.subTest(msg=test_case.name, test_case=test_case):
                self.assertEqual(test_case.expected, Config.parse_compress(test_case.value))

    def test_ensure_config_file(self):
        path = os.path.join(self.tmp_dir, ".lg")
        self.assertTrue(Config.ensure_config_file(path))
        self.assertTrue(os.path.isfile(path))
        # The generated file loads to the defaults.
        self.assertEqual(Config(), Config.load(path))

        with open(path, "w") as fh:
            fh.write("tee: false\n")
        self.assertTrue(Config.ensure_config_file(path))
        self.assertFalse(Config.load(path).tee)

    def test_ensure_config_file_unwritable(self):
        path = os.path.join(self.tmp_dir, "no", "such", "dir", ".lg")
        self.assertFalse(Config.ensure_config_file(path))
