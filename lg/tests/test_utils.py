from dataclasses import dataclass
import unittest
from typing import List
from lg.lib.utils import Utils


@dataclass
class SanitizeComponent:
    name: str
    input: str
    expected: str


@dataclass
class JoinArgs:
    name: str
    args: List[str]
    include_full_args: bool
    expected: str


@dataclass
class ExitCode:
    name: str
    returncode: int
    expected: int


class UtilsTest(unittest.TestCase):
    def test_sanitize_component(self):
        test_cases = [
            SanitizeComponent("empty input", "", ""),
            SanitizeComponent("all special chars", "!@#$%^", ""),
            SanitizeComponent("mix of special chars and spaces", "This is a test!", "This_is_a_test"),
            SanitizeComponent("allowed chars kept", "a-b_c.d", "a-b_c.d"),
            SanitizeComponent("path", "/home/user/src", "home_user_src"),
            SanitizeComponent("repeated underscores collapse", "a__b___c", "a_b_c"),
            SanitizeComponent("non ascii", "café", "caf"),
        ]

        for test_case in test_cases:
            with self.subTest(msg=test_case.name, test_case=test_case):
                actual = Utils.sanitize_component(test_case.input)
                self.assertEqual(test_case.expected, actual)

    def test_join_args(self):
        test_cases = [
            JoinArgs("no args", [], True, ""),
            JoinArgs("full args", ["-la", "/tmp"], True, "-la /tmp"),
            JoinArgs("flags dropped", ["-la", "--color", "/tmp", "x"], False, "/tmp x"),
        ]

        for test_case in test_cases:
            with self.subTest(msg=test_case.name, test_case=test_case):
                actual = Utils.join_args(test_case.args, test_case.include_full_args)
                self.assertEqual(test_case.expected, actual)

    def test_exit_code_from_returncode(self):
        test_cases = [
            ExitCode("success", 0, 0),
            ExitCode("failure", 3, 3),
            ExitCode("max", 255, 255),
            ExitCode("killed by SIGKILL", -9, 137),
            ExitCode("killed by SIGTERM", -15, 143),
        ]

        for test_case in test_cases:
            with self.subTest(msg=test_case.name, test_case=test_case):
                actual = Utils.exit_code_from_returncode(test_case.returncode)
                self.assertEqual(test_case.expected, actual)
