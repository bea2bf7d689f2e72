import re
from typing import Sequence

_NON_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_REPEATED_UNDERSCORES = re.compile(r"_{2,}")


class Utils(object):

    @staticmethod
    def sanitize_component(value: str) -> str:
        """
        Replace every character that is not an ASCII letter, digit, '-', '_' or '.' with '_',
        collapse runs of '_' and trim leading and trailing '_'.
        """
        out = _NON_FILENAME_CHARS.sub("_", value)
        out = _REPEATED_UNDERSCORES.sub("_", out)
        return out.strip("_")

    @staticmethod
    def join_args(args: Sequence[str], include_full_args: bool) -> str:
        # Without include_full_args, option flags are left out.
        if include_full_args:
            return " ".join(args)
        return " ".join(a for a in args if not a.startswith("-"))

    @staticmethod
    def exit_code_from_returncode(returncode: int) -> int:
        # A negative returncode is the number of the signal that killed the child.
        if returncode < 0:
            return 128 + (-returncode)
        return returncode
