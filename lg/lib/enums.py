# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.

from enum import Enum


class StreamTag(Enum):
    OUT = "STDOUT"
    ERR = "STDERR"


class Compress(Enum):
    NONE = "none"
    GZ = "gz"

    @staticmethod
    def get_enum_value_from_string(value_string: str):
        """
        Convert a string to the corresponding Compress enum value.
        :param value_string: The string representation of the enum value.
        :return: The corresponding Compress enum value or None if not found.
        """
        if value_string is None:
            return None
        try:
            return Compress(value_string.strip().lower())
        except ValueError:
            return None


class SessionState(Enum):
    SPAWNING = "spawning"
    RUNNING = "running"
    DRAINING = "draining"
    FINALIZING = "finalizing"
    DONE = "done"
