# This software is released under the Revised BSD License.
# See LICENSE for details
#
# Copyright (c) 2019, Ryan Chapin, https//:www.ryanchapin.com
# All rights reserved.


class LgError(Exception):
    pass


class ConfigError(LgError):
    pass


class LaunchFailure(LgError):
    """The child command could not be started; no log file is produced."""

    def __init__(self, cmd: str, cause: OSError):
        super().__init__(f"unable to launch command; cmd={cmd}, err={cause}")
        self.cmd = cmd
        self.cause = cause


class PumpReadError(LgError):
    def __init__(self, tag: str, cause: OSError):
        super().__init__(f"reading child stream; stream={tag}, err={cause}")
        self.tag = tag
        self.cause = cause


class SinkWriteError(LgError):
    def __init__(self, path: str, cause: OSError):
        super().__init__(f"writing log file; path={path}, err={cause}")
        self.path = path
        self.cause = cause


class RenameFailure(LgError):
    def __init__(self, temp_path: str, final_path: str, cause: OSError):
        super().__init__(
            f"renaming log file, output left at temp path; temp_path={temp_path}, "
            f"final_path={final_path}, err={cause}"
        )
        self.temp_path = temp_path
        self.final_path = final_path
        self.cause = cause
