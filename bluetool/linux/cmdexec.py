"""Run external command-line tools and collect their output."""

from __future__ import annotations

import errno
import logging
import shutil
import subprocess

log = logging.getLogger(__name__)


def cmd_exec(*args: str) -> str:
    """Run a command found on PATH and return its combined stdout and stderr.

    Raises FileNotFoundError when the executable cannot be found and
    subprocess.CalledProcessError when it exits with a non-zero status.
    """
    if not args:
        raise ValueError("no command given")

    base_cmd, *cmd_args = args
    path = shutil.which(base_cmd)
    if path is None:
        raise FileNotFoundError(
            errno.ENOENT, "executable file not found in $PATH", base_cmd
        )

    log.debug("Exec: %s %s", path, cmd_args)

    completed = subprocess.run(
        [path, *cmd_args],
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        check=True,
    )
    return completed.stdout