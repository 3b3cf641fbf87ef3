from __future__ import annotations

import os
import shlex
import subprocess
import sys

from .cli_shared import MASUK_DEBUG, SshLaunchError, _eprint, _truthy, ssh_binary

_CAN_EXEC = os.name == "posix"


def ssh_command(args: list[str], *, binary: str | None = None) -> list[str]:
    return [binary or ssh_binary(), *args]


def exec_ssh(args: list[str], *, binary: str | None = None) -> int:
    """Hand the terminal over to the SSH client.

    On POSIX the current process image is replaced, so this only returns if
    the exec itself fails. Elsewhere the client runs as a child with
    inherited standard streams and its exit status is returned.
    """
    cmd = ssh_command(args, binary=binary)
    if _truthy(os.environ.get(MASUK_DEBUG)):
        _eprint(f"exec: {shlex.join(cmd)}")
    sys.stdout.flush()
    sys.stderr.flush()
    try:
        if _CAN_EXEC:
            os.execvp(cmd[0], cmd)
        return subprocess.call(cmd)
    except OSError as e:
        raise SshLaunchError(f"failed to execute {cmd[0]!r}: {e}") from e
