# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Subprocess runner used by the git backend.

Commands run non-interactively: the child environment always carries
``GIT_TERMINAL_PROMPT=0`` (a push needing credentials fails instead of
waiting on a prompt) and ``LC_ALL=C`` (stable, untranslated stderr).
Caller-supplied variables are layered on top and recorded on the result.

Output is decoded as UTF-8 text unless ``binary=True``; blob reads use
binary mode so archive bytes are passed through untouched::

    run_command(['git', 'cat-file', 'blob', oid], binary=True).stdout_bytes
"""

from __future__ import annotations

import os
import subprocess  # noqa: S404 - running git is this module's job
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from shipkit.logging import get_logger

log = get_logger('shipkit.backends.run')

DEFAULT_TIMEOUT_SECONDS = 300

NON_INTERACTIVE_ENV: dict[str, str] = {
    'GIT_TERMINAL_PROMPT': '0',
    'LC_ALL': 'C',
}

# Longest stderr excerpt attached to a failure event.
_STDERR_EXCERPT = 500

CalledProcessError = subprocess.CalledProcessError
TimeoutExpired = subprocess.TimeoutExpired


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one subprocess call.

    Attributes:
        command: Argument vector that was run.
        return_code: Exit status; 0 means success.
        stdout: Decoded standard output (empty in binary mode).
        stderr: Decoded standard error.
        duration: Wall-clock time in milliseconds.
        stdout_bytes: Raw standard output in binary mode.
        env_overrides: Variables the caller added to the environment.
    """

    command: list[str]
    return_code: int
    stdout: str = ''
    stderr: str = ''
    duration: float = 0.0
    stdout_bytes: bytes = b''
    env_overrides: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """True for a zero exit status."""
        return self.return_code == 0

    @property
    def command_str(self) -> str:
        """Arguments joined with spaces, for log lines and messages."""
        return ' '.join(self.command)


def _child_env(extra: Mapping[str, str] | None) -> dict[str, str]:
    return {**os.environ, **NON_INTERACTIVE_ENV, **(extra or {})}


def run_command(
    cmd: Sequence[str],
    *,
    cwd: Path | str | None = None,
    env: Mapping[str, str] | None = None,
    timeout: int = DEFAULT_TIMEOUT_SECONDS,
    binary: bool = False,
    check: bool = False,
) -> CommandResult:
    """Run ``cmd`` to completion and capture its output.

    Args:
        cmd: Program and arguments.
        cwd: Working directory.
        env: Extra environment variables for the child.
        timeout: Seconds before the child is killed.
        binary: Keep stdout as bytes in :attr:`CommandResult.stdout_bytes`.
        check: Raise on a non-zero exit status.

    Returns:
        The :class:`CommandResult`.

    Raises:
        CalledProcessError: With ``check=True`` and a non-zero exit.
        TimeoutExpired: When ``timeout`` elapses.
    """
    argv = list(cmd)
    overrides = dict(env or {})
    log.debug('run_command', cmd=' '.join(argv), cwd=str(cwd or '.'))

    start = time.monotonic()
    try:
        proc = subprocess.run(  # noqa: S603 - argv built by the backends
            argv,
            cwd=cwd,
            env=_child_env(overrides),
            capture_output=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        log.error('command_timeout', cmd=' '.join(argv), timeout=timeout)
        raise
    elapsed = (time.monotonic() - start) * 1000

    stderr = proc.stderr.decode('utf-8', errors='replace')
    result = CommandResult(
        command=argv,
        return_code=proc.returncode,
        stdout='' if binary else proc.stdout.decode('utf-8', errors='replace'),
        stderr=stderr,
        duration=elapsed,
        stdout_bytes=proc.stdout if binary else b'',
        env_overrides=overrides,
    )

    if result.ok:
        log.debug('command_ok', cmd=result.command_str, duration=elapsed)
        return result

    log.warning(
        'command_failed',
        cmd=result.command_str,
        return_code=proc.returncode,
        stderr=stderr[:_STDERR_EXCERPT],
        duration=elapsed,
    )
    if check:
        raise CalledProcessError(proc.returncode, argv, output=proc.stdout, stderr=stderr)
    return result


__all__ = [
    'CalledProcessError',
    'CommandResult',
    'DEFAULT_TIMEOUT_SECONDS',
    'NON_INTERACTIVE_ENV',
    'TimeoutExpired',
    'run_command',
]
