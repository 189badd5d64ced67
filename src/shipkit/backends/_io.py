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

"""Async text file helpers shared by the manifest and changelog writers.

Both wrap ``aiofiles`` and turn :class:`OSError` (and undecodable bytes)
into a :class:`~shipkit.errors.ShipKitError` with the caller's error code,
so a manifest read failure surfaces as ``SK-MANIFEST-READ-FAILED`` and a
changelog write failure as ``SK-CHANGELOG-WRITE-FAILED``.

Files are opened with ``newline=''``: line endings are read and written
exactly as they are, so a CRLF manifest stays CRLF after an edit.
"""

from __future__ import annotations

from pathlib import Path

import aiofiles

from shipkit.errors import ErrorCode, ShipKitError


async def read_file(path: Path, *, code: ErrorCode) -> str:
    """Read a UTF-8 text file asynchronously via aiofiles."""
    try:
        async with aiofiles.open(path, encoding='utf-8', newline='') as f:
            return await f.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise ShipKitError(
            code=code,
            message=f'Failed to read {path}: {exc}',
            hint=f'Check that {path} exists, is readable and is UTF-8 encoded.',
        ) from exc


async def read_file_or_empty(path: Path, *, code: ErrorCode) -> str:
    """Like :func:`read_file`, but a missing file reads as ``''``."""
    if not path.exists():
        return ''
    return await read_file(path, code=code)


async def write_file(path: Path, content: str, *, code: ErrorCode) -> None:
    """Write a UTF-8 text file asynchronously via aiofiles."""
    try:
        async with aiofiles.open(path, mode='w', encoding='utf-8', newline='') as f:
            await f.write(content)
    except OSError as exc:
        raise ShipKitError(
            code=code,
            message=f'Failed to write {path}: {exc}',
            hint=f'Check file permissions for {path}.',
        ) from exc


__all__ = [
    'read_file',
    'read_file_or_empty',
    'write_file',
]
