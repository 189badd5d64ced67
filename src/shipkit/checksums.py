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

"""SHA-512 sidecar files for release archives.

Each archive ``X`` gets a sibling ``X.sha512`` holding the lowercase hex
digest followed by a newline. Digests are streamed in fixed-size chunks
so large archives are never loaded whole.
"""

from __future__ import annotations

import hashlib
from collections.abc import Sequence
from pathlib import Path

import aiofiles

from shipkit.errors import E, ShipKitError
from shipkit.logging import get_logger

log = get_logger('shipkit.checksums')

CHUNK_SIZE = 8192
SIDECAR_SUFFIX = '.sha512'


def sidecar_path(path: Path) -> Path:
    """``archive.tar.gz`` -> ``archive.tar.gz.sha512``."""
    return path.with_name(path.name + SIDECAR_SUFFIX)


async def sha512_file(path: Path, *, chunk_size: int = CHUNK_SIZE) -> str:
    """Return the hex SHA-512 digest of ``path``."""
    digest = hashlib.sha512()
    async with aiofiles.open(path, 'rb') as f:
        while chunk := await f.read(chunk_size):
            digest.update(chunk)
    return digest.hexdigest()


async def write_checksum(path: Path) -> Path:
    """Write the ``.sha512`` sidecar for ``path`` and return its path.

    Raises:
        ShipKitError: ``SK-CHECKSUM-FAILED`` if the archive cannot be read
            or the sidecar cannot be written.
    """
    target = sidecar_path(path)
    try:
        hexdigest = await sha512_file(path)
        async with aiofiles.open(target, 'w', encoding='utf-8') as f:
            await f.write(f'{hexdigest}\n')
    except OSError as exc:
        raise ShipKitError(
            code=E.CHECKSUM_FAILED,
            message=f'Cannot checksum {path.name}: {exc}',
        ) from exc
    log.debug('checksum_written', file=path.name, sha512=hexdigest[:16])
    return target


async def write_checksums(files: Sequence[Path]) -> list[Path]:
    """Write sidecars for ``files`` in order; stop at the first failure."""
    return [await write_checksum(f) for f in files]


__all__ = [
    'CHUNK_SIZE',
    'SIDECAR_SUFFIX',
    'sha512_file',
    'sidecar_path',
    'write_checksum',
    'write_checksums',
]
