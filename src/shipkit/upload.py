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

"""Upload release artifacts to the candidate's forge release.

Uploads are sequential and ordered by path. Before the first upload the
release's existing asset names are fetched; files already attached are
skipped, so rerunning after a partial upload only sends what is
missing::

    files (sorted) ──▶ already on release? ──yes──▶ skipped
                              │ no
                              ▼
                       upload with RetryPolicy
                              │
                    ok ◀──────┴──────▶ exhausted ──▶ SK-UPLOAD-FAILED
                                                     (remaining files
                                                      are not attempted)
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import aiofiles

from shipkit.backends.forge import Forge, ReleaseInfo
from shipkit.errors import E, ShipKitError
from shipkit.logging import get_logger
from shipkit.net import DEFAULT_RETRY_POLICY, RetryPolicy

log = get_logger('shipkit.upload')

CONTENT_TYPES: dict[str, str] = {
    '.gz': 'application/gzip',
    '.zip': 'application/zip',
    '.sha512': 'text/plain',
}
DEFAULT_CONTENT_TYPE = 'application/octet-stream'


def content_type_for(path: Path) -> str:
    """Content type by final suffix.

    >>> content_type_for(Path('a-1.0.0-rc1-src.tar.gz'))
    'application/gzip'
    >>> content_type_for(Path('a.zip.sha512'))
    'text/plain'
    """
    return CONTENT_TYPES.get(path.suffix, DEFAULT_CONTENT_TYPE)


async def _read(path: Path) -> bytes:
    try:
        async with aiofiles.open(path, 'rb') as f:
            return await f.read()
    except OSError as exc:
        raise ShipKitError(
            code=E.UPLOAD_FAILED,
            message=f'Cannot read {path}: {exc}',
        ) from exc


async def upload_assets(
    forge: Forge,
    release: ReleaseInfo,
    files: Iterable[Path],
    *,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
) -> tuple[list[Path], list[Path]]:
    """Upload ``files`` to ``release`` one at a time, sorted by path.

    Args:
        forge: Release host.
        release: Target release (must carry an ``upload_url``).
        files: Artifact paths. Asset names are the file names.
        policy: Attempt bound and backoff per file.

    Returns:
        ``(uploaded, skipped)`` in upload order.

    Raises:
        ShipKitError: ``SK-UPLOAD-FAILED`` when a file still fails after
            the last attempt. Files after it are not attempted.
    """
    existing = await forge.list_asset_names(release)
    uploaded: list[Path] = []
    skipped: list[Path] = []

    for path in sorted(files):
        if path.name in existing:
            log.info('upload_skipped', asset=path.name, reason='already_present')
            skipped.append(path)
            continue

        data = await _read(path)
        result = await forge.upload_asset(
            release,
            path.name,
            data,
            content_type=content_type_for(path),
            policy=policy,
        )
        if not result.ok:
            log.error('upload_failed', asset=path.name, attempts=policy.max_attempts)
            raise ShipKitError(
                code=E.UPLOAD_FAILED,
                message=(
                    f'Uploading {path.name} failed after {policy.max_attempts} attempt(s): '
                    f'{result.stderr.strip()[:300]}'
                ),
                hint='Rerun the upload; assets already on the release are skipped.',
            )
        log.info('uploaded', asset=path.name, size=len(data))
        uploaded.append(path)

    return uploaded, skipped


__all__ = [
    'CONTENT_TYPES',
    'DEFAULT_CONTENT_TYPE',
    'content_type_for',
    'upload_assets',
]
