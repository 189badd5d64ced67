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

"""Tests for shipkit.upload."""

from __future__ import annotations

from pathlib import Path

import pytest
from shipkit.backends.forge import ReleaseInfo
from shipkit.errors import E, ShipKitError
from shipkit.logging import configure_logging
from shipkit.net import RetryPolicy
from shipkit.upload import content_type_for, upload_assets
from tests._fakes import FakeForge

configure_logging(quiet=True)

RELEASE = ReleaseInfo(id=1, tag='v1.0.0-rc.1', upload_url='https://uploads.test/assets{?name,label}')


def _files(tmp_path: Path, *names: str) -> list[Path]:
    paths = []
    for name in names:
        path = tmp_path / name
        path.write_bytes(name.encode())
        paths.append(path)
    return paths


class TestContentType:
    """Tests for content_type_for()."""

    @pytest.mark.parametrize(
        ('name', 'expected'),
        [
            ('a.tar.gz', 'application/gzip'),
            ('a.zip', 'application/zip'),
            ('a.tar.gz.sha512', 'text/plain'),
            ('a.txt', 'application/octet-stream'),
        ],
    )
    def test_types(self, name: str, expected: str) -> None:
        """Content type follows the last suffix."""
        assert content_type_for(Path(name)) == expected


class TestUploadAssets:
    """Tests for upload_assets()."""

    @pytest.mark.asyncio
    async def test_sorted_sequential(self, tmp_path: Path) -> None:
        """Files go up one at a time in path order."""
        files = _files(tmp_path, 'b.zip', 'a.tar.gz', 'a.tar.gz.sha512')
        forge = FakeForge()
        uploaded, skipped = await upload_assets(forge, RELEASE, files)
        assert [p.name for p in uploaded] == ['a.tar.gz', 'a.tar.gz.sha512', 'b.zip']
        assert skipped == []
        assert forge.upload_attempts == ['a.tar.gz', 'a.tar.gz.sha512', 'b.zip']
        assert forge.uploaded['a.tar.gz'] == (b'a.tar.gz', 'application/gzip')

    @pytest.mark.asyncio
    async def test_retry_bound_stops_later_uploads(self, tmp_path: Path) -> None:
        """An exhausted upload fails the run and later files are never tried."""
        files = _files(tmp_path, 'a.tar.gz', 'b.zip', 'c.zip')
        forge = FakeForge(fail_uploads={'b.zip'})
        with pytest.raises(ShipKitError) as exc_info:
            await upload_assets(forge, RELEASE, files, policy=RetryPolicy(max_attempts=3, backoff_base=0))
        assert exc_info.value.code is E.UPLOAD_FAILED
        assert forge.upload_attempts == ['a.tar.gz', 'b.zip', 'b.zip', 'b.zip']
        assert 'c.zip' not in forge.uploaded

    @pytest.mark.asyncio
    async def test_existing_assets_skipped(self, tmp_path: Path) -> None:
        """Assets already on the release are not uploaded again."""
        files = _files(tmp_path, 'a.tar.gz', 'b.zip')
        forge = FakeForge(assets={'a.tar.gz'})
        uploaded, skipped = await upload_assets(forge, RELEASE, files)
        assert [p.name for p in uploaded] == ['b.zip']
        assert [p.name for p in skipped] == ['a.tar.gz']
        assert forge.upload_attempts == ['b.zip']

    @pytest.mark.asyncio
    async def test_unreadable_file(self, tmp_path: Path) -> None:
        """A missing local file is an upload error."""
        with pytest.raises(ShipKitError) as exc_info:
            await upload_assets(FakeForge(), RELEASE, [tmp_path / 'gone.zip'])
        assert exc_info.value.code is E.UPLOAD_FAILED
