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

"""Tests for shipkit.context."""

from __future__ import annotations

from pathlib import Path

import pytest
from shipkit.context import PackageInfo, ReleaseContext
from shipkit.errors import E, ShipKitError
from tests._fakes import make_ctx


class TestReleaseContext:
    """Tests for ReleaseContext validation and lookups."""

    def test_packages_frozen_to_tuple(self, tmp_path: Path) -> None:
        """A list of packages is stored as a tuple."""
        pkg = PackageInfo(name='a', version='0.1.0', manifest_path=tmp_path / 'Cargo.toml', root=tmp_path)
        ctx = ReleaseContext(
            repo_root=tmp_path,
            repo_owner='o',
            repo_name='r',
            packages=[pkg],  # type: ignore[arg-type]
            primary_package='a',
        )
        assert ctx.packages == (pkg,)

    def test_duplicate_names(self, tmp_path: Path) -> None:
        """Duplicate package names are rejected."""
        with pytest.raises(ShipKitError) as exc_info:
            make_ctx(tmp_path, [('a', '0.1.0', 'a'), ('a', '0.2.0', 'b')])
        assert exc_info.value.code is E.CONTEXT_INVALID

    def test_unknown_primary(self, tmp_path: Path) -> None:
        """The primary package must be one of the packages."""
        with pytest.raises(ShipKitError) as exc_info:
            make_ctx(tmp_path, [('a', '0.1.0', 'a')], primary='zzz')
        assert exc_info.value.code is E.CONTEXT_INVALID

    def test_package_lookup(self, tmp_path: Path) -> None:
        """package() finds by name and raises KeyError otherwise."""
        ctx = make_ctx(tmp_path, [('a', '0.1.0', 'a'), ('b', '0.1.0', 'b')])
        assert ctx.package('b').name == 'b'
        assert ctx.primary.name == 'a'
        with pytest.raises(KeyError):
            ctx.package('c')

    def test_relative_root(self, tmp_path: Path) -> None:
        """Roots are repo-relative and posix; the repo root is ''."""
        ctx = make_ctx(tmp_path, [('top', '0.1.0', ''), ('s3', '0.1.0', 'core/services/s3')])
        assert ctx.relative_root(ctx.package('top')) == ''
        assert ctx.relative_root(ctx.package('s3')) == 'core/services/s3'
