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

"""Tests for shipkit.attribution."""

from __future__ import annotations

from pathlib import Path

import pytest
from shipkit.attribution import attribute_commits, owner_of, resolve_base
from shipkit.commit_parsing import CommitKind
from shipkit.errors import E, ShipKitError
from shipkit.logging import configure_logging
from tests._fakes import FakeVCS, commit, make_ctx

configure_logging(quiet=True)


class TestOwnerOf:
    """Tests for owner_of()."""

    ROOTS = {'core': 'core', 's3': 'core/services/s3', 'bin': 'bin/tool'}

    def test_longest_prefix_wins(self) -> None:
        """A nested package claims its own files."""
        assert owner_of('core/services/s3/src/lib.rs', self.ROOTS) == 's3'
        assert owner_of('core/src/lib.rs', self.ROOTS) == 'core'

    def test_prefix_must_be_component(self) -> None:
        """'core2/x' is not inside 'core'."""
        assert owner_of('core2/x', self.ROOTS) is None

    def test_root_package_catches_rest(self) -> None:
        """A package at the repository root owns unclaimed paths."""
        roots = {**self.ROOTS, 'top': ''}
        assert owner_of('README.md', roots) == 'top'
        assert owner_of('core/a.rs', roots) == 'core'

    def test_unowned(self) -> None:
        """Paths outside every root have no owner."""
        assert owner_of('docs/index.md', self.ROOTS) is None


class TestResolveBase:
    """Tests for resolve_base()."""

    @pytest.mark.asyncio
    async def test_no_tag(self) -> None:
        """No base tag means the whole history."""
        assert await resolve_base(FakeVCS(), None) is None

    @pytest.mark.asyncio
    async def test_resolves(self) -> None:
        """A known tag resolves to its commit."""
        vcs = FakeVCS(refs={'refs/tags/v0.1.0': 'f' * 40})
        assert await resolve_base(vcs, 'v0.1.0') == 'f' * 40

    @pytest.mark.asyncio
    async def test_missing_tag(self) -> None:
        """An unknown tag is a resolution error."""
        with pytest.raises(ShipKitError) as exc_info:
            await resolve_base(FakeVCS(), 'v9.9.9')
        assert exc_info.value.code is E.RESOLUTION_TAG_NOT_FOUND


class TestAttributeCommits:
    """Tests for attribute_commits()."""

    @pytest.mark.asyncio
    async def test_attribution(self, tmp_path: Path) -> None:
        """Commits are split by package, oldest first, one entry per package."""
        ctx = make_ctx(tmp_path, [('core', '0.1.0', 'core'), ('s3', '0.1.0', 'core/services/s3')])
        vcs = FakeVCS(
            commits=[
                commit('a' * 40, 'feat: reader'),
                commit('b' * 40, 'fix: both\n\nbody', 'a' * 40),
                commit('c' * 40, 'docs: outside', 'b' * 40),
            ],
            changed={
                'a' * 40: ['core/src/lib.rs', 'core/src/read.rs'],
                'b' * 40: ['core/src/lib.rs', 'core/services/s3/src/lib.rs'],
                'c' * 40: ['website/index.md'],
            },
        )
        attributed = await attribute_commits(ctx, vcs)
        assert set(attributed) == {'core', 's3'}
        assert [e.subject for e in attributed['core']] == ['feat: reader', 'fix: both']
        assert [e.short_sha for e in attributed['core']] == ['aaaaaaa', 'bbbbbbb']
        assert attributed['core'][0].kind is CommitKind.FEATURE
        assert [e.kind for e in attributed['s3']] == [CommitKind.FIX]

    @pytest.mark.asyncio
    async def test_breaking_flag_carried(self, tmp_path: Path) -> None:
        """Breaking markers survive into the entry."""
        ctx = make_ctx(tmp_path, [('core', '0.1.0', 'core')])
        vcs = FakeVCS(commits=[commit('a' * 40, 'refactor!: api')], changed={'a' * 40: ['core/x']})
        (entry,) = (await attribute_commits(ctx, vcs))['core']
        assert entry.breaking
        assert entry.kind is CommitKind.BREAKING

    @pytest.mark.asyncio
    async def test_history_failure(self, tmp_path: Path) -> None:
        """A failing history walk is an attribution error."""
        ctx = make_ctx(tmp_path, [('core', '0.1.0', 'core')])
        with pytest.raises(ShipKitError) as exc_info:
            await attribute_commits(ctx, FakeVCS(fail_log=True))
        assert exc_info.value.code is E.ATTRIBUTION_FAILED
