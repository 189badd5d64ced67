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

"""Tests for shipkit.candidate."""

from __future__ import annotations

import pytest
from shipkit.backends.forge import ReleaseInfo
from shipkit.candidate import (
    candidate_tag,
    cut_candidate,
    ensure_head_not_candidate,
    ensure_prerelease,
    ensure_tag_absent,
    next_candidate,
    push_candidate,
)
from shipkit.errors import E, ShipKitError
from shipkit.logging import configure_logging
from tests._fakes import FAIL, FakeForge, FakeVCS

configure_logging(quiet=True)


class TestNextCandidate:
    """Tests for next_candidate() and candidate_tag()."""

    def test_first(self) -> None:
        """No previous candidates means rc.1."""
        assert next_candidate(['v1.2.0', 'v1.2.0-rc.3'], '1.3.0') == ('v1.3.0-rc.1', 1)

    def test_increments_highest(self) -> None:
        """Numbers compare numerically, not lexically."""
        tags = ['v1.3.0-rc.2', 'v1.3.0-rc.10', 'v1.3.0-rc.9', 'v1.3.0-rc.x']
        assert next_candidate(tags, '1.3.0') == ('v1.3.0-rc.11', 11)

    def test_tag_format(self) -> None:
        """Tags are v-prefixed with a dotted rc number."""
        assert candidate_tag('0.1.1', 4) == 'v0.1.1-rc.4'


class TestGuards:
    """Tests for the idempotency guards."""

    @pytest.mark.asyncio
    async def test_tag_exists(self) -> None:
        """An existing tag fails the run."""
        with pytest.raises(ShipKitError) as exc_info:
            await ensure_tag_absent(FakeVCS(tags={'v1.0.0-rc.1'}), 'v1.0.0-rc.1')
        assert exc_info.value.code is E.IDEMPOTENCY_TAG_EXISTS

    @pytest.mark.asyncio
    async def test_tag_absent(self) -> None:
        """A new tag passes."""
        await ensure_tag_absent(FakeVCS(), 'v1.0.0-rc.1')

    @pytest.mark.asyncio
    async def test_head_already_candidate(self) -> None:
        """HEAD carrying a candidate tag fails the run."""
        with pytest.raises(ShipKitError) as exc_info:
            await ensure_head_not_candidate(FakeVCS(head_tags=['v0.1.1-rc.1']))
        assert exc_info.value.code is E.IDEMPOTENCY_TAG_EXISTS

    @pytest.mark.asyncio
    async def test_head_other_tags_ignored(self) -> None:
        """Stable and unrelated tags on HEAD are fine."""
        await ensure_head_not_candidate(FakeVCS(head_tags=['v0.1.0', 'nightly']))


class TestPushCandidate:
    """Tests for push_candidate()."""

    @pytest.mark.asyncio
    async def test_branch_then_tag(self) -> None:
        """The branch is pushed before the tag."""
        vcs = FakeVCS(branch='main')
        await push_candidate(vcs, 'v1.0.0-rc.1', remote='upstream')
        assert vcs.pushed == [('upstream', 'main'), ('upstream', 'refs/tags/v1.0.0-rc.1')]

    @pytest.mark.asyncio
    async def test_detached_head(self) -> None:
        """A detached HEAD cannot be pushed."""
        with pytest.raises(ShipKitError) as exc_info:
            await push_candidate(FakeVCS(branch=''), 'v1.0.0-rc.1')
        assert exc_info.value.code is E.PUSH_FAILED

    @pytest.mark.asyncio
    async def test_push_failure(self) -> None:
        """A rejected push is a push error."""
        vcs = FakeVCS(push_result=FAIL)
        with pytest.raises(ShipKitError) as exc_info:
            await push_candidate(vcs, 'v1.0.0-rc.1')
        assert exc_info.value.code is E.PUSH_FAILED
        assert len(vcs.pushed) == 1


class TestEnsurePrerelease:
    """Tests for ensure_prerelease()."""

    @pytest.mark.asyncio
    async def test_existing(self) -> None:
        """An existing release is reused."""
        release = ReleaseInfo(id=7, tag='v1.0.0-rc.1')
        forge = FakeForge(releases={'v1.0.0-rc.1': release})
        assert await ensure_prerelease(forge, 'v1.0.0-rc.1') is release
        assert forge.releases_created == []

    @pytest.mark.asyncio
    async def test_created(self) -> None:
        """A missing release is created as a prerelease."""
        forge = FakeForge()
        release = await ensure_prerelease(forge, 'v1.0.0-rc.1')
        assert release.prerelease
        assert forge.releases_created == [{'tag': 'v1.0.0-rc.1', 'title': 'v1.0.0-rc.1', 'prerelease': True}]

    @pytest.mark.asyncio
    async def test_creation_failure(self) -> None:
        """A failed creation is a release error."""
        with pytest.raises(ShipKitError) as exc_info:
            await ensure_prerelease(FakeForge(create_result=FAIL), 'v1.0.0-rc.1')
        assert exc_info.value.code is E.RELEASE_CREATION_FAILED


class TestCutCandidate:
    """Tests for cut_candidate()."""

    @pytest.mark.asyncio
    async def test_local_only(self) -> None:
        """Without a forge the tag is created but not pushed."""
        vcs = FakeVCS(sha='c0ffee', tags={'v0.1.1-rc.1'})
        candidate = await cut_candidate(vcs, None, '0.1.1')
        assert candidate.tag == 'v0.1.1-rc.2'
        assert candidate.number == 2
        assert candidate.commit_sha == 'c0ffee'
        assert candidate.release is None
        assert vcs.tagged == [('v0.1.1-rc.2', 'prerelease v0.1.1-rc.2')]
        assert vcs.pushed == []

    @pytest.mark.asyncio
    async def test_remote(self) -> None:
        """With a forge the tag is pushed and a prerelease exists."""
        vcs = FakeVCS()
        forge = FakeForge()
        candidate = await cut_candidate(vcs, forge, '2.0.0')
        assert candidate.tag == 'v2.0.0-rc.1'
        assert candidate.release is not None
        assert candidate.release.tag == 'v2.0.0-rc.1'
        assert [r for _, r in vcs.pushed] == ['main', 'refs/tags/v2.0.0-rc.1']

    @pytest.mark.asyncio
    async def test_tag_failure(self) -> None:
        """A failed tag command is a tag error."""
        with pytest.raises(ShipKitError) as exc_info:
            await cut_candidate(FakeVCS(tag_result=FAIL), None, '1.0.0')
        assert exc_info.value.code is E.TAG_CREATION_FAILED
