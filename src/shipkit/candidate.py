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

"""Release-candidate tagging.

Candidate flow::

    new primary version 1.3.0
          │
          ▼
    existing tags v1.3.0-rc.1, v1.3.0-rc.2  ──▶ next: v1.3.0-rc.3
          │
          ▼
    tag exists? ──yes──▶ SK-IDEMPOTENCY-TAG-EXISTS
          │ no
          ▼
    git tag -a v1.3.0-rc.3 -m "prerelease v1.3.0-rc.3"
          │
          ▼ (remote mode only)
    git push origin <branch>; git push origin refs/tags/v1.3.0-rc.3
          │
          ▼
    forge release for the tag exists? ── yes ──▶ done
          │ no
          ▼
    create prerelease

Nothing here is retried: a failed tag or push needs an operator. The
tag-existence check is check-then-act against the local repository; it
is not a lock, so two concurrent runs on one checkout are not safe.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from shipkit.backends.forge import Forge, ReleaseInfo
from shipkit.backends.vcs import VCS
from shipkit.errors import E, ShipKitError
from shipkit.logging import get_logger
from shipkit.versioning import parse_base_version

log = get_logger('shipkit.candidate')

TAG_MESSAGE_TEMPLATE = 'prerelease {tag}'

CANDIDATE_TAG_RE = re.compile(r'^v(\d+)\.(\d+)\.(\d+)-rc\.(\d+)$')


@dataclass(frozen=True)
class Candidate:
    """A cut release candidate.

    Attributes:
        tag: Candidate tag name, e.g. ``v1.3.0-rc.1``.
        number: The ``rc`` number.
        commit_sha: Commit the tag points at.
        release: Forge release for the tag (``None`` in local-only mode).
    """

    tag: str
    number: int
    commit_sha: str
    release: ReleaseInfo | None = None


def candidate_tag(version: str, number: int) -> str:
    """Format the candidate tag for ``version`` and ``number``."""
    major, minor, patch = parse_base_version(version)
    return f'v{major}.{minor}.{patch}-rc.{number}'


def next_candidate(tags: Iterable[str], version: str) -> tuple[str, int]:
    """Return ``(tag, number)`` for the next candidate of ``version``.

    The number is one more than the highest ``rc.N`` among ``tags`` with
    the same ``major.minor.patch``; the first candidate is ``rc.1``.

    >>> next_candidate(['v1.3.0-rc.1', 'v1.3.0-rc.4', 'v1.2.0-rc.9'], '1.3.0')
    ('v1.3.0-rc.5', 5)
    >>> next_candidate([], '0.2.0')
    ('v0.2.0-rc.1', 1)
    """
    major, minor, patch = parse_base_version(version)
    pattern = re.compile(rf'^v{major}\.{minor}\.{patch}-rc\.(\d+)$')
    highest = 0
    for tag in tags:
        m = pattern.match(tag)
        if m:
            highest = max(highest, int(m.group(1)))
    number = highest + 1
    return candidate_tag(version, number), number


async def ensure_tag_absent(vcs: VCS, tag: str) -> None:
    """Fail fast if ``tag`` already exists (idempotency guard)."""
    if await vcs.tag_exists(tag):
        raise ShipKitError(
            code=E.IDEMPOTENCY_TAG_EXISTS,
            message=f'Candidate tag {tag} already exists',
            hint='A previous run already tagged this candidate. Delete the tag or land new changes, then rerun.',
        )


async def ensure_head_not_candidate(vcs: VCS) -> None:
    """Fail fast if HEAD already carries a candidate tag.

    Runs before any file is touched, so rerunning the pipeline on a
    commit that was already cut as a candidate stops here instead of
    writing another release commit and tag on top of it.
    """
    existing = sorted(t for t in await vcs.tags_at('HEAD') if CANDIDATE_TAG_RE.match(t))
    if existing:
        raise ShipKitError(
            code=E.IDEMPOTENCY_TAG_EXISTS,
            message=f'HEAD is already release candidate {", ".join(existing)}',
            hint='Land new changes before cutting another candidate.',
        )


async def create_candidate_tag(vcs: VCS, tag: str) -> str:
    """Create the annotated candidate tag at HEAD and return its commit SHA."""
    result = await vcs.tag(tag, message=TAG_MESSAGE_TEMPLATE.format(tag=tag))
    if not result.ok:
        raise ShipKitError(
            code=E.TAG_CREATION_FAILED,
            message=f'Creating tag {tag} failed: {result.stderr.strip()}',
        )
    return await vcs.tag_commit_sha(tag)


async def push_candidate(vcs: VCS, tag: str, *, remote: str = 'origin') -> None:
    """Push the current branch, then the candidate tag, to ``remote``."""
    branch = await vcs.current_branch()
    if not branch:
        raise ShipKitError(
            code=E.PUSH_FAILED,
            message='HEAD is detached; cannot push the release branch',
            hint=f'The tag {tag} exists locally only. Check out a branch and push it manually.',
        )
    for refspec in (branch, f'refs/tags/{tag}'):
        result = await vcs.push(refspec, remote=remote)
        if not result.ok:
            raise ShipKitError(
                code=E.PUSH_FAILED,
                message=f'git push {remote} {refspec} failed: {result.stderr.strip()}',
                hint=f'The tag {tag} was created locally and is not rolled back.',
            )


async def ensure_prerelease(forge: Forge, tag: str) -> ReleaseInfo:
    """Return the forge release for ``tag``, creating a prerelease if needed.

    Raises:
        ShipKitError: ``SK-RELEASE-CREATION-FAILED`` when creation fails
            for any reason other than the release already existing.
    """
    existing = await forge.release_by_tag(tag)
    if existing is not None:
        log.info('prerelease_exists', tag=tag, release_id=existing.id)
        return existing

    result = await forge.create_release(tag, title=tag, prerelease=True)
    if not result.ok:
        raise ShipKitError(
            code=E.RELEASE_CREATION_FAILED,
            message=f'Creating prerelease for {tag} failed: {result.stderr.strip()[:300]}',
            hint=f'The tag {tag} is pushed. Create the release manually or rerun the upload.',
        )

    created = await forge.release_by_tag(tag)
    if created is None:
        raise ShipKitError(
            code=E.RELEASE_CREATION_FAILED,
            message=f'Prerelease for {tag} was created but cannot be found',
        )
    log.info('prerelease_created', tag=tag, release_id=created.id)
    return created


async def cut_candidate(
    vcs: VCS,
    forge: Forge | None,
    version: str,
    *,
    remote: str = 'origin',
) -> Candidate:
    """Tag the next candidate of ``version`` and publish it.

    With ``forge=None`` (local-only mode) the tag is created but neither
    pushed nor announced to the release host.
    """
    tag, number = next_candidate(await vcs.list_tags(pattern='v*-rc.*'), version)
    log.info('candidate_tag', tag=tag, number=number)

    await ensure_tag_absent(vcs, tag)
    commit_sha = await create_candidate_tag(vcs, tag)

    release: ReleaseInfo | None = None
    if forge is not None:
        await push_candidate(vcs, tag, remote=remote)
        release = await ensure_prerelease(forge, tag)

    return Candidate(tag=tag, number=number, commit_sha=commit_sha, release=release)


__all__ = [
    'CANDIDATE_TAG_RE',
    'Candidate',
    'TAG_MESSAGE_TEMPLATE',
    'candidate_tag',
    'create_candidate_tag',
    'cut_candidate',
    'ensure_head_not_candidate',
    'ensure_prerelease',
    'ensure_tag_absent',
    'next_candidate',
    'push_candidate',
]
