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

"""Attribute commits since the last stable tag to the packages they touch.

Attribution flow::

    last_stable_tag ──resolve──▶ base sha        (SK-RESOLUTION-TAG-NOT-FOUND)
          │
          ▼
    vcs.commits_since(base) ─────▶ oldest → newest
          │
          ▼  per commit
    classify_commit(message)      kind, subject, breaking
    vcs.changed_paths(sha, first parent or empty tree)
    owner_of(path) by longest package root prefix
          │
          ▼
    {package: [ChangeEntry, ...]}  one entry per (commit, package)

A nested package wins over its parent: with roots ``core`` and
``core/services/s3``, a change to ``core/services/s3/src/lib.rs`` belongs
to the ``s3`` package only. A package rooted at the repository root
owns whatever no other package claims.
"""

from __future__ import annotations

import subprocess  # noqa: S404 - only for CalledProcessError

from shipkit.backends.vcs import VCS
from shipkit.commit_parsing import classify_commit
from shipkit.context import ReleaseContext
from shipkit.errors import E, ShipKitError
from shipkit.logging import get_logger
from shipkit.plan import ChangeEntry

log = get_logger('shipkit.attribution')

SHORT_SHA_LENGTH = 7


def _owns(root: str, path: str) -> bool:
    """Return ``True`` if ``path`` lies inside the ``root`` subtree."""
    if not root:
        return True
    return path == root or path.startswith(root + '/')


def owner_of(path: str, roots: dict[str, str]) -> str | None:
    """Return the package whose root is the longest prefix of ``path``.

    Args:
        path: Repository-relative, ``/``-separated file path.
        roots: ``{package name: repository-relative root}``. The
            repository root is ``''``.

    Returns:
        The owning package name, or ``None`` if no package owns the path.
    """
    best: str | None = None
    best_len = -1
    for name, root in roots.items():
        if _owns(root, path) and len(root) > best_len:
            best, best_len = name, len(root)
    return best


async def resolve_base(vcs: VCS, tag: str | None) -> str | None:
    """Resolve the base tag to a commit SHA (``None`` when there is no tag)."""
    if not tag:
        return None
    sha = await vcs.resolve_commit(f'refs/tags/{tag}')
    if sha is None:
        raise ShipKitError(
            code=E.RESOLUTION_TAG_NOT_FOUND,
            message=f'Base tag {tag!r} does not resolve to a commit',
            hint='Fetch tags (git fetch --tags) or correct the last stable tag.',
        )
    return sha


async def attribute_commits(ctx: ReleaseContext, vcs: VCS) -> dict[str, list[ChangeEntry]]:
    """Walk ``last_stable_tag..HEAD`` and attribute each commit to packages.

    Args:
        ctx: The release context.
        vcs: Version control backend.

    Returns:
        ``{package name: [ChangeEntry, ...]}`` with entries oldest first.
        Packages without changes are absent.

    Raises:
        ShipKitError: ``SK-RESOLUTION-TAG-NOT-FOUND`` if the base tag
            cannot be resolved, ``SK-ATTRIBUTION-FAILED`` if the history
            walk or a diff fails.
    """
    base = await resolve_base(vcs, ctx.last_stable_tag)
    roots = {pkg.name: ctx.relative_root(pkg) for pkg in ctx.packages}

    try:
        commits = await vcs.commits_since(base)
    except subprocess.CalledProcessError as exc:
        raise ShipKitError(
            code=E.ATTRIBUTION_FAILED,
            message=f'Could not walk history since {ctx.last_stable_tag or "the root commit"}: {exc.stderr or exc}',
        ) from exc

    log.info('attribute_commits', base=ctx.last_stable_tag, commits=len(commits))

    attributed: dict[str, list[ChangeEntry]] = {}
    for commit in commits:
        try:
            paths = await vcs.changed_paths(commit.sha, commit.first_parent)
        except subprocess.CalledProcessError as exc:
            raise ShipKitError(
                code=E.ATTRIBUTION_FAILED,
                message=f'Could not diff commit {commit.sha[:SHORT_SHA_LENGTH]}: {exc.stderr or exc}',
            ) from exc

        owners: list[str] = []
        for path in paths:
            owner = owner_of(path, roots)
            if owner is not None and owner not in owners:
                owners.append(owner)
        if not owners:
            continue

        cc = classify_commit(commit.message)
        entry = ChangeEntry(
            kind=cc.kind,
            subject=cc.subject,
            short_sha=commit.sha[:SHORT_SHA_LENGTH],
            breaking=cc.breaking,
        )
        for owner in owners:
            attributed.setdefault(owner, []).append(entry)
        log.debug('commit_attributed', sha=entry.short_sha, kind=cc.kind.value, packages=owners)

    return attributed


__all__ = [
    'SHORT_SHA_LENGTH',
    'attribute_commits',
    'owner_of',
    'resolve_base',
]
