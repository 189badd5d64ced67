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

"""Git VCS backend for shipkit.

The :class:`GitCLIBackend` implements the :class:`~shipkit.backends.vcs.VCS`
protocol by delegating to ``git`` via :func:`run_command`.

All methods are async. The blocking subprocess calls are dispatched to
the pipeline's :class:`~shipkit.backends._pool.WorkerPool` when one is
given, and to ``asyncio.to_thread()`` otherwise.

Query methods that must succeed (history, diffs, trees, blobs) run with
``check=True`` and raise :class:`subprocess.CalledProcessError`; callers
translate that into the matching ``SK-*`` error. Mutating methods return
a :class:`CommandResult` for the caller to inspect.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from shipkit.backends._pool import WorkerPool, run_blocking
from shipkit.backends._run import CommandResult, run_command
from shipkit.backends.vcs._types import CommitRecord, TreeEntry
from shipkit.logging import get_logger

log = get_logger('shipkit.backends.git')

T = TypeVar('T')

# Identity used when the repository has no user.name/user.email configured.
FALLBACK_NAME = 'shipkit'
FALLBACK_EMAIL = 'shipkit@users.noreply.github.com'

# Field and record separators for machine-readable ``git log`` output.
_FS = '\x1f'
_RS = '\x1e'


def _parse_log(output: str) -> list[CommitRecord]:
    """Parse ``git log --format=%H%x1f%P%x1f%B%x1e`` output."""
    records: list[CommitRecord] = []
    for chunk in output.split(_RS):
        chunk = chunk.lstrip('\n')
        if not chunk:
            continue
        sha, parents, message = chunk.split(_FS, 2)
        records.append(
            CommitRecord(
                sha=sha.strip(),
                parents=tuple(parents.split()),
                message=message.rstrip('\n'),
            )
        )
    return records


def _parse_ls_tree(output: str) -> list[TreeEntry]:
    """Parse ``git ls-tree -r -z`` output, keeping blobs only."""
    entries: list[TreeEntry] = []
    for line in output.split('\0'):
        if not line:
            continue
        meta, path = line.split('\t', 1)
        mode, kind, oid = meta.split()
        # Submodules show up as "commit" entries and have no content here.
        if kind != 'blob':
            continue
        entries.append(TreeEntry(path=path, oid=oid, mode=mode))
    return entries


class GitCLIBackend:
    """Default :class:`~shipkit.backends.vcs.VCS` implementation using ``git``.

    Args:
        repo_root: Path to the git repository root.
        pool: Worker pool for the blocking subprocess calls.
    """

    def __init__(self, repo_root: Path, *, pool: WorkerPool | None = None) -> None:
        """Initialize with the git repository root path."""
        self._root = repo_root
        self._pool = pool
        self._identity: list[str] | None = None

    def _git(self, *args: str, check: bool = False, binary: bool = False) -> CommandResult:
        """Run a git command synchronously (called on the worker pool)."""
        return run_command(['git', *args], cwd=self._root, check=check, binary=binary)

    async def _call(self, fn: Callable[..., T], *args: object, **kwargs: object) -> T:
        return await run_blocking(self._pool, fn, *args, **kwargs)

    async def _identity_args(self) -> list[str]:
        """``-c user.*`` overrides when the repository has no identity."""
        if self._identity is None:
            result = await self._call(self._git, 'config', '--get', 'user.email')
            if result.ok and result.stdout.strip():
                self._identity = []
            else:
                log.info('git_identity_fallback', name=FALLBACK_NAME, email=FALLBACK_EMAIL)
                self._identity = ['-c', f'user.name={FALLBACK_NAME}', '-c', f'user.email={FALLBACK_EMAIL}']
        return self._identity

    # -- Queries -------------------------------------------------------------

    async def resolve_commit(self, ref: str) -> str | None:
        """Return the commit SHA ``ref`` points at, or ``None``."""
        result = await self._call(self._git, 'rev-parse', '--verify', '--quiet', f'{ref}^{{commit}}')
        sha = result.stdout.strip()
        return sha if result.ok and sha else None

    async def current_sha(self) -> str:
        """Return the current HEAD commit SHA."""
        result = await self._call(self._git, 'rev-parse', 'HEAD', check=True)
        return result.stdout.strip()

    async def current_branch(self) -> str:
        """Return the name of the currently checked-out branch."""
        result = await self._call(self._git, 'branch', '--show-current')
        return result.stdout.strip() if result.ok else ''

    async def commits_since(self, base_sha: str | None) -> list[CommitRecord]:
        """Return commits reachable from HEAD but not from ``base_sha``.

        Commits are ordered oldest to newest (reversed topological order).
        With ``base_sha=None`` the whole history of HEAD is returned.
        """
        cmd = [
            'log',
            '--topo-order',
            '--reverse',
            f'--format=%H{_FS}%P{_FS}%B{_RS}',
            'HEAD',
        ]
        if base_sha:
            cmd.append(f'^{base_sha}')
        cmd.append('--')
        result = await self._call(self._git, *cmd, check=True)
        return _parse_log(result.stdout)

    async def changed_paths(self, sha: str, parent: str | None) -> list[str]:
        """Return paths touched by ``sha`` relative to ``parent``.

        A root commit (``parent=None``) is diffed against the empty tree.
        Renames are reported as a delete plus an add so both sides count.
        """
        if parent:
            cmd = ['diff-tree', '-r', '--no-commit-id', '--no-renames', '--name-only', '-z', parent, sha]
        else:
            cmd = ['diff-tree', '-r', '--root', '--no-commit-id', '--no-renames', '--name-only', '-z', sha]
        result = await self._call(self._git, *cmd, check=True)
        return [p for p in result.stdout.split('\0') if p]

    async def ls_tree(self, commitish: str, path: str = '') -> list[TreeEntry]:
        """List every blob under ``path`` in the tree of ``commitish``."""
        cmd = ['ls-tree', '-r', '-z', '--full-tree', commitish]
        if path:
            cmd.extend(['--', path])
        result = await self._call(self._git, *cmd, check=True)
        return _parse_ls_tree(result.stdout)

    def read_blob_sync(self, oid: str) -> bytes:
        """Return the raw content of blob ``oid`` (blocking)."""
        return self._git('cat-file', 'blob', oid, check=True, binary=True).stdout_bytes

    async def read_blob(self, oid: str) -> bytes:
        """Return the raw content of blob ``oid``."""
        return await self._call(self.read_blob_sync, oid)

    async def tag_exists(self, tag_name: str) -> bool:
        """Return ``True`` if the tag exists."""
        result = await self._call(self._git, 'rev-parse', '--verify', '--quiet', f'refs/tags/{tag_name}')
        return result.ok

    async def list_tags(self, *, pattern: str = '') -> list[str]:
        """Return all tags, optionally filtered by a glob pattern."""
        cmd_parts = ['tag', '--list']
        if pattern:
            cmd_parts.append(pattern)
        result = await self._call(self._git, *cmd_parts)
        if not result.ok or not result.stdout.strip():
            return []
        return result.stdout.strip().splitlines()

    async def tags_at(self, commitish: str = 'HEAD') -> list[str]:
        """Return the tags that point at ``commitish``."""
        result = await self._call(self._git, 'tag', '--points-at', commitish)
        if not result.ok or not result.stdout.strip():
            return []
        return result.stdout.strip().splitlines()

    async def tag_commit_sha(self, tag_name: str) -> str:
        """Return the commit SHA that a tag points to."""
        result = await self._call(self._git, 'rev-list', '-1', tag_name)
        return result.stdout.strip() if result.ok else ''

    # -- Mutations -----------------------------------------------------------

    async def commit(self, message: str) -> CommandResult:
        """Stage every working-tree change and commit it."""
        added = await self._call(self._git, 'add', '-A')
        if not added.ok:
            return added
        identity = await self._identity_args()
        log.info('commit', message=message[:80])
        return await self._call(self._git, *identity, 'commit', '-m', message)

    async def tag(self, tag_name: str, *, message: str | None = None) -> CommandResult:
        """Create an annotated tag at HEAD."""
        identity = await self._identity_args()
        log.info('tag', tag=tag_name)
        return await self._call(self._git, *identity, 'tag', '-a', tag_name, '-m', message or tag_name)

    async def push(self, refspec: str, *, remote: str = 'origin') -> CommandResult:
        """Push a single refspec (branch name or ``refs/tags/<tag>``)."""
        log.info('push', remote=remote, refspec=refspec)
        return await self._call(self._git, 'push', remote, refspec)


__all__ = [
    'FALLBACK_EMAIL',
    'FALLBACK_NAME',
    'GitCLIBackend',
]
