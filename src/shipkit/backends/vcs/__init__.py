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

"""VCS protocol for shipkit.

The :class:`VCS` protocol is everything the prerelease pipeline needs
from version control: history and diffs for attribution, tree objects
and blobs for packaging, and commit/tag/push for cutting a candidate.

Implementations:

- :class:`~shipkit.backends.vcs.git.GitCLIBackend`: ``git`` CLI
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from shipkit.backends._run import CommandResult
from shipkit.backends.vcs._types import CommitRecord as CommitRecord, TreeEntry as TreeEntry
from shipkit.backends.vcs.git import GitCLIBackend as GitCLIBackend

__all__ = [
    'CommitRecord',
    'GitCLIBackend',
    'TreeEntry',
    'VCS',
]


@runtime_checkable
class VCS(Protocol):
    """Protocol for version control operations.

    All methods except :meth:`read_blob_sync` are async so that callers on
    the event loop never block on a subprocess.
    """

    async def resolve_commit(self, ref: str) -> str | None:
        """Return the commit SHA ``ref`` resolves to, or ``None``."""
        ...

    async def current_sha(self) -> str:
        """Return the current HEAD commit SHA."""
        ...

    async def current_branch(self) -> str:
        """Return the checked-out branch name (empty when detached)."""
        ...

    async def commits_since(self, base_sha: str | None) -> list[CommitRecord]:
        """Return commits in ``base_sha..HEAD``, oldest first.

        Args:
            base_sha: Exclusive lower bound. ``None`` means all history.
        """
        ...

    async def changed_paths(self, sha: str, parent: str | None) -> list[str]:
        """Return paths changed by ``sha`` against ``parent`` (or the empty tree)."""
        ...

    async def ls_tree(self, commitish: str, path: str = '') -> list[TreeEntry]:
        """Return every blob under ``path`` in ``commitish``'s tree."""
        ...

    def read_blob_sync(self, oid: str) -> bytes:
        """Return blob content. Blocking; call it from the worker pool."""
        ...

    async def read_blob(self, oid: str) -> bytes:
        """Return blob content."""
        ...

    async def tag_exists(self, tag_name: str) -> bool:
        """Return ``True`` if ``tag_name`` exists locally."""
        ...

    async def list_tags(self, *, pattern: str = '') -> list[str]:
        """Return tag names, optionally filtered by a glob pattern."""
        ...

    async def tags_at(self, commitish: str = 'HEAD') -> list[str]:
        """Return the tags pointing at ``commitish``."""
        ...

    async def tag_commit_sha(self, tag_name: str) -> str:
        """Return the commit SHA a tag points at (empty if unknown)."""
        ...

    async def commit(self, message: str) -> CommandResult:
        """Stage all changes and commit them with ``message``."""
        ...

    async def tag(self, tag_name: str, *, message: str | None = None) -> CommandResult:
        """Create an annotated tag at HEAD."""
        ...

    async def push(self, refspec: str, *, remote: str = 'origin') -> CommandResult:
        """Push one refspec to ``remote``."""
        ...
