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

"""Value types returned by VCS backends."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CommitRecord:
    """One commit in the analysed range.

    Attributes:
        sha: Full commit SHA.
        parents: Parent SHAs, first parent first. Empty for a root commit.
        message: Full commit message (subject, blank line, body).
    """

    sha: str
    parents: tuple[str, ...] = ()
    message: str = ''

    @property
    def first_parent(self) -> str | None:
        """The first parent SHA, or ``None`` for a root commit."""
        return self.parents[0] if self.parents else None


@dataclass(frozen=True)
class TreeEntry:
    """A blob in a commit's tree.

    Attributes:
        path: Repository-relative path, ``/``-separated.
        oid: Blob object id.
        mode: Git file mode string (``100644``, ``100755``, ``120000``).
    """

    path: str
    oid: str
    mode: str = '100644'


__all__ = [
    'CommitRecord',
    'TreeEntry',
]
