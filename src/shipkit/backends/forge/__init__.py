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

"""Forge (release host) protocol for shipkit.

A forge hosts the prerelease entry for a candidate tag and stores its
uploaded assets. Implementations:

- :class:`~shipkit.backends.forge.github_api.GitHubAPIBackend`: GitHub
  REST API via ``httpx``
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from shipkit.backends._run import CommandResult
from shipkit.net import RetryPolicy


@dataclass(frozen=True)
class ReleaseInfo:
    """A release as reported by the forge.

    Attributes:
        id: Forge-specific numeric release id.
        tag: Tag the release is attached to.
        upload_url: Asset upload endpoint. May carry a URI template suffix
            such as ``{?name,label}``.
        prerelease: Whether the release is marked as a prerelease.
        draft: Whether the release is a draft.
    """

    id: int
    tag: str
    upload_url: str = ''
    prerelease: bool = False
    draft: bool = False

    @property
    def upload_base(self) -> str:
        """:attr:`upload_url` with any URI template suffix stripped."""
        return self.upload_url.split('{', 1)[0]


@runtime_checkable
class Forge(Protocol):
    """Protocol for release-host operations."""

    async def release_by_tag(self, tag: str) -> ReleaseInfo | None:
        """Return the release for ``tag``, or ``None`` if there is none.

        Raises:
            ShipKitError: ``SK-RELEASE-LOOKUP-FAILED`` on any response other
                than found / not found.
        """
        ...

    async def create_release(
        self,
        tag: str,
        *,
        title: str | None = None,
        body: str = '',
        prerelease: bool = False,
    ) -> CommandResult:
        """Create a release for an existing tag."""
        ...

    async def list_asset_names(self, release: ReleaseInfo) -> set[str]:
        """Return the names of assets already attached to ``release``."""
        ...

    async def upload_asset(
        self,
        release: ReleaseInfo,
        name: str,
        data: bytes,
        *,
        content_type: str,
        policy: RetryPolicy,
    ) -> CommandResult:
        """Upload one asset, retrying per ``policy``."""
        ...


__all__ = [
    'Forge',
    'ReleaseInfo',
]
