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

"""GitHub REST API forge backend for shipkit.

Implements the :class:`~shipkit.backends.forge.Forge` protocol using the
GitHub REST API v3 via ``httpx``.

Authentication:

    The token is a required constructor argument. The backend never
    reads the process environment; :func:`shipkit.config.load_config`
    resolves the token once and the pipeline passes it in.

Endpoints used::

    GET  /repos/{owner}/{repo}/releases/tags/{tag}      release_by_tag
    POST /repos/{owner}/{repo}/releases                 create_release
    GET  /repos/{owner}/{repo}/releases/{id}/assets     list_asset_names
    POST {upload_url}?name={name}                       upload_asset

Usage::

    from shipkit.backends.forge.github_api import GitHubAPIBackend

    forge = GitHubAPIBackend(owner='apache', repo='opendal', token=cfg.token)
    release = await forge.release_by_tag('v1.2.0-rc.1')

.. seealso::

    `GitHub REST API <https://docs.github.com/en/rest/releases>`_
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import quote

import httpx

from shipkit.backends._run import CommandResult
from shipkit.backends.forge import ReleaseInfo
from shipkit.errors import E, ShipKitError
from shipkit.logging import get_logger
from shipkit.net import DEFAULT_POOL_SIZE, DEFAULT_TIMEOUT, RetryPolicy, http_client, request_with_retry

log = get_logger('shipkit.backends.forge.github_api')

DEFAULT_BASE_URL = 'https://api.github.com'

# API version header for stable API behavior.
_API_VERSION = '2022-11-28'

# Page size for asset listing (GitHub maximum).
_ASSET_PAGE_SIZE = 100


def _already_exists(response: httpx.Response) -> bool:
    """GitHub's 422 answer for a release or asset that is already there."""
    return response.status_code == 422 and 'already_exists' in response.text


def _release_from_json(data: dict[str, Any]) -> ReleaseInfo:
    return ReleaseInfo(
        id=int(data['id']),
        tag=str(data.get('tag_name', '')),
        upload_url=str(data.get('upload_url', '')),
        prerelease=bool(data.get('prerelease', False)),
        draft=bool(data.get('draft', False)),
    )


class GitHubAPIBackend:
    """Forge implementation using the GitHub REST API.

    Args:
        owner: Repository owner (e.g. ``"apache"``).
        repo: Repository name (e.g. ``"opendal"``).
        token: GitHub API token with ``contents: write`` permission.
        base_url: API base URL (override for GitHub Enterprise Server).
        pool_size: HTTP connection pool size.
        timeout: HTTP request timeout in seconds.
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        *,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        pool_size: int = DEFAULT_POOL_SIZE,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize with owner, repo, and API token."""
        if not token:
            msg = 'GitHub API token required: pass token=.'
            raise ValueError(msg)
        self._owner = owner
        self._repo = repo
        self._base_url = base_url.rstrip('/')
        self._repo_url = f'{self._base_url}/repos/{owner}/{repo}'
        self._pool_size = pool_size
        self._timeout = timeout
        self._headers = {
            'Authorization': f'Bearer {token}',
            'Accept': 'application/vnd.github+json',
            'X-GitHub-Api-Version': _API_VERSION,
        }

    def __repr__(self) -> str:
        """Return a safe repr that never exposes the API token."""
        return f'GitHubAPIBackend(owner={self._owner!r}, repo={self._repo!r})'

    def _client(self) -> Any:  # noqa: ANN401 - async context manager
        return http_client(
            pool_size=self._pool_size,
            timeout=self._timeout,
            headers=self._headers,
        )

    async def release_by_tag(self, tag: str) -> ReleaseInfo | None:
        """Look up the release attached to ``tag``."""
        url = f'{self._repo_url}/releases/tags/{quote(tag, safe="")}'
        try:
            async with self._client() as client:
                response = await client.get(url)
        except httpx.TransportError as exc:
            raise ShipKitError(
                code=E.RELEASE_LOOKUP_FAILED,
                message=f'Release lookup for {tag} failed: {exc}',
            ) from exc

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise ShipKitError(
                code=E.RELEASE_LOOKUP_FAILED,
                message=f'Release lookup for {tag} returned HTTP {response.status_code}',
                hint='Check that the token can read releases of this repository.',
            )
        return _release_from_json(response.json())

    async def create_release(
        self,
        tag: str,
        *,
        title: str | None = None,
        body: str = '',
        prerelease: bool = False,
    ) -> CommandResult:
        """Create a GitHub Release for an existing tag.

        A ``422 already_exists`` answer (another run created the release
        between lookup and create) is reported as success.
        """
        url = f'{self._repo_url}/releases'
        payload: dict[str, Any] = {
            'tag_name': tag,
            'name': title or tag,
            'body': body,
            'draft': False,
            'prerelease': prerelease,
        }
        try:
            async with self._client() as client:
                response = await client.post(url, json=payload)
        except httpx.TransportError as exc:
            return CommandResult(command=['POST', url], return_code=1, stderr=str(exc))

        already_exists = _already_exists(response)
        log.info('create_release', tag=tag, status=response.status_code, already_exists=already_exists)
        return CommandResult(
            command=['POST', url],
            return_code=0 if response.is_success or already_exists else response.status_code,
            stdout=response.text,
            stderr='' if response.is_success or already_exists else response.text,
        )

    async def list_asset_names(self, release: ReleaseInfo) -> set[str]:
        """Return the names of every asset on ``release`` (all pages)."""
        names: set[str] = set()
        page = 1
        async with self._client() as client:
            while True:
                url = f'{self._repo_url}/releases/{release.id}/assets?per_page={_ASSET_PAGE_SIZE}&page={page}'
                try:
                    response = await client.get(url)
                except httpx.TransportError as exc:
                    raise ShipKitError(
                        code=E.RELEASE_LOOKUP_FAILED,
                        message=f'Listing assets of {release.tag} failed: {exc}',
                    ) from exc
                if response.status_code != 200:
                    raise ShipKitError(
                        code=E.RELEASE_LOOKUP_FAILED,
                        message=f'Listing assets of {release.tag} returned HTTP {response.status_code}',
                    )
                try:
                    items = response.json()
                except (ValueError, json.JSONDecodeError) as exc:
                    raise ShipKitError(
                        code=E.RELEASE_LOOKUP_FAILED,
                        message=f'Asset list for {release.tag} is not valid JSON',
                    ) from exc
                names.update(str(item.get('name', '')) for item in items)
                if len(items) < _ASSET_PAGE_SIZE:
                    break
                page += 1
        names.discard('')
        return names

    async def upload_asset(
        self,
        release: ReleaseInfo,
        name: str,
        data: bytes,
        *,
        content_type: str,
        policy: RetryPolicy,
    ) -> CommandResult:
        """Upload ``data`` as asset ``name``, retrying per ``policy``.

        A ``422 already_exists`` answer (an earlier attempt stored the asset
        before its response was lost) ends the retries and is reported as
        success.
        """
        url = f'{release.upload_base}?name={quote(name, safe="")}'
        headers = {'Content-Type': content_type}
        try:
            async with self._client() as client:
                response = await request_with_retry(
                    client,
                    'POST',
                    url,
                    policy=policy,
                    accept=_already_exists,
                    content=data,
                    headers=headers,
                )
        except httpx.TransportError as exc:
            log.warning('upload_asset_error', name=name, error=str(exc))
            return CommandResult(command=['POST', url], return_code=1, stderr=str(exc))

        ok = response.is_success or _already_exists(response)
        log.debug(
            'upload_asset',
            name=name,
            status=response.status_code,
            size=len(data),
            already_exists=ok and not response.is_success,
        )
        return CommandResult(
            command=['POST', url],
            return_code=0 if ok else response.status_code,
            stdout=response.text,
            stderr='' if ok else response.text,
        )


__all__ = [
    'DEFAULT_BASE_URL',
    'GitHubAPIBackend',
]
