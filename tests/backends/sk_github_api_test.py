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

"""Tests for the GitHub REST API forge backend.

Requests are served by an :class:`httpx.MockTransport` patched in place
of the shared :func:`shipkit.net.http_client`.
"""

from __future__ import annotations

import json
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager

import httpx
import pytest
from shipkit.backends.forge import Forge, ReleaseInfo
from shipkit.backends.forge import github_api
from shipkit.backends.forge.github_api import GitHubAPIBackend
from shipkit.errors import E, ShipKitError
from shipkit.logging import configure_logging
from shipkit.net import RetryPolicy

configure_logging(quiet=True)

_Handler = Callable[[httpx.Request], httpx.Response]

_RELEASE = ReleaseInfo(
    id=7,
    tag='v1.0.0-rc.1',
    upload_url='https://uploads.github.com/repos/acme/widget/releases/7/assets{?name,label}',
    prerelease=True,
)


@pytest.fixture()
def requests() -> list[httpx.Request]:
    """Requests seen by the mock transport."""
    return []


@pytest.fixture()
def serve(monkeypatch: pytest.MonkeyPatch, requests: list[httpx.Request]) -> Callable[[_Handler], None]:
    """Install a handler behind the backend's HTTP client."""

    def install(handler: _Handler) -> None:
        def recording(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        @asynccontextmanager
        async def fake_client(**kwargs: object) -> AsyncGenerator[httpx.AsyncClient, None]:
            headers = kwargs.get('headers') or {}
            async with httpx.AsyncClient(transport=httpx.MockTransport(recording), headers=headers) as client:
                yield client

        monkeypatch.setattr(github_api, 'http_client', fake_client)

    return install


@pytest.fixture()
def forge() -> GitHubAPIBackend:
    """Backend for acme/widget."""
    return GitHubAPIBackend('acme', 'widget', token='ghp_secret')


class TestConstruction:
    """Tests for construction and repr."""

    def test_empty_token_rejected(self) -> None:
        """A token is mandatory."""
        with pytest.raises(ValueError, match='token'):
            GitHubAPIBackend('acme', 'widget', token='')

    def test_repr_hides_token(self, forge: GitHubAPIBackend) -> None:
        """The token never appears in repr()."""
        assert 'ghp_secret' not in repr(forge)
        assert 'acme' in repr(forge)

    def test_implements_protocol(self, forge: GitHubAPIBackend) -> None:
        """GitHubAPIBackend satisfies the Forge protocol."""
        assert isinstance(forge, Forge)


class TestReleaseByTag:
    """Tests for release_by_tag()."""

    @pytest.mark.asyncio
    async def test_found(
        self, forge: GitHubAPIBackend, serve: Callable[[_Handler], None], requests: list[httpx.Request]
    ) -> None:
        """A 200 answer is parsed into a ReleaseInfo."""
        serve(
            lambda r: httpx.Response(
                200,
                json={'id': 7, 'tag_name': 'v1.0.0-rc.1', 'upload_url': _RELEASE.upload_url, 'prerelease': True},
            )
        )
        release = await forge.release_by_tag('v1.0.0-rc.1')
        assert release == _RELEASE
        assert requests[0].url.path == '/repos/acme/widget/releases/tags/v1.0.0-rc.1'
        assert requests[0].headers['Authorization'] == 'Bearer ghp_secret'

    @pytest.mark.asyncio
    async def test_missing(self, forge: GitHubAPIBackend, serve: Callable[[_Handler], None]) -> None:
        """A 404 means no release."""
        serve(lambda r: httpx.Response(404, json={'message': 'Not Found'}))
        assert await forge.release_by_tag('v9.9.9-rc.1') is None

    @pytest.mark.asyncio
    async def test_server_error(self, forge: GitHubAPIBackend, serve: Callable[[_Handler], None]) -> None:
        """Other statuses raise a lookup error."""
        serve(lambda r: httpx.Response(500))
        with pytest.raises(ShipKitError) as exc_info:
            await forge.release_by_tag('v1.0.0-rc.1')
        assert exc_info.value.code == E.RELEASE_LOOKUP_FAILED

    @pytest.mark.asyncio
    async def test_transport_error(self, forge: GitHubAPIBackend, serve: Callable[[_Handler], None]) -> None:
        """Connection failures raise a lookup error."""

        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError('refused', request=request)

        serve(refuse)
        with pytest.raises(ShipKitError) as exc_info:
            await forge.release_by_tag('v1.0.0-rc.1')
        assert exc_info.value.code == E.RELEASE_LOOKUP_FAILED


class TestCreateRelease:
    """Tests for create_release()."""

    @pytest.mark.asyncio
    async def test_created(
        self, forge: GitHubAPIBackend, serve: Callable[[_Handler], None], requests: list[httpx.Request]
    ) -> None:
        """The payload marks the release as a non-draft prerelease."""
        serve(lambda r: httpx.Response(201, json={'id': 7}))
        result = await forge.create_release('v1.0.0-rc.1', title='v1.0.0-rc.1', prerelease=True)
        assert result.ok
        payload = json.loads(requests[0].content)
        assert payload == {
            'tag_name': 'v1.0.0-rc.1',
            'name': 'v1.0.0-rc.1',
            'body': '',
            'draft': False,
            'prerelease': True,
        }

    @pytest.mark.asyncio
    async def test_already_exists_is_ok(self, forge: GitHubAPIBackend, serve: Callable[[_Handler], None]) -> None:
        """A concurrent creation is not an error."""
        serve(lambda r: httpx.Response(422, json={'errors': [{'code': 'already_exists'}]}))
        assert (await forge.create_release('v1.0.0-rc.1', prerelease=True)).ok

    @pytest.mark.asyncio
    async def test_other_422_fails(self, forge: GitHubAPIBackend, serve: Callable[[_Handler], None]) -> None:
        """Validation failures other than already_exists are reported."""
        serve(lambda r: httpx.Response(422, json={'errors': [{'code': 'invalid'}]}))
        result = await forge.create_release('v1.0.0-rc.1')
        assert not result.ok
        assert 'invalid' in result.stderr


class TestListAssetNames:
    """Tests for list_asset_names()."""

    @pytest.mark.asyncio
    async def test_paginates(
        self, forge: GitHubAPIBackend, serve: Callable[[_Handler], None], requests: list[httpx.Request]
    ) -> None:
        """Pages are fetched until one comes back short."""

        def handler(request: httpx.Request) -> httpx.Response:
            page = int(request.url.params['page'])
            if page == 1:
                return httpx.Response(200, json=[{'name': f'a{i}.zip'} for i in range(100)])
            return httpx.Response(200, json=[{'name': 'last.tar.gz'}])

        serve(handler)
        names = await forge.list_asset_names(_RELEASE)
        assert len(names) == 101
        assert 'last.tar.gz' in names
        assert [r.url.params['page'] for r in requests] == ['1', '2']
        assert requests[0].url.path == '/repos/acme/widget/releases/7/assets'

    @pytest.mark.asyncio
    async def test_error_status(self, forge: GitHubAPIBackend, serve: Callable[[_Handler], None]) -> None:
        """A failed listing raises a lookup error."""
        serve(lambda r: httpx.Response(403))
        with pytest.raises(ShipKitError) as exc_info:
            await forge.list_asset_names(_RELEASE)
        assert exc_info.value.code == E.RELEASE_LOOKUP_FAILED


class TestUploadAsset:
    """Tests for upload_asset()."""

    @pytest.mark.asyncio
    async def test_upload(
        self, forge: GitHubAPIBackend, serve: Callable[[_Handler], None], requests: list[httpx.Request]
    ) -> None:
        """The template suffix is stripped and the name is a query parameter."""
        serve(lambda r: httpx.Response(201, json={'id': 1}))
        result = await forge.upload_asset(
            _RELEASE,
            'widget-1.0.0-rc1-src.zip',
            b'PK',
            content_type='application/zip',
            policy=RetryPolicy(max_attempts=1, backoff_base=0),
        )
        assert result.ok
        request = requests[0]
        assert request.url.host == 'uploads.github.com'
        assert request.url.path == '/repos/acme/widget/releases/7/assets'
        assert request.url.params['name'] == 'widget-1.0.0-rc1-src.zip'
        assert request.headers['Content-Type'] == 'application/zip'
        assert request.content == b'PK'

    @pytest.mark.asyncio
    async def test_retries_then_fails(
        self, forge: GitHubAPIBackend, serve: Callable[[_Handler], None], requests: list[httpx.Request]
    ) -> None:
        """A persistent server error is attempted max_attempts times."""
        serve(lambda r: httpx.Response(502, text='bad gateway'))
        result = await forge.upload_asset(
            _RELEASE,
            'a.zip',
            b'x',
            content_type='application/zip',
            policy=RetryPolicy(max_attempts=3, backoff_base=0),
        )
        assert not result.ok
        assert result.return_code == 502
        assert len(requests) == 3

    @pytest.mark.asyncio
    async def test_transport_failure(self, forge: GitHubAPIBackend, serve: Callable[[_Handler], None]) -> None:
        """Exhausted transport errors come back as a failed result."""

        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError('refused', request=request)

        serve(refuse)
        result = await forge.upload_asset(
            _RELEASE,
            'a.zip',
            b'x',
            content_type='application/zip',
            policy=RetryPolicy(max_attempts=2, backoff_base=0),
        )
        assert not result.ok
        assert 'refused' in result.stderr

    @pytest.mark.asyncio
    async def test_asset_stored_by_lost_attempt(
        self, forge: GitHubAPIBackend, serve: Callable[[_Handler], None], requests: list[httpx.Request]
    ) -> None:
        """A timeout after GitHub stored the asset, then already_exists, is success."""

        def handler(request: httpx.Request) -> httpx.Response:
            if not requests[:-1]:
                raise httpx.ReadTimeout('timed out', request=request)
            return httpx.Response(
                422,
                json={'message': 'Validation Failed', 'errors': [{'resource': 'ReleaseAsset', 'code': 'already_exists'}]},
            )

        serve(handler)
        result = await forge.upload_asset(
            _RELEASE,
            'a.zip',
            b'x',
            content_type='application/zip',
            policy=RetryPolicy(max_attempts=3, backoff_base=0),
        )
        assert result.ok
        assert len(requests) == 2

    @pytest.mark.asyncio
    async def test_other_422_fails(self, forge: GitHubAPIBackend, serve: Callable[[_Handler], None]) -> None:
        """A 422 for any other reason is still a failure."""
        serve(lambda r: httpx.Response(422, json={'errors': [{'code': 'invalid'}]}))
        result = await forge.upload_asset(
            _RELEASE,
            'a.zip',
            b'x',
            content_type='application/zip',
            policy=RetryPolicy(max_attempts=2, backoff_base=0),
        )
        assert not result.ok
        assert result.return_code == 422
