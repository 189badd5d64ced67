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

"""Tests for shipkit.logging."""

from __future__ import annotations

import json
from collections.abc import Iterator

import pytest
import structlog
from shipkit.logging import REDACTED, configure_logging, get_logger, redact_secrets, release_context


@pytest.fixture(autouse=True)
def _restore_quiet() -> Iterator[None]:
    """Leave logging quiet for the rest of the suite."""
    yield
    configure_logging(quiet=True)


class TestRedactSecrets:
    """Tests for the redact_secrets processor."""

    def test_classic_token(self) -> None:
        """Classic personal access tokens are masked."""
        out = redact_secrets(None, 'info', {'event': 'e', 'msg': 'token ghp_0123456789abcdef used'})
        assert out['msg'] == f'token {REDACTED} used'

    def test_fine_grained_token(self) -> None:
        """Fine-grained tokens are masked."""
        out = redact_secrets(None, 'info', {'event': 'e', 'msg': 'github_pat_11ABCDEFG0123_xyz'})
        assert out['msg'] == REDACTED

    def test_bearer_header(self) -> None:
        """Any bearer credential is masked."""
        out = redact_secrets(None, 'info', {'event': 'e', 'auth': 'Bearer abc.def'})
        assert out['auth'] == f'Bearer {REDACTED}'

    def test_plain_values_untouched(self) -> None:
        """Ordinary values and non-strings pass through."""
        event = {'event': 'uploaded', 'asset': 'widget-1.0.0-rc1-src.zip', 'size': 12}
        assert redact_secrets(None, 'info', dict(event)) == event


class TestReleaseContext:
    """Tests for release_context()."""

    def test_binds_and_unbinds(self) -> None:
        """Values are visible inside the block only."""
        with release_context(repo='acme/widget'):
            assert structlog.contextvars.get_contextvars()['repo'] == 'acme/widget'
        assert 'repo' not in structlog.contextvars.get_contextvars()


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_json_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        """JSON mode emits one redacted object per line with bound context."""
        configure_logging(json_log=True)
        log = get_logger('shipkit.logging_test.json')
        with release_context(repo='acme/widget'):
            log.info('push', auth='Bearer secret-value')

        line = capsys.readouterr().err.strip().splitlines()[-1]
        event = json.loads(line)
        assert event['event'] == 'push'
        assert event['repo'] == 'acme/widget'
        assert event['auth'] == f'Bearer {REDACTED}'
        assert event['level'] == 'info'

    def test_quiet_drops_info(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Quiet mode only shows warnings and above."""
        configure_logging(quiet=True, json_log=True)
        log = get_logger('shipkit.logging_test.quiet')
        log.info('hidden')
        log.warning('shown')
        err = capsys.readouterr().err
        assert 'hidden' not in err
        assert 'shown' in err
