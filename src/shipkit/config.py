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

"""Configuration reader for shipkit.

Reads an optional ``shipkit.toml`` from the repository root and returns a
validated, frozen :class:`ShipConfig`. Keys are flat and top-level.

Validation Pipeline::

    shipkit.toml
    ┌──────────────────┐
    │ remtoe = "up"    │  ← typo!
    └────────┬─────────┘
             │
             ▼
    ┌──────────────────┐     ┌──────────────────────────────┐
    │ 1. Unknown key   │────→│ SK-CONFIG-INVALID-KEY:       │
    │    detection     │     │ hint: "Did you mean          │
    └────────┬─────────┘     │       'remote'?"             │
             │               └──────────────────────────────┘
             ▼
    ┌──────────────────┐     ┌──────────────────────────────┐
    │ 2. Type check    │────→│ SK-CONFIG-INVALID-VALUE:     │
    │    each value    │     │ Expected int, got str        │
    └────────┬─────────┘     └──────────────────────────────┘
             │
             ▼
    ┌──────────────────┐
    │ 3. Token lookup  │  ← env[token_env], never logged
    └────────┬─────────┘
             │
             ▼
    ┌──────────────────┐
    │ ShipConfig()     │  ← frozen dataclass, ready to use
    └──────────────────┘

Supported keys in ``shipkit.toml``::

    primary_package = "opendal"                 # default: the context's
    artifact_dir    = "dist/rc"                 # default: target/shipkit
    artifact_prefix = "apache-"                 # archive name prefix
    skip_dirs       = [".git", ".github", "target"]
    remote          = "origin"
    api_base_url    = "https://api.github.com"
    token_env       = "SHIPKIT_GITHUB_TOKEN"
    upload_attempts = 3
    upload_backoff  = 0.2
    http_timeout    = 30.0
    local_only      = false

Usage::

    import os
    from shipkit.config import load_config

    cfg = load_config(Path('/path/to/repo'), env=os.environ)
    cfg.retry_policy  # RetryPolicy(max_attempts=3, backoff_base=0.2)
"""

from __future__ import annotations

import difflib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomlkit
import tomlkit.exceptions

from shipkit.archive import DEFAULT_SKIP_DIRS
from shipkit.backends.forge.github_api import DEFAULT_BASE_URL
from shipkit.errors import E, ShipKitError
from shipkit.logging import get_logger
from shipkit.net import DEFAULT_BACKOFF_BASE, DEFAULT_MAX_ATTEMPTS, DEFAULT_TIMEOUT, RetryPolicy

logger = get_logger(__name__)

# The config file name at the repository root.
CONFIG_FILENAME = 'shipkit.toml'

DEFAULT_TOKEN_ENV = 'SHIPKIT_GITHUB_TOKEN'

# All recognized top-level keys in shipkit.toml.
VALID_KEYS: frozenset[str] = frozenset({
    'api_base_url',
    'artifact_dir',
    'artifact_prefix',
    'http_timeout',
    'local_only',
    'primary_package',
    'remote',
    'skip_dirs',
    'token_env',
    'upload_attempts',
    'upload_backoff',
})

_TYPE_MAP: dict[str, type | tuple[type, ...]] = {
    'api_base_url': str,
    'artifact_dir': str,
    'artifact_prefix': str,
    'http_timeout': (int, float),
    'local_only': bool,
    'primary_package': str,
    'remote': str,
    'skip_dirs': list,
    'token_env': str,
    'upload_attempts': int,
    'upload_backoff': (int, float),
}


@dataclass(frozen=True)
class ShipConfig:
    """Validated shipkit settings.

    Attributes:
        primary_package: Overrides the context's primary package when set.
        artifact_dir: Artifact root, absolute or relative to the repo.
            Empty means ``target/shipkit``.
        artifact_prefix: Prefix for archive base names (e.g. ``apache-``).
        skip_dirs: Path components excluded from archives.
        remote: Git remote the branch and tag are pushed to.
        api_base_url: GitHub REST API base URL.
        token_env: Environment variable the token was read from.
        upload_attempts: Attempts per asset upload.
        upload_backoff: Base delay in seconds for upload retries.
        http_timeout: HTTP timeout in seconds.
        local_only: Tag and package locally; no push, release or upload.
        dry_run: Stop after planning; touch nothing.
        token: GitHub API token. Never shown by :func:`repr`.
        config_path: The file the settings came from, if any.
    """

    primary_package: str = ''
    artifact_dir: str = ''
    artifact_prefix: str = ''
    skip_dirs: tuple[str, ...] = DEFAULT_SKIP_DIRS
    remote: str = 'origin'
    api_base_url: str = DEFAULT_BASE_URL
    token_env: str = DEFAULT_TOKEN_ENV
    upload_attempts: int = DEFAULT_MAX_ATTEMPTS
    upload_backoff: float = DEFAULT_BACKOFF_BASE
    http_timeout: float = DEFAULT_TIMEOUT
    local_only: bool = False
    dry_run: bool = False
    token: str = field(default='', repr=False)
    config_path: Path | None = None

    @property
    def has_token(self) -> bool:
        """Whether a non-empty token was found."""
        return bool(self.token)

    @property
    def retry_policy(self) -> RetryPolicy:
        """Upload retry policy built from ``upload_attempts``/``upload_backoff``."""
        return RetryPolicy(max_attempts=self.upload_attempts, backoff_base=self.upload_backoff)


def _suggest_key(unknown: str) -> str | None:
    """Return the closest valid key for a typo, or None."""
    matches = difflib.get_close_matches(unknown, VALID_KEYS, n=1, cutoff=0.6)
    return matches[0] if matches else None


def _validate_value_type(key: str, value: Any) -> None:  # noqa: ANN401 - dynamic config values
    """Raise if a config value has the wrong type."""
    expected = _TYPE_MAP[key]
    # bool is an int subclass; only accept it where bool is expected.
    wrong_bool = isinstance(value, bool) and expected is not bool
    if wrong_bool or not isinstance(value, expected):
        type_name = expected.__name__ if isinstance(expected, type) else 'number'
        raise ShipKitError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'{key}' must be {type_name}, got {type(value).__name__}",
            hint=f'Check the value of {key} in {CONFIG_FILENAME}.',
        )


def _validate_ranges(raw: dict[str, Any]) -> None:  # noqa: ANN401
    if 'skip_dirs' in raw and not all(isinstance(d, str) and d for d in raw['skip_dirs']):
        raise ShipKitError(
            code=E.CONFIG_INVALID_VALUE,
            message="'skip_dirs' must be a list of non-empty strings",
        )
    if raw.get('upload_attempts', 1) < 1:
        raise ShipKitError(
            code=E.CONFIG_INVALID_VALUE,
            message=f"'upload_attempts' must be >= 1, got {raw['upload_attempts']}",
        )
    for key in ('upload_backoff', 'http_timeout'):
        if raw.get(key, 0) < 0:
            raise ShipKitError(
                code=E.CONFIG_INVALID_VALUE,
                message=f"'{key}' must be >= 0, got {raw[key]}",
            )
    if 'token_env' in raw and not raw['token_env']:
        raise ShipKitError(
            code=E.CONFIG_INVALID_VALUE,
            message="'token_env' must name an environment variable",
        )


def _read_raw(config_path: Path) -> dict[str, Any]:  # noqa: ANN401
    try:
        text = config_path.read_text(encoding='utf-8')
    except OSError as exc:
        raise ShipKitError(
            code=E.CONFIG_PARSE_FAILED,
            message=f'Failed to read {config_path}: {exc}',
        ) from exc
    try:
        return tomlkit.parse(text).unwrap()
    except tomlkit.exceptions.TOMLKitError as exc:
        raise ShipKitError(
            code=E.CONFIG_PARSE_FAILED,
            message=f'Failed to parse {config_path}: {exc}',
        ) from exc


def load_config(repo_root: Path, env: Mapping[str, str] | None = None) -> ShipConfig:
    """Load and validate configuration, resolving the API token from ``env``.

    A missing ``shipkit.toml`` yields the defaults. The token is looked
    up only here, under ``token_env``; nothing else reads the
    environment.

    Args:
        repo_root: Directory that may contain ``shipkit.toml``.
        env: Environment mapping (callers pass ``os.environ``). ``None``
            means no token.

    Returns:
        A validated :class:`ShipConfig`.

    Raises:
        ShipKitError: If the file cannot be parsed or contains an unknown
            key or a bad value.
    """
    config_path = repo_root / CONFIG_FILENAME
    raw: dict[str, Any] = {}  # noqa: ANN401
    if config_path.is_file():
        raw = _read_raw(config_path)
    else:
        logger.debug('no_shipkit_config', path=str(config_path))

    for key in raw:
        if key not in VALID_KEYS:
            suggestion = _suggest_key(key)
            raise ShipKitError(
                code=E.CONFIG_INVALID_KEY,
                message=f"Unknown key '{key}' in {CONFIG_FILENAME}",
                hint=f"Did you mean '{suggestion}'?" if suggestion else 'Check the shipkit docs for valid keys.',
            )

    for key, value in raw.items():
        _validate_value_type(key, value)
    _validate_ranges(raw)

    kwargs: dict[str, Any] = dict(raw)  # noqa: ANN401
    if 'skip_dirs' in kwargs:
        kwargs['skip_dirs'] = tuple(kwargs['skip_dirs'])
    for key in ('upload_backoff', 'http_timeout'):
        if key in kwargs:
            kwargs[key] = float(kwargs[key])

    token_env = kwargs.get('token_env', DEFAULT_TOKEN_ENV)
    token = (env or {}).get(token_env, '').strip()

    config = ShipConfig(
        **kwargs,
        token=token,
        config_path=config_path if config_path.is_file() else None,
    )
    logger.debug('config_loaded', path=str(config_path), has_token=config.has_token)
    return config


__all__ = [
    'CONFIG_FILENAME',
    'DEFAULT_TOKEN_ENV',
    'ShipConfig',
    'VALID_KEYS',
    'load_config',
]
