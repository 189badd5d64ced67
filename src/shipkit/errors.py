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

"""Structured errors for shipkit.

Every fatal condition in the prerelease pipeline is raised as a
:class:`ShipKitError` carrying a stable ``SK-*`` code, a message, and an
optional hint. Nothing is rolled back: an error after tagging leaves the
tag in place, and the hint says what the operator has to clean up.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ErrorCode           │ A named ID like "SK-UPLOAD-FAILED". Grep-able │
    │                     │ in logs and stable across releases.           │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ErrorInfo           │ Code + message + hint, bundled together.      │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ShipKitError        │ The exception the pipeline raises. It stops   │
    │                     │ the run where it happens.                     │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ explain()           │ Looks up a code in the catalog.               │
    └─────────────────────┴────────────────────────────────────────────────┘

Code categories::

    SK-RESOLUTION-*   Base tag or version cannot be resolved
    SK-ATTRIBUTION-*  Commit walk / diff failures
    SK-POLICY-*       Primary package has nothing to release
    SK-MANIFEST-*     Manifest read/parse/write failures
    SK-CHANGELOG-*    Changelog write failures
    SK-COMMIT-*       Release commit failures
    SK-IDEMPOTENCY-*  Candidate tag already exists
    SK-TAG-*, SK-PUSH-*, SK-RELEASE-*  Tagging and release host
    SK-PACKAGING-*    Archive construction
    SK-VALIDATION-*   Packaged set does not match the plan
    SK-UPLOAD-*, SK-CHECKSUM-*  Digest and asset upload
    SK-CONFIG-*, SK-CONTEXT-*   Configuration and input context

Usage::

    from shipkit.errors import E, ShipKitError

    raise ShipKitError(
        code=E.IDEMPOTENCY_TAG_EXISTS,
        message='Candidate tag v1.2.0-rc.1 already exists',
        hint='Delete the tag or land a new change before rerunning.',
    )
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from enum import Enum
from typing import TextIO

from rich.console import Console
from rich.markup import escape as rich_escape


class ErrorCode(str, Enum):
    """All shipkit diagnostic codes."""

    # Resolution
    RESOLUTION_TAG_NOT_FOUND = 'SK-RESOLUTION-TAG-NOT-FOUND'
    RESOLUTION_VERSION_INVALID = 'SK-RESOLUTION-VERSION-INVALID'

    # Attribution
    ATTRIBUTION_FAILED = 'SK-ATTRIBUTION-FAILED'

    # Policy
    POLICY_PRIMARY_UNCHANGED = 'SK-POLICY-PRIMARY-UNCHANGED'

    # Manifest / changelog
    MANIFEST_READ_FAILED = 'SK-MANIFEST-READ-FAILED'
    MANIFEST_PARSE_FAILED = 'SK-MANIFEST-PARSE-FAILED'
    MANIFEST_WRITE_FAILED = 'SK-MANIFEST-WRITE-FAILED'
    CHANGELOG_WRITE_FAILED = 'SK-CHANGELOG-WRITE-FAILED'

    # Commit
    COMMIT_FAILED = 'SK-COMMIT-FAILED'

    # Candidate
    IDEMPOTENCY_TAG_EXISTS = 'SK-IDEMPOTENCY-TAG-EXISTS'
    TAG_CREATION_FAILED = 'SK-TAG-CREATION-FAILED'
    PUSH_FAILED = 'SK-PUSH-FAILED'
    RELEASE_LOOKUP_FAILED = 'SK-RELEASE-LOOKUP-FAILED'
    RELEASE_CREATION_FAILED = 'SK-RELEASE-CREATION-FAILED'

    # Packaging / validation / upload
    PACKAGING_FAILED = 'SK-PACKAGING-FAILED'
    VALIDATION_MISMATCH = 'SK-VALIDATION-MISMATCH'
    CHECKSUM_FAILED = 'SK-CHECKSUM-FAILED'
    UPLOAD_FAILED = 'SK-UPLOAD-FAILED'

    # Configuration / context
    CONFIG_INVALID_KEY = 'SK-CONFIG-INVALID-KEY'
    CONFIG_INVALID_VALUE = 'SK-CONFIG-INVALID-VALUE'
    CONFIG_PARSE_FAILED = 'SK-CONFIG-PARSE-FAILED'
    CONTEXT_INVALID = 'SK-CONTEXT-INVALID'


# Convenience alias for shorter imports.
E = ErrorCode


@dataclass(frozen=True)
class ErrorInfo:
    """Metadata for a single error code.

    Attributes:
        code: The ``SK-*`` error code.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    code: ErrorCode
    message: str
    hint: str = ''


class ShipKitError(Exception):
    """Base exception for all shipkit errors.

    Args:
        code: The error code from :class:`ErrorCode`.
        message: Human-readable description of what went wrong.
        hint: Optional suggestion for how to fix the error.
    """

    def __init__(self, code: ErrorCode, message: str, hint: str = '') -> None:
        """Initialize with an error code, message, and optional hint."""
        self.info = ErrorInfo(code=code, message=message, hint=hint)
        super().__init__(f'[{code.value}] {message}')

    @property
    def code(self) -> ErrorCode:
        """The error code."""
        return self.info.code

    @property
    def hint(self) -> str:
        """Suggestion for fixing this error, or empty string."""
        return self.info.hint


ERRORS: dict[ErrorCode, ErrorInfo] = {
    E.POLICY_PRIMARY_UNCHANGED: ErrorInfo(
        code=E.POLICY_PRIMARY_UNCHANGED,
        message='The primary package has no changes since the last stable tag.',
        hint='Land a change under the primary package before cutting a candidate.',
    ),
    E.IDEMPOTENCY_TAG_EXISTS: ErrorInfo(
        code=E.IDEMPOTENCY_TAG_EXISTS,
        message='The candidate tag already exists.',
        hint='A previous run got this far. Inspect and delete the tag, or land new changes, then rerun.',
    ),
    E.VALIDATION_MISMATCH: ErrorInfo(
        code=E.VALIDATION_MISMATCH,
        message='Packaged artifacts do not match the release plan.',
        hint='Nothing was uploaded. Check the artifact directory for stray or missing archives.',
    ),
    E.UPLOAD_FAILED: ErrorInfo(
        code=E.UPLOAD_FAILED,
        message='An asset upload failed after all retry attempts.',
        hint='Rerun the upload; assets already on the release are skipped.',
    ),
}


def explain(code: str) -> str | None:
    """Return a detailed explanation for an error code.

    Args:
        code: The error code string, e.g. ``"SK-UPLOAD-FAILED"``.

    Returns:
        A formatted explanation string, or ``None`` if the code is unknown.
    """
    try:
        error_code = ErrorCode(code)
    except ValueError:
        return None

    info = ERRORS.get(error_code)
    if info is None:
        return f'{code}: No detailed explanation available.'

    lines = [f'{code}: {info.message}']
    if info.hint:
        lines.append(f'  Hint: {info.hint}')
    return '\n'.join(lines)


def render_error(exc: ShipKitError, *, file: TextIO | None = None) -> None:
    """Render an error in compiler style.

    Output format::

        error[SK-IDEMPOTENCY-TAG-EXISTS]: rc tag v1.2.0-rc.1 already exists
          |
          = hint: Delete the tag or land new changes, then rerun.

    Args:
        exc: The error to render.
        file: Output stream (defaults to ``sys.stderr``).
    """
    out = file or sys.stderr

    if out.isatty():
        console = Console(file=out, highlight=False)
        msg = rich_escape(exc.info.message)
        console.print(
            f'[bold red]error[/bold red][bold red]\\[{exc.code.value}][/bold red][bold]: {msg}[/bold]',
        )
        if exc.hint:
            console.print('  [dim]|[/dim]')
            console.print(f'  [dim]=[/dim] [cyan]hint[/cyan]: {rich_escape(exc.hint)}')
        console.print()
    else:
        print(f'error[{exc.code.value}]: {exc.info.message}', file=out)  # noqa: T201 - CLI output
        if exc.hint:
            print('  |', file=out)  # noqa: T201 - CLI output
            print(f'  = hint: {exc.hint}', file=out)  # noqa: T201 - CLI output
        print(file=out)  # noqa: T201 - CLI output


__all__ = [
    'E',
    'ERRORS',
    'ErrorCode',
    'ErrorInfo',
    'ShipKitError',
    'explain',
    'render_error',
]
