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

"""Apply a release plan to the working tree and commit it.

The release commit is the single point that marks "apply" as done. If
it fails, the pipeline stops; the edited manifests and changelogs stay
in the working tree for the operator to inspect.
"""

from __future__ import annotations

import datetime
from pathlib import Path

from shipkit.backends.vcs import VCS
from shipkit.changelog import write_changelogs
from shipkit.context import ReleaseContext
from shipkit.errors import E, ShipKitError
from shipkit.logging import get_logger
from shipkit.manifest import apply_manifest_changes
from shipkit.plan import Plan

log = get_logger('shipkit.prepare')

COMMIT_MESSAGE_TEMPLATE = 'chore(release): prepare v{version}'


def release_commit_message(version: str) -> str:
    """Commit message for a release naming the primary package's version."""
    return COMMIT_MESSAGE_TEMPLATE.format(version=version)


async def apply_plan(
    ctx: ReleaseContext,
    plan: Plan,
    *,
    today: datetime.date | None = None,
) -> list[Path]:
    """Rewrite manifests, then prepend changelogs, for every planned package.

    Returns:
        Every file written.
    """
    manifests = await apply_manifest_changes(ctx, plan)
    changelogs = await write_changelogs(ctx, plan, today=today)
    log.info('plan_applied', manifests=len(manifests), changelogs=len(changelogs))
    return [*manifests, *changelogs]


async def commit_release(vcs: VCS, version: str) -> str:
    """Stage all changes and create the release commit.

    Returns:
        The SHA of the new commit.

    Raises:
        ShipKitError: ``SK-COMMIT-FAILED`` if staging or committing fails.
    """
    message = release_commit_message(version)
    result = await vcs.commit(message)
    if not result.ok:
        raise ShipKitError(
            code=E.COMMIT_FAILED,
            message=f'Release commit failed: {result.stderr.strip() or result.stdout.strip()}',
            hint='The working tree still holds the version and changelog edits.',
        )
    sha = await vcs.current_sha()
    log.info('release_committed', sha=sha[:7], message=message)
    return sha


__all__ = [
    'COMMIT_MESSAGE_TEMPLATE',
    'apply_plan',
    'commit_release',
    'release_commit_message',
]
