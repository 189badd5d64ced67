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

"""Semantic version bump policy.

Bump rules::

    ┌───────────────┬───────────────────┬──────────────────┬──────────┐
    │ Epoch         │ any breaking      │ any feature      │ else     │
    ├───────────────┼───────────────────┼──────────────────┼──────────┤
    │ major >= 1    │ MAJOR (x+1.0.0)   │ MINOR (x.y+1.0)  │ PATCH    │
    │ major == 0    │ MINOR (0.y+1.0)   │ PATCH            │ PATCH    │
    └───────────────┴───────────────────┴──────────────────┴──────────┘

Before 1.0 a feature is not special: it is a patch like any other change.

Usage::

    from shipkit.versioning import build_plan, require_primary

    plan = build_plan(ctx, attributed)
    require_primary(plan, ctx.primary_package)
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from shipkit.commit_parsing import BumpType, CommitKind
from shipkit.context import ReleaseContext
from shipkit.errors import E, ShipKitError
from shipkit.logging import get_logger
from shipkit.plan import ChangeEntry, PackagePlan, Plan

log = get_logger('shipkit.versioning')

_SEMVER_RE = re.compile(
    r'^v?(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)'
    r'(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?$',
)


def parse_base_version(version: str) -> tuple[int, int, int]:
    """Extract ``(major, minor, patch)``, ignoring prerelease/build suffixes.

    Raises:
        ShipKitError: If ``version`` is not a semantic version.
    """
    m = _SEMVER_RE.match(version.strip())
    if not m:
        raise ShipKitError(
            code=E.RESOLUTION_VERSION_INVALID,
            message=f'Version {version!r} is not valid (expected MAJOR.MINOR.PATCH)',
            hint='Fix the version field in the package manifest.',
        )
    return int(m['major']), int(m['minor']), int(m['patch'])


def apply_bump(version: str, bump: BumpType) -> str:
    """Return ``version`` bumped by ``bump``, with lower components reset.

    >>> apply_bump('1.2.3', BumpType.MAJOR)
    '2.0.0'
    >>> apply_bump('0.1.0', BumpType.MINOR)
    '0.2.0'
    >>> apply_bump('0.1.0-alpha.1', BumpType.PATCH)
    '0.1.1'
    """
    major, minor, patch = parse_base_version(version)
    if bump == BumpType.MAJOR:
        major, minor, patch = major + 1, 0, 0
    elif bump == BumpType.MINOR:
        minor, patch = minor + 1, 0
    else:
        patch += 1
    return f'{major}.{minor}.{patch}'


def decide_bump(version: str, changes: Sequence[ChangeEntry]) -> BumpType:
    """Choose the bump for a package at ``version`` with ``changes``."""
    major, _, _ = parse_base_version(version)
    breaking = any(c.breaking or c.kind is CommitKind.BREAKING for c in changes)
    if major == 0:
        return BumpType.MINOR if breaking else BumpType.PATCH
    if breaking:
        return BumpType.MAJOR
    if any(c.kind is CommitKind.FEATURE for c in changes):
        return BumpType.MINOR
    return BumpType.PATCH


def build_plan(ctx: ReleaseContext, attributed: dict[str, list[ChangeEntry]]) -> Plan:
    """Build the release plan from attributed changes.

    Only packages with at least one change are planned. Names in
    ``attributed`` that are not workspace packages are ignored.
    """
    plans: list[PackagePlan] = []
    for pkg in ctx.packages:
        changes = attributed.get(pkg.name) or []
        if not changes:
            continue
        bump = decide_bump(pkg.version, changes)
        new_version = apply_bump(pkg.version, bump)
        plans.append(
            PackagePlan(
                name=pkg.name,
                current_version=pkg.version,
                new_version=new_version,
                bump=bump,
                changes=tuple(changes),
            )
        )
        log.info(
            'version_planned',
            package=pkg.name,
            current=pkg.version,
            new=new_version,
            bump=bump.value,
            changes=len(changes),
        )
    return Plan(plans)


def require_primary(plan: Plan, primary: str) -> PackagePlan:
    """Return the primary package's plan, or fail the run.

    Raises:
        ShipKitError: ``SK-POLICY-PRIMARY-UNCHANGED`` when the primary
            package has no attributed changes.
    """
    if primary not in plan:
        raise ShipKitError(
            code=E.POLICY_PRIMARY_UNCHANGED,
            message=f'Primary package {primary!r} has no changes since the last stable tag',
            hint='Nothing release-worthy changed; no files were modified.',
        )
    return plan[primary]


__all__ = [
    'apply_bump',
    'build_plan',
    'decide_bump',
    'parse_base_version',
    'require_primary',
]
