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

"""Release plan data model.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ ChangeEntry         │ One commit, as seen by one package. A commit  │
    │                     │ touching two packages yields two entries.     │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ PackagePlan         │ "Package X goes from 0.1.0 to 0.2.0 because   │
    │                     │ of these entries."                            │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Plan                │ All PackagePlans, sorted by name. A package   │
    │                     │ is in here only if something changed.         │
    └─────────────────────┴────────────────────────────────────────────────┘

The :class:`Plan` is built once by :func:`shipkit.versioning.build_plan`
and then only read: every downstream stage receives the same instance.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

from shipkit.commit_parsing import BumpType, CommitKind


@dataclass(frozen=True)
class ChangeEntry:
    """A classified commit attributed to one package.

    Attributes:
        kind: Commit classification.
        subject: Commit subject line.
        short_sha: Abbreviated commit id (7 characters).
        breaking: Whether the commit carries a breaking marker.
    """

    kind: CommitKind
    subject: str
    short_sha: str
    breaking: bool = False


@dataclass(frozen=True)
class PackagePlan:
    """Planned version change for one package.

    Attributes:
        name: Package name.
        current_version: Version before the release.
        new_version: Version after the release.
        bump: The bump that produced :attr:`new_version`.
        changes: Attributed changes, oldest first.
    """

    name: str
    current_version: str
    new_version: str
    bump: BumpType
    changes: tuple[ChangeEntry, ...] = field(default_factory=tuple)


class Plan(Mapping[str, PackagePlan]):
    """Read-only mapping of package name to :class:`PackagePlan`.

    Iteration order is lexicographic by package name regardless of the
    order plans were supplied in.
    """

    def __init__(self, plans: list[PackagePlan] | tuple[PackagePlan, ...] = ()) -> None:
        """Index ``plans`` by name, rejecting duplicates."""
        by_name: dict[str, PackagePlan] = {}
        for plan in sorted(plans, key=lambda p: p.name):
            if plan.name in by_name:
                msg = f'duplicate package in plan: {plan.name}'
                raise ValueError(msg)
            by_name[plan.name] = plan
        self._plans = by_name

    def __getitem__(self, name: str) -> PackagePlan:
        """Return the plan for ``name``."""
        return self._plans[name]

    def __iter__(self) -> Iterator[str]:
        """Iterate package names in lexicographic order."""
        return iter(self._plans)

    def __len__(self) -> int:
        """Number of planned packages."""
        return len(self._plans)

    def __repr__(self) -> str:
        """Compact ``name: old -> new`` summary."""
        inner = ', '.join(f'{p.name}: {p.current_version} -> {p.new_version}' for p in self._plans.values())
        return f'Plan({inner})'

    def new_versions(self) -> dict[str, str]:
        """Return ``{name: new_version}`` for every planned package."""
        return {name: plan.new_version for name, plan in self._plans.items()}


__all__ = [
    'ChangeEntry',
    'PackagePlan',
    'Plan',
]
