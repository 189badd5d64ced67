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

"""Per-package changelog sections.

Key Concepts (ELI5)::

    ┌─────────────────────────┬─────────────────────────────────────────────┐
    │ Concept                 │ Plain-English                               │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ ChangelogSection        │ A group of entries under one heading, e.g.  │
    │                         │ "Features" or "Fixes".                      │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ Changelog               │ All sections for one package release.       │
    ├─────────────────────────┼─────────────────────────────────────────────┤
    │ write_changelog()       │ Puts the new release on top of the file.    │
    │                         │ Older releases stay below, untouched.       │
    └─────────────────────────┴─────────────────────────────────────────────┘

Rendered output::

    ## core v0.2.0 - 2026-10-16

    ### Breaking Changes
    - refactor!: drop legacy reader (1a2b3c4)

    ### Features
    - feat: add streaming writer (5d6e7f8)

    <previous CHANGELOG.md content>

Headings always appear in this order and empty groups are left out::

    Breaking Changes   breaking
    Features           feature
    Fixes              fix
    Refactor/Perf      refactor, performance
    Others             docs, build, chore, other
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from pathlib import Path

from shipkit.backends._io import read_file_or_empty, write_file
from shipkit.commit_parsing import CommitKind
from shipkit.context import ReleaseContext
from shipkit.errors import E
from shipkit.logging import get_logger
from shipkit.plan import ChangeEntry, PackagePlan, Plan

logger = get_logger(__name__)

CHANGELOG_FILENAME = 'CHANGELOG.md'

# Heading → kinds rendered under it (display order matters).
_SECTION_ORDER: list[tuple[str, frozenset[CommitKind]]] = [
    ('Breaking Changes', frozenset({CommitKind.BREAKING})),
    ('Features', frozenset({CommitKind.FEATURE})),
    ('Fixes', frozenset({CommitKind.FIX})),
    ('Refactor/Perf', frozenset({CommitKind.REFACTOR, CommitKind.PERFORMANCE})),
    ('Others', frozenset({CommitKind.DOCS, CommitKind.BUILD, CommitKind.CHORE, CommitKind.OTHER})),
]


@dataclass(frozen=True)
class ChangelogSection:
    """A group of entries under one heading."""

    heading: str
    entries: tuple[ChangeEntry, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Changelog:
    """One package release's changelog block.

    Attributes:
        package: Package name.
        version: Released version.
        date: Release date.
        sections: Non-empty sections in display order.
    """

    package: str
    version: str
    date: datetime.date
    sections: tuple[ChangelogSection, ...] = field(default_factory=tuple)


def _group_entries(changes: tuple[ChangeEntry, ...] | list[ChangeEntry]) -> tuple[ChangelogSection, ...]:
    """Group entries by heading, dropping empty groups."""
    sections: list[ChangelogSection] = []
    for heading, kinds in _SECTION_ORDER:
        entries = tuple(c for c in changes if c.kind in kinds)
        if entries:
            sections.append(ChangelogSection(heading=heading, entries=entries))
    return tuple(sections)


def build_changelog(plan: PackagePlan, *, date: datetime.date) -> Changelog:
    """Build the changelog block for one planned package."""
    return Changelog(
        package=plan.name,
        version=plan.new_version,
        date=date,
        sections=_group_entries(plan.changes),
    )


def render_changelog(changelog: Changelog) -> str:
    """Render a changelog block as markdown, ending in a blank line."""
    lines = [f'## {changelog.package} v{changelog.version} - {changelog.date.isoformat()}', '']
    for section in changelog.sections:
        lines.append(f'### {section.heading}')
        lines.extend(f'- {entry.subject} ({entry.short_sha})' for entry in section.entries)
        lines.append('')
    return '\n'.join(lines) + '\n'


async def write_changelog(path: Path, rendered: str) -> None:
    """Prepend ``rendered`` to the changelog at ``path``.

    The file is created when missing. Existing content is kept verbatim
    below the new block, and a CRLF file gets a CRLF block.
    """
    existing = await read_file_or_empty(path, code=E.CHANGELOG_WRITE_FAILED)
    if '\r\n' in existing:
        rendered = rendered.replace('\n', '\r\n')
    await write_file(path, rendered + existing, code=E.CHANGELOG_WRITE_FAILED)


async def write_changelogs(
    ctx: ReleaseContext,
    plan: Plan,
    *,
    today: datetime.date | None = None,
) -> list[Path]:
    """Prepend a release block to every planned package's changelog.

    Args:
        ctx: The release context.
        plan: The release plan.
        today: Release date; defaults to the current UTC date.

    Returns:
        The changelog files that were written.
    """
    date = today or datetime.datetime.now(datetime.timezone.utc).date()
    written: list[Path] = []
    for name in plan:
        path = ctx.package(name).root / CHANGELOG_FILENAME
        changelog = build_changelog(plan[name], date=date)
        await write_changelog(path, render_changelog(changelog))
        logger.info('changelog_written', package=name, version=changelog.version, path=str(path))
        written.append(path)
    return written


__all__ = [
    'CHANGELOG_FILENAME',
    'Changelog',
    'ChangelogSection',
    'build_changelog',
    'render_changelog',
    'write_changelog',
    'write_changelogs',
]
