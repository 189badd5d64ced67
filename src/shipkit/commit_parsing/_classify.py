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

"""Conventional-commit style classifier.

Pure implementation: depends only on :mod:`._types`. No I/O, no logging.

Breaking markers recognised::

    feat!: drop old API              "!:" anywhere in the subject
    feat(!): drop old API            "(!):" anywhere in the subject
    feat(core)!: drop old API        type prefix ending in "!"
    BREAKING CHANGE: ...             anywhere in the message, any case

Type prefixes are matched case-insensitively with ``startswith`` against
the text before the first ``:``, so ``feat(scope)`` and ``Fix!`` both
match.
"""

from __future__ import annotations

from shipkit.commit_parsing._types import ClassifiedCommit, CommitKind

NO_SUBJECT = '<no subject>'

BREAKING_FOOTER = 'BREAKING CHANGE:'

# Checked in order; the first prefix that matches wins.
_PREFIX_KINDS: tuple[tuple[str, CommitKind], ...] = (
    ('feat', CommitKind.FEATURE),
    ('fix', CommitKind.FIX),
    ('perf', CommitKind.PERFORMANCE),
    ('refactor', CommitKind.REFACTOR),
    ('docs', CommitKind.DOCS),
    ('build', CommitKind.BUILD),
    ('chore', CommitKind.CHORE),
)


def subject_of(message: str) -> str:
    """Return the first line of ``message``, or ``<no subject>``."""
    first = message.split('\n', 1)[0].strip()
    return first or NO_SUBJECT


def is_breaking(subject: str, message: str) -> bool:
    """Return ``True`` if the subject or message carries a breaking marker."""
    if '!:' in subject or '(!):' in subject:
        return True
    if subject[:1].isalpha():
        prefix, sep, _ = subject.partition(':')
        if sep and prefix.endswith('!'):
            return True
    return BREAKING_FOOTER in message.upper()


def kind_from_prefix(subject: str) -> CommitKind:
    """Map a subject's type prefix to a :class:`CommitKind`.

    Subjects without a ``type:`` prefix classify as ``OTHER``. This
    function never returns ``BREAKING``; see :func:`classify_commit`.
    """
    prefix, sep, _ = subject.partition(':')
    if not sep:
        return CommitKind.OTHER
    prefix = prefix.strip().lower()
    for type_prefix, kind in _PREFIX_KINDS:
        if prefix.startswith(type_prefix):
            return kind
    return CommitKind.OTHER


def classify_commit(message: str) -> ClassifiedCommit:
    """Classify a full commit message.

    >>> classify_commit('feat: add new module').kind
    <CommitKind.FEATURE: 'feature'>
    >>> classify_commit('refactor!: breaking change').kind
    <CommitKind.BREAKING: 'breaking'>
    >>> classify_commit('update readme').kind
    <CommitKind.OTHER: 'other'>
    """
    subject = subject_of(message)
    breaking = is_breaking(subject, message)
    kind = CommitKind.BREAKING if breaking else kind_from_prefix(subject)
    return ClassifiedCommit(kind=kind, subject=subject, breaking=breaking)


__all__ = [
    'BREAKING_FOOTER',
    'NO_SUBJECT',
    'classify_commit',
    'is_breaking',
    'kind_from_prefix',
    'subject_of',
]
