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

"""Pure types for commit classification.

This module has **zero** runtime dependencies beyond the standard library.
Everything here is a frozen dataclass or enum: no I/O, no logging.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CommitKind(Enum):
    """Closed set of commit classifications.

    ``BREAKING`` overrides every type prefix. ``OTHER`` catches anything
    the classifier does not recognise, so classification is total.
    """

    BREAKING = 'breaking'
    FEATURE = 'feature'
    FIX = 'fix'
    PERFORMANCE = 'performance'
    REFACTOR = 'refactor'
    DOCS = 'docs'
    BUILD = 'build'
    CHORE = 'chore'
    OTHER = 'other'


class BumpType(Enum):
    """Semver bump types, ordered by precedence (highest first)."""

    MAJOR = 'major'
    MINOR = 'minor'
    PATCH = 'patch'


@dataclass(frozen=True)
class ClassifiedCommit:
    """Result of classifying one commit message.

    Attributes:
        kind: The :class:`CommitKind`.
        subject: First line of the message (``<no subject>`` if empty).
        breaking: Whether a breaking marker was found anywhere.
    """

    kind: CommitKind
    subject: str
    breaking: bool = False


__all__ = [
    'BumpType',
    'ClassifiedCommit',
    'CommitKind',
]
