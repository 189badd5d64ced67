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

"""Commit message classification.

All string-matching rules for commit messages live in this subpackage,
isolated from git and the rest of the pipeline so they can be tested on
plain strings.

Usage::

    from shipkit.commit_parsing import CommitKind, classify_commit

    cc = classify_commit('feat(core): add streaming reader')
    assert cc.kind is CommitKind.FEATURE
"""

from shipkit.commit_parsing._classify import (
    BREAKING_FOOTER,
    NO_SUBJECT,
    classify_commit,
    is_breaking,
    kind_from_prefix,
    subject_of,
)
from shipkit.commit_parsing._types import BumpType, ClassifiedCommit, CommitKind

__all__ = [
    'BREAKING_FOOTER',
    'NO_SUBJECT',
    'BumpType',
    'ClassifiedCommit',
    'CommitKind',
    'classify_commit',
    'is_breaking',
    'kind_from_prefix',
    'subject_of',
]
