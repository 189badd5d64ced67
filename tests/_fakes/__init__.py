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

"""Shared test fakes for shipkit.

Provides fake implementations of the VCS and Forge protocols so that
individual test modules don't need to duplicate boilerplate classes.

Usage::

    from tests._fakes import OK, FakeVCS, FakeForge

    vcs = FakeVCS(commits=[commit('aaa', 'feat: init')], changed={'aaa': ['src/lib.rs']})
    forge = FakeForge()
"""

from tests._fakes._ctx import make_ctx as make_ctx
from tests._fakes._forge import FakeForge as FakeForge
from tests._fakes._vcs import FAIL as FAIL, OK as OK, FakeVCS as FakeVCS, commit as commit

__all__ = [
    'FAIL',
    'OK',
    'FakeForge',
    'FakeVCS',
    'commit',
    'make_ctx',
]
