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

"""Tests for shipkit.validation."""

from __future__ import annotations

from pathlib import Path

import pytest
from shipkit.archive import PackagedArtifacts
from shipkit.commit_parsing import BumpType
from shipkit.errors import E, ShipKitError
from shipkit.logging import configure_logging
from shipkit.plan import PackagePlan, Plan
from shipkit.validation import validate_packaged

configure_logging(quiet=True)

PLAN = Plan([
    PackagePlan(name='cli', current_version='0.3.0', new_version='0.3.1', bump=BumpType.PATCH),
    PackagePlan(name='core', current_version='1.2.3', new_version='1.3.0', bump=BumpType.MINOR),
])


def _artifacts(name: str, *suffixes: str) -> PackagedArtifacts:
    return PackagedArtifacts(name=name, files=tuple(Path(f'/out/{name}-src{s}') for s in suffixes))


class TestValidatePackaged:
    """Tests for validate_packaged()."""

    def test_ok(self) -> None:
        """Matching names with both formats pass."""
        validate_packaged(PLAN, [_artifacts('cli', '.tar.gz', '.zip'), _artifacts('core', '.tar.gz', '.zip')])

    def test_count_mismatch(self) -> None:
        """A missing package is rejected."""
        with pytest.raises(ShipKitError) as exc_info:
            validate_packaged(PLAN, [_artifacts('cli', '.tar.gz', '.zip')])
        assert exc_info.value.code is E.VALIDATION_MISMATCH

    def test_name_mismatch(self) -> None:
        """An unplanned package is rejected even when the count matches."""
        with pytest.raises(ShipKitError) as exc_info:
            validate_packaged(PLAN, [_artifacts('cli', '.tar.gz', '.zip'), _artifacts('other', '.tar.gz', '.zip')])
        assert exc_info.value.code is E.VALIDATION_MISMATCH
        assert 'other' in exc_info.value.info.message

    @pytest.mark.parametrize('suffixes', [('.tar.gz',), ('.zip',), ()])
    def test_missing_format(self, suffixes: tuple[str, ...]) -> None:
        """Each package needs a .gz and a .zip."""
        with pytest.raises(ShipKitError) as exc_info:
            validate_packaged(PLAN, [_artifacts('cli', '.tar.gz', '.zip'), _artifacts('core', *suffixes)])
        assert exc_info.value.code is E.VALIDATION_MISMATCH
