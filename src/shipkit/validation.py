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

"""Cross-check packaged artifacts against the plan before upload."""

from __future__ import annotations

from collections.abc import Sequence

from shipkit.archive import PackagedArtifacts
from shipkit.errors import E, ShipKitError
from shipkit.logging import get_logger
from shipkit.plan import Plan

log = get_logger('shipkit.validation')

REQUIRED_SUFFIXES: tuple[str, ...] = ('.gz', '.zip')


def _mismatch(message: str) -> ShipKitError:
    return ShipKitError(
        code=E.VALIDATION_MISMATCH,
        message=message,
        hint='Packaging and planning disagree. Nothing was uploaded; inspect the artifact directory.',
    )


def validate_packaged(plan: Plan, packaged: Sequence[PackagedArtifacts]) -> None:
    """Check that ``packaged`` covers exactly the planned packages.

    Raises:
        ShipKitError: ``SK-VALIDATION-MISMATCH`` when the counts differ,
            the name sets differ, or a package lacks a ``.gz`` or ``.zip``.
    """
    if len(packaged) != len(plan):
        raise _mismatch(f'Planned {len(plan)} package(s) but packaged {len(packaged)}')

    names = {p.name for p in packaged}
    planned = set(plan)
    if names != planned:
        missing = sorted(planned - names)
        extra = sorted(names - planned)
        raise _mismatch(f'Packaged names differ from the plan (missing: {missing}, unexpected: {extra})')

    for artifacts in packaged:
        for suffix in REQUIRED_SUFFIXES:
            if not any(f.name.endswith(suffix) for f in artifacts.files):
                raise _mismatch(f'Package {artifacts.name} has no {suffix} archive')

    log.info('artifacts_validated', packages=len(packaged))


__all__ = [
    'REQUIRED_SUFFIXES',
    'validate_packaged',
]
