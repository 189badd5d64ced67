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

"""Release context handed to the pipeline by workspace discovery.

Discovery (finding the repository root, the remote, the packages and
the last stable tag) happens outside shipkit. Its result arrives as a
:class:`ReleaseContext`, which is validated once and then treated as
read-only for the rest of the run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from shipkit.errors import E, ShipKitError


@dataclass(frozen=True)
class PackageInfo:
    """One package in the workspace.

    Attributes:
        name: Package name, unique within the workspace.
        version: Current semantic version (e.g. ``"0.4.2"``).
        manifest_path: Absolute path to the package manifest (``Cargo.toml``).
        root: Absolute path to the package subtree root.
        dependents: Number of in-workspace packages that depend on this one.
    """

    name: str
    version: str
    manifest_path: Path
    root: Path
    dependents: int = 0


@dataclass(frozen=True)
class ReleaseContext:
    """Everything the pipeline needs to know about the repository.

    Attributes:
        repo_root: Absolute path to the repository root.
        repo_owner: Owner of the remote repository.
        repo_name: Name of the remote repository.
        packages: Workspace packages.
        primary_package: Name of the package that gates the release.
        last_stable_tag: Most recent stable tag, or ``None`` to analyse
            the whole history.
    """

    repo_root: Path
    repo_owner: str
    repo_name: str
    packages: tuple[PackageInfo, ...] = field(default_factory=tuple)
    primary_package: str = ''
    last_stable_tag: str | None = None

    def __post_init__(self) -> None:
        """Validate names and freeze the package sequence."""
        object.__setattr__(self, 'packages', tuple(self.packages))
        seen: set[str] = set()
        for pkg in self.packages:
            if pkg.name in seen:
                raise ShipKitError(
                    code=E.CONTEXT_INVALID,
                    message=f'Duplicate package name {pkg.name!r} in release context',
                )
            seen.add(pkg.name)
        if self.primary_package not in seen:
            raise ShipKitError(
                code=E.CONTEXT_INVALID,
                message=f'Primary package {self.primary_package!r} is not a workspace package',
                hint=f'Known packages: {", ".join(sorted(seen)) or "(none)"}',
            )

    def package(self, name: str) -> PackageInfo:
        """Return the package called ``name``."""
        for pkg in self.packages:
            if pkg.name == name:
                return pkg
        msg = f'unknown package: {name}'
        raise KeyError(msg)

    @property
    def primary(self) -> PackageInfo:
        """The primary package."""
        return self.package(self.primary_package)

    def relative_root(self, pkg: PackageInfo) -> str:
        """``pkg.root`` relative to the repository, ``/``-separated.

        The repository root itself is returned as ``''``.
        """
        try:
            rel = pkg.root.resolve().relative_to(self.repo_root.resolve())
        except ValueError:
            rel = pkg.root
        posix = PurePosixPath(*rel.parts).as_posix() if rel.parts else ''
        return '' if posix == '.' else posix


__all__ = [
    'PackageInfo',
    'ReleaseContext',
]
