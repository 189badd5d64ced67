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

"""Source archives built from the candidate's git tree.

Archives are read from the **tagged commit's tree object**, never from
the working directory, so untracked files and build output cannot leak
into a release.

Key Concepts (ELI5)::

    ┌─────────────────────┬────────────────────────────────────────────────┐
    │ Concept             │ ELI5 Explanation                               │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Tree walk           │ "git ls-tree -r <commit> -- <pkg root>": the  │
    │                     │ exact file list git stored for the tag.       │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Skip dirs           │ Any path with a ".git", ".github" or "target" │
    │                     │ component is left out.                        │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Two formats         │ Every blob goes into a .tar.gz and a .zip at  │
    │                     │ the same relative path, mode 0644.            │
    ├─────────────────────┼────────────────────────────────────────────────┤
    │ Deterministic       │ Timestamps are pinned (tar/gzip mtime 0, zip  │
    │                     │ 1980-01-01), so the same tree gives the same  │
    │                     │ bytes.                                        │
    └─────────────────────┴────────────────────────────────────────────────┘

Artifact layout::

    <artifact root>/v1.3.0-rc.1/
        opendal-1.3.0-rc1-src.tar.gz
        opendal-1.3.0-rc1-src.zip
        opendal-core-0.4.1-rc1-src.tar.gz      (non-primary package)
        opendal-core-0.4.1-rc1-src.zip

Archive writing is blocking and runs on the worker pool.
"""

from __future__ import annotations

import gzip
import io
import subprocess  # noqa: S404 - only for its exception types
import tarfile
import zipfile
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from shipkit.backends._pool import WorkerPool, run_blocking
from shipkit.backends.vcs import VCS, TreeEntry
from shipkit.context import ReleaseContext
from shipkit.errors import E, ShipKitError
from shipkit.logging import get_logger
from shipkit.plan import Plan

log = get_logger('shipkit.archive')

DEFAULT_SKIP_DIRS: tuple[str, ...] = ('.git', '.github', 'target')
DEFAULT_ARTIFACT_SUBDIR = Path('target') / 'shipkit'

FILE_MODE = 0o644
ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


@dataclass(frozen=True)
class PackagedArtifacts:
    """Files produced for one package.

    Attributes:
        name: Package name.
        files: Archive paths, plus checksum sidecars once written.
    """

    name: str
    files: tuple[Path, ...]

    def with_files(self, extra: Sequence[Path]) -> PackagedArtifacts:
        """Return a copy with ``extra`` appended to :attr:`files`."""
        return PackagedArtifacts(name=self.name, files=(*self.files, *extra))


def artifact_base_name(
    repo_name: str,
    package: str,
    version: str,
    number: int,
    *,
    primary: bool,
    prefix: str = '',
) -> str:
    """Archive base name (without extension).

    >>> artifact_base_name('opendal', 'opendal', '1.3.0', 2, primary=True)
    'opendal-1.3.0-rc2-src'
    >>> artifact_base_name('opendal', 'core', '0.4.1', 2, primary=False, prefix='apache-')
    'apache-opendal-core-0.4.1-rc2-src'
    """
    if primary:
        return f'{prefix}{repo_name}-{version}-rc{number}-src'
    return f'{prefix}{repo_name}-{package}-{version}-rc{number}-src'


def resolve_artifact_root(repo_root: Path, artifact_dir: str | Path | None) -> Path:
    """Artifact root: ``artifact_dir`` (absolute or repo-relative) or the default."""
    if not artifact_dir:
        return repo_root / DEFAULT_ARTIFACT_SUBDIR
    path = Path(artifact_dir)
    return path if path.is_absolute() else repo_root / path


def run_directory(artifact_root: Path, tag: str) -> Path:
    """Per-candidate output directory under ``artifact_root``."""
    return artifact_root / tag.replace('/', '_')


def should_skip(path: str, skip_dirs: Sequence[str] = DEFAULT_SKIP_DIRS) -> bool:
    """Return ``True`` if any component of ``path`` is a skipped directory name."""
    return any(part in skip_dirs for part in path.split('/'))


def select_entries(
    entries: Sequence[TreeEntry],
    root: str,
    skip_dirs: Sequence[str] = DEFAULT_SKIP_DIRS,
) -> list[TreeEntry]:
    """Blobs inside ``root`` that are not skipped, sorted by path."""
    selected = [
        e
        for e in entries
        if (not root or e.path == root or e.path.startswith(root + '/')) and not should_skip(e.path, skip_dirs)
    ]
    return sorted(selected, key=lambda e: e.path)


def write_archives(
    entries: Sequence[TreeEntry],
    read_blob: Callable[[str], bytes],
    tar_gz: Path,
    zip_path: Path,
) -> None:
    """Write ``entries`` into a gzip tarball and a deflate zip (blocking).

    Both archives get the same paths and contents. The first failure in
    either format propagates; nothing is skipped.
    """
    with (
        tar_gz.open('wb') as raw,
        gzip.GzipFile(filename='', mode='wb', fileobj=raw, mtime=0) as gz,
        tarfile.open(fileobj=gz, mode='w', format=tarfile.GNU_FORMAT) as tar,
        zipfile.ZipFile(zip_path, 'w', compression=zipfile.ZIP_DEFLATED) as zf,
    ):
        for entry in entries:
            data = read_blob(entry.oid)

            info = tarfile.TarInfo(name=entry.path)
            info.size = len(data)
            info.mode = FILE_MODE
            info.mtime = 0
            tar.addfile(info, io.BytesIO(data))

            zinfo = zipfile.ZipInfo(filename=entry.path, date_time=ZIP_EPOCH)
            zinfo.compress_type = zipfile.ZIP_DEFLATED
            zinfo.external_attr = (0o100000 | FILE_MODE) << 16
            zf.writestr(zinfo, data)


def _remove_partial(*paths: Path) -> None:
    for path in paths:
        path.unlink(missing_ok=True)


async def package_one(
    vcs: VCS,
    commitish: str,
    root: str,
    out_dir: Path,
    base_name: str,
    *,
    skip_dirs: Sequence[str] = DEFAULT_SKIP_DIRS,
    pool: WorkerPool | None = None,
) -> tuple[Path, Path]:
    """Package the ``root`` subtree of ``commitish`` into ``out_dir``.

    Returns:
        ``(tar_gz_path, zip_path)``.

    Raises:
        ShipKitError: ``SK-PACKAGING-FAILED`` on the first read or write
            error; partial archives are removed.
    """
    tar_gz = out_dir / f'{base_name}.tar.gz'
    zip_path = out_dir / f'{base_name}.zip'
    try:
        entries = select_entries(await vcs.ls_tree(commitish, root), root, skip_dirs)
        await run_blocking(pool, write_archives, entries, vcs.read_blob_sync, tar_gz, zip_path)
    except (OSError, tarfile.TarError, zipfile.LargeZipFile, subprocess.SubprocessError, ValueError) as exc:
        _remove_partial(tar_gz, zip_path)
        log.error('packaging_failed', archive=base_name, error=str(exc))
        raise ShipKitError(
            code=E.PACKAGING_FAILED,
            message=f'Packaging {base_name} failed: {exc}',
            hint='No partial archives were kept. Fix the cause and rerun packaging.',
        ) from exc
    log.info('packaged', archive=base_name, files=len(entries))
    return tar_gz, zip_path


async def package_plan(
    ctx: ReleaseContext,
    plan: Plan,
    vcs: VCS,
    *,
    commitish: str,
    tag: str,
    number: int,
    artifact_dir: str | Path | None = None,
    prefix: str = '',
    skip_dirs: Sequence[str] = DEFAULT_SKIP_DIRS,
    pool: WorkerPool | None = None,
) -> tuple[Path, list[PackagedArtifacts]]:
    """Package every planned package from the tree of ``commitish``.

    Returns:
        ``(run_dir, packaged)`` with one :class:`PackagedArtifacts` per
        planned package, in plan order.
    """
    out_dir = run_directory(resolve_artifact_root(ctx.repo_root, artifact_dir), tag)
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ShipKitError(
            code=E.PACKAGING_FAILED,
            message=f'Cannot create artifact directory {out_dir}: {exc}',
        ) from exc

    packaged: list[PackagedArtifacts] = []
    for name in plan:
        pkg = ctx.package(name)
        base = artifact_base_name(
            ctx.repo_name,
            name,
            plan[name].new_version,
            number,
            primary=name == ctx.primary_package,
            prefix=prefix,
        )
        tar_gz, zip_path = await package_one(
            vcs,
            commitish,
            ctx.relative_root(pkg),
            out_dir,
            base,
            skip_dirs=skip_dirs,
            pool=pool,
        )
        packaged.append(PackagedArtifacts(name=name, files=(tar_gz, zip_path)))
    return out_dir, packaged


__all__ = [
    'DEFAULT_ARTIFACT_SUBDIR',
    'DEFAULT_SKIP_DIRS',
    'FILE_MODE',
    'PackagedArtifacts',
    'artifact_base_name',
    'package_one',
    'package_plan',
    'resolve_artifact_root',
    'run_directory',
    'select_entries',
    'should_skip',
    'write_archives',
]
