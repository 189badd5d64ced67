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

"""Surgical ``Cargo.toml`` edits for a release plan.

Two passes run over the workspace:

1. Every planned package gets ``[package].version`` set to its new
   version. A manifest without ``[package]`` (a virtual workspace root)
   is left untouched.
2. Every workspace manifest, planned or not, has its dependency
   declarations on planned packages rewritten::

       [dependencies]
       core = "0.1.0"                                → "0.1.1"
       core = { version = "0.1.0", path = "../core" } → version = "0.1.1"
       io = { package = "core", version = "=0.1.0" } → version = "=0.1.1"

       [dependencies.core]                            (sub-table form)
       version = "0.1.0"                              → "0.1.1"

   Sections scanned: ``dependencies``, ``dev-dependencies`` and
   ``build-dependencies`` at the top level and under
   ``[target.<cfg>]``, plus ``[workspace.dependencies]``. A declaration
   without a ``version`` key (path-only) is never given one.

Each document is parsed with ``tomlkit``, edited and written back inside
a single function call, so no parsed document outlives the call that
owns it. Comments, ordering and unrelated entries come back exactly as
they were, and a file is only written when something actually changed.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any

import tomlkit
import tomlkit.exceptions
from tomlkit.toml_document import TOMLDocument

from shipkit.backends._io import read_file, write_file
from shipkit.context import ReleaseContext
from shipkit.errors import E, ShipKitError
from shipkit.logging import get_logger
from shipkit.plan import Plan

log = get_logger('shipkit.manifest')

MANIFEST_FILENAME = 'Cargo.toml'

DEP_TABLE_KEYS: tuple[str, ...] = ('dependencies', 'dev-dependencies', 'build-dependencies')

# A single comparison operator in front of a plain version, e.g. "=0.1.0".
_REQ_PREFIX_RE = re.compile(r'^\s*(?P<op>[=^~]|[<>]=?)?\s*\d+(\.\d+){0,2}([-+][0-9A-Za-z.+-]*)?\s*$')


def rewrite_requirement(old: str, new_version: str) -> str:
    """Return ``old`` pointing at ``new_version``, keeping a simple operator.

    >>> rewrite_requirement('0.1.0', '0.2.0')
    '0.2.0'
    >>> rewrite_requirement('=0.1.0', '0.2.0')
    '=0.2.0'
    >>> rewrite_requirement('>=0.1, <0.2', '0.2.0')
    '0.2.0'
    """
    m = _REQ_PREFIX_RE.match(old)
    op = (m.group('op') or '') if m else ''
    return f'{op}{new_version}'


def _dependency_tables(doc: TOMLDocument) -> Iterator[tuple[str, Any]]:
    """Yield ``(section label, table)`` for every dependency table in ``doc``."""
    for key in DEP_TABLE_KEYS:
        table = doc.get(key)
        if isinstance(table, dict):
            yield key, table

    target = doc.get('target')
    if isinstance(target, dict):
        for cfg, target_table in target.items():
            if not isinstance(target_table, dict):
                continue
            for key in DEP_TABLE_KEYS:
                sub = target_table.get(key)
                if isinstance(sub, dict):
                    yield f'target.{cfg}.{key}', sub

    workspace = doc.get('workspace')
    if isinstance(workspace, dict):
        ws_deps = workspace.get('dependencies')
        if isinstance(ws_deps, dict):
            yield 'workspace.dependencies', ws_deps


def rewrite_dependencies(doc: TOMLDocument, versions: Mapping[str, str]) -> list[str]:
    """Rewrite dependency versions in ``doc`` in place.

    Args:
        doc: A document owned by the caller.
        versions: ``{package name: new version}`` for planned packages.

    Returns:
        ``section.key`` labels of the entries that changed.
    """
    changed: list[str] = []
    for section, table in _dependency_tables(doc):
        for key in list(table.keys()):
            item = table[key]
            if isinstance(item, str):
                new_version = versions.get(key)
                if new_version is None:
                    continue
                updated = rewrite_requirement(str(item), new_version)
                if updated != str(item):
                    table[key] = updated
                    changed.append(f'{section}.{key}')
            elif isinstance(item, dict):
                real_name = str(item.get('package', key))
                new_version = versions.get(real_name)
                if new_version is None or 'version' not in item:
                    continue
                current = str(item['version'])
                updated = rewrite_requirement(current, new_version)
                if updated != current:
                    item['version'] = updated
                    changed.append(f'{section}.{key}')
    return changed


def _parse(path: Path, text: str) -> TOMLDocument:
    try:
        return tomlkit.parse(text)
    except tomlkit.exceptions.TOMLKitError as exc:
        raise ShipKitError(
            code=E.MANIFEST_PARSE_FAILED,
            message=f'Failed to parse {path}: {exc}',
            hint='Fix the TOML syntax before releasing.',
        ) from exc


async def set_package_version(manifest_path: Path, new_version: str) -> bool:
    """Set ``[package].version`` in ``manifest_path``.

    Returns:
        ``True`` if the file was rewritten.
    """
    text = await read_file(manifest_path, code=E.MANIFEST_READ_FAILED)
    doc = _parse(manifest_path, text)

    package = doc.get('package')
    if not isinstance(package, dict):
        log.debug('manifest_no_package_section', manifest=str(manifest_path))
        return False

    current = package.get('version')
    if isinstance(current, dict):
        # version.workspace = true: the version lives in the workspace root.
        log.warning('manifest_version_inherited', manifest=str(manifest_path))
        return False
    if current is not None and str(current) == new_version:
        return False

    package['version'] = new_version
    await write_file(manifest_path, tomlkit.dumps(doc), code=E.MANIFEST_WRITE_FAILED)
    log.info('version_rewritten', manifest=str(manifest_path), old=str(current), new=new_version)
    return True


async def rewrite_manifest_dependencies(manifest_path: Path, versions: Mapping[str, str]) -> list[str]:
    """Rewrite dependency declarations in one manifest file.

    Returns:
        Labels of the rewritten entries. Empty means the file was not written.
    """
    text = await read_file(manifest_path, code=E.MANIFEST_READ_FAILED)
    doc = _parse(manifest_path, text)
    changed = rewrite_dependencies(doc, versions)
    if changed:
        await write_file(manifest_path, tomlkit.dumps(doc), code=E.MANIFEST_WRITE_FAILED)
        log.info('dependencies_rewritten', manifest=str(manifest_path), entries=changed)
    return changed


def workspace_manifests(ctx: ReleaseContext) -> list[Path]:
    """Every manifest in the workspace: each package's plus the root's."""
    paths: list[Path] = []
    seen: set[Path] = set()
    candidates = [pkg.manifest_path for pkg in ctx.packages]
    root_manifest = ctx.repo_root / MANIFEST_FILENAME
    if root_manifest.is_file():
        candidates.append(root_manifest)
    for path in candidates:
        key = path.resolve()
        if key not in seen:
            seen.add(key)
            paths.append(path)
    return paths


async def apply_manifest_changes(ctx: ReleaseContext, plan: Plan) -> list[Path]:
    """Apply ``plan`` to every manifest in the workspace.

    Returns:
        Manifests that were written, in the order they were first touched.

    Raises:
        ShipKitError: ``SK-MANIFEST-*`` on any read, parse or write error.
    """
    touched: list[Path] = []

    for name in plan:
        pkg = ctx.package(name)
        if await set_package_version(pkg.manifest_path, plan[name].new_version):
            touched.append(pkg.manifest_path)

    versions = plan.new_versions()
    for path in workspace_manifests(ctx):
        if await rewrite_manifest_dependencies(path, versions) and path not in touched:
            touched.append(path)

    return touched


__all__ = [
    'DEP_TABLE_KEYS',
    'MANIFEST_FILENAME',
    'apply_manifest_changes',
    'rewrite_dependencies',
    'rewrite_manifest_dependencies',
    'rewrite_requirement',
    'set_package_version',
    'workspace_manifests',
]
