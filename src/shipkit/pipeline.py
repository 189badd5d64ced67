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

"""The prerelease pipeline.

Stages run strictly in sequence; each one consumes the previous one's
output and any failure stops the run with a :class:`ShipKitError`::

    attribute ──▶ plan ──▶ primary changed? ──no──▶ SK-POLICY-PRIMARY-UNCHANGED
                               │ yes
                               ▼
                  HEAD already a candidate? ──yes──▶ SK-IDEMPOTENCY-TAG-EXISTS
                               │ no
                               ▼
                      dry run? ──yes──▶ return (mode "planned")
                               │ no
                               ▼
               rewrite manifests, prepend changelogs, commit
                               │
                               ▼
              no token and not local-only? ──yes──▶ warn, return ("degraded")
                               │ no
                               ▼
               tag (+ push and prerelease in remote mode)
                               │
                               ▼
                  package ──▶ validate ──▶ checksums
                               │
                               ▼ (remote mode only)
                            upload

Nothing is rolled back. A failure after tagging leaves the tag in place.

Usage::

    import os
    from shipkit.config import load_config
    from shipkit.pipeline import run_prerelease

    config = load_config(ctx.repo_root, env=os.environ)
    result = asyncio.run(run_prerelease(ctx, config))
    print(result.tag, result.mode)
"""

from __future__ import annotations

import dataclasses
import datetime
from dataclasses import dataclass, field
from pathlib import Path

from shipkit.archive import PackagedArtifacts, package_plan
from shipkit.attribution import attribute_commits
from shipkit.backends._pool import WorkerPool
from shipkit.backends.forge import Forge
from shipkit.backends.forge.github_api import GitHubAPIBackend
from shipkit.backends.vcs import VCS, GitCLIBackend
from shipkit.candidate import Candidate, cut_candidate, ensure_head_not_candidate
from shipkit.checksums import write_checksums
from shipkit.config import ShipConfig
from shipkit.context import ReleaseContext
from shipkit.errors import E, ShipKitError
from shipkit.logging import get_logger, release_context
from shipkit.plan import Plan
from shipkit.prepare import apply_plan, commit_release
from shipkit.upload import upload_assets
from shipkit.validation import validate_packaged
from shipkit.versioning import build_plan, require_primary

log = get_logger('shipkit.pipeline')

MODE_PLANNED = 'planned'
MODE_DEGRADED = 'degraded'
MODE_LOCAL = 'local'
MODE_REMOTE = 'remote'


@dataclass
class PrereleaseResult:
    """What a pipeline run did.

    Attributes:
        plan: The release plan.
        mode: ``planned`` (dry run), ``degraded`` (no token), ``local``
            or ``remote``.
        committed: SHA of the release commit, if one was made.
        tag: Candidate tag, if one was created.
        candidate: Full candidate details, if one was cut.
        artifact_dir: Directory holding this candidate's artifacts.
        packaged: Per-package archives and checksum sidecars.
        uploaded: Files uploaded in this run.
        skipped_uploads: Files already present on the release.
    """

    plan: Plan
    mode: str = MODE_PLANNED
    committed: str | None = None
    tag: str | None = None
    candidate: Candidate | None = None
    artifact_dir: Path | None = None
    packaged: list[PackagedArtifacts] = field(default_factory=list)
    uploaded: list[Path] = field(default_factory=list)
    skipped_uploads: list[Path] = field(default_factory=list)

    @property
    def files(self) -> list[Path]:
        """Every artifact file, archives and sidecars, in package order."""
        return [f for p in self.packaged for f in p.files]


def _effective_context(ctx: ReleaseContext, config: ShipConfig) -> ReleaseContext:
    if config.primary_package and config.primary_package != ctx.primary_package:
        return dataclasses.replace(ctx, primary_package=config.primary_package)
    return ctx


def _default_forge(ctx: ReleaseContext, config: ShipConfig) -> Forge:
    return GitHubAPIBackend(
        ctx.repo_owner,
        ctx.repo_name,
        token=config.token,
        base_url=config.api_base_url,
        timeout=config.http_timeout,
    )


async def run_prerelease(
    ctx: ReleaseContext,
    config: ShipConfig,
    *,
    vcs: VCS | None = None,
    forge: Forge | None = None,
    pool: WorkerPool | None = None,
    today: datetime.date | None = None,
) -> PrereleaseResult:
    """Plan, prepare, tag, package and publish a release candidate.

    Args:
        ctx: Repository and package description.
        config: Validated settings (see :func:`shipkit.config.load_config`).
        vcs: VCS backend. Defaults to :class:`GitCLIBackend` on
            ``ctx.repo_root``.
        forge: Release host. Defaults to :class:`GitHubAPIBackend` when
            the config carries a token. Ignored in local-only mode.
        pool: Worker pool for blocking work. A private one is created and
            closed when omitted.
        today: Changelog date. Defaults to the current UTC date.

    Returns:
        A :class:`PrereleaseResult` describing what was done.

    Raises:
        ShipKitError: On the first failing stage.
    """
    own_pool = pool is None
    pool = pool if pool is not None else WorkerPool()
    try:
        with release_context(repo=f'{ctx.repo_owner}/{ctx.repo_name}'):
            return await _run(ctx, config, vcs=vcs, forge=forge, pool=pool, today=today)
    finally:
        if own_pool:
            pool.close()


async def _run(
    ctx: ReleaseContext,
    config: ShipConfig,
    *,
    vcs: VCS | None,
    forge: Forge | None,
    pool: WorkerPool,
    today: datetime.date | None,
) -> PrereleaseResult:
    ctx = _effective_context(ctx, config)
    vcs = vcs if vcs is not None else GitCLIBackend(ctx.repo_root, pool=pool)

    attributed = await attribute_commits(ctx, vcs)
    plan = build_plan(ctx, attributed)
    primary = require_primary(plan, ctx.primary_package)
    await ensure_head_not_candidate(vcs)

    result = PrereleaseResult(plan=plan)
    if config.dry_run:
        log.info('dry_run', packages=len(plan), primary_version=primary.new_version)
        return result

    await apply_plan(ctx, plan, today=today)
    result.committed = await commit_release(vcs, primary.new_version)

    if config.local_only:
        result.mode = MODE_LOCAL
        forge = None
    elif forge is None and not config.has_token:
        result.mode = MODE_DEGRADED
        log.warning(
            'no_token',
            code='SK-NO-TOKEN',
            token_env=config.token_env,
            hint='Release commit created; skipping tag, packaging and upload.',
        )
        return result
    else:
        result.mode = MODE_REMOTE
        forge = forge if forge is not None else _default_forge(ctx, config)

    candidate = await cut_candidate(vcs, forge, primary.new_version, remote=config.remote)
    result.candidate = candidate
    result.tag = candidate.tag

    run_dir, packaged = await package_plan(
        ctx,
        plan,
        vcs,
        commitish=candidate.tag,
        tag=candidate.tag,
        number=candidate.number,
        artifact_dir=config.artifact_dir,
        prefix=config.artifact_prefix,
        skip_dirs=config.skip_dirs,
        pool=pool,
    )
    result.artifact_dir = run_dir
    validate_packaged(plan, packaged)

    result.packaged = [p.with_files(await write_checksums(p.files)) for p in packaged]

    if result.mode == MODE_REMOTE:
        if forge is None or candidate.release is None:
            raise ShipKitError(
                code=E.RELEASE_CREATION_FAILED,
                message=f'No release is available for {candidate.tag}',
            )
        result.uploaded, result.skipped_uploads = await upload_assets(
            forge,
            candidate.release,
            result.files,
            policy=config.retry_policy,
        )

    log.info(
        'prerelease_done',
        tag=result.tag,
        mode=result.mode,
        packages=len(plan),
        uploaded=len(result.uploaded),
        skipped=len(result.skipped_uploads),
    )
    return result


__all__ = [
    'MODE_DEGRADED',
    'MODE_LOCAL',
    'MODE_PLANNED',
    'MODE_REMOTE',
    'PrereleaseResult',
    'run_prerelease',
]
