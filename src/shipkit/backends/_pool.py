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

"""Bounded worker pool for blocking git and filesystem work.

The pipeline runs two execution contexts side by side:

- the asyncio event loop, which owns every HTTP call, and
- a small :class:`concurrent.futures.ThreadPoolExecutor`, which owns
  every blocking ``git`` subprocess and archive write.

Stages ``await`` each pool call before moving on, so the pool never has
more than one pipeline operation in flight; the bound only caps what a
caller can submit if it fans out on purpose.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import functools
from collections.abc import Callable
from types import TracebackType
from typing import ParamSpec, TypeVar

from shipkit.logging import get_logger

log = get_logger('shipkit.backends.pool')

P = ParamSpec('P')
T = TypeVar('T')

DEFAULT_MAX_WORKERS = 2


class WorkerPool:
    """Dedicated executor for blocking calls, awaited from async code.

    Args:
        max_workers: Upper bound on threads.
        name: Thread name prefix, visible in stack dumps.
    """

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS, *, name: str = 'shipkit-worker') -> None:
        """Create the underlying executor."""
        if max_workers < 1:
            msg = f'max_workers must be >= 1, got {max_workers}'
            raise ValueError(msg)
        self._max_workers = max_workers
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=name,
        )

    @property
    def max_workers(self) -> int:
        """Configured thread bound."""
        return self._max_workers

    async def run(self, fn: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
        """Run ``fn(*args, **kwargs)`` on the pool and wait for its result.

        Exceptions raised by ``fn`` propagate to the awaiting caller.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, functools.partial(fn, *args, **kwargs))

    def close(self) -> None:
        """Shut down the executor, waiting for in-flight work."""
        log.debug('worker_pool_close', max_workers=self._max_workers)
        self._executor.shutdown(wait=True)

    def __enter__(self) -> WorkerPool:
        """Use the pool as a context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Close the pool on exit."""
        self.close()


async def run_blocking(pool: WorkerPool | None, fn: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run ``fn`` on ``pool``, or on ``asyncio.to_thread()`` without one."""
    if pool is not None:
        return await pool.run(fn, *args, **kwargs)
    return await asyncio.to_thread(fn, *args, **kwargs)


__all__ = [
    'DEFAULT_MAX_WORKERS',
    'WorkerPool',
    'run_blocking',
]
