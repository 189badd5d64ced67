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

"""HTTP utilities for shipkit.

Provides a managed :class:`httpx.AsyncClient` and the bounded retry loop
used for release asset uploads.

The retry behaviour is a named value, :class:`RetryPolicy`, whose delay
schedule comes from the pure :func:`backoff_delay` function::

    attempt 1 ──fail──▶ sleep(0.2s) ──▶ attempt 2 ──fail──▶ sleep(0.4s)
        ──▶ attempt 3 ──fail──▶ give up (caller raises SK-UPLOAD-FAILED)

Usage::

    from shipkit.net import RetryPolicy, http_client, request_with_retry

    async with http_client(headers={'Authorization': 'Bearer ...'}) as client:
        response = await request_with_retry(
            client, 'POST', url, policy=RetryPolicy(max_attempts=3), content=data
        )
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Final

import httpx

from shipkit.logging import get_logger

log = get_logger('shipkit.net')

DEFAULT_POOL_SIZE: Final[int] = 4
DEFAULT_TIMEOUT: Final[float] = 30.0

DEFAULT_MAX_ATTEMPTS: Final[int] = 3
DEFAULT_BACKOFF_BASE: Final[float] = 0.2


def backoff_delay(attempt: int, base: float = DEFAULT_BACKOFF_BASE) -> float:
    """Return the delay in seconds after failed attempt number ``attempt``.

    The delay grows linearly with the attempt number.

    >>> backoff_delay(1)
    0.2
    >>> backoff_delay(2, base=1.0)
    2.0
    """
    if attempt < 1:
        msg = f'attempt must be >= 1, got {attempt}'
        raise ValueError(msg)
    return base * attempt


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry policy for side-effecting HTTP calls.

    Attributes:
        max_attempts: Total number of attempts, including the first.
        backoff_base: Base delay in seconds fed to :func:`backoff_delay`.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backoff_base: float = DEFAULT_BACKOFF_BASE

    def __post_init__(self) -> None:
        """Reject policies that would never attempt the call."""
        if self.max_attempts < 1:
            msg = f'max_attempts must be >= 1, got {self.max_attempts}'
            raise ValueError(msg)
        if self.backoff_base < 0:
            msg = f'backoff_base must be >= 0, got {self.backoff_base}'
            raise ValueError(msg)

    def delay(self, attempt: int) -> float:
        """Delay to wait after failed ``attempt`` before the next one."""
        return backoff_delay(attempt, self.backoff_base)

    def delays(self) -> list[float]:
        """All delays the policy can produce, in order."""
        return [self.delay(n) for n in range(1, self.max_attempts)]


DEFAULT_RETRY_POLICY: Final[RetryPolicy] = RetryPolicy()


@asynccontextmanager
async def http_client(
    *,
    pool_size: int = DEFAULT_POOL_SIZE,
    timeout: float = DEFAULT_TIMEOUT,
    base_url: str = '',
    headers: dict[str, str] | None = None,
) -> AsyncGenerator[httpx.AsyncClient]:
    """Create a managed async HTTP client with connection pooling.

    Args:
        pool_size: Maximum number of connections in the pool.
        timeout: Request timeout in seconds.
        base_url: Optional base URL for all requests.
        headers: Optional default headers.

    Yields:
        An :class:`httpx.AsyncClient` instance.
    """
    limits = httpx.Limits(
        max_connections=pool_size,
        max_keepalive_connections=pool_size,
    )
    async with httpx.AsyncClient(
        limits=limits,
        timeout=httpx.Timeout(timeout),
        base_url=base_url,
        headers=headers or {},
        follow_redirects=True,
    ) as client:
        yield client


async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    accept: Callable[[httpx.Response], bool] | None = None,
    **kwargs: object,
) -> httpx.Response:
    """Make an HTTP request, retrying every failure up to ``policy.max_attempts``.

    Any non-2xx response and any transport error counts as a failure,
    unless ``accept`` returns ``True`` for the response.
    After the final attempt the last response is returned (so the caller
    can report its status), or the last transport error is re-raised.

    Args:
        client: The httpx async client to use.
        method: HTTP method.
        url: Request URL.
        policy: Attempt bound and backoff schedule.
        accept: Marks a non-2xx response as final, e.g. a conflict that
            means an earlier attempt already went through.
        **kwargs: Passed through to ``client.request()``.

    Returns:
        The first successful response, or the last failed one.

    Raises:
        httpx.TransportError: If the final attempt failed at the transport
            level.
    """
    for attempt in range(1, policy.max_attempts + 1):
        final = attempt == policy.max_attempts
        try:
            response = await client.request(method, url, **kwargs)  # type: ignore[arg-type]
        except httpx.TransportError as exc:
            if final:
                raise
            delay = policy.delay(attempt)
            log.warning(
                'http_retry_error',
                url=url,
                error=str(exc),
                attempt=attempt,
                max_attempts=policy.max_attempts,
                delay=delay,
            )
            await asyncio.sleep(delay)
            continue

        if response.is_success or final or (accept is not None and accept(response)):
            return response

        delay = policy.delay(attempt)
        log.warning(
            'http_retry',
            url=url,
            status=response.status_code,
            attempt=attempt,
            max_attempts=policy.max_attempts,
            delay=delay,
        )
        await asyncio.sleep(delay)

    # Unreachable: max_attempts >= 1 guarantees the loop returns or raises.
    msg = 'request_with_retry: no attempts were made'
    raise RuntimeError(msg)


__all__ = [
    'DEFAULT_MAX_ATTEMPTS',
    'DEFAULT_POOL_SIZE',
    'DEFAULT_RETRY_POLICY',
    'DEFAULT_TIMEOUT',
    'RetryPolicy',
    'backoff_delay',
    'http_client',
    'request_with_retry',
]
