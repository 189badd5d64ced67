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

"""Structured logging for shipkit.

Every stage emits snake_case structlog events with key/value context
(``log.info('candidate_tag', tag='v1.2.0-rc.1')``), routed through the
standard library root logger on stderr.

Processor chain::

    event dict
        │
        ├─ merge_contextvars     run-wide keys bound by release_context()
        ├─ add_log_level / add_logger_name / TimeStamper(utc)
        ├─ redact_secrets        masks GitHub tokens and bearer headers
        ▼
    ConsoleRenderer (TTY: colored)  or  JSONRenderer (json_log=True)

Usage::

    from shipkit.logging import configure_logging, get_logger, release_context

    configure_logging(verbose=True)
    log = get_logger('shipkit.pipeline')
    with release_context(primary='core', version='1.3.0'):
        log.info('plan_ready', packages=3)
"""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from typing import Any

import structlog

REDACTED = '***'

# Classic and fine-grained GitHub tokens, and any "Bearer <value>" header.
_SECRET_RE = re.compile(r'\b(?:gh[pousr]_[A-Za-z0-9]{8,}|github_pat_[A-Za-z0-9_]{8,})|(?<=Bearer )\S+')


def redact_secrets(
    _logger: object,
    _method: str,
    event_dict: MutableMapping[str, Any],  # noqa: ANN401
) -> MutableMapping[str, Any]:  # noqa: ANN401
    """Mask token-looking substrings in string values.

    >>> redact_secrets(None, 'info', {'event': 'x', 'auth': 'Bearer ghp_abcdefghijkl'})
    {'event': 'x', 'auth': 'Bearer ***'}
    """
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = _SECRET_RE.sub(REDACTED, value)
    return event_dict


def _level(*, verbose: bool, quiet: bool) -> int:
    if quiet:
        return logging.WARNING
    return logging.DEBUG if verbose else logging.INFO


def configure_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    json_log: bool = False,
) -> None:
    """Route shipkit events to stderr.

    Safe to call more than once; the last call wins.

    Args:
        verbose: Include debug events (each git invocation).
        quiet: Warnings and errors only. Takes precedence over verbose.
        json_log: One JSON object per line instead of console text.
    """
    logging.basicConfig(
        format='%(message)s',
        stream=sys.stderr,
        level=_level(verbose=verbose, quiet=quiet),
        force=True,
    )

    renderer: structlog.types.Processor
    if json_log:
        renderer = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt='iso', utc=True),
            redact_secrets,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


@contextmanager
def release_context(**values: object) -> Iterator[None]:
    """Bind values to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(**values):
        yield


def get_logger(name: str = 'shipkit') -> structlog.stdlib.BoundLogger:
    """Return a logger named name (conventionally shipkit.<module>)."""
    return structlog.get_logger(name)


__all__ = [
    'REDACTED',
    'configure_logging',
    'get_logger',
    'redact_secrets',
    'release_context',
]
