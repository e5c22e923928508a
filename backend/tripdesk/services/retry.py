"""Bounded retry of read-mutate-write operations on version conflicts.

The operation passed in must perform its own read: each attempt starts from
the stored document, never from a copy captured by an earlier attempt.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from backend.tripdesk.config import Settings, get_settings
from backend.tripdesk.db.repositories import StaleVersionError
from backend.tripdesk.errors import ConflictError
from backend.tripdesk.utils.logging import StructuredMutationLogger
from backend.tripdesk.utils.metrics import MutationMetrics, PrometheusMutationMetrics

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to run an operation and how long to wait between runs."""

    max_attempts: int = 3
    delay_ms: int = 100

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "RetryPolicy":
        """Build the policy from CONFLICT_RETRY_* settings."""
        settings = settings or get_settings()
        return cls(
            max_attempts=max(1, settings.conflict_retry_attempts),
            delay_ms=max(0, settings.conflict_retry_delay_ms),
        )


# Single attempt: the first conflict is surfaced to the caller
NO_RETRY = RetryPolicy(max_attempts=1, delay_ms=0)


async def retry_on_conflict(
    operation: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    op_name: str,
    sleep_fn: Callable[[float], Awaitable[None]] | None = None,
    logger: StructuredMutationLogger | None = None,
    metrics: MutationMetrics | None = None,
    context: dict[str, Any] | None = None,
) -> T:
    """Run ``operation`` until it stops hitting version conflicts.

    Args:
        operation: Zero-argument coroutine factory doing read, mutate and write
        policy: Attempt bound and inter-attempt delay
        op_name: Operation name for logs and metrics
        sleep_fn: Injectable sleep function (default: asyncio.sleep)
        logger: Structured logger (default: StructuredMutationLogger)
        metrics: Metrics recorder (default: Prometheus)
        context: Extra structured log fields (origin_id, day_number, entity_id)

    Returns:
        Whatever the successful attempt returned

    Raises:
        ConflictError: If every attempt hit a StaleVersionError
    """
    sleep = sleep_fn or asyncio.sleep
    log = logger or StructuredMutationLogger()
    recorder = metrics or PrometheusMutationMetrics()
    fields = context or {}

    for attempt in range(1, policy.max_attempts + 1):
        try:
            result = await operation()
        except StaleVersionError as e:
            recorder.inc_conflict(e.entity, op_name)
            log.log_attempt(op_name, attempt, "conflict", error_reason=str(e), **fields)
            if attempt >= policy.max_attempts:
                raise ConflictError() from e
            await sleep(policy.delay_ms / 1000)
            continue

        log.log_attempt(op_name, attempt, "success", **fields)
        return result

    # max_attempts is at least 1, so the loop always returns or raises
    raise ConflictError()
