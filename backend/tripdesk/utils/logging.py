"""Structured logging for day and budget mutations."""

import logging
from typing import Any

logger = logging.getLogger(__name__)


class StructuredMutationLogger:
    """Structured logger for read-mutate-write attempts."""

    def log_attempt(
        self,
        operation: str,
        attempt: int,
        outcome: str,
        *,
        origin_id: str | None = None,
        day_number: int | None = None,
        entity_id: str | None = None,
        error_reason: str | None = None,
    ) -> None:
        """Log one mutation attempt with structured data."""
        log_data: dict[str, Any] = {
            "operation": operation,
            "attempt": attempt,
            "outcome": outcome,
        }
        if origin_id is not None:
            log_data["origin_id"] = origin_id
        if day_number is not None:
            log_data["day_number"] = day_number
        if entity_id is not None:
            log_data["entity_id"] = entity_id
        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Mutation: {operation} - {outcome}"

        if outcome == "success":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})


def configure_logging(level: str) -> None:
    """Set the root log level once at startup."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
