"""Prometheus metrics for itinerary day and budget mutations."""

from prometheus_client import Counter

day_mutations_total = Counter(
    "day_mutations_total",
    "Total day mutation operations",
    ["operation", "outcome"],
)

version_conflicts_total = Counter(
    "version_conflicts_total",
    "Total optimistic-concurrency version conflicts detected",
    ["entity", "operation"],
)

budget_ledger_ops_total = Counter(
    "budget_ledger_ops_total",
    "Total budget ledger operations",
    ["operation", "outcome"],
)


class MutationMetrics:
    """Interface for mutation metrics (no-op by default)."""

    def inc_day_mutation(self, operation: str, outcome: str) -> None:
        """Count a finished day mutation."""
        pass

    def inc_conflict(self, entity: str, operation: str) -> None:
        """Count a detected version conflict."""
        pass

    def inc_budget_op(self, operation: str, outcome: str) -> None:
        """Count a finished budget ledger operation."""
        pass


class PrometheusMutationMetrics(MutationMetrics):
    """Prometheus-based mutation metrics implementation."""

    def inc_day_mutation(self, operation: str, outcome: str) -> None:
        """Count a finished day mutation."""
        day_mutations_total.labels(operation=operation, outcome=outcome).inc()

    def inc_conflict(self, entity: str, operation: str) -> None:
        """Count a detected version conflict."""
        version_conflicts_total.labels(entity=entity, operation=operation).inc()

    def inc_budget_op(self, operation: str, outcome: str) -> None:
        """Count a finished budget ledger operation."""
        budget_ledger_ops_total.labels(operation=operation, outcome=outcome).inc()
