"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint.

    Exposes all registered Prometheus metrics including:
    - day_mutations_total{operation, outcome}
    - version_conflicts_total{entity, operation}
    - budget_ledger_ops_total{operation, outcome}
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
