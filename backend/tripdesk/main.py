"""FastAPI application."""

from fastapi import FastAPI

from backend.tripdesk.api.responses import register_exception_handlers
from backend.tripdesk.api.routes.budget import router as budget_router
from backend.tripdesk.api.routes.days import router as days_router
from backend.tripdesk.api.routes.health import router as health_router
from backend.tripdesk.api.routes.metrics import router as metrics_router
from backend.tripdesk.config import get_settings
from backend.tripdesk.utils.logging import configure_logging

configure_logging(get_settings().log_level)

app = FastAPI(title="Tripdesk Itinerary API", version="0.1.0")

register_exception_handlers(app)

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(days_router)
app.include_router(budget_router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Tripdesk Itinerary API", "version": "0.1.0"}
