"""FastAPI dependency providers for repositories and services.

Repositories are built per request over the request's session. Tests swap
them for in-memory stores through ``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.tripdesk.db.engine import get_session
from backend.tripdesk.db.repositories import BudgetRepository, DayRepository, PlanDirectory
from backend.tripdesk.db.sql_repositories import (
    SqlBudgetRepository,
    SqlDayRepository,
    SqlPlanDirectory,
)
from backend.tripdesk.services.budget_ledger import BudgetLedger
from backend.tripdesk.services.day_lifecycle import DayLifecycleService
from backend.tripdesk.services.day_mutations import DayMutationService


async def get_day_repository(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> DayRepository:
    """Day document repository for this request."""
    return SqlDayRepository(session)


async def get_budget_repository(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> BudgetRepository:
    """Budget item repository for this request."""
    return SqlBudgetRepository(session)


async def get_plan_directory(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PlanDirectory:
    """Parent plan registry for this request."""
    return SqlPlanDirectory(session)


async def get_day_mutation_service(
    days: Annotated[DayRepository, Depends(get_day_repository)],
) -> DayMutationService:
    """Activity mutation service."""
    return DayMutationService(days)


async def get_day_lifecycle_service(
    days: Annotated[DayRepository, Depends(get_day_repository)],
    plans: Annotated[PlanDirectory, Depends(get_plan_directory)],
) -> DayLifecycleService:
    """Day lifecycle service."""
    return DayLifecycleService(days, plans)


async def get_budget_ledger(
    items: Annotated[BudgetRepository, Depends(get_budget_repository)],
    days: Annotated[DayRepository, Depends(get_day_repository)],
) -> BudgetLedger:
    """Budget ledger service."""
    return BudgetLedger(items, days)
