"""Budget breakdown ledger - line items attached to an itinerary day document."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from backend.tripdesk.config import Settings, get_settings
from backend.tripdesk.db.repositories import (
    BudgetItemDraft,
    BudgetRepository,
    DayRecord,
    DayRepository,
)
from backend.tripdesk.errors import NotFoundError, ServiceError
from backend.tripdesk.models.budget import (
    BudgetItemCreate,
    BudgetItemUpdate,
    BudgetItemView,
    BudgetListing,
    BudgetListingSummary,
    BudgetSummary,
)
from backend.tripdesk.models.payloads import parse_payload
from backend.tripdesk.services.retry import RetryPolicy, retry_on_conflict
from backend.tripdesk.utils.logging import StructuredMutationLogger
from backend.tripdesk.utils.metrics import MutationMetrics, PrometheusMutationMetrics

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BudgetLedger:
    """CRUD and aggregation over budget line items."""

    def __init__(
        self,
        items: BudgetRepository,
        days: DayRepository,
        retry_policy: RetryPolicy | None = None,
        sleep_fn: Callable[[float], Awaitable[None]] | None = None,
        logger: StructuredMutationLogger | None = None,
        metrics: MutationMetrics | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize ledger.

        Args:
            items: Budget item repository
            days: Day repository, used to check the owning itinerary exists
            retry_policy: Conflict retry policy for updates (default: from settings)
            sleep_fn: Injectable sleep function (default: asyncio.sleep)
            logger: Structured logger
            metrics: Metrics recorder (default: Prometheus)
            settings: Settings (default: cached settings)
        """
        self._items = items
        self._days = days
        self._policy = retry_policy or RetryPolicy.from_settings(settings)
        self._sleep = sleep_fn
        self._logger = logger or StructuredMutationLogger()
        self._metrics = metrics or PrometheusMutationMetrics()
        self._settings = settings or get_settings()

    async def _track(self, op_name: str, operation: Callable[[], Awaitable[T]]) -> T:
        try:
            result = await operation()
        except ServiceError as e:
            self._metrics.inc_budget_op(op_name, e.code)
            raise
        self._metrics.inc_budget_op(op_name, "success")
        return result

    async def _itinerary(self, itinerary_id: str) -> DayRecord:
        day = await self._days.get_day_by_id(itinerary_id)
        if day is None:
            raise NotFoundError("Itinerary not found")
        return day

    async def create(self, payload: Any) -> BudgetItemView:
        """Create a line item for an existing itinerary.

        ``total_price`` in the payload is ignored; it is always
        ``quantity * unit_price``.

        Raises:
            BadRequestError: Missing required field or invalid value
            NotFoundError: The itinerary does not exist
        """
        data = parse_payload(BudgetItemCreate, payload)

        async def run() -> BudgetItemView:
            await self._itinerary(data.itinerary_id)
            record = await self._items.create_item(
                BudgetItemDraft(
                    itinerary_id=data.itinerary_id,
                    day_number=data.day_number,
                    category=data.category.value,
                    item_name=data.item_name,
                    unit_price=data.unit_price,
                    quantity=data.quantity,
                    description=data.description,
                    is_included=data.is_included,
                    is_optional=data.is_optional,
                    activity_id=data.activity_id,
                    supplier=data.supplier.model_dump() if data.supplier else None,
                    currency=data.currency.value if data.currency else self._settings.default_currency,
                    notes=data.notes,
                )
            )
            logger.info(
                f"Budget item created: {record.id}",
                extra={"structured": {"itinerary_id": record.itinerary_id, "total_price": record.total_price}},
            )
            return BudgetItemView.model_validate(record)

        return await self._track("create", run)

    async def get(self, item_id: str) -> BudgetItemView:
        """Get one line item.

        Raises:
            NotFoundError: No such item
        """

        async def run() -> BudgetItemView:
            record = await self._items.get_item(item_id)
            if record is None:
                raise NotFoundError("Budget item not found")
            return BudgetItemView.model_validate(record)

        return await self._track("get", run)

    async def list_for_itinerary(self, itinerary_id: str) -> BudgetListing:
        """All items of an itinerary, ordered by (day_number, category), with totals.

        Raises:
            NotFoundError: The itinerary does not exist
        """

        async def run() -> BudgetListing:
            await self._itinerary(itinerary_id)
            records = await self._items.list_items(itinerary_id)
            totals = await self._items.totals(itinerary_id)
            by_category = await self._items.category_totals(itinerary_id)
            return BudgetListing(
                items=[BudgetItemView.model_validate(record) for record in records],
                summary=BudgetListingSummary(
                    **totals.model_dump(), by_category=by_category, item_count=len(records)
                ),
            )

        return await self._track("list", run)

    async def update(self, item_id: str, payload: Any) -> BudgetItemView:
        """Merge supplied fields into an item and recompute its total.

        Raises:
            BadRequestError: Unknown field or invalid value
            NotFoundError: No such item
            ConflictError: Retries exhausted
        """
        changes = parse_payload(BudgetItemUpdate, payload).changes()

        async def attempt() -> BudgetItemView:
            record = await self._items.get_item(item_id)
            if record is None:
                raise NotFoundError("Budget item not found")
            for field, value in changes.items():
                setattr(record, field, value)
            saved = await self._items.save_item(record)
            return BudgetItemView.model_validate(saved)

        async def run() -> BudgetItemView:
            return await retry_on_conflict(
                attempt,
                policy=self._policy,
                op_name="update_budget_item",
                sleep_fn=self._sleep,
                logger=self._logger,
                metrics=self._metrics,
                context={"entity_id": item_id},
            )

        return await self._track("update", run)

    async def delete(self, item_id: str) -> None:
        """Delete one item.

        Raises:
            NotFoundError: No such item
        """

        async def run() -> None:
            if not await self._items.delete_item(item_id):
                raise NotFoundError("Budget item not found")

        await self._track("delete", run)

    async def delete_for_itinerary(self, itinerary_id: str) -> int:
        """Delete every item of an itinerary. Returns the count removed."""

        async def run() -> int:
            count = await self._items.delete_items(itinerary_id)
            logger.info(
                f"Budget items deleted for itinerary {itinerary_id}: {count}",
                extra={"structured": {"itinerary_id": itinerary_id, "deleted": count}},
            )
            return count

        return await self._track("delete_for_itinerary", run)

    async def summary(self, itinerary_id: str) -> BudgetSummary:
        """Per-category totals (largest first) plus overall totals.

        Raises:
            NotFoundError: The itinerary does not exist
        """

        async def run() -> BudgetSummary:
            day = await self._itinerary(itinerary_id)
            return BudgetSummary(
                itinerary_id=itinerary_id,
                itinerary_title=day.title,
                day_number=day.day_number,
                categories=await self._items.category_totals(itinerary_id),
                totals=await self._items.totals(itinerary_id),
            )

        return await self._track("summary", run)
