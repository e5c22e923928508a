"""Unit tests for DayMutationService over the in-memory day repository.

Tests cover:
1. update_day / add / update / delete / reorder semantics
2. day_total always equal to the sum of activity costs
3. Only customized days are addressable
4. Allow-list partial updates
5. Concurrent writers: retry after re-read, or Conflict, never a lost update
"""

from typing import Any

import pytest

from backend.tripdesk.db.inmemory import InMemoryDayRepository
from backend.tripdesk.db.repositories import DayDraft, DayRecord
from backend.tripdesk.errors import BadRequestError, ConflictError, NotFoundError
from backend.tripdesk.itinerary.normalizer import normalize_activities
from backend.tripdesk.itinerary.totals import compute_day_total
from backend.tripdesk.models.common import ItineraryType
from backend.tripdesk.services.day_mutations import DayMutationService, reorder
from backend.tripdesk.services.retry import RetryPolicy
from backend.tripdesk.utils.metrics import MutationMetrics


def frozen() -> float:
    return 1_700_000_000.0


def make_service(repo: InMemoryDayRepository, sleep_fn: Any = None) -> DayMutationService:
    return DayMutationService(
        repo,
        retry_policy=RetryPolicy(max_attempts=3, delay_ms=100),
        sleep_fn=sleep_fn,
        metrics=MutationMetrics(),
        clock=frozen,
    )


async def stored(repo: InMemoryDayRepository, day_number: int = 1) -> DayRecord:
    day = await repo.get_day("plan-1", day_number, ItineraryType.customized)
    assert day is not None
    return day


def ids(day: DayRecord) -> list[str]:
    return [a["activityId"] for a in day.activities]


class TestUpdateDay:
    """Test update_day."""

    @pytest.mark.asyncio
    async def test_overwrites_only_supplied_fields(self, day_repo, seed_day) -> None:
        await seed_day()
        service = make_service(day_repo)

        result = await service.update_day("plan-1", 1, {"theme": "Mekong delta", "notes": None})

        assert result.theme == "Mekong delta"
        assert result.day_total == 1000
        assert result.user_modified is True
        day = await stored(day_repo)
        assert day.title == "Mekong delta"
        assert day.notes == ""
        assert day.user_modified is True

    @pytest.mark.asyncio
    async def test_result_uses_camel_case_keys(self, day_repo, seed_day) -> None:
        await seed_day()
        result = await make_service(day_repo).update_day("plan-1", 1, {"description": "Boats"})
        assert result.model_dump(by_alias=True) == {
            "dayNumber": 1,
            "theme": "Saigon highlights",
            "description": "Boats",
            "notes": "",
            "dayTotal": 1000,
            "userModified": True,
        }

    @pytest.mark.asyncio
    async def test_unknown_field_is_rejected_before_write(self, day_repo, seed_day) -> None:
        seeded = await seed_day()
        with pytest.raises(BadRequestError):
            await make_service(day_repo).update_day("plan-1", 1, {"theme": "X", "dayTotal": 5})
        assert (await stored(day_repo)).version == seeded.version

    @pytest.mark.asyncio
    async def test_blank_theme_is_rejected(self, day_repo, seed_day) -> None:
        await seed_day()
        with pytest.raises(BadRequestError):
            await make_service(day_repo).update_day("plan-1", 1, {"theme": "   "})


class TestAddActivity:
    """Test add_activity."""

    @pytest.mark.asyncio
    async def test_appends_normalized_activity(self, day_repo, seed_day) -> None:
        await seed_day()
        result = await make_service(day_repo).add_activity(
            "plan-1", 1, {"name": "Night market", "cost": "150", "type": "dining"}
        )

        assert result.total_activities == 5
        assert result.day_total == 1150
        assert result.activity["activityId"] == "activity_1_1700000000000"
        assert result.activity["type"] == "food"
        assert result.activity["userModified"] is True
        assert result.activity["_id"]
        day = await stored(day_repo)
        assert ids(day)[-1] == "activity_1_1700000000000"
        assert day.user_modified is True

    @pytest.mark.asyncio
    async def test_generated_id_avoids_existing_ids(self, day_repo, seed_day) -> None:
        await seed_day(activities=[{"activityId": "activity_1_1700000000000", "name": "First"}])
        result = await make_service(day_repo).add_activity("plan-1", 1, {"name": "Second"})
        assert result.activity["activityId"] == "activity_1_1700000000000_2"

    @pytest.mark.asyncio
    async def test_existing_activity_id_is_rejected(self, day_repo, seed_day) -> None:
        await seed_day()
        with pytest.raises(BadRequestError, match="Duplicate activityId"):
            await make_service(day_repo).add_activity("plan-1", 1, {"activityId": "b", "name": "Again"})
        assert ids(await stored(day_repo)) == ["a", "b", "c", "d"]

    @pytest.mark.asyncio
    async def test_internal_id_of_another_activity_is_rejected(self, day_repo, seed_day) -> None:
        await seed_day()
        internal_id = (await stored(day_repo)).activities[2]["_id"]
        service = make_service(day_repo)

        with pytest.raises(BadRequestError, match="Duplicate activityId"):
            await service.add_activity("plan-1", 1, {"activityId": internal_id, "name": "Shadow"})

        await service.delete_activity("plan-1", 1, internal_id)
        assert ids(await stored(day_repo)) == ["a", "b", "d"]

    @pytest.mark.asyncio
    async def test_missing_name_is_rejected(self, day_repo, seed_day) -> None:
        await seed_day()
        with pytest.raises(BadRequestError):
            await make_service(day_repo).add_activity("plan-1", 1, {"cost": 10})
        assert len((await stored(day_repo)).activities) == 4

    @pytest.mark.asyncio
    async def test_non_object_payload_is_rejected(self, day_repo, seed_day) -> None:
        await seed_day()
        with pytest.raises(BadRequestError):
            await make_service(day_repo).add_activity("plan-1", 1, ["walk"])


class TestUpdateActivity:
    """Test update_activity."""

    @pytest.mark.asyncio
    async def test_merges_fields_and_recomputes_total(self, day_repo, seed_day) -> None:
        await seed_day()
        result = await make_service(day_repo).update_activity(
            "plan-1", 1, "b", {"cost": 1200, "timeSlot": "Evening"}
        )

        assert result.activity["cost"] == 1200
        assert result.activity["timeSlot"] == "evening"
        assert result.activity["name"] == "War Remnants Museum"
        assert result.activity["userModified"] is True
        assert result.day_total == 2000

    @pytest.mark.asyncio
    async def test_identifier_fields_are_ignored(self, day_repo, seed_day) -> None:
        seeded = await seed_day()
        internal_id = seeded.activities[0]["_id"]

        result = await make_service(day_repo).update_activity(
            "plan-1", 1, "a", {"activityId": "hijack", "_id": "other", "name": "Market tour"}
        )

        assert result.activity["activityId"] == "a"
        assert result.activity["_id"] == internal_id
        assert result.activity["name"] == "Market tour"

    @pytest.mark.asyncio
    async def test_lookup_by_internal_id(self, day_repo, seed_day) -> None:
        seeded = await seed_day()
        internal_id = seeded.activities[2]["_id"]
        result = await make_service(day_repo).update_activity("plan-1", 1, internal_id, {"cost": 0})
        assert result.activity["activityId"] == "c"
        assert result.day_total == 700

    @pytest.mark.asyncio
    async def test_unknown_field_is_rejected(self, day_repo, seed_day) -> None:
        await seed_day()
        with pytest.raises(BadRequestError):
            await make_service(day_repo).update_activity("plan-1", 1, "a", {"rating": 5})

    @pytest.mark.asyncio
    async def test_invalid_merged_value_is_rejected(self, day_repo, seed_day) -> None:
        await seed_day()
        with pytest.raises(BadRequestError):
            await make_service(day_repo).update_activity("plan-1", 1, "a", {"cost": -1})
        assert (await stored(day_repo)).day_total == 1000

    @pytest.mark.asyncio
    async def test_unknown_activity_is_not_found(self, day_repo, seed_day) -> None:
        await seed_day()
        with pytest.raises(NotFoundError):
            await make_service(day_repo).update_activity("plan-1", 1, "zzz", {"cost": 1})


class TestDeleteActivity:
    """Test delete_activity."""

    @pytest.mark.asyncio
    async def test_removes_activity(self, day_repo, seed_day) -> None:
        await seed_day()
        result = await make_service(day_repo).delete_activity("plan-1", 1, "c")
        assert result.remaining_activities == 3
        assert result.day_total == 700
        assert ids(await stored(day_repo)) == ["a", "b", "d"]

    @pytest.mark.asyncio
    async def test_absent_id_is_not_found_and_list_unchanged(self, day_repo, seed_day) -> None:
        await seed_day()
        with pytest.raises(NotFoundError):
            await make_service(day_repo).delete_activity("plan-1", 1, "nope")
        assert ids(await stored(day_repo)) == ["a", "b", "c", "d"]

    @pytest.mark.asyncio
    async def test_deleting_everything_totals_zero(self, day_repo, seed_day) -> None:
        await seed_day()
        service = make_service(day_repo)
        for activity_id in ["a", "b", "c", "d"]:
            result = await service.delete_activity("plan-1", 1, activity_id)
        assert result.remaining_activities == 0
        assert result.day_total == 0


class TestReorderActivities:
    """Test reorder_activities."""

    @pytest.mark.asyncio
    async def test_named_first_then_rest_in_original_order(self, day_repo, seed_day) -> None:
        await seed_day()
        result = await make_service(day_repo).reorder_activities("plan-1", 1, ["c", "a"])
        assert [a["activityId"] for a in result.activities] == ["c", "a", "b", "d"]
        assert result.total_activities == 4
        assert ids(await stored(day_repo)) == ["c", "a", "b", "d"]

    @pytest.mark.asyncio
    async def test_non_list_is_rejected(self, day_repo, seed_day) -> None:
        await seed_day()
        with pytest.raises(BadRequestError):
            await make_service(day_repo).reorder_activities("plan-1", 1, "c,a")

    def test_unknown_and_repeated_ids(self) -> None:
        activities = [{"activityId": x} for x in "abcd"]
        result = reorder(activities, ["d", "ghost", "d", "b"])
        assert [a["activityId"] for a in result] == ["d", "b", "a", "c"]

    def test_reorder_is_a_permutation(self) -> None:
        activities = [{"activityId": x} for x in "abcde"]
        result = reorder(activities, ["e", "c"])
        assert sorted(a["activityId"] for a in result) == list("abcde")


class TestCustomizedOnly:
    """Mutations never touch tour or ai_gen days."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("itinerary_type", [ItineraryType.tour, ItineraryType.ai_gen])
    async def test_other_day_types_are_not_found(
        self, day_repo, seed_day, itinerary_type: ItineraryType
    ) -> None:
        if itinerary_type == ItineraryType.tour:
            await seed_day(itinerary_type=itinerary_type, activities=[{"time": "08:00", "action": "Go"}])
        else:
            await seed_day(itinerary_type=itinerary_type)
        service = make_service(day_repo)

        with pytest.raises(NotFoundError):
            await service.update_day("plan-1", 1, {"theme": "X"})
        with pytest.raises(NotFoundError):
            await service.add_activity("plan-1", 1, {"name": "X"})
        with pytest.raises(NotFoundError):
            await service.update_activity("plan-1", 1, "a", {"cost": 1})
        with pytest.raises(NotFoundError):
            await service.delete_activity("plan-1", 1, "a")
        with pytest.raises(NotFoundError):
            await service.reorder_activities("plan-1", 1, ["a"])


class TestDayTotalInvariant:
    """day_total equals the sum of costs after every mutation."""

    @pytest.mark.asyncio
    async def test_total_tracks_every_mutation(self, day_repo, seed_day) -> None:
        await seed_day()
        service = make_service(day_repo)

        await service.add_activity("plan-1", 1, {"name": "Coffee", "cost": 35})
        await service.update_activity("plan-1", 1, "d", {"cost": 1})
        await service.delete_activity("plan-1", 1, "a")
        await service.reorder_activities("plan-1", 1, ["d"])
        await service.update_day("plan-1", 1, {"notes": "bring cash"})

        day = await stored(day_repo)
        assert day.day_total == compute_day_total(day.activities) == 536


class RacingDayRepository(InMemoryDayRepository):
    """Day repository where another writer saves first on the next ``races`` saves."""

    def __init__(self, races: int) -> None:
        super().__init__()
        self.races = races
        self.save_calls = 0

    async def save_day(self, day: DayRecord) -> DayRecord:
        self.save_calls += 1
        if self.races > 0:
            self.races -= 1
            rival = await self.get_day_by_id(day.id)
            assert rival is not None
            rival.notes = f"rival {self.races}"
            rival.activities += normalize_activities(
                [{"activityId": f"rival_{self.races}", "name": "Rival stop", "cost": 10}],
                ItineraryType.customized,
            )
            await super().save_day(rival)
        return await super().save_day(day)


async def seed_racing(races: int) -> RacingDayRepository:
    repo = RacingDayRepository(races)
    await repo.insert_days(
        [
            DayDraft(
                origin_id="plan-1",
                type=ItineraryType.customized,
                day_number=1,
                title="Saigon",
                activities=normalize_activities(
                    [{"activityId": "a", "name": "A", "cost": 100}, {"activityId": "b", "name": "B", "cost": 200}],
                    ItineraryType.customized,
                ),
            )
        ]
    )
    return repo


class TestConcurrentWriters:
    """Version conflicts are retried after re-reading or surfaced as Conflict."""

    @pytest.mark.asyncio
    async def test_update_retries_and_keeps_rival_write(self, sleep_recorder) -> None:
        repo = await seed_racing(races=1)
        result = await make_service(repo, sleep_recorder).update_day("plan-1", 1, {"theme": "Mine"})

        assert result.theme == "Mine"
        assert result.notes == "rival 0"
        assert result.day_total == 310
        assert repo.save_calls == 2
        assert sleep_recorder.calls == [0.1]

    @pytest.mark.asyncio
    async def test_add_activity_never_loses_rival_activity(self, sleep_recorder) -> None:
        repo = await seed_racing(races=2)
        result = await make_service(repo, sleep_recorder).add_activity(
            "plan-1", 1, {"activityId": "mine", "name": "Mine", "cost": 5}
        )

        day = await stored(repo)
        assert ids(day) == ["a", "b", "rival_1", "rival_0", "mine"]
        assert result.day_total == 325
        assert result.total_activities == 5

    @pytest.mark.asyncio
    async def test_reorder_retries(self, sleep_recorder) -> None:
        repo = await seed_racing(races=1)
        result = await make_service(repo, sleep_recorder).reorder_activities("plan-1", 1, ["b"])
        assert [a["activityId"] for a in result.activities] == ["b", "a", "rival_0"]

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_conflict(self, sleep_recorder) -> None:
        repo = await seed_racing(races=3)
        with pytest.raises(ConflictError):
            await make_service(repo, sleep_recorder).update_activity("plan-1", 1, "a", {"cost": 1})

        day = await stored(repo)
        assert repo.save_calls == 3
        assert len(sleep_recorder.calls) == 2
        # Only the rival writes landed
        assert day.activities[0]["cost"] == 100
        assert ids(day) == ["a", "b", "rival_2", "rival_1", "rival_0"]

    @pytest.mark.asyncio
    async def test_delete_surfaces_conflict_without_retry(self, sleep_recorder) -> None:
        repo = await seed_racing(races=1)
        with pytest.raises(ConflictError):
            await make_service(repo, sleep_recorder).delete_activity("plan-1", 1, "a")

        assert repo.save_calls == 1
        assert sleep_recorder.calls == []
        assert "a" in ids(await stored(repo))
