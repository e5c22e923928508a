"""Unit tests for activity validation and normalization.

Tests cover:
1. Defaults and canonical stored shape
2. Idempotence of normalization
3. Category synonyms and duration/cost parsing
4. Tour-shape rules
5. Rejections (shape, names, duplicates, ranges)
6. Generated activity ids
"""

from typing import Any

import pytest

from backend.tripdesk.errors import BadRequestError
from backend.tripdesk.itinerary.normalizer import (
    generate_activity_id,
    normalize_activities,
    validate_activities,
)
from backend.tripdesk.models.common import ItineraryType


def frozen() -> float:
    return 1_700_000_000.0


class TestNormalizeDefaults:
    """Test default filling and the stored shape."""

    def test_fills_defaults_and_generates_id(self) -> None:
        [activity] = normalize_activities(
            [{"name": "  Pho lunch  "}], ItineraryType.customized, day_number=2, now=frozen
        )

        assert activity == {
            "activityId": "activity_2_1700000000000",
            "name": "Pho lunch",
            "location": "",
            "type": "other",
            "timeSlot": "morning",
            "duration": 60,
            "cost": 0,
            "userModified": False,
        }

    def test_keeps_existing_ids(self) -> None:
        [activity] = normalize_activities(
            [{"_id": "abc123", "activityId": "act-7", "name": "Museum"}],
            ItineraryType.ai_gen,
        )

        assert activity["_id"] == "abc123"
        assert activity["activityId"] == "act-7"

    def test_name_falls_back_to_activity_key(self) -> None:
        [activity] = normalize_activities(
            [{"activity": "Cu Chi tunnels"}], ItineraryType.ai_gen, day_number=1, now=frozen
        )
        assert activity["name"] == "Cu Chi tunnels"

    def test_empty_list_is_valid(self) -> None:
        assert normalize_activities([], ItineraryType.customized) == []


class TestIdempotence:
    """Normalizing a normalized list changes nothing."""

    @pytest.mark.parametrize(
        "raw",
        [
            [{"name": "Walk", "duration": "2 hours", "type": "Outdoor"}],
            [{"name": "Dinner", "cost": "250000", "timeSlot": "Evening"}, {"name": "Bar"}],
            [{"activityId": "x", "name": "Temple", "type": "văn hóa", "location": "Hue"}],
        ],
    )
    def test_normalize_twice_equals_once(self, raw: list[dict[str, Any]]) -> None:
        once = normalize_activities(raw, ItineraryType.customized, day_number=3, now=frozen)
        twice = normalize_activities(once, ItineraryType.customized, day_number=3, now=frozen)
        assert twice == once

    def test_tour_normalization_is_idempotent(self) -> None:
        raw = [{"time": "08:00", "action": "Pick up at hotel"}]
        once = normalize_activities(raw, ItineraryType.tour)
        assert normalize_activities(once, ItineraryType.tour) == once


class TestFieldParsing:
    """Test synonym mapping and value parsing."""

    @pytest.mark.parametrize(
        ("label", "expected"),
        [
            ("food", "food"),
            ("Cultural", "culture"),
            ("historical", "history"),
            ("Ẩm thực", "food"),
            ("nightlife", "entertainment"),
            ("space travel", "other"),
        ],
    )
    def test_type_mapping(self, label: str, expected: str) -> None:
        [activity] = normalize_activities(
            [{"name": "X", "type": label}], ItineraryType.ai_gen, day_number=1, now=frozen
        )
        assert activity["type"] == expected

    @pytest.mark.parametrize(
        ("duration", "minutes"),
        [("2 hours", 120), ("1.5 hours", 90), ("45 minutes", 45), ("90", 90), (30, 30), (None, 60)],
    )
    def test_duration_parsing(self, duration: Any, minutes: int) -> None:
        [activity] = normalize_activities(
            [{"name": "X", "duration": duration}], ItineraryType.ai_gen, day_number=1, now=frozen
        )
        assert activity["duration"] == minutes

    def test_cost_string_is_parsed(self) -> None:
        [activity] = normalize_activities(
            [{"name": "X", "cost": "150000"}], ItineraryType.ai_gen, day_number=1, now=frozen
        )
        assert activity["cost"] == 150000

    def test_unparseable_cost_counts_as_zero(self) -> None:
        [activity] = normalize_activities(
            [{"name": "X", "cost": "free"}], ItineraryType.ai_gen, day_number=1, now=frozen
        )
        assert activity["cost"] == 0

    @pytest.mark.parametrize(
        ("flag", "expected"), [("false", False), ("true", True), (0, False), (None, False)]
    )
    def test_user_modified_is_parsed_as_bool(self, flag: Any, expected: bool) -> None:
        [activity] = normalize_activities(
            [{"name": "X", "userModified": flag}], ItineraryType.ai_gen, day_number=1, now=frozen
        )
        assert activity["userModified"] is expected

    def test_unparseable_user_modified_is_rejected(self) -> None:
        result = validate_activities([{"name": "X", "userModified": "maybe"}], ItineraryType.ai_gen)
        assert result.valid is False
        assert "userModified" in result.error


class TestTourShape:
    """Test tour-specific rules."""

    def test_tour_activity_keeps_time_and_action(self) -> None:
        [activity] = normalize_activities(
            [{"time": " 08:00 ", "action": "Pick up at hotel"}], ItineraryType.tour
        )
        assert activity == {"time": "08:00", "action": "Pick up at hotel"}

    def test_tour_rejects_cost(self) -> None:
        result = validate_activities(
            [{"time": "08:00", "action": "Boat", "cost": 10}], ItineraryType.tour
        )
        assert result.valid is False
        assert "cost" in (result.error or "")

    def test_tour_requires_time(self) -> None:
        result = validate_activities([{"action": "Boat"}], ItineraryType.tour)
        assert result.valid is False


class TestRejections:
    """Test invalid activity lists."""

    def test_non_list_is_rejected(self) -> None:
        result = validate_activities({"name": "X"}, ItineraryType.customized)
        assert result.valid is False
        assert result.error == "Activities must be a list"

    def test_non_object_entry_is_rejected(self) -> None:
        result = validate_activities(["walk"], ItineraryType.customized)
        assert result.valid is False

    def test_missing_name_is_rejected(self) -> None:
        result = validate_activities([{"cost": 10}], ItineraryType.customized)
        assert result.valid is False
        assert result.error == "Activities must have a name"

    def test_blank_name_is_rejected(self) -> None:
        result = validate_activities([{"name": "   "}], ItineraryType.customized)
        assert result.valid is False

    def test_duplicate_activity_ids_are_rejected(self) -> None:
        result = validate_activities(
            [{"activityId": "a", "name": "X"}, {"activityId": "a", "name": "Y"}],
            ItineraryType.customized,
        )
        assert result.valid is False
        assert "a" in (result.error or "")

    def test_negative_cost_is_rejected(self) -> None:
        result = validate_activities([{"name": "X", "cost": -5}], ItineraryType.customized)
        assert result.valid is False
        assert (result.error or "").startswith("cost")

    def test_unknown_time_slot_is_rejected(self) -> None:
        result = validate_activities([{"name": "X", "timeSlot": "noon"}], ItineraryType.customized)
        assert result.valid is False

    def test_unknown_itinerary_type_is_rejected(self) -> None:
        result = validate_activities([], "weekly")
        assert result.valid is False

    def test_normalize_raises_bad_request(self) -> None:
        with pytest.raises(BadRequestError, match="name"):
            normalize_activities([{"cost": 1}], ItineraryType.customized)


class TestGeneratedIds:
    """Test activity id generation."""

    def test_ids_in_one_list_do_not_collide(self) -> None:
        activities = normalize_activities(
            [{"name": "A"}, {"name": "B"}, {"name": "C"}],
            ItineraryType.customized,
            day_number=1,
            now=frozen,
        )
        assert [a["activityId"] for a in activities] == [
            "activity_1_1700000000000",
            "activity_1_1700000000000_2",
            "activity_1_1700000000000_3",
        ]

    def test_generated_id_avoids_taken_ids(self) -> None:
        taken = {"activity_4_1700000000000"}
        assert generate_activity_id(4, taken, frozen) == "activity_4_1700000000000_2"

    def test_generated_id_without_day_number(self) -> None:
        assert generate_activity_id(None, (), frozen) == "activity_1700000000000"
