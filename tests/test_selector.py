"""Tests for keeper selection."""

import random

import pytest

from conftest import plot

from plotrecon._types import PlotRecord, StoreRecord
from plotrecon.reconciler._selector import (
    COMPLETENESS_POLICY,
    LEGACY_EXACT_POLICY,
    REFERENCE_POLICY,
    STATUS_FIRST_POLICY,
    collect_delete_ids,
    get_policy,
    rank_group,
    resolve_groups,
    select_keeper,
)


def _records(*rows):
    return [PlotRecord.model_validate(r) for r in rows]


class TestReferencePolicy:
    def test_scenario_occupied_named_newer_wins(self):
        x, y = _records(
            plot("X", "107", status="Available", notes="Imported",
                 updated_date="2023-01-01T00:00:00Z"),
            plot("Y", "107", status="Occupied", first_name="John",
                 updated_date="2024-01-01T00:00:00Z"),
        )
        decision = select_keeper([x, y])
        assert decision.keeper.id == "Y"
        assert decision.delete_ids == ["X"]

    def test_import_penalty_beats_identity(self):
        imported, plain = _records(
            plot("imp", "5", status="Occupied", first_name="A", notes="Imported"),
            plot("plain", "5", status="Available"),
        )
        assert select_keeper([imported, plain]).keeper.id == "plain"

    def test_identity_beats_status(self):
        named, occupied = _records(
            plot("named", "5", status="Available", last_name="Lee"),
            plot("occ", "5", status="Occupied"),
        )
        assert select_keeper([occupied, named]).keeper.id == "named"

    def test_status_beats_section_label(self):
        reserved, clean = _records(
            plot("res", "5", section="1", status="Reserved"),
            plot("clean", "5", section="Section 1", status="Available"),
        )
        assert select_keeper([clean, reserved]).keeper.id == "res"

    def test_section_label_beats_recency(self):
        bare, clean = _records(
            plot("bare", "5", section="1", updated_date="2025-01-01T00:00:00Z"),
            plot("clean", "5", section="Section 1", updated_date="2020-01-01T00:00:00Z"),
        )
        assert select_keeper([bare, clean]).keeper.id == "clean"

    def test_recency_breaks_ties_missing_is_oldest(self):
        undated, dated = _records(
            plot("undated", "5"),
            plot("dated", "5", updated_date="2001-01-01T00:00:00Z"),
        )
        assert select_keeper([undated, dated]).keeper.id == "dated"

    def test_full_tie_keeps_input_order(self):
        a, b = _records(plot("a", "5"), plot("b", "5"))
        assert select_keeper([a, b]).keeper.id == "a"
        assert select_keeper([b, a]).keeper.id == "b"


class TestOtherPolicies:
    def test_status_first_ignores_import_notes(self):
        imported, named = _records(
            plot("imp", "5", status="Occupied", notes="Imported"),
            plot("named", "5", status="Reserved", first_name="A"),
        )
        assert select_keeper([named, imported], STATUS_FIRST_POLICY).keeper.id == "imp"

    def test_legacy_exact_only_penalizes_exact_marker(self):
        exact, partial = _records(
            plot("exact", "5", notes="Imported", first_name="A"),
            plot("partial", "5", notes="Imported 2019"),
        )
        assert select_keeper([exact, partial], LEGACY_EXACT_POLICY).keeper.id == "partial"

    def test_legacy_exact_prefers_newest_creation(self):
        old, new = _records(
            plot("old", "5", created_date="2020-01-01T00:00:00Z"),
            plot("new", "5", created_date="2022-01-01T00:00:00Z"),
        )
        assert select_keeper([old, new], LEGACY_EXACT_POLICY).keeper.id == "new"

    def test_completeness_policy(self):
        sparse = StoreRecord(id="s", first_name="Ann", updated_date="2024-01-01T00:00:00Z")
        full = StoreRecord(id="f", first_name="Ann", obituary="text", updated_date="2020-01-01T00:00:00Z")
        assert select_keeper([sparse, full], COMPLETENESS_POLICY).keeper.id == "f"

    def test_get_policy(self):
        assert get_policy("reference") is REFERENCE_POLICY
        with pytest.raises(ValueError, match="Unknown keeper policy"):
            get_policy("nope")


class TestOneKeeperPerGroup:
    def test_empty_group_raises(self):
        with pytest.raises(ValueError, match="empty group"):
            select_keeper([])

    def test_singleton_has_no_duplicates(self):
        (only,) = _records(plot("only", "5"))
        decision = select_keeper([only])
        assert decision.keeper.id == "only"
        assert decision.duplicates == []

    @pytest.mark.parametrize("size", [2, 3, 7])
    def test_one_keeper_rest_duplicates(self, size):
        rng = random.Random(size)
        statuses = ["Available", "Reserved", "Occupied", "Veteran", "Unknown", ""]
        group = _records(*[
            plot(f"r{i}", "9", status=rng.choice(statuses),
                 first_name=rng.choice(["", "N"]),
                 notes=rng.choice(["", "Imported"]),
                 updated_date=f"202{rng.randint(0, 4)}-01-01T00:00:00Z")
            for i in range(size)
        ])
        decision = select_keeper(group)
        ids = {r.id for r in group}
        assert decision.keeper.id in ids
        assert len(decision.duplicates) == size - 1
        assert {decision.keeper.id, *decision.delete_ids} == ids


def test_rank_group_orders_best_first():
    rows = _records(
        plot("c", "5", notes="Imported"),
        plot("b", "5", status="Occupied"),
        plot("a", "5", first_name="A"),
    )
    assert [r.id for r in rank_group(rows)] == ["a", "b", "c"]


def test_resolve_groups_skips_singletons():
    groups = {
        "5": _records(plot("a", "5"), plot("b", "5", first_name="B")),
        "6": _records(plot("c", "6")),
    }
    decisions = resolve_groups(groups)
    assert len(decisions) == 1
    assert decisions[0].key == "5"
    assert collect_delete_ids(decisions) == ["a"]
