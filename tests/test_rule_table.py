"""Tests for RuleTable and RuleTableStore."""

import threading
from decimal import Decimal

import pytest

from rac_benefits.errors import ConflictError, NotFoundError, ValidationError
from rac_benefits.money import RoundingMode
from rac_benefits.rules import (
    FEDERAL,
    SNAP,
    IncomeLimit,
    RuleTable,
    RuleTableStore,
    federal_snap_table,
)


class TestRuleTable:
    """Tests for table lookups and validation."""

    def test_tabulated_limits(self, fy2024):
        """Size 3 limits come straight from the table."""
        limits = fy2024.limits_for(3)
        assert limits.gross_limit == Decimal("2694")
        assert limits.net_limit == Decimal("2072")
        assert limits.standard_deduction == Decimal("198")
        assert fy2024.max_allotment_for(3) == Decimal("766")

    def test_sizes_beyond_table_extend(self, fy2025):
        """Each member past 8 adds the published increments."""
        limits = fy2025.limits_for(10)
        assert limits.gross_limit == Decimal("5712") + 2 * Decimal("583")
        assert limits.net_limit == Decimal("4394") + 2 * Decimal("449")
        assert limits.standard_deduction == Decimal("291")
        assert fy2025.max_allotment_for(9) == Decimal("1976")

    def test_invalid_size(self, fy2024):
        """Size zero is a validation error."""
        with pytest.raises(ValidationError):
            fy2024.limits_for(0)
        with pytest.raises(ValidationError):
            fy2024.max_allotment_for(-1)

    def test_gap_in_sizes_rejected(self):
        """Tables must tabulate sizes 1..N."""
        with pytest.raises(ValidationError):
            RuleTable(
                jurisdiction="X",
                program="SNAP",
                fiscal_year=2024,
                income_limits={1: IncomeLimit(1, 1, 1), 3: IncomeLimit(1, 1, 1)},
                max_allotment={1: 1, 3: 1},
            )

    def test_bad_rounding_mode(self, small_table):
        """Unknown rounding modes are rejected."""
        data = small_table.to_dict()
        data["rounding_mode"] = "half_even"
        with pytest.raises(ValidationError):
            RuleTable.from_dict(data)

    def test_immutable(self, fy2024):
        """Published tables cannot be edited."""
        with pytest.raises(AttributeError):
            fy2024.shelter_cap = Decimal("0")
        with pytest.raises(TypeError):
            fy2024.max_allotment[1] = Decimal("0")

    def test_unknown_fiscal_year(self):
        """No silent fallback to another year."""
        with pytest.raises(NotFoundError):
            federal_snap_table(2019)


class TestRoundTrip:
    """Serializing then deserializing yields an identical table."""

    def test_dict_round_trip(self, fy2024):
        assert RuleTable.from_dict(fy2024.to_dict()) == fy2024

    def test_json_round_trip(self, small_table):
        restored = RuleTable.from_json(small_table.to_json())
        assert restored == small_table
        assert restored.rounding_mode is RoundingMode.HALF_UP
        assert restored.shelter_cap == Decimal("300.00")

    def test_malformed_json(self):
        with pytest.raises(ValidationError):
            RuleTable.from_json("{not json")


class TestRuleTableStore:
    """Tests for publishing and lookup."""

    def test_get_published(self, store):
        table = store.get_rule_table(FEDERAL, SNAP, 2025)
        assert table.fiscal_year == 2025
        assert (FEDERAL, SNAP, 2024) in store
        assert len(store) == 2

    def test_missing_key_not_found(self, store):
        """Unknown jurisdiction never falls back to the federal table."""
        with pytest.raises(NotFoundError):
            store.get_rule_table("ZZ", SNAP, 2025)
        with pytest.raises(LookupError):
            store.get_rule_table(FEDERAL, SNAP, 2023)

    def test_republish_conflicts(self, store, fy2024):
        """A published key cannot be replaced."""
        with pytest.raises(ConflictError):
            store.publish(fy2024)

    def test_concurrent_publish_single_winner(self, small_table):
        """Only one of many racing publishers succeeds."""
        store = RuleTableStore()
        errors = []

        def publish():
            try:
                store.publish(small_table)
            except ConflictError as e:
                errors.append(e)

        threads = [threading.Thread(target=publish) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(store) == 1
        assert len(errors) == 7

    def test_from_json_file(self, tmp_path, small_table):
        """A file with a list of tables loads into a store."""
        path = tmp_path / "tables.json"
        path.write_text("[" + small_table.to_json() + "]")
        store = RuleTableStore.from_json_file(path)
        assert store.keys() == [("TEST", "SNAP", 2030)]
        assert store.get_rule_table("TEST", "SNAP", 2030) == small_table
