"""Cart validation: messages, ordering, demand aggregation, read failures."""

import pytest

from conftest import TODAY, days, sale_count
from pharmacy.services.cart_service import (
    CART_EMPTY,
    ProposedLine,
    check_lines,
    validate_cart,
)
from pharmacy.services.repositories import ItemRepository, PersistenceError


class FlakyItemRepository(ItemRepository):
    """Fails to read one item id, reads the rest normally."""

    def __init__(self, failing_id):
        self.failing_id = failing_id
        self.reads = []

    def get_by_id(self, item_id):
        self.reads.append(item_id)
        if item_id == self.failing_id:
            raise PersistenceError("connection reset")
        return super().get_by_id(item_id)


class TestProposedLine:
    def test_total_without_price_is_unknown(self):
        assert ProposedLine(item_id=1, quantity=3).total_cents is None

    def test_with_quantity_recomputes_total(self):
        line = ProposedLine(item_id=1, quantity=2, unit_price_cents=250)
        assert line.total_cents == 500
        assert line.with_quantity(4).total_cents == 1000
        assert line.total_cents == 500

    def test_with_unit_price_recomputes_total(self):
        line = ProposedLine(item_id=1, quantity=3)
        assert line.with_unit_price(120).total_cents == 360

    def test_for_item_captures_price(self, make_item):
        item = make_item(unit_price_cents=480)
        line = ProposedLine.for_item(item, 2)
        assert line.unit_price_cents == 480
        assert line.total_cents == 960


class TestEmptyCart:
    @pytest.mark.parametrize("lines", [None, []])
    def test_empty_cart_single_violation(self, db_session, lines):
        assert validate_cart(lines, today=TODAY) == [CART_EMPTY]


class TestViolations:
    def test_valid_cart(self, make_item):
        a = make_item(name="A", stock=5, expiration_date=days(10))
        assert validate_cart([ProposedLine(a.id, 5)], today=TODAY) == []

    def test_insufficient_stock_message(self, make_item):
        b = make_item(name="B", stock=2)
        assert validate_cart([ProposedLine(b.id, 5)], today=TODAY) == [
            "B — insufficient stock. Available: 2, Requested: 5"
        ]

    def test_expired_message(self, make_item):
        c = make_item(name="C", stock=10, expiration_date=days(-1))
        assert validate_cart([ProposedLine(c.id, 1)], today=TODAY) == [
            "C is EXPIRED; must be removed from the cart"
        ]

    def test_expiring_today_is_accepted(self, make_item):
        c = make_item(name="C", stock=10, expiration_date=TODAY)
        assert validate_cart([ProposedLine(c.id, 1)], today=TODAY) == []

    def test_inactive_message(self, make_item):
        d = make_item(name="D", stock=4, is_active=False)
        assert validate_cart([ProposedLine(d.id, 1)], today=TODAY) == ["D is inactive"]

    def test_missing_item_skips_other_checks(self, db_session):
        assert validate_cart([ProposedLine(999, 1)], today=TODAY) == ["item 999 does not exist"]

    def test_expired_and_insufficient_both_reported(self, make_item):
        e = make_item(name="E", stock=1, expiration_date=days(-3))
        assert validate_cart([ProposedLine(e.id, 2)], today=TODAY) == [
            "E is EXPIRED; must be removed from the cart",
            "E — insufficient stock. Available: 1, Requested: 2",
        ]

    def test_violations_follow_input_order(self, make_item):
        ok = make_item(name="OK", stock=10)
        low = make_item(name="Low", stock=1)
        old = make_item(name="Old", stock=10, expiration_date=days(-1))
        lines = [
            ProposedLine(old.id, 1),
            ProposedLine(ok.id, 1),
            ProposedLine(ok.id, 0),
            ProposedLine(low.id, 3),
        ]
        assert validate_cart(lines, today=TODAY) == [
            "Old is EXPIRED; must be removed from the cart",
            "Line 3: quantity must be greater than 0",
            "Low — insufficient stock. Available: 1, Requested: 3",
        ]

    def test_non_positive_price_rejected(self, make_item):
        a = make_item(name="A", stock=10)
        assert validate_cart([ProposedLine(a.id, 1, unit_price_cents=0)], today=TODAY) == [
            "Line 1: unit price must be greater than 0"
        ]


    def test_line_bounds(self, make_item):
        a = make_item(name="A", stock=10)
        lines = [
            ProposedLine(a.id, 1_000_001),
            ProposedLine(a.id, 1, unit_price_cents=1_000_000_000),
        ]
        assert validate_cart(lines, today=TODAY) == [
            "Line 1: quantity cannot exceed 1000000",
            "Line 2: unit price cannot exceed 999999999 cents",
        ]


class TestDemandAggregation:
    def test_duplicate_lines_are_summed(self, make_item):
        a = make_item(name="A", stock=5)
        lines = [ProposedLine(a.id, 3), ProposedLine(a.id, 3)]
        assert validate_cart(lines, today=TODAY) == [
            "A — insufficient stock. Available: 5, Requested: 6"
        ]

    def test_duplicate_lines_within_stock(self, make_item):
        a = make_item(name="A", stock=6)
        lines = [ProposedLine(a.id, 3), ProposedLine(a.id, 3)]
        assert validate_cart(lines, today=TODAY) == []

    def test_each_item_read_once(self, make_item):
        a = make_item(name="A", stock=10)
        b = make_item(name="B", stock=10)
        repo = FlakyItemRepository(failing_id=None)
        check_lines([ProposedLine(a.id, 1), ProposedLine(b.id, 1), ProposedLine(a.id, 2)], TODAY, repo)
        assert repo.reads == [a.id, b.id]


class TestReadFailures:
    def test_read_failure_is_a_violation_and_others_still_checked(self, make_item):
        a = make_item(name="A", stock=10)
        b = make_item(name="B", stock=1)
        repo = FlakyItemRepository(failing_id=a.id)
        lines = [ProposedLine(a.id, 1), ProposedLine(b.id, 2)]
        assert validate_cart(lines, today=TODAY, items=repo) == [
            f"Error validating item {a.id}: connection reset",
            "B — insufficient stock. Available: 1, Requested: 2",
        ]


class TestReadOnly:
    def test_validation_is_idempotent_and_writes_nothing(self, make_item):
        a = make_item(name="A", stock=2)
        b = make_item(name="B", stock=10, expiration_date=days(-1))
        lines = [ProposedLine(a.id, 5), ProposedLine(b.id, 1)]

        first = validate_cart(lines, today=TODAY)
        second = validate_cart(lines, today=TODAY)

        assert first == second
        assert len(first) == 2
        assert sale_count() == 0

    def test_snapshots_capture_current_state(self, make_item):
        a = make_item(name="A", stock=7, unit_price_cents=999)
        violations, snapshots = check_lines([ProposedLine(a.id, 1)], TODAY, ItemRepository())
        assert violations == []
        assert snapshots[a.id].stock == 7
        assert snapshots[a.id].unit_price_cents == 999
