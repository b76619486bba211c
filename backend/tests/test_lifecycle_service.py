from datetime import timedelta

import pytest

from conftest import TODAY
from pharmacy.services import lifecycle_service as lc
from pharmacy.services.repositories import ItemSnapshot


def snap(expires_in=None, stock=10, is_active=True):
    return ItemSnapshot(
        id=1,
        name="Paracetamol 500mg",
        description=None,
        unit_price_cents=350,
        stock=stock,
        expiration_date=None if expires_in is None else TODAY + timedelta(days=expires_in),
        is_active=is_active,
    )


class TestExpiration:
    def test_expiring_today_is_not_expired(self):
        item = snap(expires_in=0)
        assert lc.is_expired(item, TODAY) is False
        assert lc.days_until_expiration(item, TODAY) == 0
        assert lc.is_near_expiry(item, TODAY) is True

    def test_expired_yesterday(self):
        item = snap(expires_in=-1)
        assert lc.is_expired(item, TODAY) is True
        assert lc.days_until_expiration(item, TODAY) == -1
        assert lc.is_near_expiry(item, TODAY) is False

    def test_no_expiration_is_unbounded(self):
        item = snap(expires_in=None)
        assert lc.is_expired(item, TODAY) is False
        assert lc.days_until_expiration(item, TODAY) is None
        assert lc.is_near_expiry(item, TODAY) is False

    @pytest.mark.parametrize("days,expected", [(30, True), (31, False), (1, True)])
    def test_near_expiry_window_is_inclusive(self, days, expected):
        assert lc.is_near_expiry(snap(expires_in=days), TODAY) is expected

    def test_custom_threshold(self):
        item = snap(expires_in=10)
        assert lc.is_near_expiry(item, TODAY, threshold_days=7) is False
        assert lc.is_near_expiry(item, TODAY, threshold_days=10) is True

    @pytest.mark.parametrize(
        "days,status",
        [
            (None, lc.STATUS_NO_EXPIRATION),
            (-5, lc.STATUS_EXPIRED),
            (0, lc.STATUS_NEAR_EXPIRY),
            (30, lc.STATUS_NEAR_EXPIRY),
            (90, lc.STATUS_OK),
        ],
    )
    def test_expiration_status(self, days, status):
        assert lc.expiration_status(snap(expires_in=days), TODAY) == status


class TestStock:
    def test_has_stock(self):
        assert lc.has_stock(snap(stock=1)) is True
        assert lc.has_stock(snap(stock=0)) is False

    def test_has_sufficient_stock_boundary(self):
        item = snap(stock=5)
        assert lc.has_sufficient_stock(item, 5) is True
        assert lc.has_sufficient_stock(item, 6) is False


class TestSellable:
    def test_active_fresh_in_stock(self):
        assert lc.is_sellable(snap(expires_in=100, stock=3), TODAY) is True

    def test_expired_is_not_sellable(self):
        assert lc.is_sellable(snap(expires_in=-1, stock=3), TODAY) is False

    def test_inactive_is_not_sellable(self):
        assert lc.is_sellable(snap(stock=3, is_active=False), TODAY) is False

    def test_out_of_stock_is_not_sellable(self):
        assert lc.is_sellable(snap(stock=0), TODAY) is False

    def test_expiring_today_is_sellable(self):
        assert lc.is_sellable(snap(expires_in=0, stock=1), TODAY) is True
