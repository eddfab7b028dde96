"""
Tests for reports

Test strategy:
1. Stored local totals are used as logged
2. USD entries without a stored total need a rate, else they are skipped
3. Grouping by day, user, month and product
"""

import pytest

from shop_ledger.models import AppState, InventoryItem, LogKind, SaleLogEntry
from shop_ledger.reporting import (
    daily_sales,
    inventory_summary,
    monthly_summary,
    sales_by_user,
    top_products,
)


def sale(day, user="habibjon", name="Tea", qty=1, amount=10000, currency="UZS", total_uzs=None):
    return SaleLogEntry(
        ts=1,
        date=day,
        user=user,
        action="product_sold",
        kind=LogKind.SELL,
        product_name=name,
        qty=qty,
        amount=amount,
        currency=currency,
        total_uzs=total_uzs,
    )


@pytest.fixture
def logs():
    return [
        sale("2024-03-14", amount=20000, total_uzs=20000),
        sale("2024-03-15", amount=15000, total_uzs=15000, qty=3),
        sale("2024-03-15", user="shogirt", name="Coffee", amount=5, currency="USD", total_uzs=62500),
        sale("2024-03-15", user="shogirt", name="Coffee", amount=2, currency="USD", qty=2),
        SaleLogEntry(ts=1, date="2024-03-15", action="product_added", kind=LogKind.ADD, amount=90000, total_uzs=90000),
        SaleLogEntry(ts=1, date="2024-04-01", action="product_added", kind=LogKind.ADD, amount=5, currency="USD"),
        SaleLogEntry(ts=1, date="2024-03-15", action="Account shogirt added"),
    ]


class TestDailySales:
    """Tests for one day's sales."""

    def test_without_rate(self, logs):
        report = daily_sales(logs, "2024-03-15")
        assert report.count == 3
        assert report.total_uzs == 15000 + 62500
        assert report.skipped == 1
        assert report.qty == 6

    def test_with_rate(self, logs):
        report = daily_sales(logs, "2024-03-15", rate=12000)
        assert report.total_uzs == 15000 + 62500 + 24000
        assert report.skipped == 0

    def test_empty_day(self, logs):
        report = daily_sales(logs, "2024-01-01")
        assert report.count == 0
        assert report.entries == []


class TestSalesByUser:
    """Tests for per-seller totals."""

    def test_grouping(self, logs):
        report = sales_by_user(logs, rate=12000)
        assert set(report) == {"habibjon", "shogirt"}
        assert report["habibjon"].total_uzs == 35000
        assert report["shogirt"].total_uzs == 62500 + 24000

    def test_single_day(self, logs):
        report = sales_by_user(logs, day="2024-03-14")
        assert list(report) == ["habibjon"]
        assert report["habibjon"].count == 1


class TestMonthlySummary:
    """Tests for sold vs. incoming per month."""

    def test_months(self, logs):
        report = monthly_summary(logs)
        assert [m.month for m in report] == ["2024-03", "2024-04"]
        march, april = report
        assert march.sold_uzs == 20000 + 15000 + 62500
        assert march.incoming_uzs == 90000
        assert march.skipped == 1
        assert april.skipped == 1

    def test_undated_entries_grouped_as_unknown(self):
        entry = SaleLogEntry.model_validate({"action": "product_sold", "kind": "SELL", "total_uzs": 500})
        report = monthly_summary([entry])
        assert [m.month for m in report] == ["unknown"]
        assert report[0].sold_uzs == 500

    def test_with_rate(self, logs):
        april = monthly_summary(logs, rate=10000)[-1]
        assert april.incoming_uzs == 50000
        assert april.skipped == 0


class TestTopProducts:
    """Tests for best sellers."""

    def test_ranked_by_quantity(self, logs):
        report = top_products(logs, rate=12000)
        assert [p.product_name for p in report] == ["Tea", "Coffee"]
        assert report[0].qty == 4
        assert report[1].total_uzs == 62500 + 24000
        assert report[1].skipped == 0

    def test_missing_rate_counted_not_zero_filled(self, logs):
        """A USD sale with no stored total and no rate is reported as skipped."""
        report = top_products(logs)
        coffee = next(p for p in report if p.product_name == "Coffee")
        assert coffee.qty == 3
        assert coffee.total_uzs == 62500
        assert coffee.skipped == 1
        tea = next(p for p in report if p.product_name == "Tea")
        assert tea.skipped == 0

    def test_limit(self, logs):
        assert len(top_products(logs, limit=1)) == 1


class TestInventorySummary:
    """Tests for pool values."""

    def test_values_and_skips(self, stocked_state):
        report = inventory_summary(stocked_state, rate=None)
        assert report.warehouse.total == 20 * 10000
        assert report.store.total == 3 * 14000
        assert report.skipped == 2
        assert report.warehouse_items == 2

    def test_with_rate(self, stocked_state):
        report = inventory_summary(stocked_state, rate=10000)
        assert report.warehouse.total == 200000 + 5 * 8 * 10000
        assert report.skipped == 0

    def test_display_currency_from_ui(self):
        state = AppState(
            warehouse=[InventoryItem(id="a", qty=2, cost=5, currency="USD")],
            ui={"displayCurrency": "USD"},
        )
        report = inventory_summary(state, rate=None)
        assert report.warehouse.total == 10.0
        assert report.warehouse.skipped == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
