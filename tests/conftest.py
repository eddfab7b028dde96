"""Shared fixtures for the shop ledger tests."""

from datetime import datetime

import pytest

from shop_ledger.config import get_settings
from shop_ledger.models import AppState, InventoryItem


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep tests independent of any local .env and of each other."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SHOP_STORAGE_DATA_DIR", str(tmp_path / "data"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fixed_now():
    return datetime(2024, 3, 15, 10, 30, 0)


@pytest.fixture
def make_item():
    def _make(item_id="p1", qty=10, price=15000, cost=10000, currency="UZS", name=None, **extra):
        return InventoryItem(
            id=item_id,
            name=name or f"Product {item_id}",
            qty=qty,
            price=price,
            cost=cost,
            currency=currency,
            **extra,
        )
    return _make


@pytest.fixture
def stocked_state(make_item):
    """Warehouse and store each holding one UZS and one USD product."""
    return AppState(
        warehouse=[
            make_item("w1", qty=20, price=15000, cost=10000),
            make_item("w2", qty=5, price=12, cost=8, currency="USD"),
        ],
        store=[
            make_item("s1", qty=3, price=20000, cost=14000),
            make_item("w2", qty=2, price=12, cost=8, currency="USD"),
        ],
    )


@pytest.fixture
def legacy_document():
    """A document as older clients saved it: logs with no ts and free-form kinds."""
    return {
        "warehouse": [{"id": "w1", "name": "Tea", "qty": 20, "cost": 10000, "price": 15000}],
        "store": [{"id": "s1", "name": "Soap", "qty": 3, "price": 20000, "currency": "UZS"}],
        "credits": [{"id": "c1", "name": "Ali", "amount": 50, "currency": "USD", "type": "berilgan"}],
        "logs": [
            {
                "id": "l1",
                "date": "2024-03-15",
                "time": "10:30:00",
                "user": "habibjon",
                "action": "product_sold",
                "kind": "SELL",
                "productName": "Soap",
                "productId": "s1",
                "qty": 1,
                "unit_price": 20000,
                "amount": 20000,
                "currency": "UZS",
                "total_uzs": 20000,
                "source": "store",
            },
            {
                "date": "2024-03-15",
                "time": "10:35:00",
                "user": "habibjon",
                "action": "Ombordan do'konga o'tkazish",
                "kind": "MOVE",
                "productId": "w1",
                "qty": 2,
                "unitPrice": 15000,
                "amount": 30000,
                "currency": "UZS",
            },
            {
                "date": "2024-03-16",
                "time": "9:00:00 AM",
                "user": "hamdamjon",
                "action": "Nasiya qo'shildi",
                "kind": "CREDIT",
                "name": "Ali",
                "amount_usd": 50,
                "amount_uzs": 632500,
                "currency": "USD",
            },
            {"date": "2024-03-16", "action": "Nasiya tahrirlandi", "kind": "CREDIT_EDIT"},
        ],
        "exchangeRate": None,
        "ui": {"dark": True, "receiptRate": 12650, "displayCurrency": "UZS"},
    }
