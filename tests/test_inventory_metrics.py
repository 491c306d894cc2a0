"""
Tests for dashboard KPIs.

Run with: python -m pytest tests/test_inventory_metrics.py -v
"""

import pytest

from services.inventory_metrics import (
    category_summary,
    compute_inventory_metrics,
    get_low_stock_items,
    get_overstock_items,
    stock_status_counts,
)
from services.models import InventoryMetrics, Product


def _products():
    return [
        Product(id="1", name="A", category="Hair", wh=100, pasd=10, days_inv_in_hand=10,
                ct_target_inventory=200, transit=50, to_order=30, is_low_stock=True),
        Product(id="2", name="B", category="Hair", wh=0, pasd=2, is_out_of_stock=True, is_low_stock=True, to_order=20),
        Product(id="3", name="C", category="Skin", wh=300, pasd=0, is_overstock=True),
        Product(id="4", name="D", category="Skin", wh=60, pasd=3, days_inv_in_hand=20, ct_target_inventory=50),
    ]


class TestComputeInventoryMetrics:
    def test_empty_gives_defaults(self):
        assert compute_inventory_metrics([]) == InventoryMetrics()

    def test_counts(self):
        m = compute_inventory_metrics(_products())
        assert m.total_products == 4
        assert m.total_value == 460
        assert m.low_stock_items == 2
        assert m.out_of_stock_items == 1
        assert m.overstock_items == 1
        assert m.items_in_transit == 1
        assert m.total_transit == 50
        assert m.items_to_order == 2
        assert m.total_to_order == 50

    def test_averages(self):
        m = compute_inventory_metrics(_products())
        assert m.avg_drr == pytest.approx(3.75)
        assert m.avg_pasd == pytest.approx(5.0)
        # days in hand over selling products: (10 + 0 + 20) / 3
        assert m.avg_doc == pytest.approx(10.0)
        # turnover over stocked products: 10*30/100, 0, 3*30/60
        assert m.average_turnover_rate == pytest.approx(1.5)

    def test_rates(self):
        m = compute_inventory_metrics(_products())
        # (100 + 60) / (200 + 50)
        assert m.target_achievement == pytest.approx(64.0)
        assert m.inventory_health_score == pytest.approx(25.0)
        assert m.overstock_rate == pytest.approx(25.0)
        assert m.stockout_rate == pytest.approx(25.0)

    def test_no_targets(self):
        m = compute_inventory_metrics([Product(id="1", name="A", wh=5)])
        assert m.target_achievement == 0


class TestFiltersAndSummary:
    def test_filters(self):
        products = _products()
        assert [p.id for p in get_low_stock_items(products)] == ["1", "2"]
        assert [p.id for p in get_overstock_items(products)] == ["3"]

    def test_category_summary(self):
        summary = category_summary(_products())
        assert list(summary["Category"]) == ["Hair", "Skin"]
        hair = summary.set_index("Category").loc["Hair"]
        assert hair["Products"] == 2
        assert hair["On Hand"] == 100
        assert hair["Low Stock"] == 2

    def test_category_summary_empty(self):
        assert category_summary([]).empty


class TestStockStatus:
    def test_counts_match_health_score(self):
        products = _products() + [
            # out of stock with no demand: neither low nor overstock, and not healthy
            Product(id="5", name="E", category="Skin", wh=0, is_out_of_stock=True),
        ]
        counts = stock_status_counts(products)
        assert counts.to_dict() == {"Healthy": 1, "Low Stock": 2, "Out of Stock": 1, "Overstock": 1}
        assert counts.sum() == len(products)

        metrics = compute_inventory_metrics(products)
        assert metrics.inventory_health_score == pytest.approx(counts["Healthy"] / len(products) * 100)

    def test_empty(self):
        assert stock_status_counts([]).to_dict() == {"Healthy": 0, "Low Stock": 0, "Out of Stock": 0, "Overstock": 0}


class TestMetricsFromMapping:
    def test_camel_case_payload(self):
        m = InventoryMetrics.from_mapping({"totalProducts": "12", "avgDRR": 3.5, "lowStockItems": 2.0, "unknown": 1})
        assert m.total_products == 12
        assert isinstance(m.total_products, int)
        assert m.avg_drr == 3.5
        assert m.low_stock_items == 2

    def test_not_a_mapping(self):
        assert InventoryMetrics.from_mapping(None) == InventoryMetrics()
