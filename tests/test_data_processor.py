"""
Tests for spreadsheet row normalization.

Run with: python -m pytest tests/test_data_processor.py -v
"""

from datetime import date

import pytest

from services.data_processor import (
    build_header_map,
    create_manual_product,
    extract_report_month,
    process_uploaded_data,
    product_to_backend_row,
    record_from_backend_row,
)


def _row(**overrides):
    row = {
        "Brand": "Acme",
        "Product": "Shampoo",
        "Variant": "200ml",
        "Product Name": "Acme Shampoo 200ml",
        "SKU": "ACM-SH-200",
        "Category": "Hair",
        "WH": 100,
        "FBA": 20,
        "PASD": 5,
        "Lead Time": 15,
        "Order Frequ": 7,
        "Transit": 30,
    }
    row.update(overrides)
    return row


class TestHeaderMapping:
    def test_header_variants_map_to_same_field(self):
        header_map = build_header_map(["Product_Name", "Order Frequency", "LeadTime", "RK/RZ Sale"])
        assert header_map == {
            "Product_Name": "name",
            "Order Frequency": "order_freq",
            "LeadTime": "lead_time",
            "RK/RZ Sale": "rkrz_sale",
        }

    def test_first_header_wins_and_unknown_ignored(self):
        header_map = build_header_map(["Product Name", "Product_Name", "Notes From Buyer"])
        assert header_map == {"Product Name": "name"}


class TestProcessUploadedData:
    def test_empty_or_invalid_input(self):
        assert process_uploaded_data([]) == []
        assert process_uploaded_data(None) == []

    def test_basic_row(self):
        [product] = process_uploaded_data([_row()])
        assert product.sku == "ACM-SH-200"
        assert product.name == "Acme Shampoo 200ml"
        assert product.category == "Hair"
        assert product.on_hand == 120
        assert product.lead_time == 15
        assert product.order_freq == 7
        assert product.drr == 5

    def test_derived_fields_when_columns_missing(self):
        [product] = process_uploaded_data([_row()])
        # mp_demand = pasd * (lead + freq) = 5 * 22
        assert product.mp_demand == 110
        assert product.days_inv_in_hand == pytest.approx(24.0)
        assert product.days_inv_total == pytest.approx(30.0)
        # 110 - 120 - 30 < 0
        assert product.to_order == 0
        assert product.doc == product.days_inv_in_hand

    def test_sheet_values_are_kept(self):
        [product] = process_uploaded_data([_row(**{"To Order": 40, "MP Demand": 500, "Days inventory in hand": 9})])
        assert product.to_order == 40
        assert product.mp_demand == 500
        assert product.days_inv_in_hand == 9

    def test_to_order_rounds_up(self):
        [product] = process_uploaded_data([_row(WH=10, FBA=0, Transit=0, **{"MP Demand": 20.2})])
        assert product.to_order == 11

    def test_pasd_from_marketplaces(self):
        row = _row(**{"Amazon PASD": 2, "FK PASD": 1.5, "QC PASD": 0.5})
        del row["PASD"]
        [product] = process_uploaded_data([row])
        assert product.pasd == 4

    def test_mp_demand_from_marketplaces(self):
        [product] = process_uploaded_data([_row(**{"Amazon Demand": 50, "FK Demand": 25})])
        assert product.mp_demand == 75

    def test_default_lead_time(self):
        row = _row()
        del row["Lead Time"]
        [product] = process_uploaded_data([row], default_lead_time=45)
        assert product.lead_time == 45

    def test_blank_rows_skipped(self):
        rows = [_row(), {"Brand": None, "SKU": None, "WH": None}, {}]
        assert len(process_uploaded_data(rows)) == 1

    def test_name_fallbacks(self):
        row = _row()
        del row["Product Name"]
        [product] = process_uploaded_data([row])
        assert product.name == "Acme Shampoo 200ml"

        [only_sku] = process_uploaded_data([{"SKU": "X-1", "WH": 3}])
        assert only_sku.name == "X-1"
        assert only_sku.category == "Uncategorized"

    def test_malformed_cells_become_zero(self):
        [product] = process_uploaded_data([_row(WH="#N/A", FBA="1,000", PASD="")])
        assert product.wh == 0
        assert product.fba == 1000
        assert product.pasd == 0
        assert product.days_inv_in_hand == 0

    def test_numeric_sku_kept_as_text(self):
        [product] = process_uploaded_data([_row(SKU=889911.0)])
        assert product.sku == "889911"

    def test_ids_are_unique(self):
        products = process_uploaded_data([_row(), _row(SKU="OTHER")])
        assert products[0].id != products[1].id


class TestBackendRows:
    def test_record_from_backend_row(self):
        item = {
            "id": 7, "Brand": "Acme", "Product": "Soap", "Variant": "", "Product_Name": "Acme Soap",
            "SKU": "SOAP-1", "Category": None, "WH": "40", "FBA": 10, "PASD": 5, "LeadTime": 10,
            "Transit": 0, "Order_Freq": 7, "MP_Demand": 85, "To_Order": 35,
        }
        product = record_from_backend_row(item, overstock=True)
        assert product.id == "7"
        assert product.name == "Acme Soap"
        assert product.category == "Uncategorized"
        assert product.on_hand == 50
        assert product.lead_time == 10
        assert product.to_order == 35
        assert product.days_inv_in_hand == 10
        assert product.is_overstock is True

    def test_snake_case_backend_row(self):
        product = record_from_backend_row({"sku": "A", "product_name": "Alpha", "lead_time": 12, "wh": 3})
        assert product.sku == "A"
        assert product.name == "Alpha"
        assert product.lead_time == 12
        assert product.wh == 3

    def test_backend_row_round_trip_columns(self):
        [product] = process_uploaded_data([_row()])
        row = product_to_backend_row(product)
        assert row["SKU"] == "ACM-SH-200"
        assert row["Product_Name"] == "Acme Shampoo 200ml"
        assert row["LeadTime"] == 15
        assert row["id"] == product.id


class TestManualProduct:
    def test_name_required(self):
        with pytest.raises(ValueError, match="Item name is required"):
            create_manual_product("  ")

    def test_fields(self):
        tags = [" red ", "red", ""] + [f"t{i}" for i in range(12)]
        product = create_manual_product("Widget", quantity=-4, category="", description="spare", tags=tags)
        assert product.name == "Widget"
        assert product.wh == 0
        assert product.category == "Uncategorized"
        assert product.notes == "spare"
        assert product.tags[0] == "red"
        assert len(product.tags) == 10


class TestReportMonth:
    def test_date_in_file_name(self):
        assert extract_report_month([], "inventory 05-03-2024.xlsx") == "March 2024"
        assert extract_report_month([], "stock_1.11.24.csv") == "November 2024"

    def test_month_cell(self):
        rows = [{"month": "April 2024", "SKU": "A"}]
        assert extract_report_month(rows, "inventory.xlsx") == "April 2024"

    def test_defaults_to_current_month(self):
        assert extract_report_month([{"SKU": "A"}], "inventory.xlsx", today=date(2024, 6, 15)) == "June"

    def test_invalid_date_in_name_is_ignored(self):
        assert extract_report_month([], "report 45-13-2024.xlsx", today=date(2024, 6, 15)) == "June"
