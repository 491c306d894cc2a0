# stock_dashboard/services/data_processor.py
"""
Turns raw spreadsheet rows into Product records.

Exports come from several marketplaces and the column headers drift between
versions ("Order Frequ", "Order Frequency", "Order_Freq" ...), so every header
is normalized before it is matched against COLUMN_ALIASES. Cells are coerced
with the tolerant helpers in utils.value_utils; a bad cell never fails the upload.
"""
import logging
import math
import re
import uuid
from datetime import date

from services.models import Product
from utils.value_utils import exists, normalize_header, safe_number, safe_string

logger = logging.getLogger(__name__)

DEFAULT_LEAD_TIME = 30
MAX_TAGS = 10

# field -> header spellings seen in the exports
COLUMN_ALIASES = {
    "id": ["id"],
    "brand": ["Brand"],
    "product": ["Product"],
    "variant": ["Variant"],
    "name": ["Product Name", "Product_Name", "Name", "Item Name", "Title"],
    "asins": ["ASINs", "ASIN"],
    "gs1_code": ["GS1 CODE", "GS1"],
    "sku": ["SKU", "Sku", "Item Code"],
    "fsn": ["FSN"],
    "category": ["Category"],
    "vendor_amz": ["Vendor AMZ", "Vendor"],
    "column1": ["Column1"],
    "launch_type": ["Launch Type"],
    "vendor2": ["Vendor2"],
    "fba_sales": ["FBA Sales"],
    "rkrz_sale": ["RK/RZ Sale", "RKRZ Sale"],
    "amazon_sale": ["Amazon sale", "Amazon Sales"],
    "amazon_asd": ["Amazon ASD"],
    "amazon_growth": ["Amazon Growth"],
    "max_drr": ["Max DRR"],
    "amazon_pasd": ["Amazon PASD"],
    "diff": ["Diff"],
    "ct_target_inventory": ["CT Target Inventory", "Target Inventory", "Target"],
    "amazon_inventory": ["Amazon Inventory"],
    "fba": ["FBA"],
    "amazon_demand": ["Amazon Demand"],
    "fk_alpha_sales": ["FK Alpha Sales"],
    "fk_alpha_inv": ["FK Alpha Inv"],
    "fk_sales": ["FK Sales"],
    "fbf_inv": ["FBF Inv"],
    "fk_sales_total": ["FK Sales Total"],
    "fk_inv": ["FK Inv"],
    "fk_asd": ["FK ASD"],
    "fk_growth": ["FK Growth"],
    "max_drr2": ["Max DRR2"],
    "fk_pasd": ["FK PASD"],
    "fk_demand": ["FK Demand"],
    "other_mp_sales": ["Other MP Sales"],
    "qc_pasd": ["QC PASD"],
    "qcommerce_demand": ["Qcommerce Demand", "QC Demand"],
    "wh": ["WH", "Warehouse", "WH Stock"],
    "lead_time": ["Lead Time", "LeadTime", "Lead time (days)", "Lead Time Days"],
    "order_freq": ["Order Frequ", "Order Frequency", "Order_Freq", "Order Freq"],
    "pasd": ["PASD", "DRR"],
    "mp_demand": ["MP Demand", "MP_Demand"],
    "transit": ["Transit", "In Transit"],
    "to_order": ["To Order", "To_Order"],
    "final_order": ["Final Order"],
    "remark": ["Remark", "Remarks"],
    "days_inv_in_hand": ["Days inventory in hand", "Days Inv In Hand", "Days in hand"],
    "days_inv_total": ["Days inventory total", "Days Inv Total", "Days total"],
}

TEXT_FIELDS = {
    "id", "brand", "product", "variant", "name", "asins", "gs1_code", "sku", "fsn",
    "category", "vendor_amz", "column1", "launch_type", "vendor2",
}
RAW_FIELDS = {"final_order", "remark"}

_ALIAS_LOOKUP = {
    normalize_header(alias): field_name
    for field_name, aliases in COLUMN_ALIASES.items()
    for alias in aliases
}

# Backend table "main" column -> Product field
BACKEND_COLUMNS = {
    "Brand": "brand",
    "Product": "product",
    "Variant": "variant",
    "Product_Name": "name",
    "SKU": "sku",
    "Category": "category",
    "WH": "wh",
    "FBA": "fba",
    "PASD": "pasd",
    "LeadTime": "lead_time",
    "Transit": "transit",
    "Order_Freq": "order_freq",
    "MP_Demand": "mp_demand",
    "To_Order": "to_order",
}
_BACKEND_SNAKE = {
    "product_name": "name",
    "lead_time": "lead_time",
    "order_freq": "order_freq",
    "mp_demand": "mp_demand",
    "to_order": "to_order",
}

_FILENAME_DATE = re.compile(r"(\d{1,2})[-.](\d{1,2})[-.](\d{2,4})")
MONTH_KEYS = ("month", "reportMonth", "period")


def build_header_map(headers):
    """Maps each recognised header to its Product field. First header wins on clashes."""
    header_map = {}
    claimed = set()
    for header in headers:
        if header is None:
            continue
        field_name = _ALIAS_LOOKUP.get(normalize_header(header))
        if field_name is None or field_name in claimed:
            continue
        header_map[header] = field_name
        claimed.add(field_name)
    return header_map


def _read_row(row, header_map):
    """Returns {field: raw cell} for the non-blank cells of one row."""
    values = {}
    for header, field_name in header_map.items():
        cell = row.get(header)
        if exists(cell):
            values[field_name] = cell
    return values


def _build_product(values, default_lead_time):
    text = {f: safe_string(values.get(f)) for f in TEXT_FIELDS}
    numbers = {
        f: safe_number(values.get(f), 0)
        for f in COLUMN_ALIASES
        if f not in TEXT_FIELDS and f not in RAW_FIELDS
    }

    name = text["name"]
    if not name:
        name = " ".join(part for part in (text["brand"], text["product"], text["variant"]) if part)
    if not name:
        name = text["sku"]

    product = Product(
        id=text["id"] or str(uuid.uuid4()),
        name=name,
        sku=text["sku"],
        category=text["category"] or "Uncategorized",
        brand=text["brand"],
        product=text["product"],
        variant=text["variant"],
        asins=text["asins"],
        gs1_code=text["gs1_code"],
        fsn=text["fsn"],
        vendor_amz=text["vendor_amz"],
        column1=text["column1"],
        launch_type=text["launch_type"],
        vendor2=text["vendor2"],
        final_order=values.get("final_order"),
        remark=values.get("remark"),
        **numbers,
    )

    # Fill the planning columns the sheet left out
    if "lead_time" not in values:
        product.lead_time = float(default_lead_time)
    if "pasd" not in values:
        product.pasd = product.amazon_pasd + product.fk_pasd + product.qc_pasd
    if "mp_demand" not in values:
        product.mp_demand = product.amazon_demand + product.fk_demand + product.qcommerce_demand
        if product.mp_demand == 0:
            product.mp_demand = product.pasd * (product.lead_time + product.order_freq)
    if "days_inv_in_hand" not in values:
        product.days_inv_in_hand = product.on_hand / product.pasd if product.pasd > 0 else 0.0
    if "days_inv_total" not in values:
        product.days_inv_total = (product.on_hand + product.transit) / product.pasd if product.pasd > 0 else 0.0
    if "to_order" not in values:
        product.to_order = float(math.ceil(max(0.0, product.mp_demand - product.on_hand - product.transit)))

    product.drr = product.pasd
    product.doc = product.days_inv_in_hand
    product.target = product.ct_target_inventory
    return product


def process_uploaded_data(rows, default_lead_time=DEFAULT_LEAD_TIME):
    """
    Normalizes raw spreadsheet rows into Product records.

    :param rows: A list of dicts, one per spreadsheet row, keyed by header.
    :param default_lead_time: Lead time (days) used when the sheet has no lead time column or cell.
    :return: A list of Product records, in sheet order. Blank and total-like rows are skipped.
    """
    if not isinstance(rows, list) or not rows:
        logger.error("No valid data to process.")
        return []

    headers = []
    for row in rows:
        if isinstance(row, dict):
            headers.extend(h for h in row.keys() if h not in headers)
    header_map = build_header_map(headers)
    logger.info(f"Recognised {len(header_map)} of {len(headers)} columns.")

    lead_headers = [h for h in headers if h is not None and "lead" in str(h).lower()]
    if not lead_headers:
        logger.info(f"No lead time column found; using default of {default_lead_time} days.")

    products = []
    skipped = 0
    for row in rows:
        if not isinstance(row, dict):
            skipped += 1
            continue
        values = _read_row(row, header_map)
        if not any(exists(values.get(key)) for key in ("sku", "name", "product")):
            skipped += 1
            continue
        products.append(_build_product(values, default_lead_time))

    logger.info(f"Processed {len(products)} products ({skipped} rows skipped).")
    return products


def record_from_backend_row(item, overstock=False):
    """Maps a row from the backend "main" table (or one of its RPCs) into a Product."""
    values = {}
    for key, value in item.items():
        field_name = BACKEND_COLUMNS.get(key) or _BACKEND_SNAKE.get(key)
        if field_name is None and key.lower() in BACKEND_COLUMNS.values():
            field_name = key.lower()
        if field_name and field_name not in values:
            values[field_name] = value

    product = Product(
        id=safe_string(item.get("id")) or str(uuid.uuid4()),
        name=safe_string(values.get("name")),
        sku=safe_string(values.get("sku")),
        category=safe_string(values.get("category"), "Uncategorized"),
        brand=safe_string(values.get("brand")),
        product=safe_string(values.get("product")),
        variant=safe_string(values.get("variant")),
        wh=safe_number(values.get("wh"), 0),
        fba=safe_number(values.get("fba"), 0),
        pasd=safe_number(values.get("pasd"), 0),
        lead_time=safe_number(values.get("lead_time"), 0),
        transit=safe_number(values.get("transit"), 0),
        order_freq=safe_number(values.get("order_freq"), 0),
        mp_demand=safe_number(values.get("mp_demand"), 0),
        to_order=safe_number(values.get("to_order"), 0),
        is_overstock=overstock,
    )
    product.drr = product.pasd
    if product.pasd > 0:
        product.days_inv_in_hand = product.on_hand / product.pasd
        product.days_inv_total = (product.on_hand + product.transit) / product.pasd
    product.doc = product.days_inv_in_hand
    return product


def product_to_backend_row(product):
    row = {column: getattr(product, field_name) for column, field_name in BACKEND_COLUMNS.items()}
    row["id"] = product.id
    return row


def create_manual_product(name, quantity=1, category="", description="", tags=None):
    """Builds a Product from the "Add Item" form."""
    name = safe_string(name)
    if not name:
        raise ValueError("Item name is required")

    clean_tags = []
    for tag in tags or []:
        tag = safe_string(tag)
        if tag and tag not in clean_tags:
            clean_tags.append(tag)

    return Product(
        id=str(uuid.uuid4()),
        name=name,
        category=safe_string(category, "Uncategorized"),
        wh=max(0.0, safe_number(quantity, 0)),
        notes=safe_string(description),
        tags=clean_tags[:MAX_TAGS],
    )


def extract_report_month(rows=None, file_name=None, today=None):
    """
    Works out which month a report covers.
    A DD-MM-YYYY date in the file name wins, then a month/period cell on the first row,
    then the current month.
    """
    today = today or date.today()

    if file_name:
        match = _FILENAME_DATE.search(file_name)
        if match:
            day, month, year = (int(part) for part in match.groups())
            if year < 100:
                year += 2000
            try:
                return date(year, month, day).strftime("%B %Y")
            except ValueError:
                logger.warning(f"Ignoring invalid date in file name '{file_name}'.")

    if rows and isinstance(rows[0], dict):
        for key in MONTH_KEYS:
            label = safe_string(rows[0].get(key))
            if label:
                return label

    return today.strftime("%B")
