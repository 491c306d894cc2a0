# stock_dashboard/services/models.py
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Optional

import pandas as pd

from utils.value_utils import safe_number


@dataclass
class Product:
    """One SKU row from an inventory export, plus everything derived from it."""

    id: str
    name: str
    sku: str = ""
    category: str = "Uncategorized"

    # Text columns from the export
    brand: str = ""
    product: str = ""
    variant: str = ""
    asins: str = ""
    gs1_code: str = ""
    fsn: str = ""
    vendor_amz: str = ""
    column1: str = ""
    launch_type: str = ""
    vendor2: str = ""

    # Marketplace sales / stock columns
    fba_sales: float = 0.0
    rkrz_sale: float = 0.0
    amazon_sale: float = 0.0
    amazon_asd: float = 0.0
    amazon_growth: float = 0.0
    max_drr: float = 0.0
    amazon_pasd: float = 0.0
    diff: float = 0.0
    ct_target_inventory: float = 0.0
    amazon_inventory: float = 0.0
    fba: float = 0.0
    amazon_demand: float = 0.0
    fk_alpha_sales: float = 0.0
    fk_alpha_inv: float = 0.0
    fk_sales: float = 0.0
    fbf_inv: float = 0.0
    fk_sales_total: float = 0.0
    fk_inv: float = 0.0
    fk_asd: float = 0.0
    fk_growth: float = 0.0
    max_drr2: float = 0.0
    fk_pasd: float = 0.0
    fk_demand: float = 0.0
    other_mp_sales: float = 0.0
    qc_pasd: float = 0.0
    qcommerce_demand: float = 0.0

    # Planning columns
    wh: float = 0.0
    lead_time: float = 0.0
    order_freq: float = 0.0
    pasd: float = 0.0
    mp_demand: float = 0.0
    transit: float = 0.0
    to_order: float = 0.0
    final_order: Any = None
    remark: Any = None
    days_inv_in_hand: float = 0.0
    days_inv_total: float = 0.0

    # Dashboard aliases
    drr: float = 0.0
    doc: float = 0.0
    target: float = 0.0
    sales_history: List[Dict[str, Any]] = field(default_factory=list)

    # Manually added items
    tags: List[str] = field(default_factory=list)
    notes: str = ""

    # Stock health
    reorder_threshold: float = 0.0
    is_low_stock: bool = False
    is_overstock: bool = False
    is_out_of_stock: bool = False

    # Bundle / pack reconciliation
    is_base_unit: bool = False
    base_unit_id: Optional[str] = None
    pack_size: int = 1
    conversion_multiplier: float = 1.0
    final_to_order_base_units: int = 0
    bundled_skus: List[str] = field(default_factory=list)

    @property
    def on_hand(self) -> float:
        return self.wh + self.fba + self.fbf_inv

    @property
    def vendor(self) -> str:
        return self.vendor_amz or self.vendor2


@dataclass
class OrderSuggestion:
    product_id: str
    product_name: str
    sku: str
    current_stock: float
    suggested_order_quantity: int
    urgency: str
    priority: str
    priority_color: str
    reason: str
    threshold: float = 0.0
    is_chinese_vendor: bool = False
    vendor: str = ""
    days_inv_in_hand: float = 0.0
    days_inv_total: float = 0.0
    is_base_unit: bool = False
    pack_size: int = 1
    bundled_skus: List[str] = field(default_factory=list)
    final_order_quantity: int = 0


@dataclass
class InventoryMetrics:
    total_products: int = 0
    total_value: float = 0.0
    low_stock_items: int = 0
    out_of_stock_items: int = 0
    overstock_items: int = 0
    average_turnover_rate: float = 0.0
    avg_drr: float = 0.0
    avg_doc: float = 0.0
    target_achievement: float = 0.0
    inventory_health_score: float = 0.0
    total_transit: float = 0.0
    items_in_transit: int = 0
    total_to_order: float = 0.0
    items_to_order: int = 0
    avg_pasd: float = 0.0
    overstock_rate: float = 0.0
    stockout_rate: float = 0.0

    @classmethod
    def from_mapping(cls, data):
        """
        Builds metrics from a backend payload.
        The RPC returns camelCase keys (``totalProducts``, ``avgDRR``); snake_case is accepted too.
        """
        if not isinstance(data, dict):
            return cls()

        lookup = {key.replace("_", "").lower(): value for key, value in data.items()}
        values = {}
        for f in fields(cls):
            raw = lookup.get(f.name.replace("_", "").lower())
            if raw is None:
                continue
            number = safe_number(raw, 0)
            values[f.name] = int(number) if f.type is int else number
        return cls(**values)


def products_to_dataframe(products):
    if not products:
        return pd.DataFrame()
    df = pd.DataFrame([asdict(p) for p in products])
    df["on_hand"] = [p.on_hand for p in products]
    return df
