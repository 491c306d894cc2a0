# stock_dashboard/services/inventory_metrics.py
import pandas as pd

from services.models import InventoryMetrics


def _mean(values):
    values = list(values)
    return sum(values) / len(values) if values else 0.0


def _pct(part, whole):
    return part / whole * 100 if whole else 0.0


def is_healthy(product):
    return not (product.is_low_stock or product.is_out_of_stock or product.is_overstock)


def stock_status(product):
    if product.is_low_stock:
        return "Low Stock"
    if product.is_overstock:
        return "Overstock"
    if product.is_out_of_stock:
        return "Out of Stock"
    return "Healthy"


def stock_status_counts(products):
    """One status per product, so the counts add up to the product count."""
    counts = pd.Series([stock_status(p) for p in products], dtype=object).value_counts()
    return counts.reindex(["Healthy", "Low Stock", "Out of Stock", "Overstock"], fill_value=0)


def compute_inventory_metrics(products):
    """Aggregate KPIs for the dashboard tiles. An empty list gives all-zero metrics."""
    if not products:
        return InventoryMetrics()

    total = len(products)
    low = sum(1 for p in products if p.is_low_stock)
    out = sum(1 for p in products if p.is_out_of_stock)
    over = sum(1 for p in products if p.is_overstock)
    healthy = sum(1 for p in products if is_healthy(p))

    selling = [p for p in products if p.pasd > 0]
    stocked = [p for p in products if p.on_hand > 0]
    targeted = [p for p in products if p.ct_target_inventory > 0]
    target_total = sum(p.ct_target_inventory for p in targeted)

    return InventoryMetrics(
        total_products=total,
        total_value=round(sum(p.on_hand for p in products), 2),
        low_stock_items=low,
        out_of_stock_items=out,
        overstock_items=over,
        average_turnover_rate=round(_mean(p.pasd * 30 / p.on_hand for p in stocked), 2),
        avg_drr=round(_mean(p.pasd for p in products), 2),
        avg_doc=round(_mean(p.days_inv_in_hand for p in selling), 2),
        target_achievement=round(_pct(sum(p.on_hand for p in targeted), target_total), 2),
        inventory_health_score=round(_pct(healthy, total), 2),
        total_transit=round(sum(p.transit for p in products), 2),
        items_in_transit=sum(1 for p in products if p.transit > 0),
        total_to_order=round(sum(p.to_order for p in products), 2),
        items_to_order=sum(1 for p in products if p.to_order > 0),
        avg_pasd=round(_mean(p.pasd for p in selling), 2),
        overstock_rate=round(_pct(over, total), 2),
        stockout_rate=round(_pct(out, total), 2),
    )


def get_low_stock_items(products):
    return [p for p in products if p.is_low_stock]


def get_overstock_items(products):
    return [p for p in products if p.is_overstock]


def category_summary(products):
    """Per-category counts and stock totals, used for the dashboard charts."""
    if not products:
        return pd.DataFrame(columns=["Category", "Products", "On Hand", "Low Stock", "Overstock"])

    df = pd.DataFrame({
        "Category": [p.category for p in products],
        "Products": 1,
        "On Hand": [p.on_hand for p in products],
        "Low Stock": [int(p.is_low_stock) for p in products],
        "Overstock": [int(p.is_overstock) for p in products],
    })
    return df.groupby("Category", as_index=False).sum().sort_values("Products", ascending=False, kind="stable").reset_index(drop=True)
