# stock_dashboard/services/order_suggestions.py
import re

from services.models import OrderSuggestion

PRIORITY_STYLES = {
    "P1": ("high", "#ef4444"),
    "P2": ("medium", "#f59e0b"),
    "P3": ("low", "#22c55e"),
}
CHINESE_VENDOR = re.compile(r"\b(china|chinese|cn)\b", re.IGNORECASE)


def is_chinese_vendor(vendor):
    return bool(vendor and CHINESE_VENDOR.search(vendor))


def order_quantity(product):
    """Units to order for a record; pack members are folded into their base unit."""
    if product.is_base_unit:
        return product.final_to_order_base_units
    if product.base_unit_id and product.base_unit_id != product.id:
        return 0
    return int(round(product.to_order))


def classify_priority(product):
    if product.is_out_of_stock or product.days_inv_total < product.lead_time:
        return "P1"
    if product.days_inv_total < product.lead_time + product.order_freq:
        return "P2"
    return "P3"


def _reason(product, priority):
    if product.is_out_of_stock:
        return "Out of stock"
    if priority == "P1":
        return f"{product.days_inv_total:.0f} days of cover, below the {product.lead_time:.0f}-day lead time"
    if priority == "P2":
        return f"{product.days_inv_total:.0f} days of cover will not last until the next order cycle"
    return "Routine replenishment"


def build_order_suggestions(products):
    """One suggestion per product (or bundle group) with a positive order quantity, most urgent first."""
    suggestions = []
    for product in products:
        quantity = order_quantity(product)
        if quantity <= 0:
            continue
        priority = classify_priority(product)
        urgency, color = PRIORITY_STYLES[priority]
        suggestions.append(OrderSuggestion(
            product_id=product.id,
            product_name=product.name,
            sku=product.sku,
            current_stock=product.on_hand,
            suggested_order_quantity=int(round(product.to_order)),
            urgency=urgency,
            priority=priority,
            priority_color=color,
            reason=_reason(product, priority),
            threshold=product.reorder_threshold,
            is_chinese_vendor=is_chinese_vendor(product.vendor),
            vendor=product.vendor,
            days_inv_in_hand=product.days_inv_in_hand,
            days_inv_total=product.days_inv_total,
            is_base_unit=product.is_base_unit,
            pack_size=product.pack_size,
            bundled_skus=list(product.bundled_skus),
            final_order_quantity=quantity,
        ))

    suggestions.sort(key=lambda s: (s.priority, s.days_inv_total))
    return suggestions


def format_order_email(suggestions, report_month=""):
    """Plain-text order list for the Gmail send. Returns (subject, body)."""
    title = f"Order suggestions - {report_month}" if report_month else "Order suggestions"
    lines = [title, ""]
    if not suggestions:
        lines.append("Nothing to order.")
    for s in suggestions:
        line = f"[{s.priority}] {s.sku or '-'} {s.product_name}: order {s.final_order_quantity} units"
        if s.bundled_skus:
            line += f" (covers {', '.join(s.bundled_skus)})"
        if s.vendor:
            line += f" - vendor {s.vendor}"
        lines.append(line)
    lines.extend(["", f"Total lines: {len(suggestions)}"])
    return title, "\n".join(lines)
