# stock_dashboard/services/bundle_calculator.py
"""
Bundle reconciliation and stock-health flags.

The same item is often listed as a single unit and as packs ("Pack of 2",
"SKU-P6"). Orders are placed in single units, so every pack is converted
into base-unit equivalents and the group's order total is carried on the
base unit. The reorder threshold and low-stock / overstock flags are set in
the same pass.
"""
import logging
import math
import re
from dataclasses import dataclass, replace

from utils.value_utils import safe_number

logger = logging.getLogger(__name__)

# Pack phrases inside a variant or product name
PACK_PATTERNS = [
    re.compile(r"\bpack\s*of\s*(\d+)\b", re.IGNORECASE),
    re.compile(r"\bset\s*of\s*(\d+)\b", re.IGNORECASE),
    re.compile(r"\b(\d+)\s*[-\s]?\s*(?:pack|pk|pcs|pc)\b", re.IGNORECASE),
    re.compile(r"(?:^|\s)x\s*(\d+)\b", re.IGNORECASE),
]
# Pack suffixes at the end of a SKU: ABC-P2, ABC_PK3, ABC-PACK4, ABC-6PK
SKU_PACK_PATTERNS = [
    re.compile(r"[-_\s](?:P|PK|PACK)\s*(\d+)$", re.IGNORECASE),
    re.compile(r"[-_\s](\d+)\s*(?:P|PK|PACK)$", re.IGNORECASE),
]


@dataclass
class ThresholdSettings:
    default_lead_time: float = 30
    safety_stock_days: float = 0
    overstock_multiplier: float = 2.0

    @classmethod
    def from_config(cls, config):
        config = config or {}
        defaults = cls()
        return cls(
            default_lead_time=safe_number(config.get("default_lead_time"), defaults.default_lead_time),
            safety_stock_days=safe_number(config.get("safety_stock_days"), defaults.safety_stock_days),
            overstock_multiplier=safe_number(config.get("overstock_multiplier"), defaults.overstock_multiplier),
        )


def _first_pack_size(text, patterns):
    if not text:
        return None
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            size = int(match.group(1))
            if size >= 1:
                return size
    return None


def parse_pack_size(product):
    """Reads the pack size from the variant, then the name, then the SKU. Defaults to 1."""
    for text in (product.variant, product.name):
        size = _first_pack_size(text, PACK_PATTERNS)
        if size:
            return size
    return _first_pack_size(product.sku, SKU_PACK_PATTERNS) or 1


def _strip_pack(text, patterns):
    for pattern in patterns:
        text = pattern.sub(" ", text)
    return " ".join(text.split())


def base_unit_key(product):
    if product.product:
        variant = _strip_pack(product.variant, PACK_PATTERNS)
        parts = (product.brand, product.product, variant)
        return "|".join(" ".join(part.lower().split()) for part in parts)
    if product.sku:
        return "sku:" + _strip_pack(product.sku, SKU_PACK_PATTERNS).upper()
    return "id:" + product.id


def compute_reorder_threshold(product, settings):
    return product.pasd * product.lead_time + product.pasd * settings.safety_stock_days


def is_product_low_stock(product, settings):
    if product.on_hand <= 0:
        return product.pasd > 0 or product.mp_demand > 0
    if product.pasd <= 0:
        return False
    return product.on_hand + product.transit < compute_reorder_threshold(product, settings)


def is_product_overstocked(product, settings):
    if product.pasd <= 0:
        # Stock that is not selling at all
        return product.on_hand > 0
    cover_days = (product.lead_time + product.order_freq) * settings.overstock_multiplier
    return product.days_inv_total > cover_days


def calculate_bundle_information(products, settings=None):
    """
    Groups packs under their base unit and sets thresholds and stock flags.

    :param products: Product records, as returned by process_uploaded_data.
    :param settings: ThresholdSettings; defaults apply when omitted.
    :return: New Product records in the same order. The input list is not modified.
    """
    settings = settings or ThresholdSettings()

    pack_sizes = [parse_pack_size(p) for p in products]
    groups = {}
    for index, product in enumerate(products):
        groups.setdefault(base_unit_key(product), []).append(index)

    # index of the base unit for every record
    base_of = {}
    for members in groups.values():
        base_index = min(members, key=lambda i: (pack_sizes[i], i))
        for i in members:
            base_of[i] = base_index

    results = []
    for index, product in enumerate(products):
        base_index = base_of[index]
        base = products[base_index]
        is_base = index == base_index
        multiplier = pack_sizes[index] / pack_sizes[base_index]

        updated = replace(
            product,
            pack_size=pack_sizes[index],
            is_base_unit=is_base,
            base_unit_id=base.id,
            conversion_multiplier=multiplier,
            final_to_order_base_units=0,
            bundled_skus=[],
            sales_history=list(product.sales_history),
            tags=list(product.tags),
        )
        updated.reorder_threshold = compute_reorder_threshold(updated, settings)
        updated.is_out_of_stock = updated.on_hand <= 0
        updated.is_low_stock = is_product_low_stock(updated, settings)
        updated.is_overstock = not updated.is_low_stock and is_product_overstocked(updated, settings)
        results.append(updated)

    for members in groups.values():
        base = results[base_of[members[0]]]
        total = sum(results[i].to_order * results[i].conversion_multiplier for i in members)
        base.final_to_order_base_units = int(math.ceil(total))
        base.bundled_skus = [results[i].sku for i in members if results[i] is not base and results[i].sku]

    grouped = sum(1 for members in groups.values() if len(members) > 1)
    logger.info(f"Bundle pass: {len(products)} products, {len(groups)} base units, {grouped} multi-pack groups.")
    return results
