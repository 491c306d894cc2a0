# stock_dashboard/utils/session_state.py
"""
Holds the uploaded product data for the current browser session.

Functions take an optional `state` mapping so they can run against a plain
dict; in the app they default to st.session_state.
"""
import logging
from datetime import date

import streamlit as st

from services.bundle_calculator import ThresholdSettings, calculate_bundle_information
from services.data_processor import extract_report_month, process_uploaded_data
from services.inventory_metrics import get_low_stock_items as filter_low_stock
from services.inventory_metrics import get_overstock_items as filter_overstock

logger = logging.getLogger(__name__)

LAST_UPLOADED = "last_uploaded_name"
UPLOADER_VERSION = "uploader_version"


def _state(state):
    return st.session_state if state is None else state


def init_state(state=None):
    state = _state(state)
    state.setdefault("products", [])
    state.setdefault("is_using_mock_data", False)
    state.setdefault("current_file_name", None)
    state.setdefault("current_month", date.today().strftime("%B"))
    return state


def upload_data(rows, file_name=None, state=None, settings=None):
    """
    Runs uploaded rows through normalization and the bundle/threshold pass and stores the result.

    :return: The stored products; an empty list when processing failed.
    """
    state = init_state(state)
    settings = settings or ThresholdSettings()
    try:
        if not isinstance(rows, list) or not rows:
            logger.error("No valid data to process.")
            return []

        products = process_uploaded_data(rows, default_lead_time=settings.default_lead_time)
        if not products:
            logger.error("No products were created from the data.")
            return []

        products = calculate_bundle_information(products, settings)
        base_units = [p for p in products if p.is_base_unit and p.bundled_skus]
        overstock = [p for p in products if p.is_overstock]
        logger.info(f"Loaded {len(products)} products: {len(base_units)} base units with packs, {len(overstock)} overstock.")

        state["products"] = products
        state["is_using_mock_data"] = False
        if file_name:
            state["current_file_name"] = file_name
        state["current_month"] = extract_report_month(rows, file_name)
        return products
    except Exception as e:
        logger.error(f"Error in upload_data: {e}")
        state["products"] = []
        return []


def add_product(product, settings=None, state=None):
    """Adds a manually entered item and reruns the bundle pass over the session data."""
    state = init_state(state)
    products = list(state["products"]) + [product]
    state["products"] = calculate_bundle_information(products, settings)
    return state["products"]


def reset_data(state=None):
    state = _state(state)
    state["products"] = []
    state["is_using_mock_data"] = False
    state["current_file_name"] = None
    state["current_month"] = date.today().strftime("%B")


def uploader_key(state=None):
    """Widget key for the file uploader; changes every time the loaded data is cleared."""
    return f"uploader_{_state(state).get(UPLOADER_VERSION, 0)}"


def clear_loaded_data(state=None):
    """Resets the session data and empties the file uploader so its file is not loaded again."""
    state = _state(state)
    reset_data(state)
    state.pop(LAST_UPLOADED, None)
    state[UPLOADER_VERSION] = state.get(UPLOADER_VERSION, 0) + 1


def is_new_upload(file_name, state=None):
    return bool(file_name) and file_name != _state(state).get(LAST_UPLOADED)


def mark_uploaded(file_name, state=None):
    _state(state)[LAST_UPLOADED] = file_name


def get_products(state=None):
    return init_state(state)["products"]


def get_current_month(state=None):
    return init_state(state)["current_month"]


def get_low_stock_items(state=None, backend_items=None):
    """Low-stock products from the session upload; falls back to the backend list when nothing was uploaded."""
    products = get_products(state)
    if products:
        return filter_low_stock(products)
    return list(backend_items or [])


def get_overstock_items(state=None, backend_items=None):
    products = get_products(state)
    if products:
        return filter_overstock(products)
    return list(backend_items or [])
