# stock_dashboard/utils/data_loader.py
import logging
import streamlit as st
from datetime import datetime
from connectors.supabase_connector import SupabaseConnector
from connectors.google_drive_connector import GoogleDriveConnector, DRIVE_SCOPES
from services.bundle_calculator import ThresholdSettings, calculate_bundle_information
from services.data_processor import record_from_backend_row, product_to_backend_row
from services.models import InventoryMetrics
from utils.config_loader import APP_CONFIG, get_google_credentials
from utils.session_state import init_state, upload_data
from utils.spreadsheet_reader import read_spreadsheet, SpreadsheetError

logger = logging.getLogger(__name__)


def get_threshold_settings():
    return ThresholdSettings.from_config(APP_CONFIG.get('thresholds', {}))


def get_supabase_connector():
    """Returns a connector, or None when the backend is not configured."""
    if "error" in APP_CONFIG:
        logger.error(f"Configuration Error: {APP_CONFIG['error']}")
        return None
    supabase_config = APP_CONFIG.get('supabase', {})
    if not supabase_config.get('url') or not supabase_config.get('api_key'):
        return None
    return SupabaseConnector(url=supabase_config['url'], api_key=supabase_config['api_key'])


def get_drive_connector():
    credentials = get_google_credentials(DRIVE_SCOPES)
    if credentials is None:
        return None
    return GoogleDriveConnector(credentials)


def _rpc_products(function_name, overstock=False):
    connector = get_supabase_connector()
    if connector is None:
        return []
    try:
        data = connector.rpc(function_name) or []
        return [record_from_backend_row(item, overstock=overstock) for item in data]
    except Exception as e:
        logger.error(f"Error calling {function_name}: {e}")
        return []


@st.cache_data(ttl=3600)  # Cache data for 1 hour
def load_products():
    """
    Fetches the product table from the backend and runs the bundle pass over it.
    :return: (list of Product, fetch timestamp). Empty list when the backend is unavailable.
    """
    connector = get_supabase_connector()
    if connector is None:
        return [], None

    table = APP_CONFIG['supabase'].get('products_table', 'main')
    df = connector.get_table_as_dataframe(table)
    timestamp = datetime.now()
    if df.empty:
        logger.warning(f"Product table '{table}' is empty.")
        return [], timestamp

    df = df.astype(object).where(df.notna(), None)
    products = [record_from_backend_row(row) for row in df.to_dict(orient="records")]
    logger.info(f"Fetched {len(products)} products from the backend.")
    return calculate_bundle_information(products, get_threshold_settings()), timestamp


@st.cache_data(ttl=3600)
def load_low_stock_items():
    return _rpc_products('get_low_stock_items')


@st.cache_data(ttl=3600)
def load_overstock_items():
    return _rpc_products('get_overstock_items', overstock=True)


@st.cache_data(ttl=3600)
def load_inventory_metrics():
    """Server-side KPIs. Returns None when the backend is not configured or the RPC fails."""
    connector = get_supabase_connector()
    if connector is None:
        return None
    try:
        data = connector.rpc('calculate_inventory_metrics')
    except Exception as e:
        logger.error(f"Error fetching inventory metrics: {e}")
        return None
    if isinstance(data, list):
        data = data[0] if data else None
    if not data:
        logger.warning("calculate_inventory_metrics returned no data.")
        return None
    return InventoryMetrics.from_mapping(data)


def save_products(products):
    """Inserts products into the backend table. Returns the number of rows saved, or None on failure."""
    connector = get_supabase_connector()
    if connector is None:
        logger.error("Cannot save products: Supabase is not configured.")
        return None
    table = APP_CONFIG['supabase'].get('products_table', 'main')
    inserted = connector.insert_rows(table, [product_to_backend_row(p) for p in products])
    if inserted is None:
        return None
    st.cache_data.clear()
    return len(inserted)


def load_file_bytes(data, file_name, state=None):
    """
    Parses an uploaded or downloaded file and stores its products in the session.
    :return: (ok, message) for the UI.
    """
    try:
        rows = read_spreadsheet(data, file_name)
    except SpreadsheetError as e:
        return False, str(e)

    products = upload_data(rows, file_name=file_name, state=state, settings=get_threshold_settings())
    if not products:
        return False, f"No products could be read from {file_name}."
    return True, f"Loaded {len(rows)} records from {file_name}"


def load_file_from_drive(file, connector=None, state=None):
    """Downloads a Drive file (dict from list_spreadsheets) and loads it into the session."""
    connector = connector or get_drive_connector()
    if connector is None:
        return False, "Could not get access to Google Drive."
    try:
        data = connector.download_file(file['id'], file.get('mimeType'))
    except Exception as e:
        logger.error(f"Error loading file from Google Drive: {e}")
        return False, "Failed to load file from Google Drive."
    return load_file_bytes(data, connector.file_name_for_download(file), state=state)


AUTO_LOAD_FLAG = "auto_load_attempted"


def auto_load_latest_from_drive(connector=None, state=None):
    """
    Loads the newest Drive inventory file once per session, when nothing has been loaded yet.
    :return: (ok, message), or None when no load was attempted.
    """
    state = init_state(state)
    if state.get(AUTO_LOAD_FLAG) or state["products"]:
        return None
    state[AUTO_LOAD_FLAG] = True

    connector = connector or get_drive_connector()
    if connector is None:
        logger.info("Google Drive is not configured; skipping auto-load.")
        return None
    ok, message = load_latest_from_drive(connector=connector, state=state)
    if ok:
        logger.info(f"Auto-loaded latest file from Google Drive: {state.get('current_file_name')}")
    else:
        logger.warning(f"Auto-load from Google Drive failed: {message}")
    return ok, message


def load_latest_from_drive(name_contains=None, connector=None, state=None):
    connector = connector or get_drive_connector()
    if connector is None:
        return False, "Could not get access to Google Drive."
    name_contains = name_contains or APP_CONFIG.get('google_drive', {}).get('latest_file_query', 'inventory')
    try:
        latest = connector.find_latest_file(name_contains=name_contains)
    except Exception as e:
        logger.error(f"Error auto-loading latest file: {e}")
        return False, "Could not refresh data from Google Drive."
    if latest is None:
        return False, "Could not find inventory files in Google Drive."
    return load_file_from_drive(latest, connector=connector, state=state)
