# stock_dashboard/utils/config_loader.py
import yaml
import os
import logging
from pathlib import Path
import streamlit as st
import gspread
from google.oauth2.service_account import Credentials


logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

SETTINGS_PATH = Path(__file__).resolve().parent.parent / "settings.yaml"

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets.readonly"]
DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive.readonly"]

DEFAULT_CONFIG = {
    "supabase": {"url": "", "api_key": "", "products_table": "main"},
    "google_drive": {"latest_file_query": "inventory", "monthly_file_query": "monthly inventory"},
    "gmail": {"default_recipient": ""},
    "thresholds": {"default_lead_time": 30, "safety_stock_days": 0, "overstock_multiplier": 2.0},
    "auth": {"username": "admin", "password": "admin"},
    "google_sheet_settings": {},
}

# settings.yaml section each Google Sheet key belongs to
SHEET_SETTING_SECTIONS = {
    "default_lead_time": "thresholds",
    "safety_stock_days": "thresholds",
    "overstock_multiplier": "thresholds",
    "latest_file_query": "google_drive",
    "monthly_file_query": "google_drive",
    "default_recipient": "gmail",
    "products_table": "supabase",
}

ENV_PREFIX = "STREAMLIT_SECRETS_GOOGLE_CREDENTIALS_"


def _service_account_info():
    try:
        # Try to get secrets from Streamlit (when run in the app)
        creds_dict = dict(st.secrets["google_credentials"])
        logging.info("Successfully loaded Google credentials from st.secrets.")
        return creds_dict
    except Exception:
        logging.info("st.secrets not available. Falling back to environment variables.")

    private_key = os.environ.get(f"{ENV_PREFIX}PRIVATE_KEY", "").replace('\\n', '\n')
    if not all([
        os.environ.get(f"{ENV_PREFIX}TYPE"),
        os.environ.get(f"{ENV_PREFIX}PROJECT_ID"),
        private_key,
        os.environ.get(f"{ENV_PREFIX}CLIENT_EMAIL"),
    ]):
        logging.error("One or more required Google credential environment variables are missing.")
        return None

    creds_dict = {
        "type": os.environ.get(f"{ENV_PREFIX}TYPE"),
        "project_id": os.environ.get(f"{ENV_PREFIX}PROJECT_ID"),
        "private_key_id": os.environ.get(f"{ENV_PREFIX}PRIVATE_KEY_ID"),
        "private_key": private_key,
        "client_email": os.environ.get(f"{ENV_PREFIX}CLIENT_EMAIL"),
        "client_id": os.environ.get(f"{ENV_PREFIX}CLIENT_ID"),
        "auth_uri": os.environ.get(f"{ENV_PREFIX}AUTH_URI"),
        "token_uri": os.environ.get(f"{ENV_PREFIX}TOKEN_URI"),
        "auth_provider_x509_cert_url": os.environ.get(f"{ENV_PREFIX}AUTH_PROVIDER_X509_CERT_URL"),
    }
    logging.info("Successfully loaded Google credentials from environment variables.")
    return creds_dict


def get_google_credentials(scopes):
    creds_dict = _service_account_info()
    if not creds_dict:
        logging.error("Could not load Google credentials from any source.")
        return None
    try:
        return Credentials.from_service_account_info(creds_dict, scopes=scopes)
    except Exception as e:
        logging.error(f"Failed to build Google credentials: {e}")
        return None


@st.cache_resource
def get_gspread_client():
    creds = get_google_credentials(SHEETS_SCOPES)
    if creds is None:
        return None
    try:
        client = gspread.authorize(creds)
        logging.info("Successfully connected to Google Sheets API.")
        return client
    except Exception as e:
        logging.error(f"Failed to connect to Google Sheets API with loaded credentials: {e}")
        return None


def get_settings_from_gsheet(client, spreadsheet_id, worksheet_name):
    try:
        spreadsheet = client.open_by_key(spreadsheet_id)
        worksheet = spreadsheet.worksheet(worksheet_name)
        records = worksheet.get_all_records()
        settings_dict = {row['Setting_Key']: row['Setting_Value'] for row in records if row.get('Setting_Key')}
        logging.info(f"Successfully fetched {len(settings_dict)} settings from Google Sheet.")
        return settings_dict
    except gspread.exceptions.WorksheetNotFound:
        logging.error(f"Settings worksheet '{worksheet_name}' not found in the Google Sheet.")
        return {"error": f"Worksheet '{worksheet_name}' not found."}
    except Exception as e:
        logging.error(f"Failed to fetch settings from GSheet: {e}")
        return {"error": str(e)}


class SettingsError(ValueError):
    pass


def read_settings_file(path):
    """
    Reads settings.yaml on top of DEFAULT_CONFIG, section by section.
    Blank sections and keys keep their defaults. Raises SettingsError when a section is not a mapping.
    """
    with open(path, 'r') as f:
        loaded = yaml.safe_load(f) or {}
    if not isinstance(loaded, dict):
        raise SettingsError("settings.yaml must contain named sections.")

    config = {section: dict(values) for section, values in DEFAULT_CONFIG.items()}
    for section, values in loaded.items():
        if values is None:
            continue
        if not isinstance(values, dict):
            raise SettingsError(f"Section '{section}' in settings.yaml must be a mapping.")
        config.setdefault(section, {}).update({k: v for k, v in values.items() if v is not None})
    return config


def apply_env_overrides(config, environ=None):
    environ = os.environ if environ is None else environ
    if environ.get('SUPABASE_URL'):
        config['supabase']['url'] = environ['SUPABASE_URL']
        logging.info("Loaded Supabase URL from environment variable.")
    if environ.get('SUPABASE_KEY'):
        config['supabase']['api_key'] = environ['SUPABASE_KEY']
        logging.info("Loaded Supabase API key from environment variable.")
    return config


def apply_sheet_overrides(config, sheet_settings):
    applied = 0
    for key, value in sheet_settings.items():
        section = SHEET_SETTING_SECTIONS.get(key)
        if section is None:
            logging.warning(f"Ignoring unknown sheet setting '{key}'.")
            continue
        config[section][key] = value
        applied += 1
    logging.info(f"Applied {applied} setting(s) from Google Sheet.")
    return config


@st.cache_data(show_spinner=False)
def load_app_config(path=str(SETTINGS_PATH)):
    """Loads config from YAML, then environment variables, then optional Google Sheet overrides."""
    try:
        config = read_settings_file(path)
    except FileNotFoundError:
        return {"error": "settings.yaml not found."}
    except yaml.YAMLError as e:
        return {"error": f"settings.yaml is not valid YAML: {e}"}
    except SettingsError as e:
        logging.error(f"Invalid settings.yaml: {e}")
        return {"error": str(e)}

    apply_env_overrides(config)

    if not config['supabase'].get('url') or not config['supabase'].get('api_key'):
        logging.warning("Missing Supabase URL or key. Set SUPABASE_URL and SUPABASE_KEY to enable the backend.")

    gsheet_settings = config.get("google_sheet_settings") or {}
    spreadsheet_id = gsheet_settings.get("spreadsheet_id")
    worksheet_name = gsheet_settings.get("worksheet_name")
    if spreadsheet_id and worksheet_name:
        gsheet_client = get_gspread_client()
        if gsheet_client is None:
            return {"error": "Failed to connect to Google Sheets."}
        dynamic_settings = get_settings_from_gsheet(gsheet_client, spreadsheet_id, worksheet_name)
        if "error" in dynamic_settings:
            return dynamic_settings
        apply_sheet_overrides(config, dynamic_settings)

    return config

APP_CONFIG = load_app_config()
