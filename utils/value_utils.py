# stock_dashboard/utils/value_utils.py
import math
import re

# Cell values Excel/Sheets write when a formula fails
SPREADSHEET_ERRORS = {"#div/0!", "#n/a", "#ref!", "#value!", "#name?", "#num!", "#null!", "-", "--", "n/a", "na"}


def exists(value):
    """True when a cell holds something other than None, NaN or blank text."""
    if value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def safe_number(value, default=0.0):
    """
    Coerces a spreadsheet cell into a float.

    Accepts ints/floats, numeric strings with thousands separators, and a
    trailing percent sign. Anything unusable returns `default`.
    """
    if not exists(value) or isinstance(value, bool):
        return default

    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if text.lower() in SPREADSHEET_ERRORS:
            return default
        text = text.replace(",", "").rstrip("%").strip()
        try:
            number = float(text)
        except ValueError:
            return default

    if math.isnan(number) or math.isinf(number):
        return default
    return number


def safe_string(value, default=""):
    if not exists(value):
        return default
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = str(value).strip()
    return text or default


def normalize_header(name):
    return re.sub(r"[^a-z0-9]", "", str(name).lower())
