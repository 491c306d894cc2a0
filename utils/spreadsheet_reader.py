# stock_dashboard/utils/spreadsheet_reader.py
import io
import logging
from pathlib import Path

import pandas as pd

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".xlsx", ".xls", ".csv")


class SpreadsheetError(Exception):
    """Raised when an uploaded file cannot be turned into rows."""


class UnsupportedFileError(SpreadsheetError):
    pass


class EmptySpreadsheetError(SpreadsheetError):
    pass


def validate_file_name(file_name):
    if not file_name or Path(file_name).suffix.lower() not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileError("Please upload an Excel (.xlsx, .xls) or CSV file.")


def read_spreadsheet(data, file_name):
    """
    Reads the first worksheet (or the CSV) into a list of row dicts keyed by header.

    :param data: Raw file bytes, as received from the uploader or Google Drive.
    :param file_name: Used to pick the parser.
    :return: List of dicts. Blank cells are None.
    """
    validate_file_name(file_name)
    suffix = Path(file_name).suffix.lower()

    try:
        if suffix == ".csv":
            df = pd.read_csv(io.BytesIO(data))
        else:
            # sheet_name=0 -> first worksheet only
            df = pd.read_excel(io.BytesIO(data), sheet_name=0)
    except pd.errors.EmptyDataError as e:
        raise EmptySpreadsheetError(f"'{file_name}' doesn't contain any data.") from e
    except Exception as e:
        logger.error(f"Failed to parse '{file_name}': {e}")
        raise SpreadsheetError(f"There was an error reading '{file_name}'. Please check the format and try again.") from e

    df = df.dropna(how="all")
    if df.empty:
        raise EmptySpreadsheetError(f"'{file_name}' doesn't contain any data.")

    df = df.astype(object).where(pd.notna(df), None)
    rows = df.to_dict(orient="records")
    logger.info(f"Read {len(rows)} rows with columns {list(df.columns)} from '{file_name}'.")
    return rows
