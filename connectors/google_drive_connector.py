# stock_dashboard/connectors/google_drive_connector.py
import requests
import logging
from google.auth.transport.requests import Request

logger = logging.getLogger(__name__)

DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files"
DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive.readonly"]

GOOGLE_SHEET_MIME = "application/vnd.google-apps.spreadsheet"
XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
SPREADSHEET_MIME_TYPES = [
    XLSX_MIME,
    "application/vnd.ms-excel",
    "text/csv",
    GOOGLE_SHEET_MIME,
]


class GoogleDriveConnector:
    def __init__(self, credentials, timeout=60):
        if credentials is None:
            logger.error("Google Drive credentials are not provided.")
            raise ValueError("Google Drive credentials are required.")
        self.credentials = credentials
        self.timeout = timeout

    def _headers(self):
        if not self.credentials.valid:
            self.credentials.refresh(Request())
        return {"Authorization": f"Bearer {self.credentials.token}"}

    @staticmethod
    def build_query(name_contains=None):
        mime_clause = " or ".join(f"mimeType='{m}'" for m in SPREADSHEET_MIME_TYPES)
        query = f"({mime_clause}) and trashed=false"
        if name_contains:
            escaped = name_contains.replace("'", "\\'")
            query += f" and name contains '{escaped}'"
        return query

    def list_spreadsheets(self, name_contains=None, page_size=50, order_by="modifiedTime desc"):
        """
        Lists spreadsheet files visible to the account, newest first.
        :return: A list of dicts with id, name, mimeType, modifiedTime.
        """
        params = {
            "q": self.build_query(name_contains),
            "orderBy": order_by,
            "pageSize": page_size,
            "fields": "files(id,name,mimeType,modifiedTime,createdTime)",
        }
        response = requests.get(DRIVE_FILES_URL, headers=self._headers(), params=params, timeout=self.timeout)
        response.raise_for_status()
        files = response.json().get("files", [])
        logger.info(f"Found {len(files)} spreadsheet(s) in Google Drive (filter: {name_contains!r}).")
        return files

    def find_latest_file(self, name_contains="inventory"):
        files = self.list_spreadsheets(name_contains=name_contains, page_size=1)
        if not files:
            logger.info(f"No files matching '{name_contains}' found in Google Drive.")
            return None
        return files[0]

    def download_file(self, file_id, mime_type=None):
        """Downloads a file's bytes. Native Google Sheets are exported as xlsx."""
        if mime_type == GOOGLE_SHEET_MIME:
            url = f"{DRIVE_FILES_URL}/{file_id}/export"
            params = {"mimeType": XLSX_MIME}
        else:
            url = f"{DRIVE_FILES_URL}/{file_id}"
            params = {"alt": "media"}
        response = requests.get(url, headers=self._headers(), params=params, timeout=self.timeout)
        response.raise_for_status()
        logger.info(f"Downloaded {len(response.content)} bytes for Drive file {file_id}.")
        return response.content

    @staticmethod
    def file_name_for_download(file):
        name = file.get("name", "")
        if file.get("mimeType") == GOOGLE_SHEET_MIME and not name.lower().endswith(".xlsx"):
            return f"{name}.xlsx"
        return name
