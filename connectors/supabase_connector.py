# stock_dashboard/connectors/supabase_connector.py
import requests
import pandas as pd
import logging

logger = logging.getLogger(__name__)

class SupabaseConnector:
    page_size = 1000  # PostgREST default max-rows
    batch_size = 500

    def __init__(self, url, api_key, timeout=30):
        if not api_key:
            logger.error("Supabase API key is not provided.")
            raise ValueError("Supabase API key is required.")
        if not url:
            logger.error("Supabase URL is not provided.")
            raise ValueError("Supabase URL is required.")
        self.base_url = url.rstrip('/')
        self.timeout = timeout
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def rpc(self, function_name, params=None):
        """
        Calls a Postgres function exposed by the backend.
        :param function_name: Name of the SQL function, e.g. 'get_low_stock_items'.
        :param params: Optional dict of named arguments.
        :return: The decoded JSON result. Raises requests.exceptions.RequestException on failure.
        """
        url = f"{self.base_url}/rest/v1/rpc/{function_name}"
        logger.info(f"Calling RPC '{function_name}'.")
        response = requests.post(url, headers=self.headers, json=params or {}, timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def get_table_rows(self, table):
        all_rows = []
        start = 0
        while True:
            url = f"{self.base_url}/rest/v1/{table}?select=*"
            headers = dict(self.headers, **{"Range-Unit": "items", "Range": f"{start}-{start + self.page_size - 1}"})
            try:
                response = requests.get(url, headers=headers, timeout=self.timeout)
                response.raise_for_status()
                results = response.json() or []
                all_rows.extend(results)
                if len(results) < self.page_size:
                    break
                start += self.page_size
            except requests.exceptions.RequestException as e:
                logger.error(f"Error fetching data from table '{table}', offset {start}: {e}")
                raise
        return all_rows

    def get_table_as_dataframe(self, table):
        logger.info(f"Fetching data for table: {table}")
        try:
            rows = self.get_table_rows(table)
            if not rows:
                logger.warning(f"No data found in table '{table}'.")
                return pd.DataFrame()
            df = pd.DataFrame(rows)
            logger.info(f"Successfully fetched {len(df)} rows from table '{table}'.")
            return df
        except Exception as e:
            logger.error(f"Failed to get data for table '{table}': {e}")
            return pd.DataFrame()

    def insert_rows(self, table, rows_data):
        """
        Inserts rows into a table in batches.
        :param table: Table name.
        :param rows_data: A list of dictionaries, one per row.
        :return: List of inserted rows, or None on failure.
        """
        url = f"{self.base_url}/rest/v1/{table}"
        headers = dict(self.headers, Prefer="return=representation")
        inserted = []
        for i in range(0, len(rows_data), self.batch_size):
            chunk = rows_data[i:i + self.batch_size]
            try:
                response = requests.post(url, headers=headers, json=chunk, timeout=self.timeout)
                response.raise_for_status()
                inserted.extend(response.json() or [])
                logger.info(f"Inserted {len(chunk)} row(s) into '{table}'.")
            except requests.exceptions.RequestException as e:
                body = e.response.text if e.response is not None else ""
                logger.error(f"Failed to insert rows into '{table}': {e} - Response: {body}")
                return None
        return inserted

    def delete_rows(self, table, column, values):
        """
        Deletes rows whose `column` is one of `values`, in batches.
        :return: True on success, False on failure.
        """
        if not values:
            logger.info(f"Table '{table}': No values provided for deletion.")
            return True

        url = f"{self.base_url}/rest/v1/{table}"
        for i in range(0, len(values), self.batch_size):
            chunk = values[i:i + self.batch_size]
            in_filter = ",".join(f'"{v}"' for v in chunk)
            logger.info(f"Table '{table}': Deleting chunk {i // self.batch_size + 1}, containing {len(chunk)} row(s).")
            try:
                response = requests.delete(url, headers=self.headers, params={column: f"in.({in_filter})"}, timeout=self.timeout)
                response.raise_for_status()
            except requests.exceptions.RequestException as e:
                body = e.response.text if e.response is not None else ""
                logger.error(f"Failed to delete chunk from '{table}': {e} - Response: {body}")
                return False
        return True
