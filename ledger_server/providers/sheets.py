"""Google Sheets v4 values API as a ledger store."""

from __future__ import annotations

import json
from typing import Sequence
from urllib.parse import quote

import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

from ledger_server.errors import LedgerStoreError, LedgerWriteError
from ledger_server.ledger.store import CellWrite, Row
from ledger_server.providers.http import ProviderError, fetch_json

SHEETS_BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"
SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


def load_credentials(
    service_account_file: str | None = None,
    service_account_json: str | None = None,
) -> service_account.Credentials:
    if service_account_json:
        try:
            info = json.loads(service_account_json)
        except json.JSONDecodeError as error:
            raise ValueError("GOOGLE_SERVICE_ACCOUNT_JSON is not valid JSON.") from error
        if isinstance(info.get("private_key"), str):
            info["private_key"] = info["private_key"].replace("\\n", "\n")
        return service_account.Credentials.from_service_account_info(info, scopes=SHEETS_SCOPES)
    if service_account_file:
        return service_account.Credentials.from_service_account_file(service_account_file, scopes=SHEETS_SCOPES)
    raise ValueError("Set GOOGLE_SERVICE_ACCOUNT_JSON or GOOGLE_SERVICE_ACCOUNT_FILE for the Sheets ledger.")


class GoogleSheetsLedgerStore:
    def __init__(
        self,
        sheet_id: str,
        session: requests.Session,
        timeout_seconds: float = 15.0,
    ) -> None:
        self.sheet_id = sheet_id
        self.session = session
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_service_account(
        cls,
        sheet_id: str,
        service_account_file: str | None = None,
        service_account_json: str | None = None,
        timeout_seconds: float = 15.0,
    ) -> "GoogleSheetsLedgerStore":
        credentials = load_credentials(service_account_file, service_account_json)
        return cls(sheet_id, AuthorizedSession(credentials), timeout_seconds)

    def _url(self, suffix: str) -> str:
        return f"{SHEETS_BASE_URL}/{self.sheet_id}{suffix}"

    def read_range(self, range_ref: str) -> list[Row]:
        try:
            data = fetch_json(
                self._url(f"/values/{quote(range_ref, safe='')}"),
                provider="sheets",
                timeout_seconds=self.timeout_seconds,
                params={
                    "valueRenderOption": "UNFORMATTED_VALUE",
                    "dateTimeRenderOption": "FORMATTED_STRING",
                    "majorDimension": "ROWS",
                },
                session=self.session,
            )
        except ProviderError as error:
            raise LedgerStoreError(f"Ledger read failed for {range_ref}: {error.message}", status=error.status) from error
        except GoogleAuthError as error:
            raise LedgerStoreError(f"Ledger read failed for {range_ref}: credentials rejected: {error}") from error
        values = data.get("values") if isinstance(data, dict) else None
        if not isinstance(values, list):
            return []
        return [list(row) if isinstance(row, list) else [] for row in values]

    def write_range(self, range_ref: str, rows: list[Row]) -> None:
        self.batch_write([CellWrite(range_ref=range_ref, values=rows)])

    def batch_write(self, writes: Sequence[CellWrite]) -> None:
        if not writes:
            return
        body = {
            "valueInputOption": "RAW",
            "data": [{"range": write.range_ref, "values": write.values} for write in writes],
        }
        try:
            fetch_json(
                self._url("/values:batchUpdate"),
                provider="sheets",
                timeout_seconds=self.timeout_seconds,
                session=self.session,
                method="POST",
                json_body=body,
            )
        except ProviderError as error:
            raise LedgerWriteError(f"Ledger batch write failed: {error.message}", status=error.status) from error
        except GoogleAuthError as error:
            raise LedgerWriteError(f"Ledger batch write failed: credentials rejected: {error}") from error
