"""Google Sheets helpers for highlighting checked cells."""

from __future__ import annotations

import os
from collections.abc import Sequence
from typing import Any

from google.oauth2 import service_account
from googleapiclient.discovery import build

from .logging import jlog

SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

GREEN = {"red": 0, "green": 1, "blue": 0}
RED = {"red": 1, "green": 0, "blue": 0}
YELLOW = {"red": 1, "green": 1, "blue": 0}


def coerce_flag(value: Any) -> bool:
    """True for ``True``, ``"true"`` or ``1``; everything else is false."""

    return value is True or value == "true" or (value == 1 and not isinstance(value, bool))


def cell_color(cell: dict[str, Any]) -> dict[str, float]:
    """Pick a background color; ``isValid`` beats ``isHttps`` beats ``isHttp``."""

    if cell.get("isValid") is not None:
        return dict(GREEN if coerce_flag(cell["isValid"]) else RED)
    if coerce_flag(cell.get("isHttps")):
        return dict(GREEN)
    if coerce_flag(cell.get("isHttp")):
        return dict(RED)
    if isinstance(cell.get("color"), dict):
        return dict(cell["color"])
    return dict(YELLOW)


def build_highlight_requests(sheet_id: int | str, cells: Sequence[dict[str, Any]]) -> list[dict[str, Any]]:
    """One ``repeatCell`` request per cell, each covering a 1x1 range."""

    sheet = int(sheet_id)
    requests = []
    for cell in cells:
        row = int(cell["rowIndex"])
        col = int(cell["colIndex"])
        requests.append(
            {
                "repeatCell": {
                    "range": {
                        "sheetId": sheet,
                        "startRowIndex": row,
                        "endRowIndex": row + 1,
                        "startColumnIndex": col,
                        "endColumnIndex": col + 1,
                    },
                    "cell": {"userEnteredFormat": {"backgroundColor": cell_color(cell)}},
                    "fields": "userEnteredFormat.backgroundColor",
                }
            }
        )
    return requests


def validate_highlight_payload(body: dict[str, Any] | None) -> tuple[str, int | str, list[dict[str, Any]]]:
    """Return ``(spreadsheet_id, sheet_id, cells)`` or raise ``ValueError``."""

    body = body or {}
    spreadsheet_id = body.get("spreadsheetId")
    sheet_id = body.get("sheetId")
    cells = body.get("cells")
    if not spreadsheet_id or not isinstance(spreadsheet_id, str):
        raise ValueError("Missing or invalid required parameter: spreadsheetId")
    if sheet_id is None or isinstance(sheet_id, bool) or not isinstance(sheet_id, (int, str)):
        raise ValueError("Missing or invalid required parameter: sheetId (must be a number)")
    try:
        int(sheet_id)
    except ValueError as exc:
        raise ValueError("Missing or invalid required parameter: sheetId (must be a number)") from exc
    if not cells or not isinstance(cells, list):
        raise ValueError("Missing or empty required parameter: cells (must be a non-empty array)")
    for position, cell in enumerate(cells):
        if not isinstance(cell, dict):
            raise ValueError(f"Invalid cell at index {position}: must be an object")
        for key in ("rowIndex", "colIndex"):
            value = cell.get(key)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"Invalid cell at index {position}: {key} must be a non-negative integer")
    return spreadsheet_id, sheet_id, cells


class SheetsService:
    """Thin wrapper over the Sheets v4 API."""

    def __init__(self, credentials, *, service=None) -> None:
        self._service = service or build("sheets", "v4", credentials=credentials, cache_discovery=False)

    @classmethod
    def from_service_account_file(cls, path: str) -> "SheetsService":
        credentials = service_account.Credentials.from_service_account_file(path, scopes=SHEETS_SCOPES)
        jlog("info", event="sheets_service_account_loaded", path=path)
        return cls(credentials)

    @classmethod
    def from_env(cls) -> "SheetsService | None":
        """Load credentials from ``CREATIVE_SCANNER_SERVICE_ACCOUNT`` or ./service-account.json."""

        path = os.getenv("CREATIVE_SCANNER_SERVICE_ACCOUNT", "service-account.json")
        if not os.path.exists(path):
            jlog("warning", event="sheets_credentials_missing", path=path)
            return None
        return cls.from_service_account_file(path)

    def highlight_cells(self, spreadsheet_id: str, sheet_id: int | str, cells: Sequence[dict[str, Any]]) -> int:
        requests = build_highlight_requests(sheet_id, cells)
        self._service.spreadsheets().batchUpdate(
            spreadsheetId=spreadsheet_id,
            body={"requests": requests},
        ).execute()
        jlog("info", event="cells_highlighted", spreadsheet_id=spreadsheet_id, sheet_id=sheet_id, cells=len(requests))
        return len(requests)

    def list_sheets(self, spreadsheet_id: str) -> list[dict[str, Any]]:
        response = self._service.spreadsheets().get(spreadsheetId=spreadsheet_id, fields="sheets.properties").execute()
        return [
            {
                "sheetId": sheet["properties"]["sheetId"],
                "title": sheet["properties"]["title"],
                "index": sheet["properties"]["index"],
            }
            for sheet in response.get("sheets", [])
        ]


__all__ = [
    "GREEN",
    "RED",
    "SHEETS_SCOPES",
    "SheetsService",
    "YELLOW",
    "build_highlight_requests",
    "cell_color",
    "coerce_flag",
    "validate_highlight_payload",
]
