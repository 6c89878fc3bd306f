from creative_scanner.config import ScanSettings
from creative_scanner.scan import ScanError
from creative_scanner.server import create_app


class FakeSheets:
    def __init__(self):
        self.highlighted = []

    def highlight_cells(self, spreadsheet_id, sheet_id, cells):
        self.highlighted.append((spreadsheet_id, sheet_id, cells))
        return len(cells)

    def list_sheets(self, spreadsheet_id):
        return [{"sheetId": 0, "title": "Links", "index": 0}]


def _client(scan_runner=None, sheets=None):
    app = create_app(settings=ScanSettings(settle_delay_ms=0), sheets=sheets, scan_runner=scan_runner)
    app.config["TESTING"] = True
    return app.test_client()


def test_count_requires_url():
    response = _client().get("/api/count")
    assert response.status_code == 400
    assert response.get_json() == {"ok": False, "error": "Missing ?url="}


def test_count_returns_scan_payload():
    seen = {}

    async def runner(url, settings):
        seen["url"] = url
        seen["settle"] = settings.settle_delay_ms
        return {"ok": True, "count": 0, "frames": [], "hlMatches": [], "brokenModels": [], "allModelStatuses": []}

    response = _client(scan_runner=runner).get("/api/count?url=https://preview.example/tag")

    assert response.status_code == 200
    assert response.get_json()["ok"] is True
    assert seen == {"url": "https://preview.example/tag", "settle": 0}


def test_count_maps_scan_error_to_500():
    async def runner(url, settings):
        raise ScanError("Request timed out. The website took too long to respond. Please try again.")

    response = _client(scan_runner=runner).get("/api/count?url=https://preview.example")

    assert response.status_code == 500
    assert response.get_json() == {
        "ok": False,
        "error": "Request timed out. The website took too long to respond. Please try again.",
    }


def test_highlight_cells_validates_body():
    response = _client(sheets=FakeSheets()).post("/api/highlight-cells", json={"sheetId": 0, "cells": [{}]})
    assert response.status_code == 400
    assert "spreadsheetId" in response.get_json()["error"]


def test_highlight_cells_without_credentials():
    body = {"spreadsheetId": "abc", "sheetId": 0, "cells": [{"rowIndex": 0, "colIndex": 0}]}
    response = _client().post("/api/highlight-cells", json=body)
    assert response.status_code == 500
    assert "Authentication not configured" in response.get_json()["error"]


def test_highlight_cells_success():
    sheets = FakeSheets()
    body = {"spreadsheetId": "abc", "sheetId": 3, "cells": [{"rowIndex": 0, "colIndex": 0, "isValid": True}]}

    response = _client(sheets=sheets).post("/api/highlight-cells", json=body)

    assert response.status_code == 200
    assert response.get_json() == {
        "success": True,
        "message": "Successfully highlighted 1 cells",
        "updatedCells": 1,
    }
    assert sheets.highlighted == [("abc", 3, body["cells"])]


def test_get_sheets():
    assert _client().get("/api/get-sheets/abc").status_code == 401

    response = _client(sheets=FakeSheets()).get("/api/get-sheets/abc")
    assert response.status_code == 200
    assert response.get_json() == {"success": True, "sheets": [{"sheetId": 0, "title": "Links", "index": 0}]}


def test_highlight_cells_rejects_cell_without_coordinates():
    sheets = FakeSheets()
    body = {"spreadsheetId": "abc", "sheetId": 0, "cells": [{"colIndex": 2, "isValid": True}]}

    response = _client(sheets=sheets).post("/api/highlight-cells", json=body)

    assert response.status_code == 400
    assert "rowIndex" in response.get_json()["error"]
    assert sheets.highlighted == []
