import asyncio

from flask import Blueprint, current_app, jsonify, request

from creative_scanner.logging import jlog
from creative_scanner.scan import ScanError, scan_creatives
from creative_scanner.sheets import validate_highlight_payload

api_router = Blueprint("api_router", __name__)


# --- HELPER FUNCTIONS ---

def get_settings():
    """Scan settings injected by the application factory."""
    return current_app.config["SCAN_SETTINGS"]


def get_sheets():
    return current_app.config.get("SHEETS_SERVICE")


def get_scan_runner():
    return current_app.config.get("SCAN_RUNNER") or scan_creatives


# --- API ROUTES ---

@api_router.route("/count", methods=["GET"])
def count_creatives():
    """Scan the page given by ``?url=`` and return creatives plus wrapped model names."""
    url = request.args.get("url")
    if not url:
        return jsonify({"ok": False, "error": "Missing ?url="}), 400

    try:
        response = asyncio.run(get_scan_runner()(url, get_settings()))
    except ScanError as e:
        return jsonify({"ok": False, "error": str(e)}), 500
    except Exception as e:
        jlog("error", event="count_unhandled_error", url=url, error=str(e))
        return jsonify({"ok": False, "error": str(e) or "Unknown error"}), 500

    return jsonify(response)


@api_router.route("/highlight-cells", methods=["POST"])
def highlight_cells():
    """Color the given cells according to their validation flags."""
    try:
        spreadsheet_id, sheet_id, cells = validate_highlight_payload(request.get_json(silent=True))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    sheets = get_sheets()
    if sheets is None:
        return jsonify({"error": "Authentication not configured. Please set up Google credentials."}), 500

    try:
        updated = sheets.highlight_cells(spreadsheet_id, sheet_id, cells)
    except Exception as e:
        jlog("error", event="highlight_cells_error", spreadsheet_id=spreadsheet_id, error=str(e))
        return jsonify({"error": str(e) or "Failed to highlight cells"}), 500

    return jsonify({
        "success": True,
        "message": f"Successfully highlighted {updated} cells",
        "updatedCells": updated,
    })


@api_router.route("/get-sheets/<spreadsheet_id>", methods=["GET"])
def get_sheets_list(spreadsheet_id):
    """List the tabs of a spreadsheet."""
    sheets = get_sheets()
    if sheets is None:
        return jsonify({"error": "Authentication not configured. Please set up Google credentials."}), 401

    try:
        sheet_list = sheets.list_sheets(spreadsheet_id)
    except Exception as e:
        jlog("error", event="get_sheets_error", spreadsheet_id=spreadsheet_id, error=str(e))
        return jsonify({"error": str(e) or "Failed to get sheets"}), 500

    return jsonify({"success": True, "sheets": sheet_list})
