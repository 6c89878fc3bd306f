"""
Creative Scanner - API Server
Flask application exposing the scan and sheet-highlighting endpoints.
"""

import argparse

from flask import Flask

from creative_scanner.config import ScanSettings
from creative_scanner.logging import configure_logging, jlog, set_global_context
from creative_scanner.server.api_router import api_router
from creative_scanner.sheets import SheetsService
from creative_scanner.versioning import get_scanner_version


def create_app(settings=None, sheets=None, scan_runner=None) -> Flask:
    """
    Application factory; settings and the Sheets client are injected for the blueprint.
    """
    flask_app = Flask(__name__)

    flask_app.config["SCAN_SETTINGS"] = settings or ScanSettings.from_env()
    flask_app.config["SHEETS_SERVICE"] = sheets
    flask_app.config["SCAN_RUNNER"] = scan_runner

    flask_app.register_blueprint(api_router, url_prefix="/api")

    return flask_app


def main():
    """
    Parse arguments and start the development server.
    """
    parser = argparse.ArgumentParser(description="Creative Scanner API Server")
    parser.add_argument("--port", type=int, default=3000, help="Port to bind the server to")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Host interface to bind to")
    parser.add_argument(
        "--service-account",
        type=str,
        required=False,
        help="Path to a Google service-account JSON file for the Sheets endpoints",
    )
    args = parser.parse_args()

    configure_logging()
    set_global_context(app="creative_scanner", component="server", version=get_scanner_version())

    if args.service_account:
        sheets = SheetsService.from_service_account_file(args.service_account)
    else:
        sheets = SheetsService.from_env()

    app = create_app(sheets=sheets)
    jlog("info", event="server_start", host=args.host, port=args.port, sheets_enabled=sheets is not None)

    app.run(host=args.host, port=args.port, use_reloader=False, threaded=True)


if __name__ == "__main__":
    main()
