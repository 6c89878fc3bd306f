"""Scanner version resolution helpers."""

from __future__ import annotations

import os

SCANNER_NAME = "creative_scanner"
SCANNER_VERSION = "2026-10-18.1"


def get_scanner_version(script_name: str = SCANNER_NAME, script_version: str = SCANNER_VERSION) -> str:
    """Return a human-readable version string with an env override."""

    return os.getenv("CREATIVE_SCANNER_VERSION", f"{script_name}:{script_version}")


__all__ = ["SCANNER_NAME", "SCANNER_VERSION", "get_scanner_version"]
