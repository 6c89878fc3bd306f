#!/usr/bin/env python3
"""CLI shim for the scanner API server.

Keeps ``python scripts/serve.py --port 3000`` working while the server lives in
``creative_scanner.server``.
"""
from __future__ import annotations

from creative_scanner.server.app import main

if __name__ == "__main__":
    main()
