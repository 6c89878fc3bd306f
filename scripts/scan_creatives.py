#!/usr/bin/env python3
"""CLI shim for the creative line-break scanner."""
from __future__ import annotations

import sys

from creative_scanner.cli import main

if __name__ == "__main__":
    sys.exit(main())
