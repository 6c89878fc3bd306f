"""Optional debug artifacts for a scan: page HTML and frame inventories."""

from __future__ import annotations

import os
from collections.abc import Sequence
from typing import Any

from playwright.async_api import Page

from .config import MARKER_PREFIX
from .logging import jlog
from .models import FrameHandle

DEBUG_DIR = "media/debug"

IFRAME_INVENTORY_JS = """
(prefix) => Array.from(document.querySelectorAll('iframe')).map((fr) => {
  const rect = fr.getBoundingClientRect();
  return {
    id: fr.id || '',
    name: fr.getAttribute('name') || '',
    src: fr.getAttribute('src') || '',
    isMarker: !!fr.id && fr.id.startsWith(prefix),
    rect: { x: rect.x, y: rect.y, width: rect.width, height: rect.height },
  };
})
"""


def ensure_debug_dir(base: str = DEBUG_DIR) -> str:
    """Create ``base`` if needed and return it."""

    try:
        os.makedirs(base, exist_ok=True)
    except OSError as exc:
        jlog("warning", event="debug_dir_error", path=base, error=str(exc))
    return base


async def dump_page_html(page: Page, request_id: str, base: str = DEBUG_DIR) -> str | None:
    """Write the page HTML to ``<base>/page_<request_id>.html``; None on failure."""

    path = os.path.join(ensure_debug_dir(base), f"page_{request_id}.html")
    try:
        html = await page.content()
        with open(path, "w", encoding="utf-8") as fh:
            fh.write(html)
    except Exception as exc:  # pragma: no cover - logging only
        jlog("error", event="debug_save_html_error", path=path, error=str(exc))
        return None
    jlog("info", event="debug_html_saved", path=path)
    return path


async def dump_frame_inventory(page: Page, prefix: str = MARKER_PREFIX) -> list[dict[str, Any]]:
    """Every iframe in the main document, flagging marker iframes."""

    try:
        return await page.evaluate(IFRAME_INVENTORY_JS, prefix) or []
    except Exception as exc:
        jlog("warning", event="frame_inventory_error", error=str(exc))
        return []


def describe_frames(handles: Sequence[FrameHandle]) -> list[dict[str, Any]]:
    """Flat view of the enumerated frame tree for logging."""

    return [
        {
            "index": h.index,
            "parent": h.parent_index,
            "depth": h.depth,
            "url": h.url,
            "name": h.name,
            "accessible": h.accessible,
            "markerId": h.marker_id or None,
        }
        for h in handles
    ]


__all__ = ["DEBUG_DIR", "IFRAME_INVENTORY_JS", "describe_frames", "dump_frame_inventory", "dump_page_html", "ensure_debug_dir"]
