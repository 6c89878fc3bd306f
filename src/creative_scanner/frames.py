"""Frame enumeration and marker-iframe bookkeeping."""

from __future__ import annotations

import re
from collections import deque
from collections.abc import Sequence
from typing import Any

from playwright.async_api import Page

from .config import MARKER_PREFIX, ScanSettings
from .logging import jlog
from .models import FrameHandle

MARKER_IFRAMES_JS = """
(selector) => Array.from(document.querySelectorAll(selector)).map((f) => ({
  id: f.id || '',
  name: f.getAttribute('name') || '',
  src: f.src || '',
}))
"""


def enumerate_frames(page: Page) -> list[FrameHandle]:
    """Flatten the frame tree breadth-first, main frame first.

    Reading ``url``/``name`` of a frame never raises to the caller; a frame
    whose attributes cannot be read is kept but marked inaccessible.
    """

    handles: list[FrameHandle] = []
    queue: deque[tuple[Any, int, int | None]] = deque([(page.main_frame, 0, None)])
    while queue:
        frame, depth, parent_index = queue.popleft()
        handle = FrameHandle(frame=frame, index=len(handles), depth=depth, parent_index=parent_index)
        try:
            handle.url = frame.url or ""
            handle.name = frame.name or ""
        except Exception as exc:
            handle.accessible = False
            jlog("warning", event="frame_attr_error", frame_index=handle.index, error=str(exc))
        handles.append(handle)
        try:
            children = list(frame.child_frames)
        except Exception as exc:
            jlog("warning", event="frame_children_error", frame_index=handle.index, error=str(exc))
            children = []
        for child in children:
            queue.append((child, depth + 1, handle.index))
    return handles


async def probe_frame_access(handle: FrameHandle) -> bool:
    """Mark ``handle`` inaccessible if its document cannot be read."""

    if not handle.accessible:
        return False
    try:
        await handle.frame.evaluate("() => !!document.documentElement")
    except Exception as exc:
        handle.accessible = False
        jlog("info", event="frame_inaccessible", frame_index=handle.index, frame=handle.label, error=str(exc))
    return handle.accessible


async def find_marker_iframes(frame, settings: ScanSettings | None = None) -> list[dict[str, str]]:
    """Return ``{id, name, src}`` for every marker iframe in ``frame``'s document."""

    settings = settings or ScanSettings()
    try:
        found = await frame.evaluate(MARKER_IFRAMES_JS, settings.marker_selector)
    except Exception as exc:
        jlog("warning", event="marker_iframe_query_error", error=str(exc))
        return []
    return [f for f in (found or []) if f.get("id", "").startswith(settings.marker_prefix)]


def marker_ids_from_html(html: str, prefix: str = MARKER_PREFIX) -> list[str]:
    """Regex safety net: pull marker ids straight out of raw page HTML."""

    pattern = re.compile(r"""id=["'](""" + re.escape(prefix) + r"""[^"']+)["']""")
    ids: list[str] = []
    for match in pattern.finditer(html or ""):
        if match.group(1) not in ids:
            ids.append(match.group(1))
    return ids


def _match_by_attributes(handles: Sequence[FrameHandle], marker: dict[str, str]) -> FrameHandle | None:
    marker_id = marker.get("id", "")
    name = marker.get("name", "")
    src = marker.get("src", "")
    for handle in handles:
        if not handle.name:
            continue
        if (name and handle.name == name) or handle.name == marker_id:
            return handle
    for handle in handles:
        if not handle.url:
            continue
        if (src and handle.url == src) or marker_id in handle.url:
            return handle
    return None


async def map_marker_frames(handles: Sequence[FrameHandle], settings: ScanSettings | None = None) -> dict[str, FrameHandle]:
    """Tag the frame behind every marker iframe with the marker's id.

    Matching order: the iframe's content frame, then name/id, then url/src,
    then position (marker ``i`` -> enumerated frame ``i + 1``).
    """

    settings = settings or ScanSettings()
    mapped: dict[str, FrameHandle] = {}
    ordered_markers: list[dict[str, str]] = []
    queued: set[str] = set()

    for owner in handles:
        if not owner.accessible:
            continue
        try:
            elements = await owner.frame.query_selector_all(settings.marker_selector)
        except Exception as exc:
            jlog("warning", event="marker_iframe_query_error", frame_index=owner.index, error=str(exc))
            continue
        for element in elements:
            try:
                marker = {
                    "id": (await element.get_attribute("id")) or "",
                    "name": (await element.get_attribute("name")) or "",
                    "src": (await element.get_attribute("src")) or "",
                }
            except Exception as exc:
                jlog("warning", event="marker_iframe_attr_error", frame_index=owner.index, error=str(exc))
                continue
            if not marker["id"] or marker["id"] in mapped:
                continue
            if marker["id"] not in queued:
                queued.add(marker["id"])
                ordered_markers.append(marker)
            try:
                content = await element.content_frame()
            except Exception:
                content = None
            if content is None:
                continue
            for handle in handles:
                if handle.frame == content:
                    handle.marker_id = marker["id"]
                    mapped[marker["id"]] = handle
                    break

    taken = {id(h) for h in mapped.values()}
    for position, marker in enumerate(ordered_markers):
        marker_id = marker["id"]
        if marker_id in mapped:
            continue
        free = [h for h in handles if id(h) not in taken]
        handle = _match_by_attributes(free, marker)
        how = "attributes"
        if handle is None and position + 1 < len(handles) and id(handles[position + 1]) not in taken:
            handle = handles[position + 1]
            how = "position"
        if handle is None:
            jlog("info", event="marker_frame_unmatched", marker_id=marker_id)
            continue
        handle.marker_id = marker_id
        mapped[marker_id] = handle
        taken.add(id(handle))
        jlog("info", event="marker_frame_matched", marker_id=marker_id, frame_index=handle.index, how=how)

    return mapped


def owning_marker_id(handle: FrameHandle, handles: Sequence[FrameHandle]) -> str:
    """Nearest marker id on the path from ``handle`` up to the main frame."""

    current: FrameHandle | None = handle
    while current is not None:
        if current.marker_id:
            return current.marker_id
        if current.parent_index is None:
            return ""
        current = handles[current.parent_index]
    return ""


__all__ = [
    "MARKER_IFRAMES_JS",
    "enumerate_frames",
    "find_marker_iframes",
    "map_marker_frames",
    "marker_ids_from_html",
    "owning_marker_id",
    "probe_frame_access",
]
