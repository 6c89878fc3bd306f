"""Locate creative preview containers and their titles inside a frame."""

from __future__ import annotations

import re

from .config import ScanSettings
from .logging import jlog
from .models import CATEGORIES, CreativeContainer, FrameHandle

_TITLE_PREFIX_RE = re.compile(r"^Preview\s+of\s+variation\s*", re.IGNORECASE)

CONTAINERS_JS = """
({containerSelector, titleSelector, markerSelector}) => {
  return Array.from(document.querySelectorAll(containerSelector)).map((container, index) => {
    const titleEl = container.querySelector(titleSelector);
    const marker = container.querySelector(markerSelector);
    return {
      index,
      hasTitle: !!titleEl,
      text: titleEl ? (titleEl.innerText || titleEl.textContent || '') : '',
      markerId: marker ? (marker.id || '') : '',
    };
  });
}
"""

PROXIMITY_JS = """
({containerSelector, titleSelector, prefixes, ancestorHops, siblingHops}) => {
  const idsIn = (root, prefix) => Array.from(root.querySelectorAll(`[id^="${prefix}"]`))
    .map((el) => el.id)
    .filter((id) => id);

  const search = (container, titleEl, prefix) => {
    let current = titleEl;
    for (let i = 0; i < ancestorHops && current && container.contains(current); i++) {
      const found = idsIn(current, prefix);
      if (found.length) return found;
      current = current.parentElement;
    }
    for (const step of ['nextElementSibling', 'previousElementSibling']) {
      let sibling = titleEl[step];
      for (let i = 0; i < siblingHops && sibling && container.contains(sibling); i++) {
        const found = idsIn(sibling, prefix);
        if (found.length) return found;
        sibling = sibling[step];
      }
    }
    return [];
  };

  return Array.from(document.querySelectorAll(containerSelector)).map((container, index) => {
    const titleEl = container.querySelector(titleSelector);
    if (!titleEl) return { index, text: '', candidates: {} };
    const candidates = {};
    for (const prefix of prefixes) {
      candidates[prefix] = Array.from(new Set(search(container, titleEl, prefix)));
    }
    return { index, text: titleEl.innerText || titleEl.textContent || '', candidates };
  });
}
"""


def clean_title(raw: str | None) -> str:
    """Strip the "Preview of variation" prefix; fall back to the raw text."""

    text = (raw or "").strip()
    cleaned = _TITLE_PREFIX_RE.sub("", text, count=1).strip()
    return cleaned or text


def containers_from_payload(rows: list[dict], frame_index: int = 0) -> list[CreativeContainer]:
    """Build containers from the page payload, skipping untitled or empty ones."""

    out: list[CreativeContainer] = []
    for row in rows or []:
        if not row.get("hasTitle"):
            continue
        raw = (row.get("text") or "").strip()
        title = clean_title(raw)
        if not title:
            continue
        out.append(
            CreativeContainer(
                container_index=int(row.get("index", len(out))),
                title=title,
                marker_frame_id=row.get("markerId") or "",
                raw_title=raw,
                frame_index=frame_index,
            )
        )
    return out


async def locate_containers(handle: FrameHandle, settings: ScanSettings | None = None) -> list[CreativeContainer]:
    """Return the preview containers of one accessible frame in document order."""

    settings = settings or ScanSettings()
    if not handle.accessible:
        return []
    try:
        rows = await handle.frame.evaluate(
            CONTAINERS_JS,
            {
                "containerSelector": settings.container_selector,
                "titleSelector": settings.title_selector,
                "markerSelector": settings.marker_selector,
            },
        )
    except Exception as exc:
        # First real DOM read of the frame; treat a failure as cross-origin.
        handle.accessible = False
        jlog("info", event="container_query_failed", frame_index=handle.index, frame=handle.label, error=str(exc))
        return []
    containers = containers_from_payload(rows, frame_index=handle.index)
    for container in containers:
        jlog(
            "info",
            event="container_found",
            frame_index=handle.index,
            container_index=container.container_index,
            title=container.title,
            marker_id=container.marker_frame_id or None,
        )
    return containers


async def associate_by_proximity(
    handle: FrameHandle,
    settings: ScanSettings | None = None,
) -> dict[tuple[int, str, int], dict[str, list[str]]]:
    """Collect element ids found near each container's title, per category prefix.

    Keys match :attr:`CreativeContainer.key`.
    """

    settings = settings or ScanSettings()
    if not handle.accessible:
        return {}
    try:
        rows = await handle.frame.evaluate(
            PROXIMITY_JS,
            {
                "containerSelector": settings.container_selector,
                "titleSelector": settings.title_selector,
                "prefixes": [c.prefix for c in CATEGORIES],
                "ancestorHops": settings.ancestor_hops,
                "siblingHops": settings.sibling_hops,
            },
        )
    except Exception as exc:
        jlog("warning", event="proximity_pass_error", frame_index=handle.index, error=str(exc))
        return {}

    associations: dict[tuple[int, str, int], dict[str, list[str]]] = {}
    for row in rows or []:
        title = clean_title(row.get("text"))
        if not title:
            continue
        key = (handle.index, title, int(row.get("index", 0)))
        associations[key] = {prefix: list(ids) for prefix, ids in (row.get("candidates") or {}).items()}
    return associations


__all__ = [
    "CONTAINERS_JS",
    "PROXIMITY_JS",
    "associate_by_proximity",
    "clean_title",
    "containers_from_payload",
    "locate_containers",
]
