"""Collect tagged elements from each accessible frame and run the line checks."""

from __future__ import annotations

from collections.abc import Iterable

from .config import ScanSettings
from .linebreak import check_phrases
from .logging import jlog
from .models import CATEGORIES, Category, ElementRecord, FrameHandle

ELEMENT_INFO_JS = """
(el, maxChars) => ({
  id: el.id || '',
  outerHTML: el.outerHTML ? el.outerHTML.substring(0, maxChars) : '',
})
"""


class ElementCollection:
    """Every element collected during one request, deduplicated per category."""

    def __init__(self) -> None:
        self._by_category: dict[Category, list[ElementRecord]] = {c: [] for c in CATEGORIES}
        self._seen: dict[Category, set[str]] = {c: set() for c in CATEGORIES}
        self._by_frame: dict[int, dict[Category, list[ElementRecord]]] = {}
        self._by_marker: dict[str, dict[Category, list[ElementRecord]]] = {}

    def contains(self, category: Category, element_id: str) -> bool:
        return element_id in self._seen[category]

    def add(self, record: ElementRecord, marker_id: str = "") -> bool:
        """Store ``record`` unless its id was already collected for the category."""

        if not record.id or record.id in self._seen[record.category]:
            return False
        self._seen[record.category].add(record.id)
        self._by_category[record.category].append(record)
        if record.owner_frame is not None:
            frame_bucket = self._by_frame.setdefault(record.owner_frame.index, {c: [] for c in CATEGORIES})
            frame_bucket[record.category].append(record)
        if marker_id:
            marker_bucket = self._by_marker.setdefault(marker_id, {c: [] for c in CATEGORIES})
            marker_bucket[record.category].append(record)
        return True

    def extend(self, records: Iterable[ElementRecord], marker_id: str = "") -> int:
        return sum(1 for record in records if self.add(record, marker_id))

    def for_category(self, category: Category) -> list[ElementRecord]:
        return list(self._by_category[category])

    def for_marker(self, marker_id: str, category: Category) -> list[ElementRecord]:
        bucket = self._by_marker.get(marker_id)
        return list(bucket[category]) if bucket else []

    def has_marker(self, marker_id: str) -> bool:
        bucket = self._by_marker.get(marker_id)
        return bool(bucket) and any(bucket.values())

    def for_frame(self, frame_index: int) -> dict[Category, list[ElementRecord]]:
        bucket = self._by_frame.get(frame_index)
        return {c: list(bucket[c]) for c in CATEGORIES} if bucket else {c: [] for c in CATEGORIES}

    def frame_indexes(self) -> list[int]:
        return list(self._by_frame)

    def total(self) -> int:
        return sum(len(v) for v in self._by_category.values())


async def collect_frame(
    handle: FrameHandle,
    collection: ElementCollection,
    settings: ScanSettings | None = None,
    *,
    marker_id: str = "",
) -> int:
    """Collect all eight categories from one frame into ``collection``.

    Any evaluation failure inside the frame counts as zero elements for that
    frame; nothing partial is kept. Returns the number of new records.
    """

    settings = settings or ScanSettings()
    if not handle.accessible:
        return 0

    pending: list[ElementRecord] = []
    try:
        for category in CATEGORIES:
            local_ids: set[str] = set()
            elements = await handle.frame.query_selector_all(category.selector)
            for element in elements:
                info = await element.evaluate(ELEMENT_INFO_JS, settings.outer_html_chars)
                element_id = (info or {}).get("id") or ""
                if not element_id or element_id in local_ids or collection.contains(category, element_id):
                    continue
                local_ids.add(element_id)
                record = ElementRecord(
                    id=element_id,
                    category=category,
                    owner_frame=handle,
                    outer_html=(info or {}).get("outerHTML") or "",
                )
                if category.primary or settings.check_secondary_phrases:
                    try:
                        checks = await check_phrases(element, settings.phrases, case_insensitive=True)
                    except Exception as exc:
                        jlog("warning", event="element_check_error", element_id=element_id, error=str(exc))
                        checks = {}
                    record.line_break_results = {p: r for p, r in checks.items() if r.found}
                pending.append(record)
    except Exception as exc:
        jlog("warning", event="frame_collect_error", frame_index=handle.index, frame=handle.label, error=str(exc))
        return 0

    added = collection.extend(pending, marker_id)
    if added:
        jlog(
            "info",
            event="frame_collected",
            frame_index=handle.index,
            frame=handle.label,
            marker_id=marker_id or None,
            elements=added,
            defects=sum(len(r.defects) for r in pending),
        )
    return added


__all__ = ["ELEMENT_INFO_JS", "ElementCollection", "collect_frame"]
