"""Merge resolutions into one record per creative variant and build the payload."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from .collector import ElementCollection
from .models import CATEGORIES, PLACEHOLDER_LABEL, CreativeRecord, FrameHandle, element_type_for_id
from .resolver import ContainerResolution


def _earlier(a: FrameHandle | None, b: FrameHandle | None) -> FrameHandle | None:
    if a is None:
        return b
    if b is None:
        return a
    return a if a.index <= b.index else b


def merge_records(records: Iterable[CreativeRecord]) -> list[CreativeRecord]:
    """Fold records sharing a valid label into one; drop empty unlabeled ones.

    The result does not depend on input order beyond list ordering: the
    source frame kept for a merged label is always the lowest-indexed one.
    """

    merged: list[CreativeRecord] = []
    by_label: dict[str, CreativeRecord] = {}
    for record in records:
        if not record.has_valid_label:
            if record.has_elements:
                merged.append(record)
            continue
        existing = by_label.get(record.variant_label)
        if existing is None:
            existing = CreativeRecord(variant_label=record.variant_label, source_frame=record.source_frame)
            by_label[record.variant_label] = existing
            merged.append(existing)
        else:
            existing.source_frame = _earlier(existing.source_frame, record.source_frame)
        for category in CATEGORIES:
            existing.extend(category, record.elements_by_category.get(category, []))
    return merged


def aggregate(resolutions: Sequence[ContainerResolution], extra: Iterable[CreativeRecord] = ()) -> list[CreativeRecord]:
    """Turn per-container resolutions into the final creative records."""

    records = [
        CreativeRecord(
            variant_label=res.container.title,
            source_frame=res.source_frame,
            elements_by_category={c: list(res.elements_by_category.get(c, [])) for c in CATEGORIES},
        )
        for res in resolutions
    ]
    return merge_records([*records, *extra])


def records_for_unresolved_frames(collection: ElementCollection, frames: Sequence[FrameHandle]) -> list[CreativeRecord]:
    """One placeholder record per frame that yielded elements; used when no container exists."""

    out: list[CreativeRecord] = []
    for frame_index in collection.frame_indexes():
        source = frames[frame_index] if 0 <= frame_index < len(frames) else None
        record = CreativeRecord(variant_label=PLACEHOLDER_LABEL, source_frame=source)
        for category, elements in collection.for_frame(frame_index).items():
            record.extend(category, elements)
        if record.has_elements:
            out.append(record)
    return out


def _record_payload(record: CreativeRecord) -> dict[str, Any]:
    frame = record.source_frame
    payload: dict[str, Any] = {
        "frameUrl": frame.url if frame else "",
        "frameName": frame.name if frame else "",
        "creativeVariation": record.variant_label or PLACEHOLDER_LABEL,
    }
    for category in CATEGORIES:
        payload[category.payload_key] = [el.to_payload() for el in record.elements_by_category.get(category, [])]
    return payload


def build_response(records: Sequence[CreativeRecord], marker_frames: Sequence[dict[str, str]]) -> dict[str, Any]:
    """Assemble the ``ok: true`` JSON payload."""

    broken: list[dict[str, Any]] = []
    statuses: list[dict[str, Any]] = []
    for record in records:
        label = record.variant_label or PLACEHOLDER_LABEL
        for category in CATEGORIES:
            for element in record.elements_by_category.get(category, []):
                found = [r.to_payload() for r in element.line_break_results.values() if r.found]
                if found:
                    statuses.append(
                        {
                            "creativeVariation": label,
                            "elementId": element.id,
                            "elementType": element_type_for_id(element.id),
                            "modelStatuses": found,
                            "outerHTML": element.outer_html,
                        }
                    )
                defects = element.defects
                if defects:
                    broken.append(
                        {
                            "creativeVariation": label,
                            "elementId": element.id,
                            "elementType": element_type_for_id(element.id),
                            "brokenModels": [r.to_payload() for r in defects],
                            "outerHTML": element.outer_html,
                        }
                    )

    frames = [{"id": f.get("id", ""), "src": f.get("src", "")} for f in marker_frames]
    return {
        "ok": True,
        "count": len(frames),
        "frames": frames,
        "hlMatches": [_record_payload(r) for r in records],
        "brokenModels": broken,
        "allModelStatuses": statuses,
    }


__all__ = ["aggregate", "build_response", "merge_records", "records_for_unresolved_frames"]
