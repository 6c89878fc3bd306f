"""Request-scoped value types shared by the scanner stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

PLACEHOLDER_LABEL = "N/A"


@dataclass(frozen=True)
class Category:
    """One id-prefix family of interest inside a creative's DOM."""

    prefix: str
    payload_key: str
    primary: bool

    @property
    def selector(self) -> str:
        return f'[id^="{self.prefix}"]'


# Fixed order: index-based fallbacks and payload keys depend on it.
CATEGORIES: tuple[Category, ...] = (
    Category("frm1_HL_", "matches", True),
    Category("frm2_HL_", "matches2", True),
    Category("frm3_HL_", "matches3", True),
    Category("frm4_HL_", "matches4", True),
    Category("frm1_SL_", "matchesSL1", False),
    Category("frm2_SL_", "matchesSL2", False),
    Category("frm3_SL_", "matchesSL3", False),
    Category("frm4_SL_", "matchesSL4", False),
)


def element_type_for_id(element_id: str) -> str:
    return "HL" if "_HL_" in (element_id or "") else "SL"


@dataclass(eq=False)
class FrameHandle:
    """A browsing context reachable from the page, plus what we learned about it."""

    frame: Any
    index: int
    url: str = ""
    name: str = ""
    accessible: bool = True
    depth: int = 0
    parent_index: int | None = None
    marker_id: str = ""

    @property
    def label(self) -> str:
        return self.name or self.url or f"frame#{self.index}"


@dataclass(frozen=True)
class CreativeContainer:
    container_index: int
    title: str
    marker_frame_id: str = ""
    raw_title: str = ""
    frame_index: int = 0

    @property
    def key(self) -> tuple[int, str, int]:
        """Lookup key for per-container association data."""

        return (self.frame_index, self.title, self.container_index)


@dataclass(frozen=True)
class PhraseCheckResult:
    phrase: str
    found: bool
    single_line: bool | None = None
    line_count: int = 0

    @property
    def is_defect(self) -> bool:
        return self.found and self.single_line is False

    def to_payload(self) -> dict[str, Any]:
        return {
            "model": self.phrase,
            "found": self.found,
            "singleLine": self.single_line,
            "rectsCount": self.line_count,
        }


@dataclass(eq=False)
class ElementRecord:
    id: str
    category: Category
    owner_frame: FrameHandle | None = None
    outer_html: str = ""
    line_break_results: dict[str, PhraseCheckResult] = field(default_factory=dict)

    @property
    def defects(self) -> list[PhraseCheckResult]:
        return [r for r in self.line_break_results.values() if r.is_defect]

    def to_payload(self) -> dict[str, Any]:
        statuses = [r.to_payload() for r in self.line_break_results.values() if r.found]
        broken = [r.to_payload() for r in self.defects]
        return {
            "id": self.id,
            "outerHTML": self.outer_html,
            "brokenModels": broken or None,
            "allModelStatuses": statuses or None,
        }


@dataclass(eq=False)
class CreativeRecord:
    variant_label: str
    source_frame: FrameHandle | None = None
    elements_by_category: dict[Category, list[ElementRecord]] = field(default_factory=lambda: {c: [] for c in CATEGORIES})

    @property
    def has_elements(self) -> bool:
        return any(self.elements_by_category.values())

    @property
    def has_valid_label(self) -> bool:
        label = self.variant_label or ""
        return bool(label.strip()) and label != PLACEHOLDER_LABEL

    @property
    def defects(self) -> list[PhraseCheckResult]:
        out: list[PhraseCheckResult] = []
        for elements in self.elements_by_category.values():
            for element in elements:
                out.extend(element.defects)
        return out

    def element_ids(self) -> list[str]:
        return [el.id for elements in self.elements_by_category.values() for el in elements]

    def extend(self, category: Category, elements: list[ElementRecord]) -> None:
        bucket = self.elements_by_category.setdefault(category, [])
        seen = {el.id for el in bucket}
        for element in elements:
            if element.id not in seen:
                seen.add(element.id)
                bucket.append(element)


__all__ = [
    "CATEGORIES",
    "Category",
    "CreativeContainer",
    "CreativeRecord",
    "ElementRecord",
    "FrameHandle",
    "PLACEHOLDER_LABEL",
    "PhraseCheckResult",
    "element_type_for_id",
]
