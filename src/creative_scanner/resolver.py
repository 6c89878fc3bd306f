"""Map creative containers to the elements collected across frames.

Direct containment (marker iframe -> elements) is often unreachable from the
outer document, so each ``(container, category)`` pair walks an ordered list
of strategies, strongest signal first, and takes the first unused element any
of them offers. Every strategy shares one signature and never mutates the
context; :func:`resolve` claims the winning element.

The last strategy, round-robin, always assigns something while unused
elements remain. It can hand a creative a visually unrelated element when the
earlier strategies all miss; callers get completeness at the cost of precision.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from .collector import ElementCollection
from .logging import jlog
from .models import CATEGORIES, Category, CreativeContainer, ElementRecord, FrameHandle

_NUMBER_RE = re.compile(r"\d+")


@dataclass
class ResolutionContext:
    """Everything resolution needs for one request; never shared across requests."""

    collection: ElementCollection
    proximity: dict[tuple[int, str, int], dict[str, list[str]]] = field(default_factory=dict)
    marker_frames: dict[str, FrameHandle] = field(default_factory=dict)
    frames: Sequence[FrameHandle] = ()
    used_ids: set[str] = field(default_factory=set)

    def is_used(self, element_id: str) -> bool:
        return element_id in self.used_ids

    def unused(self, category: Category) -> list[ElementRecord]:
        return [el for el in self.collection.for_category(category) if el.id not in self.used_ids]

    def claim(self, record: ElementRecord) -> ElementRecord:
        self.used_ids.add(record.id)
        return record


Strategy = Callable[[CreativeContainer, Category, ResolutionContext], "ElementRecord | None"]


def match_marker_frame(container: CreativeContainer, category: Category, ctx: ResolutionContext) -> ElementRecord | None:
    """First unused element collected from the container's own marker frame."""

    if not container.marker_frame_id or not ctx.collection.has_marker(container.marker_frame_id):
        return None
    for element in ctx.collection.for_marker(container.marker_frame_id, category):
        if not ctx.is_used(element.id):
            return element
    return None


def match_position(container: CreativeContainer, category: Category, ctx: ResolutionContext) -> ElementRecord | None:
    """Element at the container's index in the category's full list."""

    elements = ctx.collection.for_category(category)
    if 0 <= container.container_index < len(elements):
        element = elements[container.container_index]
        if not ctx.is_used(element.id):
            return element
    return None


def match_proximity(container: CreativeContainer, category: Category, ctx: ResolutionContext) -> ElementRecord | None:
    """First unused id the DOM-proximity pass recorded next to the container's title."""

    candidates = ctx.proximity.get(container.key, {}).get(category.prefix, [])
    if not candidates:
        return None
    by_id = {el.id: el for el in ctx.collection.for_category(category)}
    for element_id in candidates:
        element = by_id.get(element_id)
        if element is not None and not ctx.is_used(element_id):
            return element
    return None


def _number_patterns(number: str, prefix: str) -> tuple[str, ...]:
    return (f"-{number}", f"_{number}", f"{number}-", f"{number}_", f"x{number}", f"{number}x", f"{prefix}{number}")


def match_title_number(container: CreativeContainer, category: Category, ctx: ResolutionContext) -> ElementRecord | None:
    """Unused element whose id carries the first number found in the title."""

    found = _NUMBER_RE.search(container.title or "")
    if not found:
        return None
    number = found.group(0)
    matching = [el for el in ctx.unused(category) if number in el.id]
    if not matching:
        return None
    patterns = _number_patterns(number, category.prefix)
    for element in matching:
        if element.id.endswith(number) or any(p in element.id for p in patterns):
            return element
    return matching[0]


def match_round_robin(container: CreativeContainer, category: Category, ctx: ResolutionContext) -> ElementRecord | None:
    """Deterministic ``unused[container_index % len(unused)]``."""

    unused = ctx.unused(category)
    if not unused:
        return None
    return unused[container.container_index % len(unused)]


STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("marker_frame", match_marker_frame),
    ("position", match_position),
    ("proximity", match_proximity),
    ("title_number", match_title_number),
    ("round_robin", match_round_robin),
)


def resolve(
    container: CreativeContainer,
    category: Category,
    ctx: ResolutionContext,
    strategies: Sequence[tuple[str, Strategy]] = STRATEGIES,
) -> list[ElementRecord]:
    """Assign at most one unused element of ``category`` to ``container``."""

    for name, strategy in strategies:
        element = strategy(container, category, ctx)
        if element is None or ctx.is_used(element.id):
            continue
        ctx.claim(element)
        jlog(
            "debug",
            event="element_resolved",
            strategy=name,
            container_index=container.container_index,
            title=container.title,
            category=category.prefix,
            element_id=element.id,
        )
        return [element]
    return []


@dataclass
class ContainerResolution:
    container: CreativeContainer
    source_frame: FrameHandle | None
    elements_by_category: dict[Category, list[ElementRecord]]


def _source_frame(container: CreativeContainer, ctx: ResolutionContext) -> FrameHandle | None:
    marker_frame = ctx.marker_frames.get(container.marker_frame_id) if container.marker_frame_id else None
    if marker_frame is not None:
        return marker_frame
    if 0 <= container.frame_index < len(ctx.frames):
        return ctx.frames[container.frame_index]
    return None


def resolve_all(containers: Sequence[CreativeContainer], ctx: ResolutionContext) -> list[ContainerResolution]:
    """Resolve every ``(container, category)`` pair in container order."""

    out: list[ContainerResolution] = []
    for container in containers:
        by_category = {category: resolve(container, category, ctx) for category in CATEGORIES}
        out.append(ContainerResolution(container, _source_frame(container, ctx), by_category))
        jlog(
            "info",
            event="container_resolved",
            container_index=container.container_index,
            title=container.title,
            marker_id=container.marker_frame_id or None,
            elements=sum(len(v) for v in by_category.values()),
        )
    return out


__all__ = [
    "ContainerResolution",
    "ResolutionContext",
    "STRATEGIES",
    "Strategy",
    "match_marker_frame",
    "match_position",
    "match_proximity",
    "match_round_robin",
    "match_title_number",
    "resolve",
    "resolve_all",
]
