"""Detect whether a phrase renders on one visual line inside an element.

The page is asked for two things only: the values of the text nodes under an
element (in document order) and the client rectangles of a DOM range. The
whitespace normalization, the offset map back to ``(text node, offset)`` and
the phrase search all happen here, in Python, so they can be tested without a
browser.

Offsets handed back to the page are UTF-16 code unit offsets, which is what
``Range.setStart``/``setEnd`` expect.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from playwright.async_api import ElementHandle

from .models import PhraseCheckResult

TEXT_NODES_JS = """
(el) => {
  const out = [];
  const walker = document.createTreeWalker(el, NodeFilter.SHOW_TEXT, null);
  let node;
  while ((node = walker.nextNode())) {
    out.push(node.nodeValue || "");
  }
  return out;
}
"""

RANGE_RECTS_JS = """
(el, spans) => {
  const nodes = [];
  const walker = document.createTreeWalker(el, NodeFilter.SHOW_TEXT, null);
  let node;
  while ((node = walker.nextNode())) {
    nodes.push(node);
  }
  return spans.map((s) => {
    const start = nodes[s.startNode];
    const end = nodes[s.endNode];
    if (!start || !end) return -1;
    const range = document.createRange();
    try {
      range.setStart(start, s.startOffset);
      range.setEnd(end, s.endOffset);
    } catch (e) {
      return -1;
    }
    return range.getClientRects().length;
  });
}
"""


@dataclass(frozen=True)
class CharPosition:
    node: int
    offset: int
    width: int = 1


@dataclass(frozen=True)
class NormalizedText:
    text: str
    mapping: tuple[CharPosition, ...]


@dataclass(frozen=True)
class PhraseSpan:
    start_node: int
    start_offset: int
    end_node: int
    end_offset: int
    index: int

    def to_js(self) -> dict[str, int]:
        return {
            "startNode": self.start_node,
            "startOffset": self.start_offset,
            "endNode": self.end_node,
            "endOffset": self.end_offset,
        }


def normalize_whitespace(value: str | None) -> str:
    """Collapse runs of whitespace to one space and strip both ends."""

    return " ".join((value or "").split())


def _utf16_width(ch: str) -> int:
    return 2 if ord(ch) > 0xFFFF else 1


def build_normalized_text(texts: Iterable[str | None]) -> NormalizedText:
    """Concatenate text node values into a normalized string plus offset map.

    ``mapping[i]`` points normalized character ``i`` back to the text node it
    came from and its UTF-16 offset inside that node.
    """

    chars: list[str] = []
    mapping: list[CharPosition] = []
    last_was_space = False
    for node_index, value in enumerate(texts):
        offset = 0
        for ch in value or "":
            width = _utf16_width(ch)
            if ch.isspace():
                if not last_was_space and chars:
                    chars.append(" ")
                    mapping.append(CharPosition(node_index, offset, width))
                    last_was_space = True
            else:
                chars.append(ch)
                mapping.append(CharPosition(node_index, offset, width))
                last_was_space = False
            offset += width
    if chars and chars[-1] == " ":
        chars.pop()
        mapping.pop()
    return NormalizedText("".join(chars), tuple(mapping))


def _fold(value: str) -> str:
    # Per-character lowercasing that never changes length, so indexes stay aligned.
    out = []
    for ch in value:
        low = ch.lower()
        out.append(low if len(low) == 1 else ch)
    return "".join(out)


def locate_phrase(
    normalized: NormalizedText,
    phrase: str,
    occurrence: int = 0,
    *,
    case_insensitive: bool = False,
) -> PhraseSpan | None:
    """Return the span of the ``occurrence``-th match of ``phrase`` (0-indexed)."""

    target = normalize_whitespace(phrase)
    if not target or not normalized.text or occurrence < 0:
        return None
    haystack = _fold(normalized.text) if case_insensitive else normalized.text
    needle = _fold(target) if case_insensitive else target

    idx = -1
    start_from = 0
    for _ in range(occurrence + 1):
        idx = haystack.find(needle, start_from)
        if idx == -1:
            return None
        start_from = idx + len(needle)

    first = normalized.mapping[idx]
    last = normalized.mapping[idx + len(needle) - 1]
    return PhraseSpan(
        start_node=first.node,
        start_offset=first.offset,
        end_node=last.node,
        end_offset=last.offset + last.width,
        index=idx,
    )


def result_from_rects(phrase: str, rect_count: int | None) -> PhraseCheckResult:
    """Turn a client-rect count into a check result.

    ``None`` or a negative count means the range could not be built. Zero
    rectangles (detached or invisible text) leaves ``single_line`` unknown.
    """

    if rect_count is None or rect_count < 0:
        return PhraseCheckResult(phrase=phrase, found=False)
    if rect_count == 0:
        return PhraseCheckResult(phrase=phrase, found=True, single_line=None, line_count=0)
    return PhraseCheckResult(phrase=phrase, found=True, single_line=rect_count == 1, line_count=rect_count)


async def check_phrases(
    element: ElementHandle,
    phrases: Sequence[str],
    *,
    occurrence: int = 0,
    case_insensitive: bool = False,
) -> dict[str, PhraseCheckResult]:
    """Run the line check for every phrase against one element.

    Returns one result per phrase, ``found=False`` for phrases absent from the
    element's text.
    """

    texts = await element.evaluate(TEXT_NODES_JS)
    normalized = build_normalized_text(texts or [])

    results: dict[str, PhraseCheckResult] = {}
    pending: list[tuple[str, PhraseSpan]] = []
    for phrase in phrases:
        span = locate_phrase(normalized, phrase, occurrence, case_insensitive=case_insensitive)
        if span is None:
            results[phrase] = PhraseCheckResult(phrase=phrase, found=False)
        else:
            pending.append((phrase, span))

    if pending:
        counts = await element.evaluate(RANGE_RECTS_JS, [span.to_js() for _, span in pending])
        for (phrase, _), count in zip(pending, counts or []):
            results[phrase] = result_from_rects(phrase, count)
        for phrase, _ in pending:
            results.setdefault(phrase, PhraseCheckResult(phrase=phrase, found=False))

    return {phrase: results[phrase] for phrase in phrases}


async def detect(
    element: ElementHandle,
    phrase: str,
    occurrence: int = 0,
    *,
    case_insensitive: bool = False,
) -> PhraseCheckResult:
    """Check whether ``phrase`` renders on a single line inside ``element``."""

    results = await check_phrases(element, [phrase], occurrence=occurrence, case_insensitive=case_insensitive)
    return results[phrase]


__all__ = [
    "CharPosition",
    "NormalizedText",
    "PhraseSpan",
    "RANGE_RECTS_JS",
    "TEXT_NODES_JS",
    "build_normalized_text",
    "check_phrases",
    "detect",
    "locate_phrase",
    "normalize_whitespace",
    "result_from_rects",
]
