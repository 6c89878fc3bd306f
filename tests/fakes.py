"""Small stand-ins for Playwright frames, element handles and pages."""

from __future__ import annotations

import re

from creative_scanner.collector import ELEMENT_INFO_JS
from creative_scanner.linebreak import RANGE_RECTS_JS, TEXT_NODES_JS

_PREFIX_RE = re.compile(r'\[id\^="([^"]+)"\]')


class FakeElement:
    def __init__(self, id="", texts=(), rects=1, html=None, attrs=None, content_frame=None):
        self.id = id
        self.texts = list(texts)
        self.rects = rects
        self.html = html if html is not None else f'<div id="{id}">{"".join(self.texts)}</div>'
        self.attrs = {"id": id, **(attrs or {})}
        self._content_frame = content_frame
        self.span_calls = []

    async def evaluate(self, script, arg=None):
        if script == ELEMENT_INFO_JS:
            return {"id": self.id, "outerHTML": self.html[:arg]}
        if script == TEXT_NODES_JS:
            return list(self.texts)
        if script == RANGE_RECTS_JS:
            self.span_calls.append(arg)
            if isinstance(self.rects, list):
                return self.rects[: len(arg)]
            return [self.rects for _ in arg]
        raise AssertionError(f"unexpected element script: {script[:40]}")

    async def get_attribute(self, name):
        return self.attrs.get(name)

    async def content_frame(self):
        return self._content_frame


class FakeFrame:
    def __init__(self, url="", name="", children=(), elements=(), results=None, fail_attrs=False, fail_queries=False):
        self._url = url
        self._name = name
        self.child_frames = list(children)
        self.elements = list(elements)
        self.results = dict(results or {})
        self.fail_attrs = fail_attrs
        self.fail_queries = fail_queries

    @property
    def url(self):
        if self.fail_attrs:
            raise RuntimeError("Blocked a frame with origin from accessing a cross-origin frame")
        return self._url

    @property
    def name(self):
        if self.fail_attrs:
            raise RuntimeError("Blocked a frame with origin from accessing a cross-origin frame")
        return self._name

    async def evaluate(self, script, arg=None):
        if self.fail_queries:
            raise RuntimeError("Execution context was destroyed")
        value = self.results.get(script)
        if isinstance(value, Exception):
            raise value
        return value

    async def query_selector_all(self, selector):
        if self.fail_queries:
            raise RuntimeError("Execution context was destroyed")
        match = _PREFIX_RE.search(selector)
        prefix = match.group(1) if match else ""
        return [el for el in self.elements if el.id.startswith(prefix)]


class FakePage:
    def __init__(self, main_frame, html=""):
        self.main_frame = main_frame
        self.html = html

    async def content(self):
        return self.html

    @property
    def frames(self):
        out = []
        queue = [self.main_frame]
        while queue:
            frame = queue.pop(0)
            out.append(frame)
            queue.extend(frame.child_frames)
        return out
