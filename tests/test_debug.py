import asyncio

from creative_scanner.debug import IFRAME_INVENTORY_JS, describe_frames, dump_frame_inventory, dump_page_html
from creative_scanner.frames import enumerate_frames

from fakes import FakeFrame, FakePage


class InventoryPage(FakePage):
    def __init__(self, inventory):
        super().__init__(FakeFrame(), html="<html><body>preview</body></html>")
        self.inventory = inventory
        self.calls = []

    async def evaluate(self, script, arg=None):
        self.calls.append((script, arg))
        if isinstance(self.inventory, Exception):
            raise self.inventory
        return self.inventory


def test_dump_page_html_writes_request_file(tmp_path):
    page = FakePage(FakeFrame(), html="<html>preview</html>")
    path = asyncio.run(dump_page_html(page, "req-1", base=str(tmp_path / "debug")))
    assert path.endswith("page_req-1.html")
    with open(path, encoding="utf-8") as fh:
        assert fh.read() == "<html>preview</html>"


def test_dump_frame_inventory_passes_prefix_and_survives_errors():
    rows = [{"id": "jvxBase_a", "name": "", "src": "", "isMarker": True, "rect": {}}]
    page = InventoryPage(rows)
    assert asyncio.run(dump_frame_inventory(page)) == rows
    assert page.calls == [(IFRAME_INVENTORY_JS, "jvxBase_")]
    assert asyncio.run(dump_frame_inventory(InventoryPage(RuntimeError("detached")))) == []


def test_describe_frames_flattens_tree():
    child = FakeFrame(url="https://ads.example/a", name="creative")
    handles = enumerate_frames(FakePage(FakeFrame(url="https://preview.example", children=[child])))
    handles[1].marker_id = "jvxBase_a"

    described = describe_frames(handles)

    assert described[0]["parent"] is None
    assert described[0]["markerId"] is None
    assert described[1] == {
        "index": 1,
        "parent": 0,
        "depth": 1,
        "url": "https://ads.example/a",
        "name": "creative",
        "accessible": True,
        "markerId": "jvxBase_a",
    }
