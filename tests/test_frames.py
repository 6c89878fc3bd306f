import asyncio

from creative_scanner.config import ScanSettings
from creative_scanner.frames import (
    MARKER_IFRAMES_JS,
    enumerate_frames,
    find_marker_iframes,
    map_marker_frames,
    marker_ids_from_html,
    owning_marker_id,
    probe_frame_access,
)

from fakes import FakeElement, FakeFrame, FakePage


def test_enumerate_frames_is_breadth_first_with_parents():
    grandchild = FakeFrame(url="https://c.example")
    a = FakeFrame(url="https://a.example", name="a", children=[grandchild])
    b = FakeFrame(url="https://b.example")
    page = FakePage(FakeFrame(url="https://preview.example", children=[a, b]))

    handles = enumerate_frames(page)

    assert [h.url for h in handles] == [
        "https://preview.example",
        "https://a.example",
        "https://b.example",
        "https://c.example",
    ]
    assert [h.index for h in handles] == [0, 1, 2, 3]
    assert [h.depth for h in handles] == [0, 1, 1, 2]
    assert [h.parent_index for h in handles] == [None, 0, 0, 1]
    assert handles[1].label == "a"


def test_enumerate_frames_keeps_unreadable_frames_as_inaccessible():
    blocked = FakeFrame(fail_attrs=True)
    page = FakePage(FakeFrame(url="https://preview.example", children=[blocked]))

    handles = enumerate_frames(page)

    assert len(handles) == 2
    assert handles[0].accessible is True
    assert handles[1].accessible is False
    assert handles[1].label == "frame#1"


def test_probe_frame_access_marks_failures():
    ok = enumerate_frames(FakePage(FakeFrame()))[0]
    broken = enumerate_frames(FakePage(FakeFrame(fail_queries=True)))[0]

    assert asyncio.run(probe_frame_access(ok)) is True
    assert asyncio.run(probe_frame_access(broken)) is False
    assert broken.accessible is False


def test_marker_ids_from_html_dedupes_and_accepts_both_quotes():
    html = """<iframe id="jvxBase_abc"></iframe><iframe id='jvxBase_def'></iframe>
    <iframe id="jvxBase_abc"></iframe><div id="other"></div>"""
    assert marker_ids_from_html(html) == ["jvxBase_abc", "jvxBase_def"]
    assert marker_ids_from_html("") == []


def test_find_marker_iframes_filters_on_prefix():
    frame = FakeFrame(
        results={
            MARKER_IFRAMES_JS: [
                {"id": "jvxBase_1", "name": "", "src": "https://ads.example/1"},
                {"id": "other", "name": "", "src": ""},
            ]
        }
    )
    assert asyncio.run(find_marker_iframes(frame)) == [{"id": "jvxBase_1", "name": "", "src": "https://ads.example/1"}]
    assert asyncio.run(find_marker_iframes(FakeFrame(fail_queries=True))) == []


def test_map_marker_frames_prefers_content_frame_then_attributes_then_position():
    by_content = FakeFrame(url="https://ads.example/x")
    by_name = FakeFrame(url="https://ads.example/y", name="jvxBase_b")
    by_position = FakeFrame(url="about:blank")
    markers = [
        FakeElement(id="jvxBase_a", content_frame=by_content),
        FakeElement(id="jvxBase_b"),
        FakeElement(id="jvxBase_c"),
    ]
    main = FakeFrame(url="https://preview.example", children=[by_content, by_name, by_position], elements=markers)
    handles = enumerate_frames(FakePage(main))

    mapped = asyncio.run(map_marker_frames(handles, ScanSettings()))

    assert mapped["jvxBase_a"] is handles[1]
    assert mapped["jvxBase_b"] is handles[2]
    assert mapped["jvxBase_c"] is handles[3]
    assert [h.marker_id for h in handles] == ["", "jvxBase_a", "jvxBase_b", "jvxBase_c"]


def test_owning_marker_id_walks_up_to_nearest_marker():
    inner = FakeFrame(url="https://ads.example/inner")
    creative = FakeFrame(url="https://ads.example/x", children=[inner])
    main = FakeFrame(url="https://preview.example", children=[creative])
    handles = enumerate_frames(FakePage(main))
    handles[1].marker_id = "jvxBase_a"

    assert owning_marker_id(handles[2], handles) == "jvxBase_a"
    assert owning_marker_id(handles[1], handles) == "jvxBase_a"
    assert owning_marker_id(handles[0], handles) == ""


def test_map_marker_frames_counts_repeated_marker_once_for_position():
    nested = FakeFrame(url="about:blank", elements=[FakeElement(id="jvxBase_a"), FakeElement(id="jvxBase_b")])
    second = FakeFrame(url="about:blank")
    third = FakeFrame(url="about:blank")
    main = FakeFrame(
        url="https://preview.example",
        children=[nested, second, third],
        elements=[FakeElement(id="jvxBase_a")],
    )
    handles = enumerate_frames(FakePage(main))

    mapped = asyncio.run(map_marker_frames(handles, ScanSettings()))

    assert mapped["jvxBase_a"] is handles[1]
    assert mapped["jvxBase_b"] is handles[2]
    assert handles[3].marker_id == ""
