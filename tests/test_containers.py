import asyncio

from creative_scanner.containers import (
    CONTAINERS_JS,
    PROXIMITY_JS,
    associate_by_proximity,
    clean_title,
    containers_from_payload,
    locate_containers,
)
from creative_scanner.frames import enumerate_frames

from fakes import FakeFrame, FakePage


def _handle(frame):
    return enumerate_frames(FakePage(frame))[0]


def test_clean_title_strips_prefix_case_insensitively():
    assert clean_title("Preview of variation Char_Limit-10") == "Char_Limit-10"
    assert clean_title("  preview   OF variation\nLong Copy ") == "Long Copy"
    assert clean_title("Standard") == "Standard"
    assert clean_title("") == ""
    assert clean_title(None) == ""


def test_containers_from_payload_skips_untitled_and_keeps_index():
    rows = [
        {"index": 0, "hasTitle": False, "text": "", "markerId": ""},
        {"index": 1, "hasTitle": True, "text": "Preview of variation A", "markerId": "jvxBase_a"},
        {"index": 2, "hasTitle": True, "text": "   ", "markerId": ""},
        {"index": 3, "hasTitle": True, "text": "Preview of variation B", "markerId": ""},
    ]
    containers = containers_from_payload(rows, frame_index=4)

    assert [(c.container_index, c.title, c.marker_frame_id) for c in containers] == [
        (1, "A", "jvxBase_a"),
        (3, "B", ""),
    ]
    assert containers[0].raw_title == "Preview of variation A"
    assert containers[0].key == (4, "A", 1)


def test_locate_containers_reads_frame_payload():
    frame = FakeFrame(
        results={CONTAINERS_JS: [{"index": 0, "hasTitle": True, "text": "Preview of variation X", "markerId": ""}]}
    )
    containers = asyncio.run(locate_containers(_handle(frame)))
    assert [c.title for c in containers] == ["X"]


def test_locate_containers_marks_failing_frame_inaccessible():
    handle = _handle(FakeFrame(fail_queries=True))
    assert asyncio.run(locate_containers(handle)) == []
    assert handle.accessible is False


def test_associate_by_proximity_keys_by_frame_title_and_index():
    frame = FakeFrame(
        results={
            PROXIMITY_JS: [
                {"index": 0, "text": "Preview of variation A", "candidates": {"frm1_HL_": ["frm1_HL_a"], "frm1_SL_": []}},
                {"index": 1, "text": "", "candidates": {}},
            ]
        }
    )
    associations = asyncio.run(associate_by_proximity(_handle(frame)))
    assert associations == {(0, "A", 0): {"frm1_HL_": ["frm1_HL_a"], "frm1_SL_": []}}


def test_associate_by_proximity_swallows_frame_errors():
    assert asyncio.run(associate_by_proximity(_handle(FakeFrame(fail_queries=True)))) == {}
