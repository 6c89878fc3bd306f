from creative_scanner.models import CATEGORIES, element_type_for_id


def test_element_type_comes_from_the_element_id():
    assert element_type_for_id("frm3_HL_headline") == "HL"
    assert element_type_for_id("frm3_SL_sub") == "SL"
    assert element_type_for_id("") == "SL"
    assert [element_type_for_id(c.prefix + "x") for c in CATEGORIES] == ["HL"] * 4 + ["SL"] * 4


def test_category_selector_and_payload_keys():
    assert CATEGORIES[0].selector == '[id^="frm1_HL_"]'
    assert [c.payload_key for c in CATEGORIES] == [
        "matches",
        "matches2",
        "matches3",
        "matches4",
        "matchesSL1",
        "matchesSL2",
        "matchesSL3",
        "matchesSL4",
    ]
    assert not hasattr(CATEGORIES[0], "element_type")
