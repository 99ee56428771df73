import pytest

from quickflip.utils.item_parser import (
    parse_analysis,
    parse_analysis_detailed,
    parse_attributes,
    parse_bulk_analysis,
    parse_price,
    parse_price_range,
)

REPLY = """ITEM: Nike Air Max 90
CATEGORY: Clothing, Shoes & Accessories > Men's Shoes > Athletic Shoes
CONDITION: Good - light creasing on the toe box
DESCRIPTION: Classic Air Max 90 in white and grey. Soles show light wear.
VALUE: $60 - $90
ATTRIBUTES: {"Brand": "Nike", "US Shoe Size": "10.5", "Color": "White"}"""


def test_parses_all_six_fields():
    result = parse_analysis_detailed(REPLY)

    analysis = result.analysis
    assert analysis.item_name == "Nike Air Max 90"
    assert analysis.category == "Clothing, Shoes & Accessories > Men's Shoes > Athletic Shoes"
    assert analysis.condition == "Good - light creasing on the toe box"
    assert analysis.description.startswith("Classic Air Max 90")
    assert analysis.estimated_value_range == "$60 - $90"
    assert analysis.attributes == {"Brand": "Nike", "US Shoe Size": "10.5", "Color": "White"}
    assert result.missing_fields == []


def test_strips_markdown_bold_and_ignores_other_lines():
    content = "Here is the analysis:\n\nITEM: **Sony WH-1000XM4**\n  CONDITION: Like New  \nThanks!"

    analysis = parse_analysis(content)

    assert analysis.item_name == "Sony WH-1000XM4"
    assert analysis.condition == "Like New"


def test_keeps_colons_inside_values():
    analysis = parse_analysis("ITEM: Casio Watch\nDESCRIPTION: Model: F-91W. Works: yes.")
    assert analysis.description == "Model: F-91W. Works: yes."


def test_later_label_wins():
    analysis = parse_analysis("ITEM: First\nITEM: Second")
    assert analysis.item_name == "Second"


def test_reports_missing_labels_and_keeps_defaults():
    result = parse_analysis_detailed("ITEM: Desk Lamp\nVALUE: $15")

    assert result.analysis.item_name == "Desk Lamp"
    assert result.analysis.category == ""
    assert result.analysis.attributes == {}
    assert result.missing_fields == ["CATEGORY", "CONDITION", "DESCRIPTION", "ATTRIBUTES"]


def test_empty_reply_gives_unknown_item():
    result = parse_analysis_detailed("")

    assert result.analysis.item_name == "Unknown Item"
    assert result.missing_fields == ["ITEM", "CATEGORY", "CONDITION", "DESCRIPTION", "VALUE", "ATTRIBUTES"]


def test_blank_item_falls_back_to_unknown():
    assert parse_analysis("ITEM:   \nCATEGORY: Toys").item_name == "Unknown Item"


def test_labels_are_case_sensitive():
    result = parse_analysis_detailed("item: lowercase label")
    assert result.analysis.item_name == "Unknown Item"
    assert "ITEM" in result.missing_fields


@pytest.mark.parametrize("raw,expected", [
    ('{"Brand": "Apple", "Model": "A2084"}', {"Brand": "Apple", "Model": "A2084"}),
    ('```json {"Size": "M"} ```', {"Size": "M"}),
    ('{"Pages": 320, "Signed": false}', {"Pages": "320", "Signed": "false"}),
    ("{}", {}),
    ("{not json}", {}),
    ('["Brand", "Nike"]', {}),
    ("None", {}),
    ("", {}),
])
def test_parse_attributes(raw, expected):
    assert parse_attributes(raw) == expected


@pytest.mark.parametrize("text,expected", [
    ("$20 - $35", (20.0, 35.0)),
    ("$1,200 - $1,500", (1200.0, 1500.0)),
    ("$19.99 - $24.50", (19.99, 24.5)),
    ("$45", (45.0, 45.0)),
    ("$35 - $20", (20.0, 35.0)),
    ("20-35 USD", (20.0, 35.0)),
    ("Unknown", None),
    ("", None),
])
def test_parse_price_range(text, expected):
    assert parse_price_range(text) == expected


def test_parse_price_takes_first_amount():
    assert parse_price("about $1,250.50 or best offer") == 1250.5
    assert parse_price("priceless") is None


def test_bulk_reply_items_and_summary():
    reply = """Here is what I found.

ITEM_1:
NAME: Pyrex Mixing Bowl
CONDITION: Good
DESCRIPTION: Vintage 1970s bowl: no chips.
VALUE: $20-$30
CATEGORY: Kitchen
LOCATION: bottom right

ITEM_2:
CONDITION: Poor

ITEM_3:
NAME: Cast Iron Skillet
VALUE: $25-$40

SUMMARY:
TOTAL_COUNT: 3 items
TOTAL_VALUE: $45-$70
SCENE_DESCRIPTION: Kitchen counter."""

    result = parse_bulk_analysis(reply)

    assert [item.name for item in result.items] == ["Pyrex Mixing Bowl", "Cast Iron Skillet"]
    assert result.items[0].description == "Vintage 1970s bowl: no chips."
    assert result.items[0].location == "bottom right"
    assert result.items[1].condition == ""
    assert result.total_count == 3
    assert result.total_value == "$45-$70"
    assert result.scene_description == "Kitchen counter."


def test_bulk_reply_without_summary_counts_items():
    result = parse_bulk_analysis("ITEM_1:\nNAME: Lamp\nITEM_2:\nNAME: Rug")

    assert [item.name for item in result.items] == ["Lamp", "Rug"]
    assert result.total_count == 2
    assert result.total_value == ""


def test_bulk_fields_outside_an_item_are_ignored():
    result = parse_bulk_analysis("NAME: Orphan\nVALUE: $5")
    assert result.items == []
    assert result.total_count == 0


def test_bulk_item_feeds_listing_preparation():
    [item] = parse_bulk_analysis("ITEM_1:\nNAME: Lamp\nCONDITION: Fair\nVALUE: $10-$15").items

    analysis = item.to_analysis()

    assert analysis.item_name == "Lamp"
    assert analysis.condition == "Fair"
    assert analysis.estimated_value_range == "$10-$15"
