import os
import sys

sys.path.insert(0, os.path.abspath("src"))

from quantify.billparser.fallback import parse_fallback_patterns
from quantify.billparser.lines import split_lines
from quantify.billparser.models import ParsedItem
from quantify.billparser.strategies import (
    find_table_header,
    parse_descriptive_format,
    parse_key_value_format,
    parse_line_by_line_format,
    parse_table_format,
    select_strategy_items,
)


HEADER = "SKU" + " " * 9 + "Description" + " " * 20 + "Qty" + " " * 4 + "Unit Price" + " " * 4 + "Total"
ROW = "PROD001" + " " * 5 + "Wireless Headphones" + " " * 12 + "2" + " " * 6 + "$45.99" + " " * 8 + "$91.98"
FOOTER = " " * 42 + "Subtotal: $263.38"
TABLE_BILL = "\n".join([HEADER, ROW, FOOTER])


def test_table_format_reads_rows_until_footer():
    lines = split_lines(TABLE_BILL + "\nPROD002 9")
    assert find_table_header(lines) == 0
    items = parse_table_format(lines, TABLE_BILL)
    assert items == [ParsedItem(sku="PROD001", qty=2, name="Wireless Headphones", price=45.99)]


def test_table_format_without_header_is_empty():
    assert parse_table_format(["PROD003 5"], "PROD003 5") == []


def test_line_by_line_skips_metadata_lines():
    lines = split_lines("Store Receipt\nPROD003 5\nTotal 5\nThank you for shopping")
    assert parse_line_by_line_format(lines) == [ParsedItem(sku="PROD003", qty=5)]


def test_key_value_format_one_item_per_line():
    lines = ["Item: SKU123, Quantity: 5", "Product: AB-77, Qty: 2", "nothing here"]
    items = parse_key_value_format(lines)
    assert [(i.sku, i.qty) for i in items] == [("SKU123", 5), ("AB-77", 2)]


def test_key_value_name_is_the_line_without_codes_and_numbers():
    items = parse_key_value_format(["Item: SKU123 Blue Widget, Quantity: 5"])
    assert items == [ParsedItem(sku="SKU123", qty=5, name="Item: Blue Widget Quantity:")]


def test_descriptive_units_of():
    items = parse_descriptive_format(["5 units of ITEM42"])
    assert [(i.sku, i.qty) for i in items] == [("ITEM42", 5)]


def test_descriptive_times_separator():
    items = parse_descriptive_format(["PROD123 x 3"])
    assert [(i.sku, i.qty) for i in items] == [("PROD123", 3)]


def test_descriptive_multiplication_sign_separator():
    items = parse_descriptive_format(["PROD9 \u00d7 3"])
    assert [(i.sku, i.qty) for i in items] == [("PROD9", 3)]


def test_descriptive_labelled_quantity():
    items = parse_descriptive_format(["ABC-XYZ quantity: 4"])
    assert [(i.sku, i.qty) for i in items] == [("ABC-XYZ", 4)]


def test_descriptive_line_can_yield_several_items():
    items = parse_descriptive_format(["ABC123 x 2, XYZ789 x 4"])
    assert [(i.sku, i.qty) for i in items] == [("ABC123", 2), ("XYZ789", 4)]


def test_selector_stops_at_first_strategy_with_items():
    calls = []

    def first(lines, text):
        calls.append("first")
        return []

    def second(lines, text):
        calls.append("second")
        return [ParsedItem(sku="AAA", qty=1)]

    def third(lines, text):
        calls.append("third")
        return [ParsedItem(sku="BBB", qty=1)]

    items, name = select_strategy_items(["x"], "x", strategies=[first, second, third])
    assert items == [ParsedItem(sku="AAA", qty=1)]
    assert name == "second"
    assert calls == ["first", "second"]


def test_selector_reports_nothing_when_all_strategies_empty():
    assert select_strategy_items(["hello world"], "hello world") == ([], None)


def test_table_result_wins_over_line_by_line():
    text = "Item  Qty\nABC123 4\nThank you\nXYZ789 7"
    lines = split_lines(text)
    # line-by-line alone would also pick up the row after the footer
    assert len(parse_line_by_line_format(lines)) == 2
    items, name = select_strategy_items(lines, text)
    assert name == "parse_table_format"
    assert items == [ParsedItem(sku="ABC123", qty=4)]


def test_fallback_matches_codes_followed_by_numbers():
    items = parse_fallback_patterns("XYZ9999 captured 42 times")
    assert items
    assert all(i == ParsedItem(sku="XYZ9999", qty=42) for i in items)


def test_fallback_uses_label_as_sku_and_bounds_quantity():
    items = parse_fallback_patterns("PROD-7788 shipped 5000 / CODE_ABCD moved 12")
    assert items == [ParsedItem(sku="CODE", qty=12)]

    labelled = parse_fallback_patterns("ITEM1234 moved 5")
    assert ParsedItem(sku="ITEM", qty=5) in labelled


def test_fallback_unlabelled_token_is_the_sku():
    assert parse_fallback_patterns("WXYZ moved 8") == [ParsedItem(sku="WXYZ", qty=8)]
