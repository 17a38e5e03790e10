import os
import sys

sys.path.insert(0, os.path.abspath("src"))

from quantify.billparser import ParsedItem, clean_items, parse, parse_with_details, validate
from quantify.billparser.validation import find_rejections


HEADER = "SKU" + " " * 9 + "Description" + " " * 20 + "Qty" + " " * 4 + "Unit Price" + " " * 4 + "Total"
ROW = "PROD001" + " " * 5 + "Wireless Headphones" + " " * 12 + "2" + " " * 6 + "$45.99" + " " * 8 + "$91.98"
FOOTER = " " * 42 + "Subtotal: $263.38"


def test_clean_merges_duplicates_case_insensitively():
    raw = [
        ParsedItem(sku="abc", qty=2, name="First", price=1.5),
        ParsedItem(sku=" ABC ", qty=3, name="Second", price=9.0),
    ]
    assert clean_items(raw) == [ParsedItem(sku="ABC", qty=5, name="First", price=1.5)]


def test_clean_drops_invalid_and_keeps_first_seen_order():
    raw = [
        ParsedItem(sku="bbb", qty=1),
        ParsedItem(sku="", qty=4),
        ParsedItem(sku="xyz", qty=0),
        ParsedItem(sku="def", qty=-1),
        ParsedItem(sku="aaa", qty=2, name="  "),
        ParsedItem(sku="BBB", qty=6),
    ]
    assert clean_items(raw) == [ParsedItem(sku="BBB", qty=7), ParsedItem(sku="AAA", qty=2)]


def test_table_bill_end_to_end():
    outcome = parse_with_details("\n".join([HEADER, ROW, FOOTER]))
    assert outcome.strategy == "parse_table_format"
    assert outcome.items == [ParsedItem(sku="PROD001", qty=2, name="Wireless Headphones", price=45.99)]


def test_line_by_line_bill_end_to_end():
    assert parse("Corner Shop Receipt\nPROD003 5\n") == [ParsedItem(sku="PROD003", qty=5)]


def test_key_value_bill_end_to_end():
    outcome = parse_with_details("Item: sku123, Quantity: 5")
    assert outcome.strategy == "parse_key_value_format"
    assert [(i.sku, i.qty) for i in outcome.items] == [("SKU123", 5)]


def test_fallback_runs_only_when_strategies_find_nothing():
    outcome = parse_with_details("Invoice reference XYZ9999, captured 42.")
    assert outcome.strategy == "fallback"
    assert ParsedItem(sku="XYZ9999", qty=42) in outcome.items


def test_no_items_is_an_empty_list():
    outcome = parse_with_details("hello world")
    assert outcome.items == []
    assert outcome.strategy is None
    assert parse("") == []


def test_parse_is_idempotent():
    text = "\n".join([HEADER, ROW, FOOTER])
    assert parse(text) == parse(text)


def test_validate_quantity_and_sku_bounds():
    assert validate([ParsedItem(sku="AB", qty=5)]) == []
    assert validate([ParsedItem(sku="ABC123", qty=0)]) == []
    assert validate([ParsedItem(sku="ABC123", qty=10000)]) == [ParsedItem(sku="ABC123", qty=10000)]
    assert validate([ParsedItem(sku="ABC123", qty=10001)]) == []
    assert validate([ParsedItem(sku="ABC 123", qty=1)]) == []


def test_validate_accepts_plain_dicts_without_modifying_them():
    items = [{"sku": "abc-1", "qty": 3}, {"sku": "ok_sku", "quantity": 2}, {"sku": "no", "qty": 1}]
    assert validate(items) == items[:2]


def test_find_rejections_reports_reasons():
    rejected = find_rejections([ParsedItem(sku="AB", qty=5), ParsedItem(sku="ABC", qty=0)])
    reasons = [reason for _, reason in rejected]
    assert reasons[0].startswith("Invalid SKU format")
    assert reasons[1].startswith("Invalid quantity")
