from decimal import Decimal

import pytest

from giftcart.utils.parsing import parse_int, parse_number, parse_quantity, parse_variations


def test_parse_variations_accepts_list_and_json_text():
    assert parse_variations([{"id": "a"}, None, "junk", {}]) == [{"id": "a"}]
    assert parse_variations('[{"sku": "S1"}]') == [{"sku": "S1"}]


@pytest.mark.parametrize("raw", [None, "", "[{not json", '{"id": "a"}', 42])
def test_parse_variations_falls_back_to_empty(raw):
    assert parse_variations(raw) == []


def test_parse_int_reads_leading_integer():
    assert parse_int("3", 1) == 3
    assert parse_int("3.9", 1) == 3
    assert parse_int(" 7 boxes", 1) == 7
    assert parse_int(2.5, 1) == 2
    assert parse_int("-4", 1) == -4


@pytest.mark.parametrize("raw", [None, "abc", "", True, float("nan")])
def test_parse_int_default_for_garbage(raw):
    assert parse_int(raw, 9) == 9


def test_parse_quantity_clamps_to_minimum():
    assert parse_quantity("abc", minimum=1, default=1) == 1
    assert parse_quantity(0, minimum=1, default=1) == 1
    assert parse_quantity(-5, minimum=1, default=1) == 1
    assert parse_quantity("4", minimum=1, default=1) == 4
    assert parse_quantity("abc", minimum=0, default=0) == 0
    assert parse_quantity(-2, minimum=0, default=0) == 0


def test_parse_number():
    assert parse_number("10.50") == Decimal("10.50")
    assert parse_number(3) == Decimal("3")
    assert parse_number(None) is None
    assert parse_number("  ") is None
    assert parse_number("ten") is None
    assert parse_number("NaN") is None
    assert parse_number(float("inf")) is None
