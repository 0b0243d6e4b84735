"""Unit tests for the field extractor, rule tables and item strategies."""

import pytest

from invoice_parser.extraction import (
    EXTRACTION_FIELDS,
    BusinessItemStrategy,
    ConsumerItemStrategy,
    InvoiceExtractor,
    LineItemStrategy,
    calculate_extraction_metrics,
    check_order_number,
    get_rules,
)
from invoice_parser.utils.exceptions import StructuralMismatchError


@pytest.fixture
def us_extractor() -> InvoiceExtractor:
    """Extractor for amazon.com invoices."""
    return InvoiceExtractor(get_rules("us"))


@pytest.mark.parametrize("candidate", ["123-4567890-1234567", "302-0000000-9999999"])
def test_check_order_number_accepts_3_7_7(candidate: str) -> None:
    """Test that accepted order ids split into groups of 3, 7 and 7 digits."""
    assert check_order_number(candidate) == candidate
    assert [len(group) for group in candidate.split("-")] == [3, 7, 7]


@pytest.mark.parametrize(
    "candidate",
    ["12-4567890-1234567", "123-456789-1234567", "123-4567890-12345678", "1234567890", "123-4567890"],
)
def test_check_order_number_rejects_other_shapes(candidate: str) -> None:
    """Test that other digit groupings fail the shape check."""
    with pytest.raises(StructuralMismatchError):
        check_order_number(candidate)


def test_extract_domestic_invoice(us_extractor: InvoiceExtractor, domestic_text: str) -> None:
    """Test extraction of every field from an amazon.com invoice."""
    invoice = us_extractor.extract(domestic_text)

    assert invoice.order_number == "123-4567890-1234567"
    assert invoice.order_date == "2023-12-15"
    assert invoice.subtotal == "$159.98"
    assert invoice.shipping == "$0.00"
    assert invoice.tax == "$12.80"
    assert invoice.total == "$172.78"
    assert invoice.currency == "USD"
    assert invoice.vendor == "Amazon"
    assert [item.unit_price for item in invoice.items] == [129.99, 29.99]
    assert invoice.items[0].description == "Wireless Noise Cancelling Headphones"


def test_extract_order_number_skips_bad_shapes(us_extractor: InvoiceExtractor) -> None:
    """Test that a malformed candidate is skipped and the search continues."""
    text = "Order #12-345678-9\nReference 111-2222222-3333333"

    assert us_extractor.extract_order_number(text) == "111-2222222-3333333"


def test_extract_order_number_missing(us_extractor: InvoiceExtractor) -> None:
    """Test that no order id gives None."""
    assert us_extractor.extract_order_number("Order Placed: December 15, 2023") is None


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Order Placed: 02/29/2024", "2024-02-29"),
        ("Order Placed: 02/29/2023", None),
        ("Order Placed: December 32, 2023", None),
    ],
)
def test_extract_order_date_calendar_validity(us_extractor: InvoiceExtractor, text: str, expected) -> None:
    """Test that only calendar-valid order dates are accepted."""
    assert us_extractor.extract_order_date(text) == expected


def test_extract_order_date_continues_after_invalid(us_extractor: InvoiceExtractor) -> None:
    """Test that a later valid date is used when the first is impossible."""
    text = "Date: 02/30/2023\nDate: 01/05/2024"

    assert us_extractor.extract_order_date(text) == "2024-01-05"


def test_extract_field_unknown_name(us_extractor: InvoiceExtractor) -> None:
    """Test that an unknown field name is rejected."""
    with pytest.raises(ValueError):
        us_extractor.extract_field("invoice_number", "text")


def test_missing_subtotal_is_derived_from_items() -> None:
    """Test that a missing subtotal is the sum of item totals in locale style."""
    text = "2 x Batteries $5.00\n1 x Charger $19.99\nGrand Total: $29.99"

    invoice = InvoiceExtractor(get_rules("en")).extract(text)

    assert invoice.subtotal == "$29.99"
    assert invoice.items[0].quantity == 2
    assert invoice.items[0].total_price == pytest.approx(10.0)


def test_derived_subtotal_uses_euro_format() -> None:
    """Test that derived euro subtotals use comma decimals."""
    text = "1 x Tastatur 1.150,00 €\n1 x Maus 26,46 €"

    invoice = InvoiceExtractor(get_rules("de")).extract(text)

    assert invoice.subtotal == "1.176,46 €"
    assert invoice.currency == "EUR"


def test_derived_subtotal_keeps_item_currency_on_generic_rules() -> None:
    """Test that the generic rule table prints a derived subtotal like its items."""
    text = "Invoice 123-4567890-1234567\n2 x Widget 10,00 €\nAmount Due: 20,00 €\n"

    invoice = InvoiceExtractor(get_rules("minimal")).extract(text)

    assert invoice.items[0].price == "10,00 €"
    assert invoice.subtotal == "20,00 €"
    assert invoice.total == "20,00 €"
    assert invoice.currency == "EUR"


def test_extract_german_amounts_with_rate_labels() -> None:
    """Test that a tax rate between label and amount is skipped."""
    text = "Zwischensumme: 42,01 €\nMwSt. 19%: 7,98 €\nGesamtbetrag: 49,99 €"

    invoice = InvoiceExtractor(get_rules("eu")).extract(text)

    assert invoice.subtotal == "42,01 €"
    assert invoice.tax == "7,98 €"
    assert invoice.total == "49,99 €"


def test_line_item_strategy_of_blocks() -> None:
    """Test amazon.com "N of:" item lines."""
    items = LineItemStrategy(get_rules("us")).extract("3 of: AA Batteries $4.50")

    assert len(items) == 1
    assert items[0].quantity == 3
    assert items[0].unit_price == pytest.approx(4.50)
    assert items[0].total_price == pytest.approx(13.50)
    assert items[0].price == "$4.50"
    assert items[0].currency == "USD"


def test_of_block_price_on_a_following_line() -> None:
    """Test that an "N of:" price a couple of lines below is still found."""
    text = "1 of: Kindle Paperwhite\nSold by: Amazon.com Services LLC\n$129.99\n"

    items = LineItemStrategy(get_rules("us")).extract(text)

    assert [(item.description, item.price) for item in items] == [("Kindle Paperwhite", "$129.99")]


def test_of_block_without_price_does_not_take_next_price() -> None:
    """Test that an unpriced "N of:" block leaves the next block's price alone."""
    text = "1 of: Gift Wrap\nCondition: New\n2 of: USB-C Cable $9.99\n"

    items = LineItemStrategy(get_rules("us")).extract(text)

    assert len(items) == 1
    assert items[0].description == "USB-C Cable"
    assert items[0].quantity == 2
    assert items[0].total_price == pytest.approx(19.98)


def test_consumer_strategy_corrects_glued_quantity(glued_price_text: str) -> None:
    """Test that "1176,46 €" followed by "176,46 €" is quantity 1 at 176.46."""
    items = ConsumerItemStrategy(get_rules("eu")).extract(glued_price_text)

    assert len(items) == 1
    assert items[0].unit_price == pytest.approx(176.46)
    assert items[0].quantity == 1
    assert items[0].total_price == pytest.approx(176.46)
    assert items[0].price == "176,46 €"
    assert items[0].asin == "B00D3YOIQA"
    assert items[0].description.startswith("Bosch Professional")


def test_consumer_strategy_single_price(german_consumer_text: str) -> None:
    """Test that a lone amount is both unit price and total."""
    items = ConsumerItemStrategy(get_rules("eu")).extract(german_consumer_text)

    assert len(items) == 1
    assert items[0].unit_price == pytest.approx(49.99)
    assert items[0].quantity == 1
    assert items[0].currency == "EUR"
    assert items[0].description == "Echo Dot (5. Generation) Smart Lautsprecher"


def test_business_strategy_price_block(german_business_text: str) -> None:
    """Test that the business price block gives quantity, unit price and total."""
    items = BusinessItemStrategy(get_rules("eu")).extract(german_business_text)

    assert len(items) == 1
    assert items[0].quantity == 2
    assert items[0].unit_price == pytest.approx(42.01)
    assert items[0].total_price == pytest.approx(84.02)
    assert items[0].description == "Echo Dot Smart Speaker"


def test_business_strategy_pipe_row() -> None:
    """Test that a pipe table row above the ASIN is read first."""
    text = "| USB Hub | 3 | 10,00 € | 19% | 11,90 € | 30,00 € |\nASIN: B01ABCDEFG\n"

    items = BusinessItemStrategy(get_rules("eu")).extract(text)

    assert len(items) == 1
    assert items[0].description == "USB Hub"
    assert items[0].quantity == 3
    assert items[0].unit_price == pytest.approx(10.0)
    assert items[0].total_price == pytest.approx(30.0)


def test_correct_concatenated_price() -> None:
    """Test splitting of a quantity glued to a unit price."""
    strategy = ConsumerItemStrategy(get_rules("eu"))

    assert strategy.correct_concatenated_price("1176,46 €", 176.46) == (1, 176.46)
    assert strategy.correct_concatenated_price("537,37 €", 186.85) == (5, 37.37)
    assert strategy.correct_concatenated_price("12,00 €", 99.0) is None


def test_strategies_on_empty_text() -> None:
    """Test that empty text yields no items."""
    rules = get_rules("eu")
    for strategy in (LineItemStrategy(rules), BusinessItemStrategy(rules), ConsumerItemStrategy(rules)):
        assert strategy.extract("") == []


def test_calculate_extraction_metrics(us_extractor: InvoiceExtractor, domestic_text: str) -> None:
    """Test per-field success of a complete extraction."""
    metrics = calculate_extraction_metrics(us_extractor.extract(domestic_text))

    assert metrics["totalFields"] == len(EXTRACTION_FIELDS) == 7
    assert metrics["successfulFields"] == 7
    assert metrics["extractionSuccess"] == 1.0
    assert metrics["itemCount"] == 2
    assert metrics["itemsWithPrice"] == 2


def test_calculate_extraction_metrics_partial(us_extractor: InvoiceExtractor) -> None:
    """Test that missing fields lower the success ratio."""
    metrics = calculate_extraction_metrics(us_extractor.extract("Grand Total: $10.00"))

    assert metrics["fields"]["total"] is True
    assert metrics["fields"]["order_number"] is False
    assert metrics["extractionSuccess"] == pytest.approx(round(1 / 7, 2))


def test_rules_registry() -> None:
    """Test the rule table registry."""
    assert get_rules("de").currency == "EUR"
    assert get_rules("jp").money.decimals == 0
    assert get_rules("us").currency_for("$") == "USD"
    assert get_rules("ca").currency_for("$") == "CAD"
    assert get_rules("gb").currency_for("£") == "GBP"
    with pytest.raises(KeyError):
        get_rules("xx")
