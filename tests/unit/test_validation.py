"""Unit tests for the validation engine and its sub-validators."""

from datetime import datetime

import pytest

from invoice_parser.extraction import ExtractedInvoice, LineItem
from invoice_parser.postprocessor import AmountValidator, DateValidator, ValidationEngine, validate_invoice


def _invoice(**fields) -> ExtractedInvoice:
    base = {"order_number": "123-4567890-1234567", "order_date": "2023-12-15", "vendor": "Amazon"}
    base.update(fields)
    return ExtractedInvoice(**base)


def test_clean_invoice_passes(clean_invoice: ExtractedInvoice) -> None:
    """Test that a consistent invoice scores high and is valid."""
    result = ValidationEngine().validate(clean_invoice)

    assert result.is_valid
    assert result.score >= 90
    assert result.errors == []
    assert result.summary == "All validations passed"


def test_placeholder_date_is_an_error(clean_invoice: ExtractedInvoice) -> None:
    """Test that a placeholder date invalidates the invoice."""
    clean = ValidationEngine().validate(clean_invoice)
    clean_invoice.order_date = "undefined"

    result = ValidationEngine().validate(clean_invoice)

    assert not result.is_valid
    assert result.has_issue("invalid_date_format")
    assert clean.score - result.score >= 20
    assert result.errors[0]["message"] == "Date contains placeholder value"


def test_duplicate_asin_with_different_prices_forces_invalid() -> None:
    """Test that one ASIN at two unit prices is a critical error."""
    invoice = _invoice(
        items=[
            LineItem(description="Widget", unit_price=50.0, total_price=50.0, price="$50.00", asin="B000000001"),
            LineItem(description="Widget", unit_price=60.0, total_price=60.0, price="$60.00", asin="B000000001"),
        ],
        subtotal="$110.00",
        total="$110.00",
    )

    result = ValidationEngine().validate(invoice)

    duplicates = [error for error in result.errors if error["type"] == "duplicate_item_different_prices"]
    assert len(duplicates) == 1
    assert duplicates[0]["severity"] == "critical"
    assert result.forced_invalid
    assert not result.is_valid


def test_total_mismatch_is_a_medium_warning() -> None:
    """Test that subtotal + shipping + tax far from the total lowers the score."""
    invoice = _invoice(subtotal="$100.00", shipping="$10.00", tax="$5.00", total="$200.00")

    result = ValidationEngine().validate(invoice)

    warnings = [warning for warning in result.warnings if warning["type"] == "mathematical_inconsistency"]
    assert len(warnings) == 1
    assert warnings[0]["severity"] == "medium"
    assert "115.00" in warnings[0]["message"]
    assert result.score < 100
    assert not result.forced_invalid


def test_multi_shipment_relaxes_tolerance() -> None:
    """Test that repeated subtotal labels widen the total tolerance."""
    invoice = _invoice(subtotal="$100.00", total="$104.00")
    raw_text = "Item(s) Subtotal: $60.00\n...\nItem(s) Subtotal: $40.00\n"

    strict = ValidationEngine().validate(invoice)
    relaxed = ValidationEngine().validate(invoice, raw_text=raw_text)

    assert strict.has_issue("mathematical_inconsistency")
    assert not relaxed.has_issue("mathematical_inconsistency")
    assert ValidationEngine.is_multi_shipment(raw_text)
    assert not ValidationEngine.is_multi_shipment("Item(s) Subtotal: $60.00")


def test_math_check_skipped_without_subtotal() -> None:
    """Test that no subtotal means no total consistency finding."""
    result = ValidationEngine().validate(_invoice(total="$104.00"))

    assert not result.has_issue("mathematical_inconsistency")


def test_discount_sign_is_ignored() -> None:
    """Test that negative and positive discounts are both subtracted."""
    for discount in ("-$10.00", "$10.00"):
        invoice = _invoice(subtotal="$100.00", discount=discount, total="$90.00")
        assert not ValidationEngine().validate(invoice).has_issue("mathematical_inconsistency")


def test_item_subtotal_critical_mismatch() -> None:
    """Test that items far off the subtotal force invalidity."""
    invoice = _invoice(
        items=[LineItem(description="Lamp", unit_price=50.0, total_price=50.0, price="$50.00")],
        subtotal="$100.00",
        total="$100.00",
    )

    result = ValidationEngine().validate(invoice)

    mismatch = [error for error in result.errors if error["type"] == "item_subtotal_mismatch"]
    assert mismatch[0]["severity"] == "critical"
    assert result.forced_invalid


def test_item_subtotal_small_difference_is_a_warning() -> None:
    """Test that a difference between floor and tolerance only warns."""
    invoice = _invoice(
        items=[LineItem(description="Lamp", unit_price=99.50, total_price=99.50, price="$99.50")],
        subtotal="$100.00",
        total="$100.00",
    )

    result = ValidationEngine().validate(invoice)

    assert result.has_issue("item_subtotal_mismatch")
    assert result.is_valid


def test_price_sanity() -> None:
    """Test high and extreme unit prices."""
    high = _invoice(items=[LineItem(description="Laptop", unit_price=1500.0, price="$1,500.00")])
    extreme = _invoice(items=[LineItem(description="Server", unit_price=7500.0, price="$7,500.00")])

    assert ValidationEngine().validate(high).has_issue("high_unit_price")
    extreme_result = ValidationEngine().validate(extreme)
    assert extreme_result.has_issue("extreme_unit_price")
    assert extreme_result.forced_invalid


def test_subtotal_without_items_is_a_medium_warning() -> None:
    """Test that a subtotal with no extracted items costs the warning plus its penalty."""
    result = ValidationEngine().validate(_invoice(subtotal="$50.00", total="$50.00"))

    warnings = [warning for warning in result.warnings if warning["type"] == "no_items_found"]
    assert len(warnings) == 1
    assert warnings[0]["severity"] == "medium"
    assert result.errors == []
    assert result.is_valid
    assert result.score == 90


@pytest.mark.parametrize(
    ("unit_price", "quantity", "amount", "issue"),
    [
        (1000.0, 12, "$12,000.00", "high_total_amount"),
        (0.5, 1, "$0.50", "low_total_amount"),
    ],
)
def test_total_magnitude_is_a_low_warning(unit_price: float, quantity: int, amount: str, issue: str) -> None:
    """Test that implausibly large or small totals cost one warning."""
    item = LineItem(
        description="Batteries", quantity=quantity, unit_price=unit_price,
        total_price=unit_price * quantity, price=f"${unit_price:,.2f}",
    )

    result = ValidationEngine().validate(_invoice(items=[item], subtotal=amount, total=amount))

    assert [warning["type"] for warning in result.warnings] == [issue]
    assert result.warnings[0]["severity"] == "low"
    assert result.is_valid
    assert result.score == 95


def test_mixed_invoice_currencies() -> None:
    """Test that money fields in two currencies are flagged."""
    invoice = _invoice(subtotal="$10.00", total="10,00 €")

    result = ValidationEngine().validate(invoice)

    assert result.has_issue("inconsistent_invoice_currencies")


def test_mixed_item_currencies_are_informational() -> None:
    """Test that items in several currencies only add an info notice."""
    invoice = _invoice(
        items=[
            LineItem(description="Book", unit_price=10.0, price="$10.00"),
            LineItem(description="Buch", unit_price=10.0, price="10,00 €"),
        ],
        subtotal="$20.00",
        total="$20.00",
    )

    result = ValidationEngine().validate(invoice)

    assert [notice["type"] for notice in result.info] == ["multiple_currencies"]


@pytest.mark.parametrize(
    ("order_date", "issue"),
    [(f"{datetime.now().year + 3}-01-01", "future_date"), ("2005-06-01", "very_old_date")],
)
def test_implausible_dates(order_date: str, issue: str) -> None:
    """Test that implausible years are warnings, not errors."""
    result = ValidationEngine().validate(_invoice(order_date=order_date, total="$5.00"))

    assert result.has_issue(issue)
    assert result.is_valid


def test_missing_date_and_critical_fields() -> None:
    """Test completeness findings on an empty invoice."""
    result = ValidationEngine().validate(ExtractedInvoice())

    assert result.has_issue("missing_date")
    assert [error["fields"] for error in result.errors] == [["order_number"], ["total"]]
    assert not result.is_valid
    assert result.summary == "3 validation issue(s) found: 2 error(s), 1 warning(s)"


def test_failing_check_becomes_internal_warning(clean_invoice: ExtractedInvoice) -> None:
    """Test that a check that raises is reported and the rest still run."""
    engine = ValidationEngine()

    def check_dates(invoice, result, raw_text):
        raise RuntimeError("boom")

    engine.check_dates = check_dates
    clean_invoice.order_number = None

    result = engine.validate(clean_invoice)

    assert result.has_issue("validation_internal_error")
    assert result.has_issue("missing_critical_field")


def test_null_invoice() -> None:
    """Test that a missing invoice yields a single error."""
    result = validate_invoice(None)

    assert not result.is_valid
    assert result.errors[0]["type"] == "null_invoice"


def test_score_never_negative() -> None:
    """Test that the score is floored at zero."""
    invoice = ExtractedInvoice(
        order_date="undefined",
        items=[
            LineItem(description="Server", unit_price=6000.0, asin="B000000001"),
            LineItem(description="Server", unit_price=7000.0, asin="B000000001"),
        ],
        subtotal="12,80",
        shipping="abc",
        total="$0.50",
    )

    result = ValidationEngine().validate(invoice)

    assert result.score == 0


def test_validation_result_to_dict(clean_invoice: ExtractedInvoice) -> None:
    """Test the camelCase wire shape of a validation result."""
    data = ValidationEngine().validate(clean_invoice).to_dict()

    assert set(data) == {"score", "isValid", "warnings", "errors", "info", "summary"}


def test_date_validator_messages() -> None:
    """Test the feedback messages of the date validator."""
    validator = DateValidator()

    assert validator.validate("2023-12-15") == (True, "Valid date")
    assert validator.validate("") == (False, "Date is empty")
    assert validator.validate("2023-02-30") == (False, "Invalid date format: 2023-02-30")
    assert validator.is_valid("15.03.2024")


@pytest.mark.parametrize("amount", ["$172.78", "1.176,46 €", "£29.99", "CHF 45.90", "1,234円", "-$5.00"])
def test_amount_validator_accepts_money(amount: str) -> None:
    """Test recognised money shapes."""
    assert AmountValidator().validate(amount) == (True, "Valid amount")


@pytest.mark.parametrize("amount", ["12,80", "abc", "$"])
def test_amount_validator_rejects_bare_numbers(amount: str) -> None:
    """Test that amounts without a currency are flagged."""
    valid, message = AmountValidator().validate(amount)

    assert not valid
    assert message.startswith("Unrecognised money format")
