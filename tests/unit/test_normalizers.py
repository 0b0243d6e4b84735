"""Unit tests for date and amount normalization."""

import pytest

from invoice_parser.postprocessor import AmountNormalizer, DateNormalizer, MoneyFormat


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("December 15, 2023", "2023-12-15"),
        ("Dec 15th, 2023", "2023-12-15"),
        ("15. Dezember 2023", "2023-12-15"),
        ("15 décembre 2023", "2023-12-15"),
        ("15 de diciembre de 2023", "2023-12-15"),
        ("1er novembre 2023", "2023-11-01"),
        ("15.12.2023", "2023-12-15"),
        ("2023-12-15", "2023-12-15"),
        ("2023年12月15日", "2023-12-15"),
    ],
)
def test_normalize_date_formats(raw: str, expected: str) -> None:
    """Test that every recognised ordering gives an ISO date."""
    assert DateNormalizer().normalize(raw) == expected


def test_normalize_numeric_date_by_locale() -> None:
    """Test that ambiguous numeric dates follow the locale ordering."""
    normalizer = DateNormalizer()

    assert normalizer.normalize("03/04/2024", day_first=True) == "2024-04-03"
    assert normalizer.normalize("03/04/2024", day_first=False) == "2024-03-04"
    assert normalizer.normalize("12/25/2023", day_first=True) == "2023-12-25"


@pytest.mark.parametrize("raw", ["December 32, 2023", "29/02/2023", "29.02.2023", "31.04.2024"])
def test_normalize_rejects_impossible_dates(raw: str) -> None:
    """Test that impossible calendar dates are rejected, not clamped."""
    assert DateNormalizer().normalize(raw) is None


def test_normalize_accepts_leap_day() -> None:
    """Test that 29 February is accepted in a leap year."""
    assert DateNormalizer().normalize("29.02.2024") == "2024-02-29"


@pytest.mark.parametrize("raw", ["", None, "undefined", "null", "NaN", "Invalid"])
def test_normalize_placeholders(raw) -> None:
    """Test that empty and placeholder values give None."""
    assert DateNormalizer().normalize(raw) is None


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("$1,234.56", 1234.56),
        ("1.234,56 €", 1234.56),
        ("12,80 €", 12.80),
        ("£29.99", 29.99),
        ("CHF 1'234.50", 1234.50),
        ("-$5.00", -5.00),
        (42, 42.0),
    ],
)
def test_amount_to_float(raw, expected: float) -> None:
    """Test conversion of locale-formatted money strings."""
    assert AmountNormalizer().to_float(raw) == pytest.approx(expected)


def test_amount_to_float_uses_decimal_hint() -> None:
    """Test that the locale hint resolves three-digit groups."""
    normalizer = AmountNormalizer()

    assert normalizer.to_float("1.234 €", ",") == pytest.approx(1234.0)
    assert normalizer.to_float("1,234") == pytest.approx(1234.0)


def test_amount_to_float_unparseable() -> None:
    """Test that values without digits give None."""
    normalizer = AmountNormalizer()

    assert normalizer.to_float("") is None
    assert normalizer.to_float(None) is None
    assert normalizer.to_float("EUR") is None


@pytest.mark.parametrize(
    ("raw", "symbol"),
    [("$12.80", "$"), ("12,80 €", "€"), ("EUR 5,00", "€"), ("CHF 45.90", "CHF"), ("1.234円", "¥"), ("12.80", None)],
)
def test_currency_symbol(raw: str, symbol) -> None:
    """Test canonical currency detection."""
    assert AmountNormalizer().currency_symbol(raw) == symbol


def test_money_format_renders_locale_style() -> None:
    """Test rendering of derived amounts in each locale style."""
    euro = MoneyFormat("€", prefix=False, decimal_separator=",", thousands_separator=".", spaced=True)

    assert euro.format(1176.46) == "1.176,46 €"
    assert MoneyFormat("$").format(159.98) == "$159.98"
    assert MoneyFormat("$").format(-5) == "-$5.00"
    assert MoneyFormat("¥", decimals=0).format(1234) == "¥1,234"


@pytest.mark.parametrize(
    ("printed", "value", "expected"),
    [
        ("10,00 €", 20, "20,00 €"),
        ("1.150,00 €", 1176.46, "1.176,46 €"),
        ("$129.99", 1234.5, "$1,234.50"),
        ("CHF 45.90", 91.8, "CHF 91.80"),
        ("£12.00", 24, "£24.00"),
        ("¥1,200", 3600, "¥3,600"),
    ],
)
def test_money_format_inferred_from_printed_amount(printed: str, value: float, expected: str) -> None:
    """Test that a printed amount yields a format that prints new amounts alike."""
    assert MoneyFormat.infer(printed).format(value) == expected


@pytest.mark.parametrize("printed", [None, "", "12,80", "Widget"])
def test_money_format_not_inferred_without_sign(printed) -> None:
    """Test that amounts without a currency sign yield no format."""
    assert MoneyFormat.infer(printed) is None
