"""Shared fixtures for invoice parser tests."""

from collections.abc import Generator

import pytest

from config import ConfigurationManager
from invoice_parser.extraction import ExtractedInvoice, LineItem

DOMESTIC_INVOICE = """amazon.com
Order #123-4567890-1234567
Order Placed: December 15, 2023

Items Ordered
1 of: Wireless Noise Cancelling Headphones $129.99
1 of: USB-C Charging Cable $29.99

Subtotal: $159.98
Shipping: $0.00
Tax: $12.80
Grand Total: $172.78
"""

GERMAN_CONSUMER_INVOICE = """amazon.de
Rechnung
Bestellnummer: 302-1234567-1234567
Bestelldatum: 15.03.2024
Lieferanschrift

Echo Dot (5. Generation) Smart Lautsprecher
ASIN: B09B8V1LZ3
49,99 €

Zwischensumme: 49,99 €
Versandkosten: 0,00 €
Gesamtbetrag: 49,99 €
"""

GERMAN_BUSINESS_INVOICE = """amazon.de
Rechnung
Rechnung an
Muster GmbH
USt-IdNr: DE123456789
Bestellnummer: 302-7654321-7654321
Bestelldatum: 10.01.2024

Echo Dot Smart Speaker
ASIN: B09B8V1LZ3
42,01 €
19 %
(2)
42,01 €
84,02 €

Zwischensumme: 84,02 €
Versandkosten: 0,00 €
Gesamtbetrag: 84,02 €
"""

# Quantity column glued to the unit price: "1" + "176,46 €"
GLUED_PRICE_TEXT = """Bosch Professional Akkuschrauber GSR 12V-15
ASIN: B00D3YOIQA
1176,46 €
176,46 €
"""


@pytest.fixture(autouse=True)
def reset_config() -> Generator[None, None, None]:
    """Discard configuration overrides after each test."""
    yield
    ConfigurationManager.reset()


@pytest.fixture
def domestic_text() -> str:
    """Single-shipment amazon.com invoice text."""
    return DOMESTIC_INVOICE


@pytest.fixture
def german_consumer_text() -> str:
    """amazon.de consumer invoice text."""
    return GERMAN_CONSUMER_INVOICE


@pytest.fixture
def german_business_text() -> str:
    """amazon.de business invoice text with a price column block."""
    return GERMAN_BUSINESS_INVOICE


@pytest.fixture
def glued_price_text() -> str:
    """Consumer item whose quantity was glued to its price."""
    return GLUED_PRICE_TEXT


@pytest.fixture
def clean_invoice() -> ExtractedInvoice:
    """Internally consistent single-item domestic invoice."""
    return ExtractedInvoice(
        order_number="123-4567890-1234567",
        order_date="2023-12-15",
        items=[
            LineItem(
                description="Kindle Paperwhite",
                quantity=1,
                unit_price=129.99,
                total_price=129.99,
                price="$129.99",
                currency="USD",
            )
        ],
        subtotal="$129.99",
        shipping="$0.00",
        tax="$10.40",
        total="$140.39",
        vendor="Amazon",
        currency="USD",
    )
