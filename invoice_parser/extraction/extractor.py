"""
Invoice Field Extractor.

A single extractor, parameterized by a LocaleRules table and an item
strategy, pulls every invoice field out of preprocessed text.

Field extraction never raises: each field is tried in isolation and a
field whose patterns find nothing usable is simply left empty. The
per-field entry point extract_field() does raise, so that error recovery
can record which field failed and why.

Author: ML Engineering Team
"""

from typing import Any, Dict, List, Optional

from invoice_parser.extraction.invoice import ExtractedInvoice, InvoiceBuilder, LineItem
from invoice_parser.extraction.rules import LocaleRules
from invoice_parser.extraction.strategies import ItemStrategy, LineItemStrategy
from invoice_parser.postprocessor.normalizers import AmountNormalizer, DateNormalizer, MoneyFormat
from invoice_parser.utils.exceptions import StructuralMismatchError
from invoice_parser.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

# Order id shape: three digit groups
ORDER_NUMBER_GROUPS = (3, 7, 7)

AMOUNT_FIELDS = ('subtotal', 'shipping', 'tax', 'discount', 'total')

# Fields counted by extraction metrics and error recovery
EXTRACTION_FIELDS = ('order_number', 'order_date', 'items', 'subtotal', 'shipping', 'tax', 'total')


def check_order_number(candidate: str) -> str:
    """
    Check that an order id candidate has the 3-7-7 digit shape.

    Args:
        candidate: Matched candidate string.

    Returns:
        The candidate, unchanged.

    Raises:
        StructuralMismatchError: If the candidate has another shape.

    Example:
        >>> check_order_number("123-4567890-1234567")
        "123-4567890-1234567"
        >>> check_order_number("12-4567890-1234567")
        Traceback (most recent call last):
        StructuralMismatchError: Candidate for 'order_number' failed shape validation
    """
    groups = candidate.split('-')
    if len(groups) != len(ORDER_NUMBER_GROUPS):
        raise StructuralMismatchError("order_number", candidate, f"expected {len(ORDER_NUMBER_GROUPS)} groups")

    for group, length in zip(groups, ORDER_NUMBER_GROUPS):
        if len(group) != length or not group.isdigit():
            raise StructuralMismatchError("order_number", candidate, f"group '{group}' is not {length} digits")

    return candidate


class InvoiceExtractor:
    """
    Extracts invoice fields using one locale's rule table.

    For every field the rule patterns are tried in order and the first
    usable match wins.

    Example:
        >>> extractor = InvoiceExtractor(get_rules('us'))
        >>> invoice = extractor.extract(text)
        >>> invoice.total
        "$172.78"
    """

    def __init__(self, rules: LocaleRules, item_strategy: Optional[ItemStrategy] = None) -> None:
        """
        Initialize the extractor.

        Args:
            rules: Locale rule table.
            item_strategy: Item layout strategy; one-line items by default.
        """
        self.rules = rules
        self.item_strategy = item_strategy or LineItemStrategy(rules)
        self.dates = DateNormalizer()
        self.amounts = AmountNormalizer()

        logger.debug(f"InvoiceExtractor initialized (rules={rules.name}, items={self.item_strategy.name})")

    def extract(self, text: str) -> ExtractedInvoice:
        """
        Extract a complete invoice from preprocessed text.

        Args:
            text: Preprocessed invoice text.

        Returns:
            Built ExtractedInvoice; missing fields are None.
        """
        builder = InvoiceBuilder()
        self.populate(builder, text)
        return builder.build()

    def populate(self, builder: InvoiceBuilder, text: str) -> InvoiceBuilder:
        """
        Write every extracted field into a builder.

        A missing subtotal is derived from the items and printed in the
        style of their prices.

        Args:
            builder: Builder of the invoice being assembled.
            text: Preprocessed invoice text.

        Returns:
            The same builder.
        """
        values: Dict[str, Any] = {
            name: self._extract_safely(name, text)
            for name in ('order_number', 'order_date', 'items') + AMOUNT_FIELDS
        }
        items = values['items'] or []

        if not values['subtotal'] and items:
            values['subtotal'] = self.derive_subtotal(items)

        builder.update(
            order_number=values['order_number'],
            order_date=values['order_date'],
            items=items,
            subtotal=values['subtotal'],
            shipping=values['shipping'],
            tax=values['tax'],
            discount=values['discount'],
            total=values['total'],
            currency=self.detect_currency(values, items)
        )
        return builder

    def _extract_safely(self, name: str, text: str) -> Any:
        """Run one field extraction, turning failures into a missing field."""
        try:
            return self.extract_field(name, text)
        except Exception as e:
            logger.debug(f"Extraction of '{name}' failed ({self.rules.name}): {e}")
            return None

    def extract_field(self, name: str, text: str) -> Any:
        """
        Extract one field by name.

        Args:
            name: Field name (order_number, order_date, items or an amount field).
            text: Preprocessed invoice text.

        Returns:
            The field value, or None ([] for items) when not found.

        Raises:
            ValueError: For an unknown field name.
        """
        if name == 'order_number':
            return self.extract_order_number(text)
        if name == 'order_date':
            return self.extract_order_date(text)
        if name == 'items':
            return self.extract_items(text)
        if name in AMOUNT_FIELDS:
            return self.extract_amount(name, text)
        raise ValueError(f"Unknown invoice field: {name}")

    def extract_order_number(self, text: str) -> Optional[str]:
        """
        Extract the order id.

        Candidates that fail the 3-7-7 shape check are skipped and the
        search continues with the next match.
        """
        if not text:
            return None

        for pattern in self.rules.order_number:
            for match in pattern.finditer(text):
                try:
                    return check_order_number(match.group(1))
                except StructuralMismatchError as e:
                    logger.debug(f"Rejected order number candidate: {e}")
        return None

    def extract_order_date(self, text: str) -> Optional[str]:
        """
        Extract the order date as YYYY-MM-DD.

        A matched token that is not a real calendar date (32 December,
        29 February 2023) is rejected and the search continues.
        """
        if not text:
            return None

        for pattern in self.rules.order_date:
            for match in pattern.finditer(text):
                normalized = self.dates.normalize(match.group(1), day_first=self.rules.day_first)
                if normalized:
                    return normalized
        return None

    def extract_items(self, text: str) -> List[LineItem]:
        """Extract line items with the configured item strategy."""
        if not text:
            return []
        return self.item_strategy.extract(text)

    def extract_amount(self, field_name: str, text: str) -> Optional[str]:
        """
        Extract one money field exactly as printed.

        Args:
            field_name: subtotal, shipping, tax, discount or total.
            text: Preprocessed invoice text.

        Returns:
            The money string (whitespace collapsed), or None.
        """
        if not text:
            return None

        for pattern in self.rules.amount_patterns(field_name):
            match = pattern.search(text)
            if match:
                return ' '.join(match.group(1).split())
        return None

    def derive_subtotal(self, items: List[LineItem]) -> Optional[str]:
        """
        Sum item totals.

        The sum is printed the way the first item price is printed, or in
        the locale's money format when no item price carries a sign.
        """
        totals = [item.total_price for item in items if item.total_price is not None]
        if not totals:
            return None
        printed = (MoneyFormat.infer(item.price) for item in items if item.price)
        money = next((fmt for fmt in printed if fmt is not None), self.rules.money)
        subtotal = money.format(round(sum(totals), 2))
        logger.debug(f"Subtotal derived from {len(totals)} item(s): {subtotal}")
        return subtotal

    def detect_currency(self, values: Dict[str, Any], items: List[LineItem]) -> Optional[str]:
        """
        ISO currency of the invoice.

        Taken from the first printed money field (total first), then from
        the items, then the locale default.
        """
        for name in ('total', 'subtotal', 'shipping', 'tax'):
            symbol = self.amounts.currency_symbol(values.get(name))
            if symbol:
                return self.rules.currency_for(symbol)
        for item in items:
            if item.currency:
                return item.currency
        return self.rules.currency or None


def calculate_extraction_metrics(invoice: ExtractedInvoice) -> Dict[str, Any]:
    """
    Per-field extraction success for an invoice.

    Args:
        invoice: Extracted (or recovered) invoice.

    Returns:
        Dictionary with per-field success, the overall success ratio and
        item details.

    Example:
        >>> calculate_extraction_metrics(invoice)["extractionSuccess"]
        1.0
    """
    missing = invoice.missing_fields
    fields = {name: name not in missing for name in EXTRACTION_FIELDS}
    successful = sum(1 for extracted in fields.values() if extracted)

    return {
        'fields': fields,
        'successfulFields': successful,
        'totalFields': len(fields),
        'extractionSuccess': round(successful / len(fields), 2),
        'itemCount': len(invoice.items),
        'itemsWithAsin': sum(1 for item in invoice.items if item.asin),
        'itemsWithPrice': sum(1 for item in invoice.items if item.unit_price is not None),
        'items': [
            {
                'description': item.description[:60],
                'quantity': item.quantity,
                'unitPrice': item.unit_price,
                'totalPrice': item.total_price
            }
            for item in invoice.items
        ]
    }
