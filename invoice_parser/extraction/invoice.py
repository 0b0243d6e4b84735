"""
Invoice Data Classes.

This module defines the purchase record produced by the pipeline:
    - LineItem: one ordered product
    - ExtractedInvoice: order metadata, items, money fields and the
      metadata attached by the pipeline stages
    - InvoiceBuilder: threads an invoice through the stages and freezes
      it on build()

Money fields are kept exactly as printed on the invoice ("$172.78",
"1.176,46 €"). Only LineItem carries numeric prices.

Author: ML Engineering Team
"""

import copy
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from config import get_config
from invoice_parser.utils.exceptions import BuilderFinalizedError
from invoice_parser.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


@dataclass
class LineItem:
    """
    One ordered product.

    Attributes:
        description: Product description as printed
        quantity: Ordered quantity
        unit_price: Price per unit
        total_price: Line total
        price: Verbatim formatted unit price ("$129.99", "176,46 €")
        asin: Catalog identifier, when the layout prints one
        currency: ISO currency code
    """
    description: str
    quantity: int = 1
    unit_price: Optional[float] = None
    total_price: Optional[float] = None
    price: Optional[str] = None
    asin: Optional[str] = None
    currency: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase wire shape."""
        return {
            'description': self.description,
            'quantity': self.quantity,
            'unitPrice': self.unit_price,
            'totalPrice': self.total_price,
            'price': self.price,
            'asin': self.asin,
            'currency': self.currency
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LineItem':
        """Create a LineItem from its wire shape."""
        return cls(
            description=data.get('description', ''),
            quantity=data.get('quantity', 1),
            unit_price=data.get('unitPrice'),
            total_price=data.get('totalPrice'),
            price=data.get('price'),
            asin=data.get('asin'),
            currency=data.get('currency')
        )


def _serialize(value: Any) -> Any:
    """Wire form of an attached stage result."""
    if value is None:
        return None
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    return value


@dataclass
class ExtractedInvoice:
    """
    Represents a parsed invoice.

    Attributes:
        order_number: Order id in 3-7-7 digit form
        order_date: ISO date (YYYY-MM-DD)
        items: Ordered line items, never None
        subtotal: Subtotal as printed, or derived from items
        shipping: Shipping cost as printed
        tax: Tax amount as printed
        discount: Discount as printed
        total: Total as printed
        vendor: Vendor name
        currency: ISO currency code
        language_detection: LanguageDetection of the document
        format_classification: FormatClassification of the document
        processing_metadata: Stage metadata (route, lengths, timestamp)
        performance_metrics: Stage timings and extraction ratio
        validation: ValidationResult, attached after extraction
        recovery: RecoveryRecord, only on the failure path

    Example:
        >>> invoice = ExtractedInvoice(
        ...     order_number="123-4567890-1234567",
        ...     order_date="2023-12-15",
        ...     total="$172.78"
        ... )
        >>> print(invoice.to_json())
    """
    # Core fields
    order_number: Optional[str] = None
    order_date: Optional[str] = None
    items: List[LineItem] = field(default_factory=list)
    subtotal: Optional[str] = None
    shipping: Optional[str] = None
    tax: Optional[str] = None
    discount: Optional[str] = None
    total: Optional[str] = None
    vendor: Optional[str] = None
    currency: Optional[str] = None

    # Attached by the pipeline stages
    language_detection: Any = None
    format_classification: Any = None
    processing_metadata: Dict[str, Any] = field(default_factory=dict)
    performance_metrics: Dict[str, Any] = field(default_factory=dict)
    validation: Any = None
    recovery: Any = None

    @property
    def fields(self) -> Dict[str, Any]:
        """
        Get the extracted fields counted by extraction metrics.

        Returns:
            Dictionary of field names to values.
        """
        return {
            'order_number': self.order_number,
            'order_date': self.order_date,
            'items': self.items,
            'subtotal': self.subtotal,
            'shipping': self.shipping,
            'tax': self.tax,
            'total': self.total
        }

    @property
    def missing_fields(self) -> List[str]:
        """Get list of fields that were not extracted."""
        return [k for k, v in self.fields.items() if v is None or v == "" or v == []]

    @property
    def extracted_fields(self) -> Dict[str, Any]:
        """Get only fields that have values."""
        return {k: v for k, v in self.fields.items() if k not in self.missing_fields}

    @property
    def extraction_rate(self) -> float:
        """
        Calculate the percentage of fields successfully extracted.

        Returns:
            Extraction rate as a percentage (0-100).
        """
        total = len(self.fields)
        extracted = len(self.extracted_fields)
        return (extracted / total) * 100 if total > 0 else 0

    @property
    def is_valid(self) -> bool:
        """Whether validation ran and passed."""
        return bool(self.validation is not None and self.validation.is_valid)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to the camelCase wire shape.

        Returns:
            Dictionary representation of the invoice. The "recovery" key
            is present only on the failure path.
        """
        result = {
            'orderNumber': self.order_number,
            'orderDate': self.order_date,
            'items': [item.to_dict() for item in self.items],
            'subtotal': self.subtotal,
            'shipping': self.shipping,
            'tax': self.tax,
            'discount': self.discount,
            'total': self.total,
            'currency': self.currency,
            'vendor': self.vendor,
            'validation': _serialize(self.validation),
            'languageDetection': _serialize(self.language_detection),
            'formatClassification': _serialize(self.format_classification),
            'processingMetadata': self.processing_metadata,
            'performanceMetrics': self.performance_metrics
        }
        if self.recovery is not None:
            result['recovery'] = _serialize(self.recovery)
        return result

    def to_json(self, indent: int = 2) -> str:
        """
        Convert to JSON string.

        Args:
            indent: JSON indentation level.

        Returns:
            JSON string representation.
        """
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExtractedInvoice':
        """
        Create an ExtractedInvoice from its wire shape.

        Attached stage results are kept as plain dictionaries.

        Args:
            data: Dictionary in the camelCase wire shape.

        Returns:
            ExtractedInvoice instance.
        """
        return cls(
            order_number=data.get('orderNumber'),
            order_date=data.get('orderDate'),
            items=[LineItem.from_dict(item) for item in data.get('items') or []],
            subtotal=data.get('subtotal'),
            shipping=data.get('shipping'),
            tax=data.get('tax'),
            discount=data.get('discount'),
            total=data.get('total'),
            vendor=data.get('vendor'),
            currency=data.get('currency'),
            language_detection=data.get('languageDetection'),
            format_classification=data.get('formatClassification'),
            processing_metadata=data.get('processingMetadata') or {},
            performance_metrics=data.get('performanceMetrics') or {},
            validation=data.get('validation'),
            recovery=data.get('recovery')
        )

    def __repr__(self) -> str:
        return (
            f"ExtractedInvoice("
            f"order={self.order_number}, "
            f"date={self.order_date}, "
            f"items={len(self.items)}, "
            f"total={self.total}, "
            f"rate={self.extraction_rate:.0f}%)"
        )


class InvoiceBuilder:
    """
    Assembles an ExtractedInvoice across pipeline stages.

    Every stage writes into the same builder; build() hands out the
    finished invoice and any later change raises BuilderFinalizedError.

    Example:
        >>> builder = InvoiceBuilder()
        >>> builder.set('order_number', '123-4567890-1234567')
        >>> builder.add_metadata('pipeline', 'invoice_parser')
        >>> invoice = builder.build()
        >>> builder.set('total', '$1.00')
        Traceback (most recent call last):
        BuilderFinalizedError: Invoice already built; refusing further changes
    """

    def __init__(self, vendor: Optional[str] = None) -> None:
        """
        Initialize the builder.

        Args:
            vendor: Vendor name; defaults to extraction.vendor.
        """
        self._invoice = ExtractedInvoice(
            vendor=vendor or get_config("extraction.vendor", "Amazon")
        )
        self._built = False

    @property
    def built(self) -> bool:
        """Whether build() has been called."""
        return self._built

    def _check_open(self, field_name: str) -> None:
        if self._built:
            raise BuilderFinalizedError(field_name)

    def set(self, field_name: str, value: Any) -> 'InvoiceBuilder':
        """
        Set one invoice field.

        Args:
            field_name: Attribute name of ExtractedInvoice.
            value: New value.

        Returns:
            The builder, for chaining.

        Raises:
            BuilderFinalizedError: If build() was already called.
            AttributeError: If the invoice has no such field.
        """
        self._check_open(field_name)
        if not hasattr(self._invoice, field_name):
            raise AttributeError(f"ExtractedInvoice has no field '{field_name}'")
        if field_name == 'items' and value is None:
            value = []
        setattr(self._invoice, field_name, value)
        return self

    def update(self, **fields: Any) -> 'InvoiceBuilder':
        """Set several fields at once."""
        for name, value in fields.items():
            self.set(name, value)
        return self

    def add_item(self, item: LineItem) -> 'InvoiceBuilder':
        """Append one line item."""
        self._check_open('items')
        self._invoice.items.append(item)
        return self

    def add_metadata(self, key: str, value: Any) -> 'InvoiceBuilder':
        """Record one processing_metadata entry."""
        self._check_open('processing_metadata')
        self._invoice.processing_metadata[key] = value
        return self

    def add_metric(self, key: str, value: Any) -> 'InvoiceBuilder':
        """Record one performance_metrics entry."""
        self._check_open('performance_metrics')
        self._invoice.performance_metrics[key] = value
        return self

    def preview(self) -> ExtractedInvoice:
        """
        Copy of the invoice as assembled so far.

        Used by stages (validation, metrics) that need to read the invoice
        before it is finalized. Changes to the copy do not reach the builder.
        """
        return copy.deepcopy(self._invoice)

    def build(self) -> ExtractedInvoice:
        """
        Finalize and return the invoice.

        Returns:
            The assembled ExtractedInvoice. Repeated calls return the
            same object.
        """
        if not self._built:
            self._built = True
            logger.debug(f"Invoice built: {self._invoice!r}")
        return self._invoice
