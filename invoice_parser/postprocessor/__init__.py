"""
Post-Processing Module for the Invoice Parser.

This module provides functionality for:
    - Date normalization
    - Amount/currency normalization and money formatting
    - Cross-field validation and data-quality scoring
    - Wire schema checks of the parsed output

Author: ML Engineering Team
"""

from .normalizers import DateNormalizer, AmountNormalizer, MoneyFormat
from .validators import (
    DateValidator,
    AmountValidator,
    ValidationEngine,
    ValidationResult,
    validate_invoice
)
from .schema import InvoiceSchema, check_invoice_shape

__all__ = [
    'DateNormalizer',
    'AmountNormalizer',
    'MoneyFormat',
    'DateValidator',
    'AmountValidator',
    'ValidationEngine',
    'ValidationResult',
    'validate_invoice',
    'InvoiceSchema',
    'check_invoice_shape'
]
