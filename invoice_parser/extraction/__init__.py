"""
Extraction Module for the Invoice Parser.

This module provides:
    - The invoice data classes and their builder
    - Declarative per-locale rule tables
    - Item layout strategies (one-line, EU business, EU consumer)
    - The parameterized field extractor

Author: ML Engineering Team
"""

from .invoice import ExtractedInvoice, InvoiceBuilder, LineItem
from .rules import LOCALE_RULES, LocaleRules, get_rules
from .strategies import BusinessItemStrategy, ConsumerItemStrategy, ItemStrategy, LineItemStrategy
from .extractor import (
    EXTRACTION_FIELDS,
    InvoiceExtractor,
    calculate_extraction_metrics,
    check_order_number,
)

__all__ = [
    'ExtractedInvoice',
    'InvoiceBuilder',
    'LineItem',
    'LOCALE_RULES',
    'LocaleRules',
    'get_rules',
    'ItemStrategy',
    'LineItemStrategy',
    'BusinessItemStrategy',
    'ConsumerItemStrategy',
    'EXTRACTION_FIELDS',
    'InvoiceExtractor',
    'calculate_extraction_metrics',
    'check_order_number'
]
