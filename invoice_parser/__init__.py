"""
Invoice Parser - Package.

Turns the plain text of marketplace purchase invoices into structured,
validated invoice records. Each sub-package has a single responsibility.

Modules:
    - preprocessing: Locale-agnostic and format-specific text cleanup
    - classification: Format/subtype classification and language detection
    - extraction: Invoice data classes, locale rule tables, item strategies
    - postprocessor: Normalization and cross-field validation
    - recovery: Error categorization and partial-data recovery
    - pipeline: Routing, orchestration and batch reporting
    - utils: Logging, exceptions and helpers

Architecture:
    Preprocess → Classify → Format-Preprocess → Detect-Language → Route
        → Extract → Validate → Attach-Metadata
                                    ↓ (on failure)
                              Error Recovery
"""

__version__ = "1.0.0"
__author__ = "ML Engineering Team"

from .pipeline import InvoicePipeline, generate_performance_report, parse_invoice, parse_many
from .extraction import ExtractedInvoice, InvoiceBuilder, LineItem
from .postprocessor import ValidationEngine, ValidationResult
from .recovery import ErrorRecovery, RecoveryRecord

__all__ = [
    'InvoicePipeline',
    'parse_invoice',
    'parse_many',
    'generate_performance_report',
    'ExtractedInvoice',
    'InvoiceBuilder',
    'LineItem',
    'ValidationEngine',
    'ValidationResult',
    'ErrorRecovery',
    'RecoveryRecord'
]
