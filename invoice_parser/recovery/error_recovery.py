"""
Error Recovery Module.

When the pipeline fails on a document, the error is categorized and every
field is extracted again on its own so that a partial invoice can still be
returned. Recovery itself never raises.

Author: ML Engineering Team
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from config import get_config
from invoice_parser.extraction import (
    EXTRACTION_FIELDS,
    ExtractedInvoice,
    InvoiceBuilder,
    InvoiceExtractor,
    get_rules,
)
from invoice_parser.utils.exceptions import CriticalError, RecoverableError
from invoice_parser.utils.helpers import generate_timestamp
from invoice_parser.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


# Error levels
LEVEL_CRITICAL = "critical"
LEVEL_RECOVERABLE = "recoverable"
LEVEL_INFO = "info"

CRITICAL_FIELDS = ('order_number', 'order_date')

FILE_ACCESS_SIGNALS = ('file not found', 'permission denied', 'invalid file type')
PDF_SIGNALS = ('pdf parsing failed', 'invalid pdf')


@dataclass
class CategorizedError:
    """
    An error sorted into a recovery category.

    Attributes:
        level: critical, recoverable or info
        type: Category name (file_access_error, pdf_parsing_error, ...)
        message: Original error message
        context: Pipeline stage where the error occurred
        recoverable: Whether field-by-field recovery is attempted
        suggestion: Short advice for the category
    """
    level: str
    type: str
    message: str
    context: str = ""
    recoverable: bool = True
    suggestion: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'level': self.level,
            'type': self.type,
            'message': self.message,
            'context': self.context,
            'recoverable': self.recoverable,
            'suggestion': self.suggestion
        }


@dataclass
class RecoveryRecord:
    """
    Outcome of a recovery attempt.

    Attributes:
        error: The categorized original error
        confidence: Per-field confidence (1.0 extracted, 0.0 absent)
        overall_confidence: Fraction of fields recovered
        usable: Whether the partial data is worth returning
        suggestions: Ranked {action, description, priority} entries
        partial_data: The recovered invoice, if any
        field_errors: Per-field failures recorded during recovery
        timestamp: When recovery ran
    """
    error: CategorizedError
    confidence: Dict[str, float] = field(default_factory=dict)
    overall_confidence: float = 0.0
    usable: bool = False
    suggestions: List[Dict[str, str]] = field(default_factory=list)
    partial_data: Optional[ExtractedInvoice] = None
    field_errors: List[Dict[str, str]] = field(default_factory=list)
    timestamp: str = field(default_factory=generate_timestamp)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary.

        The partial invoice is left out; it is the object this record is
        attached to.
        """
        return {
            'mode': 'partial_recovery',
            'error': self.error.to_dict(),
            'confidence': dict(self.confidence, overall=round(self.overall_confidence, 2)),
            'usable': self.usable,
            'suggestions': self.suggestions,
            'errors': self.field_errors,
            'recoveryAttempted': self.timestamp
        }


def _suggestion(action: str, description: str, priority: str) -> Dict[str, str]:
    return {'action': action, 'description': description, 'priority': priority}


class ErrorRecovery:
    """
    Categorizes pipeline errors and salvages partial invoice data.

    Example:
        >>> recovery = ErrorRecovery()
        >>> record = recovery.recover(text, error, context="field-extraction")
        >>> if record.usable:
        ...     invoice = record.partial_data
    """

    def __init__(self, extractor: Optional[InvoiceExtractor] = None) -> None:
        """
        Initialize error recovery.

        Args:
            extractor: Extractor used for field-by-field recovery;
                the English rule table by default.
        """
        self.extractor = extractor
        self.min_overall = get_config("recovery.min_overall_confidence", 0.3)
        self.high_confidence = get_config("recovery.high_confidence", 0.7)
        self.medium_confidence = get_config("recovery.medium_confidence", 0.3)

    def categorize(self, error: BaseException, context: str = "") -> CategorizedError:
        """
        Sort an error into a recovery category.

        Args:
            error: The exception raised by the pipeline.
            context: Stage name such as "pdf-parsing" or "field-extraction".

        Returns:
            CategorizedError.
        """
        message = str(error)
        lowered = message.lower()
        context = context or ""

        if isinstance(error, CriticalError) or any(signal in lowered for signal in FILE_ACCESS_SIGNALS):
            return CategorizedError(
                LEVEL_CRITICAL, 'file_access_error', message, context,
                recoverable=False, suggestion="Check file path and permissions"
            )

        if any(signal in lowered for signal in PDF_SIGNALS) or context == 'pdf-parsing':
            return CategorizedError(
                LEVEL_RECOVERABLE, 'pdf_parsing_error', message, context,
                suggestion="Try re-saving PDF or check file corruption"
            )

        if (isinstance(error, RecoverableError)
                or 'field-extraction' in context
                or 'extraction failed' in lowered):
            return CategorizedError(
                LEVEL_RECOVERABLE, 'field_extraction_error', message, context,
                suggestion="Partial data extraction attempted - check results"
            )

        if 'validation' in lowered or 'validation' in context:
            return CategorizedError(
                LEVEL_INFO, 'validation_warning', message, context,
                suggestion="Data validated with warnings - review validation results"
            )

        return CategorizedError(
            LEVEL_RECOVERABLE, 'unknown_error', message, context,
            suggestion="Unexpected error occurred - partial recovery attempted"
        )

    def recover(
        self,
        text: Optional[str],
        error: BaseException,
        context: str = "",
        extractor: Optional[InvoiceExtractor] = None
    ) -> RecoveryRecord:
        """
        Categorize an error and attempt field-by-field recovery.

        Args:
            text: Document text (preprocessed when available).
            error: The exception raised by the pipeline.
            context: Stage where the error occurred.
            extractor: Extractor to use instead of the default one.

        Returns:
            RecoveryRecord; usable=False when nothing worth returning
            was found.
        """
        categorized = self.categorize(error, context)
        record = RecoveryRecord(error=categorized)

        try:
            if categorized.recoverable:
                self._extract_partial(record, text or "", error, extractor)
            record.suggestions = self.suggest(categorized, record.usable, record.overall_confidence)
        except Exception as e:
            logger.error(f"Recovery failed: {e}")
            record.usable = False

        if record.usable:
            logger.warning(
                f"Recovered partial invoice after {categorized.type} "
                f"(confidence {record.overall_confidence:.2f})"
            )
        else:
            logger.error(f"Recovery unusable after {categorized.type}: {categorized.message}")
        return record

    def _extract_partial(
        self,
        record: RecoveryRecord,
        text: str,
        error: BaseException,
        extractor: Optional[InvoiceExtractor]
    ) -> None:
        """Re-run each field extraction in isolation and fill the record."""
        extractor = extractor or self.extractor or InvoiceExtractor(get_rules('en'))
        builder = InvoiceBuilder()

        successes = 0
        for name in EXTRACTION_FIELDS:
            try:
                value = extractor.extract_field(name, text)
            except Exception as e:
                value = None
                record.field_errors.append({'field': name, 'type': 'extraction_error', 'message': str(e)})
                if name in CRITICAL_FIELDS:
                    record.field_errors.append({
                        'field': name,
                        'type': 'critical_field_error',
                        'message': f"Critical field {name} failed: {e}"
                    })

            if value:
                builder.set(name, value)
                record.confidence[name] = 1.0
                successes += 1
            else:
                builder.set(name, [] if name == 'items' else None)
                record.confidence[name] = 0.0
                if name in CRITICAL_FIELDS and not any(e['field'] == name for e in record.field_errors):
                    record.field_errors.append({
                        'field': name,
                        'type': 'field_not_found',
                        'message': f"{name} could not be extracted"
                    })

        record.overall_confidence = successes / len(EXTRACTION_FIELDS)
        critical_found = all(record.confidence[name] > 0 for name in CRITICAL_FIELDS)
        record.usable = critical_found and record.overall_confidence > self.min_overall

        builder.add_metadata('mode', 'partial_recovery')
        builder.add_metadata('original_error', str(error))
        builder.add_metadata('parser', {'variant': extractor.rules.name})
        builder.set('recovery', record)
        record.partial_data = builder.build()

    def suggest(self, categorized: CategorizedError, usable: bool, overall: float) -> List[Dict[str, str]]:
        """
        Ranked recovery suggestions for an error category.

        Args:
            categorized: The categorized error.
            usable: Whether partial data is usable.
            overall: Overall recovery confidence.

        Returns:
            List of {action, description, priority} dictionaries.
        """
        suggestions = []

        if categorized.type == 'pdf_parsing_error':
            suggestions.append(_suggestion(
                'resave_pdf', 'Re-save the PDF using "Save As" in your PDF viewer', 'high'))
            suggestions.append(_suggestion(
                'check_corruption', 'Verify PDF is not corrupted by opening in a PDF viewer', 'high'))
            if usable:
                suggestions.append(_suggestion(
                    'use_partial_data',
                    'Partial data extracted successfully - review and supplement manually', 'medium'))

        elif categorized.type == 'field_extraction_error':
            if usable:
                suggestions.append(_suggestion(
                    'manual_review', 'Review partial data and manually add missing fields', 'medium'))
            suggestions.append(_suggestion(
                'check_format', 'Verify invoice format matches supported Amazon templates', 'low'))

        elif categorized.type == 'file_access_error':
            suggestions.append(_suggestion(
                'check_permissions', 'Ensure read permissions on file and directory', 'high'))
            suggestions.append(_suggestion(
                'verify_path', 'Double-check file path and filename', 'high'))

        else:
            if usable:
                suggestions.append(_suggestion(
                    'use_extracted_data', 'Partial data available for use', 'medium'))
            suggestions.append(_suggestion(
                'contact_support', 'Report issue for investigation', 'low'))

        if overall > self.high_confidence:
            suggestions.insert(0, _suggestion(
                'high_confidence_data', 'High confidence data extracted - safe to use', 'high'))
        elif overall > self.medium_confidence:
            suggestions.insert(0, _suggestion(
                'medium_confidence_data', 'Medium confidence data - manual verification recommended', 'medium'))

        return suggestions
