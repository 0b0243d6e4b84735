"""
Batch Performance Reporting.

Aggregates the metrics attached to a batch of parsed invoices: success
rate, processing times, extraction success, language and parser
distribution and the validation pass rate.

Author: ML Engineering Team
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from invoice_parser.extraction import EXTRACTION_FIELDS, calculate_extraction_metrics
from invoice_parser.extraction.invoice import ExtractedInvoice
from invoice_parser.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

PERCENTILES = (50, 90, 95)


def percentile(values: Sequence[float], rank: int) -> float:
    """
    Nearest-rank percentile.

    Args:
        values: Sample values.
        rank: Percentile rank (0-100).

    Returns:
        The percentile value, or 0.0 for no samples.
    """
    if not values:
        return 0.0
    ordered = sorted(values)
    index = max(0, math.ceil(rank / 100 * len(ordered)) - 1)
    return ordered[index]


@dataclass
class PerformanceReport:
    """
    Aggregated metrics of a batch of parsed invoices.

    Attributes:
        total_invoices: Number of inputs
        successful_invoices: Inputs that produced an invoice
        recovered_invoices: Invoices returned by error recovery
        success_rate: successful / total (0-1)
        processing_times: average, min, max, total and percentiles (ms)
        average_extraction_success: Mean extraction success ratio (0-1)
        field_success_rates: Per-field extraction rate (0-1)
        languages: Count and average confidence per language
        parsers: Count per parser variant
        validation_pass_rate: Share of invoices that passed validation (0-1)
        timestamp: Report timestamp
    """
    total_invoices: int = 0
    successful_invoices: int = 0
    recovered_invoices: int = 0
    success_rate: float = 0.0
    processing_times: Dict[str, float] = field(default_factory=dict)
    average_extraction_success: float = 0.0
    field_success_rates: Dict[str, float] = field(default_factory=dict)
    languages: Dict[str, Dict[str, float]] = field(default_factory=dict)
    parsers: Dict[str, int] = field(default_factory=dict)
    validation_pass_rate: float = 0.0
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()

    @property
    def failed_invoices(self) -> int:
        return self.total_invoices - self.successful_invoices

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase report shape."""
        return {
            'summary': {
                'totalInvoices': self.total_invoices,
                'successfulInvoices': self.successful_invoices,
                'failedInvoices': self.failed_invoices,
                'recoveredInvoices': self.recovered_invoices,
                'successRate': self.success_rate
            },
            'performance': dict(self.processing_times),
            'extraction': {
                'averageExtractionSuccess': self.average_extraction_success,
                'fieldSuccessRates': dict(self.field_success_rates)
            },
            'languages': {code: dict(stats) for code, stats in self.languages.items()},
            'parsers': dict(self.parsers),
            'validationPassRate': self.validation_pass_rate,
            'timestamp': self.timestamp
        }

    def print_report(self) -> str:
        """Generate a formatted report string."""
        lines = [
            "=" * 60,
            "INVOICE PARSING PERFORMANCE REPORT",
            "=" * 60,
            f"Timestamp: {self.timestamp}",
            f"Invoices: {self.successful_invoices}/{self.total_invoices} parsed "
            f"({self.recovered_invoices} recovered)",
            "-" * 60,
            "",
            "OVERALL METRICS:",
            f"  Success Rate:         {self.success_rate * 100:.1f}%",
            f"  Extraction Success:   {self.average_extraction_success * 100:.1f}%",
            f"  Validation Pass Rate: {self.validation_pass_rate * 100:.1f}%",
            f"  Avg Time:             {self.processing_times.get('average', 0.0):.1f} ms",
            "",
            "-" * 60,
            "FIELD SUCCESS RATES:",
            "",
        ]

        for name, rate in self.field_success_rates.items():
            lines.append(f"  {name:<14} {rate * 100:.1f}%")

        lines.extend(["", "LANGUAGES:", ""])
        for code, stats in self.languages.items():
            lines.append(f"  {code:<8} {int(stats['count'])} (avg confidence {stats['averageConfidence']:.2f})")

        lines.append("=" * 60)
        return "\n".join(lines)


def generate_performance_report(invoices: Sequence[Optional[ExtractedInvoice]]) -> PerformanceReport:
    """
    Aggregate the metrics of a batch of parse results.

    Args:
        invoices: Results of parse_invoice/parse_many; None marks a failure.

    Returns:
        PerformanceReport.

    Example:
        >>> report = generate_performance_report(parse_many(texts))
        >>> print(report.print_report())
    """
    parsed = [invoice for invoice in invoices or [] if invoice is not None]
    report = PerformanceReport(
        total_invoices=len(invoices or []),
        successful_invoices=len(parsed),
        recovered_invoices=sum(1 for invoice in parsed if invoice.recovery is not None)
    )
    if report.total_invoices:
        report.success_rate = round(report.successful_invoices / report.total_invoices, 4)

    if not parsed:
        logger.warning("Performance report over a batch without parsed invoices")
        report.processing_times = {'average': 0.0, 'min': 0.0, 'max': 0.0, 'total': 0.0}
        return report

    times: List[float] = []
    extraction_success: List[float] = []
    field_counts = {name: 0 for name in EXTRACTION_FIELDS}
    language_totals: Dict[str, List[float]] = {}
    passed = 0

    for invoice in parsed:
        metrics = calculate_extraction_metrics(invoice)
        extraction_success.append(metrics['extractionSuccess'])
        for name, extracted in metrics['fields'].items():
            if extracted:
                field_counts[name] += 1

        total_time = invoice.performance_metrics.get('totalProcessingTime')
        if total_time is not None:
            times.append(total_time)

        if invoice.language_detection is not None:
            language_totals.setdefault(invoice.language_detection.language, []).append(
                invoice.language_detection.confidence
            )

        variant = invoice.processing_metadata.get('parser', {}).get('variant', 'unknown')
        report.parsers[variant] = report.parsers.get(variant, 0) + 1

        if invoice.validation is not None and invoice.validation.is_valid:
            passed += 1

    count = len(parsed)
    report.processing_times = {
        'average': round(sum(times) / len(times), 3) if times else 0.0,
        'min': min(times) if times else 0.0,
        'max': max(times) if times else 0.0,
        'total': round(sum(times), 3)
    }
    for rank in PERCENTILES:
        report.processing_times[f'p{rank}'] = percentile(times, rank)

    report.average_extraction_success = round(sum(extraction_success) / count, 4)
    report.field_success_rates = {name: round(hits / count, 4) for name, hits in field_counts.items()}
    report.languages = {
        code: {
            'count': len(confidences),
            'averageConfidence': round(sum(confidences) / len(confidences), 2)
        }
        for code, confidences in language_totals.items()
    }
    report.validation_pass_rate = round(passed / count, 4)

    logger.info(
        f"Performance report: {report.successful_invoices}/{report.total_invoices} parsed, "
        f"avg {report.processing_times['average']} ms"
    )
    return report
