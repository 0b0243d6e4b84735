"""
Data Validators Module.

This module provides the cross-field checks run on every extracted
invoice:
    - Mathematical consistency of subtotal, shipping, tax and total
    - Item prices against the subtotal
    - Duplicate catalog items with conflicting prices
    - Price sanity
    - Date plausibility
    - Currency consistency and money formats
    - Completeness of critical fields

Findings never raise; they are collected in a ValidationResult together
with a 0-100 data-quality score.

Author: ML Engineering Team
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from config import get_config
from invoice_parser.postprocessor.normalizers import AmountNormalizer, DateNormalizer
from invoice_parser.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


# Severity levels of validation findings
SEVERITY_LOW = "low"
SEVERITY_MEDIUM = "medium"
SEVERITY_HIGH = "high"
SEVERITY_CRITICAL = "critical"

MONEY_FIELDS = ('subtotal', 'shipping', 'tax', 'discount', 'total')

# A subtotal label printed more than once marks a multi-shipment order
SUBTOTAL_MARKERS = (
    re.compile(r'Item\(s\) Subtotal'),
    re.compile(r'Zwischensumme'),
    re.compile(r'Sous-total'),
    re.compile(r'Subtotale'),
)


class DateValidator:
    """
    Validates the order date.

    Checks for:
        - Placeholder values left by upstream tools
        - Existing calendar dates
        - Plausible year range

    Example:
        >>> validator = DateValidator()
        >>> validator.validate("2023-12-15")
        (True, "Valid date")
        >>> validator.validate("undefined")
        (False, "Date contains placeholder value")
    """

    PLACEHOLDERS = ('undefined', 'null', 'nan', 'invalid')

    def __init__(self) -> None:
        """Initialize the date validator."""
        self.min_year = get_config("validation.dates.min_year", 2010)
        self.future_years = get_config("validation.dates.future_years", 1)
        self.normalizer = DateNormalizer()
        logger.debug(f"DateValidator initialized (min_year: {self.min_year})")

    def is_valid(self, date_str: str) -> bool:
        """
        Check if date string is valid.

        Args:
            date_str: Date string to validate.

        Returns:
            True if valid, False otherwise.
        """
        valid, _ = self.validate(date_str)
        return valid

    def validate(self, date_str: Optional[str]) -> Tuple[bool, str]:
        """
        Validate a date string with detailed feedback.

        Args:
            date_str: Date string to validate.

        Returns:
            Tuple of (is_valid, message).
        """
        if not date_str:
            return False, "Date is empty"

        lowered = str(date_str).lower()
        if any(placeholder in lowered for placeholder in self.PLACEHOLDERS):
            return False, "Date contains placeholder value"

        if self.normalizer.normalize(str(date_str)) is None:
            return False, f"Invalid date format: {date_str}"

        return True, "Valid date"

    def check_plausibility(self, date_str: str) -> Optional[Tuple[str, str]]:
        """
        Check that the year of a valid date is plausible.

        Args:
            date_str: Date string that passed validate().

        Returns:
            (issue_type, message) for an implausible year, else None.
        """
        match = re.search(r'(\d{4})', self.normalizer.normalize(date_str) or '')
        if not match:
            return None

        year = int(match.group(1))
        if year > datetime.now().year + self.future_years:
            return "future_date", f"Order date appears to be in the future: {date_str}"
        if year < self.min_year:
            return "very_old_date", f"Order date appears to be very old: {date_str}"
        return None


class AmountValidator:
    """
    Validates printed money strings.

    Checks for:
        - A currency sign or code before or after the number
        - A well-formed number with optional grouping and decimals

    Example:
        >>> validator = AmountValidator()
        >>> validator.validate("1.176,46 €")
        (True, "Valid amount")
        >>> validator.validate("12,80")
        (False, "Unrecognised money format: 12,80")
    """

    SIGN = r"(?:[$€£¥]|CHF|Fr\.|EUR|USD|GBP|JPY|CAD|AUD)"
    NUMBER = r"-?\d{1,3}(?:[.,'’ ]?\d{3})*(?:[.,]\d{1,2})?"
    MONEY_SHAPES = (
        re.compile(rf'^-?{SIGN}\s?{NUMBER}$'),
        re.compile(rf'^{NUMBER}\s?(?:{SIGN}|円)$'),
    )

    def __init__(self) -> None:
        """Initialize the amount validator."""
        self.normalizer = AmountNormalizer()

    def validate(self, amount_str: Optional[str]) -> Tuple[bool, str]:
        """
        Validate a money string with detailed feedback.

        Args:
            amount_str: Money string to validate.

        Returns:
            Tuple of (is_valid, message).
        """
        if not amount_str:
            return False, "Amount is empty"

        cleaned = ' '.join(str(amount_str).split())
        if not any(shape.match(cleaned) for shape in self.MONEY_SHAPES):
            return False, f"Unrecognised money format: {amount_str}"

        return True, "Valid amount"

    def value(self, amount_str: Optional[str]) -> Optional[float]:
        """
        Numeric value of a money string.

        Euro amounts are read with a comma decimal mark when ambiguous.
        """
        if amount_str is None:
            return None
        hint = ',' if self.normalizer.currency_symbol(str(amount_str)) == '€' else None
        return self.normalizer.to_float(amount_str, hint)


class ValidationResult:
    """
    Contains the result of validation checks.

    Attributes:
        score: Data-quality score (0-100)
        is_valid: False whenever an error exists or a check forced invalidity
        errors: Ordered error findings
        warnings: Ordered warning findings
        info: Informational notices; they do not affect the score
        summary: Human-readable summary
        forced_invalid: Whether a critical check forced invalidity
        adjustments: Check-specific score deductions
    """

    def __init__(self) -> None:
        self.score = 100
        self.is_valid = True
        self.errors: List[Dict[str, Any]] = []
        self.warnings: List[Dict[str, Any]] = []
        self.info: List[Dict[str, Any]] = []
        self.summary = "All validations passed"
        self.forced_invalid = False
        self.adjustments = 0

    @staticmethod
    def _finding(issue_type: str, severity: str, message: str, fields: List[str]) -> Dict[str, Any]:
        return {
            'type': issue_type,
            'severity': severity,
            'message': message,
            'fields': list(fields)
        }

    def add_error(
        self,
        issue_type: str,
        severity: str,
        message: str,
        fields: List[str],
        penalty: int = 0,
        force_invalid: bool = False
    ) -> None:
        """Add an error; the invoice becomes invalid."""
        self.errors.append(self._finding(issue_type, severity, message, fields))
        self.adjustments += penalty
        self.is_valid = False
        if force_invalid:
            self.forced_invalid = True

    def add_warning(
        self,
        issue_type: str,
        severity: str,
        message: str,
        fields: List[str],
        penalty: int = 0
    ) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(self._finding(issue_type, severity, message, fields))
        self.adjustments += penalty

    def add_info(self, issue_type: str, message: str, fields: List[str]) -> None:
        """Add an informational notice."""
        self.info.append(self._finding(issue_type, SEVERITY_LOW, message, fields))

    def has_issue(self, issue_type: str) -> bool:
        """Whether any error or warning of the given type was recorded."""
        return any(issue['type'] == issue_type for issue in self.errors + self.warnings)

    def finalize(self, error_penalty: int = 20, warning_penalty: int = 5) -> 'ValidationResult':
        """
        Compute score, validity and summary from the recorded findings.

        Args:
            error_penalty: Score deducted per error.
            warning_penalty: Score deducted per warning.

        Returns:
            The result itself.
        """
        deduction = (
            len(self.errors) * error_penalty
            + len(self.warnings) * warning_penalty
            + self.adjustments
        )
        self.score = max(0, 100 - deduction)
        self.is_valid = not self.errors and not self.forced_invalid
        self.summary = self._summarize()
        return self

    def _summarize(self) -> str:
        issues = len(self.errors) + len(self.warnings)
        if issues == 0:
            return "All validations passed"
        return (
            f"{issues} validation issue(s) found: "
            f"{len(self.errors)} error(s), {len(self.warnings)} warning(s)"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase wire shape."""
        return {
            'score': self.score,
            'isValid': self.is_valid,
            'warnings': self.warnings,
            'errors': self.errors,
            'info': self.info,
            'summary': self.summary
        }

    def __repr__(self) -> str:
        return (
            f"ValidationResult(score={self.score}, valid={self.is_valid}, "
            f"errors={len(self.errors)}, warnings={len(self.warnings)})"
        )


class ValidationEngine:
    """
    Runs every cross-field check on an extracted invoice.

    Each check adds its own findings; a check that raises is reported as
    a validation_internal_error warning and the remaining checks still
    run. A fresh ValidationResult is built on every call.

    Example:
        >>> engine = ValidationEngine()
        >>> result = engine.validate(invoice, raw_text=text)
        >>> print(result.score, result.is_valid)
        >>> print(result.summary)
    """

    def __init__(self) -> None:
        """Initialize the validation engine."""
        self.error_penalty = get_config("validation.penalties.error", 20)
        self.warning_penalty = get_config("validation.penalties.warning", 5)

        self.math = {
            'relative_tolerance': get_config("validation.math.relative_tolerance", 0.01),
            'minimum_tolerance': get_config("validation.math.minimum_tolerance", 0.10),
            'complex_multiplier': get_config("validation.math.complex_multiplier", 3),
            'complex_relative_tolerance': get_config("validation.math.complex_relative_tolerance", 0.05),
            'complex_subtotal_ratio': get_config("validation.math.complex_subtotal_ratio", 2),
            'penalty': get_config("validation.math.penalty", 10),
            'complex_penalty': get_config("validation.math.complex_penalty", 5),
        }
        self.item_tolerance = get_config("validation.item_subtotal.tolerance", 1.00)
        self.item_floor = get_config("validation.item_subtotal.floor", 0.10)
        self.item_critical_ratio = get_config("validation.item_subtotal.critical_ratio", 0.10)
        self.high_price = get_config("validation.price_sanity.high", 1000)
        self.extreme_price = get_config("validation.price_sanity.very_high", 5000)
        self.missing_date_penalty = get_config("validation.dates.missing_penalty", 10)
        self.invalid_date_penalty = get_config("validation.dates.invalid_penalty", 20)
        self.implausible_date_penalty = get_config("validation.dates.implausible_penalty", 5)
        self.currency_penalty = get_config("validation.currency.inconsistent_penalty", 10)
        self.no_items_penalty = get_config("validation.completeness.no_items_penalty", 5)
        self.max_total = get_config("validation.completeness.max_total", 10000)
        self.min_total = get_config("validation.completeness.min_total", 1)

        # Initialize sub-validators
        self.date_validator = DateValidator()
        self.amount_validator = AmountValidator()

        logger.debug("ValidationEngine initialized")

    def validate(self, invoice, raw_text: Optional[str] = None) -> ValidationResult:
        """
        Validate an invoice.

        Args:
            invoice: ExtractedInvoice (or any object with the same fields).
            raw_text: Original text, used to spot multi-shipment orders.

        Returns:
            ValidationResult with findings, score and summary.
        """
        result = ValidationResult()

        if invoice is None:
            result.add_error('null_invoice', SEVERITY_HIGH, "Invoice data is missing", [])
            return result.finalize(self.error_penalty, self.warning_penalty)

        checks = (
            self.check_mathematical_consistency,
            self.check_item_subtotal,
            self.check_duplicate_items,
            self.check_price_sanity,
            self.check_dates,
            self.check_currencies,
            self.check_completeness,
        )
        for check in checks:
            try:
                check(invoice, result, raw_text)
            except Exception as e:
                logger.warning(f"Validation check {check.__name__} failed: {e}")
                result.add_warning(
                    'validation_internal_error', SEVERITY_LOW,
                    f"Could not run {check.__name__}: {e}", []
                )

        result.finalize(self.error_penalty, self.warning_penalty)
        logger.debug(f"Validation finished: {result!r}")
        return result

    # -------------------------------------------------------------------------
    # Checks
    # -------------------------------------------------------------------------

    def check_mathematical_consistency(self, invoice, result: ValidationResult, raw_text: Optional[str]) -> None:
        """Subtotal + shipping + tax - discount should equal the total."""
        total = self.amount_validator.value(invoice.total)
        subtotal = self.amount_validator.value(invoice.subtotal)
        if not total or total <= 0 or subtotal is None:
            return

        shipping = self.amount_validator.value(invoice.shipping) or 0.0
        tax = self.amount_validator.value(invoice.tax) or 0.0
        discount = abs(self.amount_validator.value(invoice.discount) or 0.0)
        expected = subtotal + shipping + tax - discount

        complex_order = (
            self.is_multi_shipment(raw_text)
            or subtotal > total * self.math['complex_subtotal_ratio']
        )
        tolerance = max(total * self.math['relative_tolerance'], self.math['minimum_tolerance'])
        if complex_order:
            tolerance = max(
                tolerance * self.math['complex_multiplier'],
                total * self.math['complex_relative_tolerance']
            )

        difference = abs(expected - total)
        if difference <= tolerance:
            return

        percent = difference / total * 100
        prefix = "Complex order: " if complex_order else ""
        result.add_warning(
            'mathematical_inconsistency',
            SEVERITY_LOW if complex_order else SEVERITY_MEDIUM,
            f"{prefix}Calculated total ({expected:.2f}) differs from extracted total "
            f"({total:.2f}) by {difference:.2f} ({percent:.1f}%)",
            ['subtotal', 'shipping', 'tax', 'discount', 'total'],
            penalty=self.math['complex_penalty'] if complex_order else self.math['penalty']
        )

    @staticmethod
    def is_multi_shipment(raw_text: Optional[str]) -> bool:
        """True when any subtotal label is printed more than once."""
        if not raw_text:
            return False
        return any(len(marker.findall(raw_text)) > 1 for marker in SUBTOTAL_MARKERS)

    def check_item_subtotal(self, invoice, result: ValidationResult, raw_text: Optional[str]) -> None:
        """Sum of unit price x quantity should equal the subtotal."""
        items = invoice.items or []
        subtotal = self.amount_validator.value(invoice.subtotal)
        priced = [item for item in items if item.unit_price is not None]
        if not priced or not subtotal or subtotal <= 0:
            return

        items_total = sum(item.unit_price * (item.quantity or 1) for item in priced)
        difference = abs(items_total - subtotal)
        message = f"Sum of item prices ({items_total:.2f}) doesn't match subtotal ({subtotal:.2f})"

        if difference > self.item_tolerance:
            critical = difference > subtotal * self.item_critical_ratio
            result.add_error(
                'item_subtotal_mismatch',
                SEVERITY_CRITICAL if critical else SEVERITY_HIGH,
                message, ['items', 'subtotal'],
                force_invalid=critical
            )
        elif difference > self.item_floor:
            result.add_warning('item_subtotal_mismatch', SEVERITY_LOW, message, ['items', 'subtotal'])

    def check_duplicate_items(self, invoice, result: ValidationResult, raw_text: Optional[str]) -> None:
        """Items sharing an ASIN must share a unit price."""
        prices_by_asin: Dict[str, set] = {}
        for item in invoice.items or []:
            if item.asin and item.unit_price is not None:
                prices_by_asin.setdefault(item.asin, set()).add(round(item.unit_price, 2))

        for asin, prices in prices_by_asin.items():
            if len(prices) > 1:
                listed = ', '.join(f"{price:.2f}" for price in sorted(prices))
                result.add_error(
                    'duplicate_item_different_prices', SEVERITY_CRITICAL,
                    f"Item {asin} appears with different unit prices: {listed}",
                    ['items'], force_invalid=True
                )

    def check_price_sanity(self, invoice, result: ValidationResult, raw_text: Optional[str]) -> None:
        """Flag unusually high unit prices."""
        for item in invoice.items or []:
            if item.unit_price is None:
                continue
            label = item.asin or item.description[:40]
            if item.unit_price > self.extreme_price:
                result.add_error(
                    'extreme_unit_price', SEVERITY_CRITICAL,
                    f"Unit price of {label} is implausibly high: {item.unit_price:.2f}",
                    ['items'], force_invalid=True
                )
            elif item.unit_price > self.high_price:
                result.add_warning(
                    'high_unit_price', SEVERITY_LOW,
                    f"Unit price of {label} is unusually high: {item.unit_price:.2f}",
                    ['items']
                )

    def check_dates(self, invoice, result: ValidationResult, raw_text: Optional[str]) -> None:
        """The order date must be present, real and plausible."""
        if not invoice.order_date:
            result.add_warning(
                'missing_date', SEVERITY_MEDIUM, "Order date is missing", ['order_date'],
                penalty=self.missing_date_penalty
            )
            return

        valid, message = self.date_validator.validate(invoice.order_date)
        if not valid:
            result.add_error(
                'invalid_date_format', SEVERITY_HIGH, message, ['order_date'],
                penalty=self.invalid_date_penalty
            )
            return

        implausible = self.date_validator.check_plausibility(invoice.order_date)
        if implausible:
            issue_type, message = implausible
            result.add_warning(
                issue_type, SEVERITY_LOW, message, ['order_date'],
                penalty=self.implausible_date_penalty
            )

    def check_currencies(self, invoice, result: ValidationResult, raw_text: Optional[str]) -> None:
        """Money fields should share one currency and a recognisable format."""
        normalizer = self.amount_validator.normalizer

        field_currencies = set()
        for name in MONEY_FIELDS:
            symbol = normalizer.currency_symbol(getattr(invoice, name))
            if symbol:
                field_currencies.add(symbol)

        item_currencies = {
            normalizer.currency_symbol(item.price)
            for item in invoice.items or []
            if item.price and normalizer.currency_symbol(item.price)
        }

        if len(field_currencies) > 1:
            result.add_warning(
                'inconsistent_invoice_currencies', SEVERITY_MEDIUM,
                f"Inconsistent currencies in invoice fields: {', '.join(sorted(field_currencies))}",
                list(MONEY_FIELDS), penalty=self.currency_penalty
            )
        elif len(item_currencies) > 1:
            result.add_info(
                'multiple_currencies',
                f"Items use several currencies: {', '.join(sorted(item_currencies))}",
                ['items']
            )

        for name in MONEY_FIELDS:
            value = getattr(invoice, name)
            if not value:
                continue
            valid, message = self.amount_validator.validate(value)
            if not valid:
                result.add_warning('invalid_currency_format', SEVERITY_LOW, message, [name])

    def check_completeness(self, invoice, result: ValidationResult, raw_text: Optional[str]) -> None:
        """Critical fields, itemization and total magnitude."""
        for name in ('order_number', 'total'):
            if not getattr(invoice, name):
                result.add_error(
                    'missing_critical_field', SEVERITY_HIGH,
                    f"Critical field '{name}' is missing", [name]
                )

        subtotal = self.amount_validator.value(invoice.subtotal)
        if not invoice.items and subtotal:
            result.add_warning(
                'no_items_found', SEVERITY_MEDIUM,
                "No items were extracted from the invoice despite having a subtotal",
                ['items'], penalty=self.no_items_penalty
            )

        total = self.amount_validator.value(invoice.total)
        if total is None or total <= 0:
            return
        if total > self.max_total:
            result.add_warning(
                'high_total_amount', SEVERITY_LOW,
                f"Total amount is unusually high: {total:.2f}", ['total']
            )
        elif total < self.min_total:
            result.add_warning(
                'low_total_amount', SEVERITY_LOW,
                f"Total amount is unusually low: {total:.2f}", ['total']
            )


def validate_invoice(invoice, raw_text: Optional[str] = None) -> ValidationResult:
    """Module-level shortcut for ValidationEngine().validate()."""
    return ValidationEngine().validate(invoice, raw_text)
