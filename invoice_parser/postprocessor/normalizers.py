"""
Data Normalizers Module.

This module provides normalization functions for:
    - Multilingual dates (en, de, fr, es, it, ja) to ISO format
    - Locale-formatted money strings to numbers and back

Monetary fields of an invoice stay in their original string form; the
numeric conversion here is only used for arithmetic checks and for
formatting derived amounts in the invoice's own style.

Author: ML Engineering Team
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from types import MappingProxyType
from typing import Optional, Tuple
from dateutil import parser as date_parser

from invoice_parser.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


# Month names per language, lower-case. Abbreviations are listed where
# invoices actually use them.
MONTHS_BY_LANGUAGE = MappingProxyType({
    'en': MappingProxyType({
        'january': 1, 'february': 2, 'march': 3, 'april': 4, 'may': 5,
        'june': 6, 'july': 7, 'august': 8, 'september': 9, 'october': 10,
        'november': 11, 'december': 12,
        'jan': 1, 'feb': 2, 'mar': 3, 'apr': 4, 'jun': 6, 'jul': 7,
        'aug': 8, 'sep': 9, 'sept': 9, 'oct': 10, 'nov': 11, 'dec': 12,
    }),
    'de': MappingProxyType({
        'januar': 1, 'jänner': 1, 'februar': 2, 'märz': 3, 'maerz': 3,
        'april': 4, 'mai': 5, 'juni': 6, 'juli': 7, 'august': 8,
        'september': 9, 'oktober': 10, 'november': 11, 'dezember': 12,
        'okt': 10, 'dez': 12,
    }),
    'fr': MappingProxyType({
        'janvier': 1, 'février': 2, 'fevrier': 2, 'mars': 3, 'avril': 4,
        'mai': 5, 'juin': 6, 'juillet': 7, 'août': 8, 'aout': 8,
        'septembre': 9, 'octobre': 10, 'novembre': 11, 'décembre': 12,
        'decembre': 12,
    }),
    'es': MappingProxyType({
        'enero': 1, 'febrero': 2, 'marzo': 3, 'abril': 4, 'mayo': 5,
        'junio': 6, 'julio': 7, 'agosto': 8, 'septiembre': 9,
        'setiembre': 9, 'octubre': 10, 'noviembre': 11, 'diciembre': 12,
    }),
    'it': MappingProxyType({
        'gennaio': 1, 'febbraio': 2, 'marzo': 3, 'aprile': 4, 'maggio': 5,
        'giugno': 6, 'luglio': 7, 'agosto': 8, 'settembre': 9,
        'ottobre': 10, 'novembre': 11, 'dicembre': 12,
    }),
})

# Every language's names in one lookup; shared spellings agree on the month.
MONTH_LOOKUP = MappingProxyType({
    name: number
    for months in MONTHS_BY_LANGUAGE.values()
    for name, number in months.items()
})


class DateNormalizer:
    """
    Normalizes invoice date strings to ISO format (YYYY-MM-DD).

    Recognised orderings:
        - Month D, YYYY           (December 15, 2023)
        - D Month YYYY            (15 décembre 2023, 15 de diciembre de 2023)
        - D. Month YYYY           (15. Dezember 2023)
        - 1er novembre 2023
        - DD.MM.YYYY, DD/MM/YYYY, MM/DD/YYYY (by locale), YYYY-MM-DD
        - YYYY年M月D日

    Impossible calendar values are rejected rather than clamped.

    Example:
        >>> normalizer = DateNormalizer()
        >>> normalizer.normalize("December 15, 2023")
        "2023-12-15"
        >>> normalizer.normalize("15. Dezember 2023")
        "2023-12-15"
        >>> normalizer.normalize("29/02/2023") is None
        True
    """

    YEAR_FIRST = re.compile(r'(?<!\d)(\d{4})[-./](\d{1,2})[-./](\d{1,2})(?!\d)')
    JAPANESE = re.compile(r'(\d{4})\s*年\s*(\d{1,2})\s*月\s*(\d{1,2})\s*日')
    MONTH_FIRST = re.compile(r'([^\W\d_]{3,})\.?\s+(\d{1,2}),?\s+(\d{4})(?!\d)')
    DAY_FIRST = re.compile(
        r'(?<!\d)(\d{1,2})\.?\s*(?:de\s+)?([^\W\d_]{3,})\.?,?\s+(?:de\s+)?(\d{4})(?!\d)'
    )
    NUMERIC = re.compile(r'(?<!\d)(\d{1,2})([./-])(\d{1,2})\2(\d{4})(?!\d)')

    PLACEHOLDERS = ('undefined', 'null', 'nan', 'invalid', 'none')

    def __init__(self, output_format: str = "%Y-%m-%d") -> None:
        """Initialize the date normalizer."""
        self.output_format = output_format

    def normalize(self, date_str: Optional[str], day_first: bool = True) -> Optional[str]:
        """
        Normalize a date string to the output format.

        Args:
            date_str: Input date string in any recognised format.
            day_first: Read ambiguous numeric dates as DD/MM (False for US).

        Returns:
            Normalized date string, or None if parsing fails or the date
            does not exist.
        """
        if not date_str:
            return None

        cleaned = self._clean_date_string(date_str)
        if cleaned.lower() in self.PLACEHOLDERS:
            return None

        matched, parsed = self._try_explicit_patterns(cleaned, day_first)
        if not matched:
            parsed = self._try_dateutil_parser(cleaned, day_first)

        if parsed is None:
            logger.debug(f"Could not parse date: {date_str}")
            return None

        return parsed.strftime(self.output_format)

    def _clean_date_string(self, date_str: str) -> str:
        """Collapse whitespace and drop ordinal suffixes (15th, 1er, 1º)."""
        date_str = ' '.join(date_str.split())
        date_str = re.sub(r'(\d+)(?:st|nd|rd|th|er|re|º|°)\b', r'\1', date_str, flags=re.IGNORECASE)
        return date_str.strip()

    def _try_explicit_patterns(self, date_str: str, day_first: bool) -> Tuple[bool, Optional[date]]:
        """
        Try each recognised ordering in turn.

        Args:
            date_str: Cleaned date string.
            day_first: Interpretation of ambiguous numeric dates.

        Returns:
            Tuple of (pattern_matched, parsed date or None). A matched
            pattern with an impossible date yields (True, None).
        """
        match = self.JAPANESE.search(date_str)
        if match:
            return True, self._build_date(match.group(1), match.group(2), match.group(3))

        match = self.YEAR_FIRST.search(date_str)
        if match:
            return True, self._build_date(match.group(1), match.group(2), match.group(3))

        for match in self.MONTH_FIRST.finditer(date_str):
            month = MONTH_LOOKUP.get(match.group(1).lower())
            if month:
                return True, self._build_date(match.group(3), month, match.group(2))

        for match in self.DAY_FIRST.finditer(date_str):
            month = MONTH_LOOKUP.get(match.group(2).lower())
            if month:
                return True, self._build_date(match.group(3), month, match.group(1))

        match = self.NUMERIC.search(date_str)
        if match:
            first, separator, second, year = match.groups()
            day, month = self._resolve_day_month(int(first), int(second), separator, day_first)
            return True, self._build_date(year, month, day)

        return False, None

    @staticmethod
    def _resolve_day_month(first: int, second: int, separator: str, day_first: bool) -> Tuple[int, int]:
        """Order two numeric date parts as (day, month)."""
        # Dotted dates are always day-first
        if separator == '.':
            return first, second
        if first > 12 >= second:
            return first, second
        if second > 12 >= first:
            return second, first
        return (first, second) if day_first else (second, first)

    @staticmethod
    def _build_date(year, month, day) -> Optional[date]:
        """Construct a date, returning None for impossible calendar values."""
        try:
            return date(int(year), int(month), int(day))
        except ValueError:
            logger.debug(f"Rejected impossible date: {year}-{month}-{day}")
            return None

    def _try_dateutil_parser(self, date_str: str, day_first: bool) -> Optional[date]:
        """
        Last-resort parse with dateutil.

        The string is parsed against two different default dates; if the
        results differ, a component (day, month or year) was missing and
        the date is rejected instead of being filled in.

        Args:
            date_str: Date string to parse.
            day_first: Passed through as dateutil's dayfirst.

        Returns:
            Parsed date or None.
        """
        if not re.search(r'\d{4}', date_str):
            return None

        try:
            first = date_parser.parse(date_str, dayfirst=day_first, default=datetime(2000, 1, 1))
            second = date_parser.parse(date_str, dayfirst=day_first, default=datetime(2001, 2, 2))
        except (ValueError, OverflowError):
            return None

        if first != second:
            return None
        return first.date()


# Sign before or after the number: "$1,234.56", "1.176,46 €", "CHF 45.90"
PRINTED_AMOUNT = re.compile(
    r"^-?(?P<lead>[^\d\s.,-]*)(?P<lgap>\s*)(?P<number>\d(?:[\d.,' ]*\d)?)(?P<tgap>\s*)(?P<trail>[^\d\s.,]*)$"
)


@dataclass(frozen=True)
class MoneyFormat:
    """
    How a locale writes money, used to render derived amounts.

    Attributes:
        symbol: Currency sign or code as printed ("$", "€", "CHF").
        prefix: Whether the sign precedes the number.
        decimal_separator: Decimal mark.
        thousands_separator: Grouping mark (may be empty).
        decimals: Number of decimals printed.
        spaced: Whether a space separates sign and number.
    """
    symbol: str
    prefix: bool = True
    decimal_separator: str = '.'
    thousands_separator: str = ','
    decimals: int = 2
    spaced: bool = False

    def format(self, value: float) -> str:
        """
        Render a number in this money format.

        Example:
            >>> MoneyFormat('€', prefix=False, decimal_separator=',',
            ...             thousands_separator='.', spaced=True).format(1176.46)
            "1.176,46 €"
        """
        sign = '-' if value < 0 else ''
        number = f"{abs(value):,.{self.decimals}f}"
        number = number.replace(',', '\x00').replace('.', self.decimal_separator)
        number = number.replace('\x00', self.thousands_separator)
        gap = ' ' if self.spaced else ''
        if self.prefix:
            return f"{sign}{self.symbol}{gap}{number}"
        return f"{sign}{number}{gap}{self.symbol}"

    @classmethod
    def infer(cls, printed: Optional[str]) -> Optional['MoneyFormat']:
        """
        Money format of a printed amount.

        Two digits after the last separator make it the decimal mark;
        otherwise the amount is read as whole units.

        Returns:
            The format, or None when the text carries no currency sign.

        Example:
            >>> MoneyFormat.infer("10,00 €").format(20)
            "20,00 €"
        """
        match = PRINTED_AMOUNT.match((printed or '').strip())
        if not match or bool(match.group('lead')) == bool(match.group('trail')):
            return None

        number = match.group('number')
        last = max(number.rfind('.'), number.rfind(','))
        decimals = 0
        decimal_separator = '.'
        grouped = number
        if last >= 0 and number.count(number[last]) == 1 and len(number) - last - 1 == 2:
            decimals = 2
            decimal_separator = number[last]
            grouped = number[:last]

        marks = [char for char in grouped if not char.isdigit()]
        if marks:
            thousands_separator = marks[0]
        else:
            thousands_separator = ',' if decimal_separator == '.' else '.'

        return cls(
            symbol=match.group('lead') or match.group('trail'),
            prefix=bool(match.group('lead')),
            decimal_separator=decimal_separator,
            thousands_separator=thousands_separator,
            decimals=decimals,
            spaced=bool(match.group('lgap') or match.group('tgap'))
        )


class AmountNormalizer:
    """
    Converts locale-formatted money strings to numbers.

    Handles currency symbols and codes, comma or dot decimals, and
    dot, comma, space or apostrophe thousand separators.

    Example:
        >>> normalizer = AmountNormalizer()
        >>> normalizer.to_float("$1,234.56")
        1234.56
        >>> normalizer.to_float("1.234,56 €")
        1234.56
        >>> normalizer.currency_symbol("CHF 45.90")
        "CHF"
    """

    # Printed sign -> canonical symbol
    CURRENCY_SIGNS = MappingProxyType({
        '$': '$', 'USD': '$',
        '€': '€', 'EUR': '€',
        '£': '£', 'GBP': '£',
        '¥': '¥', '円': '¥', 'JPY': '¥',
        'CHF': 'CHF', 'Fr.': 'CHF', 'Fr': 'CHF',
    })

    CURRENCY_PATTERN = re.compile(r'([$€£¥円]|\bCHF\b|\bUSD\b|\bEUR\b|\bGBP\b|\bJPY\b|\bFr\b\.?)')

    def currency_symbol(self, amount_str: Optional[str]) -> Optional[str]:
        """
        Canonical currency symbol printed in an amount string.

        Args:
            amount_str: Money string such as "159,98 €".

        Returns:
            One of "$", "€", "£", "¥", "CHF", or None when no sign is present.
        """
        if not amount_str:
            return None
        match = self.CURRENCY_PATTERN.search(amount_str)
        if not match:
            return None
        sign = match.group(1)
        if sign.startswith('Fr'):
            sign = 'Fr'
        return self.CURRENCY_SIGNS.get(sign)

    def to_float(self, amount_str, decimal_separator: Optional[str] = None) -> Optional[float]:
        """
        Convert a money string to float.

        Args:
            amount_str: Money string, or a number which is returned as float.
            decimal_separator: Locale hint for ambiguous values like "1.234".

        Returns:
            Float value rounded to 2 decimals, or None.
        """
        if amount_str is None or amount_str == '':
            return None
        if isinstance(amount_str, (int, float)):
            return round(float(amount_str), 2)

        cleaned = self._clean_amount_string(str(amount_str))
        if not cleaned or not re.search(r'\d', cleaned):
            return None

        cleaned = self._resolve_separators(cleaned, decimal_separator)

        try:
            return round(float(cleaned), 2)
        except ValueError:
            logger.debug(f"Could not parse amount: {amount_str}")
            return None

    def _clean_amount_string(self, amount_str: str) -> str:
        """
        Strip currency signs and keep digits, separators and sign.

        Args:
            amount_str: Raw amount string.

        Returns:
            Cleaned amount string.
        """
        negative = bool(re.search(r'[-−]\s*[$€£¥]?\s*\d', amount_str))
        # Spaces and apostrophes between digit groups are thousand separators
        amount_str = re.sub(r"(?<=\d)[\s'’ ](?=\d{3}\b)", '', amount_str)
        amount_str = re.sub(r'[^\d,.]', '', amount_str).strip('.,')
        return f"-{amount_str}" if negative and amount_str else amount_str

    @staticmethod
    def _resolve_separators(amount_str: str, decimal_separator: Optional[str]) -> str:
        """Rewrite an amount to dot-decimal with no grouping."""
        last_comma = amount_str.rfind(',')
        last_dot = amount_str.rfind('.')

        if last_comma >= 0 and last_dot >= 0:
            if last_comma > last_dot:
                return amount_str.replace('.', '').replace(',', '.')
            return amount_str.replace(',', '')

        if last_comma >= 0:
            decimals = len(amount_str) - last_comma - 1
            if amount_str.count(',') == 1 and (decimals != 3 or decimal_separator == ','):
                return amount_str.replace(',', '.')
            return amount_str.replace(',', '')

        if last_dot >= 0:
            decimals = len(amount_str) - last_dot - 1
            if amount_str.count('.') > 1 or (decimals == 3 and decimal_separator == ','):
                return amount_str.replace('.', '')

        return amount_str
