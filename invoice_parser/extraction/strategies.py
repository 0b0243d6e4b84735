"""
Line Item Strategies.

Item layout is the one part of an invoice that differs in structure,
not just in wording, between layouts. Each strategy turns preprocessed
text into an ordered list of LineItem:

    - LineItemStrategy: one item per line ("1 x Kindle Paperwhite $129.99",
      "1 of: ..."), used by amazon.com and the language-routed locales
    - BusinessItemStrategy: amazon.eu business invoices, where an item is
      a description, an "ASIN:" line and a block of price columns
    - ConsumerItemStrategy: amazon.eu consumer invoices, where one price
      line follows the "ASIN:" line

PDF text extraction sometimes glues the quantity column onto the price
("1176,46 €" for qty 1 at 176,46 €). Strategies detect this against the
adjacent line total and split the token back.

Author: ML Engineering Team
"""

import re
from typing import List, Optional, Tuple

from config import get_config
from invoice_parser.extraction.invoice import LineItem
from invoice_parser.extraction.rules import LocaleRules
from invoice_parser.postprocessor.normalizers import AmountNormalizer
from invoice_parser.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

ASIN_PATTERN = re.compile(r'ASIN:\s*([A-Z0-9]{10})')

# (qty) column of business tables
PAREN_QUANTITY = re.compile(r'^\((\d{1,3})\)$')
PERCENT_LINE = re.compile(r'^\d{1,2}(?:[.,]\d{1,2})?\s?%?$')
NUMERIC_REMAINDER = re.compile(r'[\s\d%().,:|-]*')

# Pipe-table row directly above an ASIN: | desc | qty | unit € | tax | unit € | total € |
PIPE_ROW = re.compile(
    r'\|\s*(?P<desc>[^|\n]+?)\s*\|\s*(?P<qty>\d{1,3})\s*\|\s*(?P<unit>\d+(?:\.\d{3})*,\d{2})\s*€[^|\n]*'
    r'\|[^|\n]*\|[^|\n]*\|\s*(?P<total>\d+(?:\.\d{3})*,\d{2})\s*€\s*\|\s*$'
)

# Column headers and summary lines that are never a product description
NON_DESCRIPTION = re.compile(
    r'\b(?:Bestellung|Artikel|Produkt|Beschreibung|Summe|Gesamt|Total|Menge|Stückpreis|'
    r'Description|Qty|Quantity|Unit\s+price|Descripción|Cantidad|Quantité|Prix|Quantità|Prezzo)\b',
    re.IGNORECASE
)

BACKWARD_WINDOW = 600
FORWARD_WINDOW = 400


class ItemStrategy:
    """
    Base class for item layout strategies.

    Subclasses implement extract(); the helpers here read money tokens
    with the locale's rules and resolve quantity and prices from them.
    """

    name = "base"

    def __init__(self, rules: LocaleRules) -> None:
        """
        Initialize the strategy.

        Args:
            rules: Locale rules supplying money tokens and formats.
        """
        self.rules = rules
        self.amounts = AmountNormalizer()
        self.tolerance = get_config("extraction.artifact_tolerance", 0.10)
        self.max_quantity = get_config("extraction.max_quantity", 100)

    def extract(self, text: str) -> List[LineItem]:
        """Extract ordered line items from preprocessed text."""
        raise NotImplementedError

    # -------------------------------------------------------------------------
    # Money helpers
    # -------------------------------------------------------------------------

    def money_tokens(self, line: str) -> List[str]:
        """Printed money tokens on one line, left to right."""
        return [match.group(0).strip() for match in self.rules.money_token.finditer(line)]

    def value_of(self, token: Optional[str]) -> Optional[float]:
        return self.amounts.to_float(token, self.rules.decimal_separator)

    def currency_of(self, token: Optional[str]) -> Optional[str]:
        return self.rules.currency_for(self.amounts.currency_symbol(token))

    def quantity_from(self, unit: Optional[float], total: Optional[float]) -> Optional[int]:
        """
        Quantity implied by a unit price and a line total.

        Returns:
            The whole quantity within tolerance, or None if the two
            prices do not divide.
        """
        if not unit or total is None or unit <= 0:
            return None
        quantity = round(total / unit)
        if 1 <= quantity <= self.max_quantity and abs(quantity * unit - total) <= self.tolerance:
            return quantity
        return None

    def correct_concatenated_price(self, token: str, reference: float) -> Optional[Tuple[int, float]]:
        """
        Split a price token whose quantity column was glued to it.

        The integer digits are split into a quantity prefix and a unit
        price; the first split whose product matches the reference line
        total wins.

        Args:
            token: Printed price token, e.g. "1176,46 €".
            reference: Adjacent line total, e.g. 176.46.

        Returns:
            Tuple of (quantity, unit_price), or None if no split fits.

        Example:
            >>> strategy.correct_concatenated_price("1176,46 €", 176.46)
            (1, 176.46)
            >>> strategy.correct_concatenated_price("537,37 €", 186.85)
            (5, 37.37)
        """
        if reference is None:
            return None

        digits = re.sub(r'\D', '', token)
        decimals = self.rules.money.decimals
        if len(digits) <= decimals + 1:
            return None

        integer = digits[:-decimals] if decimals else digits
        fraction = digits[-decimals:] if decimals else ''

        for split in range(1, min(3, len(integer) - 1) + 1):
            quantity = int(integer[:split])
            unit_digits = integer[split:]
            if quantity < 1 or (len(unit_digits) > 1 and unit_digits.startswith('0')):
                continue
            unit = float(f"{unit_digits}.{fraction}") if fraction else float(unit_digits)
            if unit > 0 and abs(quantity * unit - reference) <= self.tolerance:
                return quantity, round(unit, 2)
        return None

    def resolve_prices(self, tokens: List[str], quantity_hint: Optional[int] = None):
        """
        Resolve quantity, unit price and line total from a price block.

        The last token is the line total. With two or more tokens the one
        before it is the unit price; a lone token is both.

        Args:
            tokens: Money tokens of the block, in reading order.
            quantity_hint: Quantity printed in the block, if any.

        Returns:
            Tuple of (quantity, unit_price, total_price, price_string),
            or None when no token parses.
        """
        priced = [(token, self.value_of(token)) for token in tokens]
        priced = [(token, value) for token, value in priced if value is not None]
        if not priced:
            return None

        total_token, total = priced[-1]
        if len(priced) == 1:
            quantity = quantity_hint or 1
            return quantity, total, round(total * quantity, 2), total_token

        unit_token, unit = priced[-2]
        quantity = self.quantity_from(unit, total)
        if quantity is None:
            corrected = self.correct_concatenated_price(unit_token, total)
            if corrected:
                quantity, unit = corrected
                logger.debug(f"Split glued price {unit_token!r} into {quantity} x {unit}")
                unit_token = self.rules.money.format(unit)
            else:
                quantity = quantity_hint or 1
        return quantity, unit, total, unit_token

    # -------------------------------------------------------------------------
    # Line helpers
    # -------------------------------------------------------------------------

    def is_price_line(self, line: str) -> bool:
        """True when a line holds only money, rates and quantity columns."""
        if not re.search(r'\d', line):
            return False
        remainder = self.rules.money_token.sub('', line)
        return NUMERIC_REMAINDER.fullmatch(remainder) is not None

    def price_block(self, lines: List[str], lookahead: int) -> List[str]:
        """
        Consecutive price lines following an ASIN line.

        Lines before the first price line are skipped (up to lookahead);
        the block ends at the first line that is not a price line.
        """
        block: List[str] = []
        for index, raw in enumerate(lines):
            line = raw.strip()
            if ASIN_PATTERN.search(line):
                break
            if self.is_price_line(line):
                block.append(line)
            elif block or index >= lookahead:
                break
        return block

    @staticmethod
    def description_before(lines: List[str], min_length: int, same_line: str = "") -> str:
        """
        Product description for an ASIN marker.

        Text printed before "ASIN:" on the marker line wins; otherwise the
        nearest product-like line above it.
        """
        same_line = same_line.strip().strip('|').strip()
        if len(same_line) > min_length:
            return same_line
        for line in reversed(lines):
            candidate = line.strip().strip('|').strip()
            if len(candidate) <= min_length or 'ASIN' in candidate:
                continue
            if re.fullmatch(r'[\d\s.,%()€$£-]+', candidate):
                continue
            if NON_DESCRIPTION.search(candidate) and len(candidate) < 40:
                continue
            return candidate
        return ""

    def _item(self, description, quantity, unit, total, price, asin=None) -> LineItem:
        return LineItem(
            description=description or "Product",
            quantity=quantity,
            unit_price=unit,
            total_price=total,
            price=price,
            asin=asin,
            currency=self.currency_of(price)
        )


class LineItemStrategy(ItemStrategy):
    """
    One item per line, driven by the locale's item_lines patterns.

    The printed price is the unit price; the line total is quantity
    times unit price.

    Example:
        >>> LineItemStrategy(US_RULES).extract("1 x Kindle Paperwhite $129.99")
        [LineItem(description='Kindle Paperwhite', quantity=1, unit_price=129.99, ...)]
    """

    name = "line"

    def extract(self, text: str) -> List[LineItem]:
        """Extract one LineItem per matching line, in text order."""
        if not text:
            return []

        found: List[Tuple[int, int, LineItem]] = []
        for pattern in self.rules.item_lines:
            for match in pattern.finditer(text):
                start, end = match.span()
                if any(start < taken_end and taken_start < end for taken_start, taken_end, _ in found):
                    continue
                item = self._from_match(match)
                if item is not None:
                    found.append((start, end, item))

        found.sort(key=lambda entry: entry[0])
        items = [item for _, _, item in found]
        logger.debug(f"{self.name} strategy ({self.rules.name}): {len(items)} item(s)")
        return items

    def _from_match(self, match) -> Optional[LineItem]:
        price = match.group('price').strip()
        unit = self.value_of(price)
        if unit is None:
            return None

        quantity = int(match.group('qty'))
        if not 1 <= quantity <= self.max_quantity:
            return None

        # Multi-line "of:" blocks keep only the first description line
        description = match.group('desc').strip().split('\n')[0].strip()
        return self._item(description, quantity, unit, round(unit * quantity, 2), price)


class BusinessItemStrategy(ItemStrategy):
    """
    amazon.eu business invoices.

    For every "ASIN:" marker, in order:
        1. A pipe-table row directly above the marker gives description,
           quantity, unit price and total.
        2. Otherwise the price columns below the marker are read as a
           block: base price, tax rate, (quantity), unit price and total,
           any of which may be missing. A glued quantity+price token is
           corrected against the line total.
    """

    name = "business"

    def __init__(self, rules: LocaleRules) -> None:
        super().__init__(rules)
        self.lookahead = get_config("extraction.business_lookahead_lines", 6)

    def extract(self, text: str) -> List[LineItem]:
        """Extract one LineItem per ASIN marker."""
        if not text:
            return []

        items: List[LineItem] = []
        for match in ASIN_PATTERN.finditer(text):
            asin = match.group(1)
            line_start = text.rfind('\n', 0, match.start()) + 1
            before = text[max(0, line_start - BACKWARD_WINDOW):line_start]
            head = text[line_start:match.start()]

            item = self._from_pipe_row(before, asin) or self._from_price_block(text, match, before, head)
            if item is not None:
                items.append(item)
            else:
                logger.debug(f"No prices found for ASIN {asin}")

        logger.debug(f"{self.name} strategy ({self.rules.name}): {len(items)} item(s)")
        return items

    def _from_pipe_row(self, before: str, asin: str) -> Optional[LineItem]:
        row = PIPE_ROW.search(before)
        if not row:
            return None

        unit_token = f"{row.group('unit')} €"
        total = self.value_of(f"{row.group('total')} €")
        unit = self.value_of(unit_token)
        quantity = self.quantity_from(unit, total) or int(row.group('qty'))
        return self._item(row.group('desc').strip(), quantity, unit, total, unit_token, asin)

    def _from_price_block(self, text: str, match, before: str, head: str) -> Optional[LineItem]:
        line_end = text.find('\n', match.end())
        after_lines = text[line_end + 1:line_end + 1 + FORWARD_WINDOW].split('\n') if line_end >= 0 else []
        trailing = text[match.end():line_end if line_end >= 0 else len(text)]

        tokens = self.money_tokens(trailing)
        quantity_hint = None
        for line in self.price_block(after_lines, self.lookahead):
            paren = PAREN_QUANTITY.match(line)
            if paren:
                quantity_hint = int(paren.group(1))
                continue
            if PERCENT_LINE.match(line):
                continue
            tokens.extend(self.money_tokens(line))

        resolved = self.resolve_prices(tokens, quantity_hint)
        if resolved is None:
            return None

        quantity, unit, total, price = resolved
        description = self.description_before(before.split('\n'), min_length=3, same_line=head)
        return self._item(description, quantity, unit, total, price, match.group(1))


class ConsumerItemStrategy(ItemStrategy):
    """
    amazon.eu consumer invoices.

    The description is the nearest long line above the "ASIN:" marker.
    The first price line below it carries the prices: one amount is both
    unit price and total, several are read as unit price first and total
    last. Quantity defaults to 1 unless the prices divide.
    """

    name = "consumer"

    def __init__(self, rules: LocaleRules) -> None:
        super().__init__(rules)
        self.lookahead = get_config("extraction.consumer_lookahead_lines", 5)

    def extract(self, text: str) -> List[LineItem]:
        """Extract one LineItem per ASIN marker that has a price line."""
        if not text:
            return []

        items: List[LineItem] = []
        for match in ASIN_PATTERN.finditer(text):
            asin = match.group(1)
            line_start = text.rfind('\n', 0, match.start()) + 1
            line_end = text.find('\n', match.end())
            before = text[max(0, line_start - BACKWARD_WINDOW):line_start]
            after = text[line_end + 1:line_end + 1 + FORWARD_WINDOW] if line_end >= 0 else ""
            after_lines = after.split('\n')[:self.lookahead]

            tokens = self._first_price_line(after_lines)
            resolved = self.resolve_prices(tokens)
            if resolved is None:
                logger.debug(f"No price line found for ASIN {asin}")
                continue

            quantity, unit, total, price = resolved
            description = self.description_before(
                before.split('\n'), min_length=10, same_line=text[line_start:match.start()]
            )
            items.append(self._item(description, quantity, unit, total, price, asin))

        logger.debug(f"{self.name} strategy ({self.rules.name}): {len(items)} item(s)")
        return items

    def _first_price_line(self, lines: List[str]) -> List[str]:
        """
        Money tokens of the first price line.

        A lone amount followed directly by another lone amount is read
        as a (unit, total) pair so a glued quantity can be corrected.
        """
        priced = []
        for raw in lines:
            line = raw.strip()
            if ASIN_PATTERN.search(line):
                break
            if len(line) < 3 or PERCENT_LINE.match(line) or PAREN_QUANTITY.match(line):
                if priced:
                    break
                continue
            tokens = self.money_tokens(line)
            if priced and not (tokens and self.is_price_line(line)):
                break
            if not tokens:
                continue
            priced.append(tokens)
            if len(tokens) > 1 or len(priced) == 2:
                break

        if not priced:
            return []
        if len(priced) == 2 and len(priced[0]) == 1 and len(priced[1]) == 1:
            return priced[0] + priced[1]
        return priced[0]
