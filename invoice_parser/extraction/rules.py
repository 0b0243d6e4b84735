"""
Locale Rule Tables.

Declarative pattern banks for every supported invoice locale. A single
InvoiceExtractor is driven by one LocaleRules entry; nothing here
executes extraction logic.

Conventions:
    - Amount patterns capture the printed money token in group 1.
    - Order number patterns capture a loose candidate; the extractor
      checks its 3-7-7 digit shape.
    - Date patterns capture a date token for DateNormalizer.
    - Item line patterns use the named groups qty, desc and price.
    - Within each tuple, the most specific pattern comes first.

Author: ML Engineering Team
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional, Pattern, Tuple

from invoice_parser.postprocessor.normalizers import MoneyFormat


# =============================================================================
# MONEY TOKENS
# =============================================================================

_NO_NUMBER_BEFORE = r'(?<![\w.,])'

US_MONEY = _NO_NUMBER_BEFORE + r'-?\$\s?(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d{2})?'
EURO_MONEY = (
    _NO_NUMBER_BEFORE
    + r'-?(?:\d+(?:\.\d{3})*,\d{2}\s?(?:€|EUR\b)|€\s?-?\d+(?:\.\d{3})*,\d{2})'
)
GBP_MONEY = _NO_NUMBER_BEFORE + r'-?£\s?(?:\d{1,3}(?:,\d{3})+|\d+)\.\d{2}'
CHF_MONEY = r"(?:\bCHF|\bFr\.)\s?-?\d+(?:['’]\d{3})*[.,]\d{2}"
JPY_MONEY = r'(?:¥\s?\d{1,3}(?:,\d{3})*|' + _NO_NUMBER_BEFORE + r'\d{1,3}(?:,\d{3})*\s?円)(?![\d,])'
CAD_MONEY = (
    _NO_NUMBER_BEFORE
    + r'-?(?:\d+(?: \d{3})*,\d{2}\s?\$|\$\s?(?:\d{1,3}(?:,\d{3})+|\d+)\.\d{2})'
)
ANY_MONEY = '(?:' + '|'.join((EURO_MONEY, CHF_MONEY, GBP_MONEY, JPY_MONEY, US_MONEY)) + ')'

CURRENCY_CODES = MappingProxyType({'€': 'EUR', '£': 'GBP', '¥': 'JPY', 'CHF': 'CHF'})
DOLLAR_CURRENCIES = ('USD', 'CAD', 'AUD')

EURO_FORMAT = MoneyFormat('€', prefix=False, decimal_separator=',', thousands_separator='.', spaced=True)
DOLLAR_FORMAT = MoneyFormat('$')

# Candidate order id; the shape is checked after matching
ORDER_CANDIDATE = r'(\d[\d-]{8,23}\d)'
GENERIC_ORDER_NUMBER = re.compile(r'(?<![-\d])(\d{3}-\d{7}-\d{7})(?![-\d])')

DATE_TOKEN = (
    r'(\d{4}\s*年\s*\d{1,2}\s*月\s*\d{1,2}\s*日'
    r'|\d{4}[-/.]\d{1,2}[-/.]\d{1,2}'
    r'|\d{1,2}[./-]\d{1,2}[./-]\d{4}'
    r'|[^\W\d_]{3,}\.?\s+\d{1,2}(?:st|nd|rd|th)?,?\s+\d{4}'
    r'|\d{1,2}(?:er|º|°)?\.?\s*(?:de\s+)?[^\W\d_]{3,}\.?,?\s+(?:de\s+)?\d{4})'
)
DOTTED_DATE = re.compile(r'(?<![\d.])(\d{1,2}\.\d{1,2}\.\d{4})(?![\d.])')

# Optional rate or note between a label and its amount: "MwSt 19%", "IVA (21%)"
_LABEL_GAP = r'(?:[^\S\n]*(?:\([^)\n]{0,30}\)|\d{1,2}(?:[.,]\d{1,2})?\s?%))?[^\S\n]*[:：]?\s*'

# Plain "Total" must not be a partial or pre-tax total
_FULL_TOTAL = r'(?<![\w-])Total(?!\s+(?:partiel|parcial|parziale|before|HT\b|merce))'


def _labelled(money: str, *labels: str) -> Tuple[Pattern, ...]:
    """Compile "<label> <amount>" patterns, capturing the amount."""
    return tuple(
        re.compile(rf'{label}{_LABEL_GAP}({money})', re.IGNORECASE)
        for label in labels
    )


def _order_numbers(*labels: str) -> Tuple[Pattern, ...]:
    """Keyword patterns followed by the bare 3-7-7 fallback."""
    keyword = tuple(
        re.compile(rf'{label}[:#\s]*{ORDER_CANDIDATE}', re.IGNORECASE)
        for label in labels
    )
    return keyword + (GENERIC_ORDER_NUMBER,)


def _dates(*labels: str, dotted_fallback: bool = False) -> Tuple[Pattern, ...]:
    patterns = tuple(
        re.compile(rf'{label}[:：\s]*{DATE_TOKEN}', re.IGNORECASE)
        for label in labels
    )
    return patterns + (DOTTED_DATE,) if dotted_fallback else patterns


def _item_lines(money: str, *markers: str) -> Tuple[Pattern, ...]:
    """One-line "<qty> <marker> <description> <price>" patterns."""
    return tuple(
        re.compile(
            rf'^[^\S\n]*(?P<qty>\d{{1,3}})[^\S\n]*{marker}[^\S\n]+(?P<desc>.+?)[^\S\n]+(?P<price>{money})[^\S\n]*$',
            re.IGNORECASE | re.MULTILINE
        )
        for marker in markers
    )


# amazon.com "1 of: Description" blocks: the price may sit up to three lines
# below, never past the next "N of:" block
_OF_START = r'[^\S\n]*\d{1,3}[^\S\n]+of:'
US_OF_ITEM = re.compile(
    r'^[^\S\n]*(?P<qty>\d{1,3})[^\S\n]+of:[^\S\n]*'
    r'(?P<desc>[^$\n]*(?:\n(?!' + _OF_START + r')[^$\n]*){0,3}?)'
    r'[^\S\n]*\n?[^\S\n]*(?P<price>' + US_MONEY + r')',
    re.IGNORECASE | re.MULTILINE
)


@dataclass(frozen=True)
class LocaleRules:
    """
    Pattern bank for one invoice locale.

    Attributes:
        name: Registry key ("us", "eu", "de", ...)
        language: Language code the rules are written for
        currency: ISO code assumed when the text prints none
        money: How the locale prints derived amounts
        money_token: Pattern of one printed money token
        day_first: Read ambiguous numeric dates as DD/MM
        order_number, order_date, subtotal, shipping, tax, discount,
        total: Ordered patterns per field
        item_lines: Line item patterns (qty, desc, price groups)
    """
    name: str
    language: str
    currency: str
    money: MoneyFormat
    money_token: Pattern
    day_first: bool
    order_number: Tuple[Pattern, ...]
    order_date: Tuple[Pattern, ...]
    subtotal: Tuple[Pattern, ...]
    shipping: Tuple[Pattern, ...]
    tax: Tuple[Pattern, ...]
    discount: Tuple[Pattern, ...]
    total: Tuple[Pattern, ...]
    item_lines: Tuple[Pattern, ...] = ()

    @property
    def decimal_separator(self) -> str:
        return self.money.decimal_separator

    def amount_patterns(self, field_name: str) -> Tuple[Pattern, ...]:
        """Patterns for one money field (subtotal, shipping, tax, discount, total)."""
        return getattr(self, field_name)

    def currency_for(self, symbol: Optional[str]) -> Optional[str]:
        """
        ISO code for a canonical currency symbol printed on the invoice.

        "$" is ambiguous and resolves to the locale's dollar currency.
        """
        if symbol == '$':
            return self.currency if self.currency in DOLLAR_CURRENCIES else 'USD'
        return CURRENCY_CODES.get(symbol) or self.currency or None


# =============================================================================
# LABEL SETS
# =============================================================================

EN_ORDER = (r'Order\s*Number', r'Order\s*(?:No\.?|ID)', r'Order\s*#', r'\bOrder')
EN_DATE = (r'Order\s+Placed', r'Order\s+Date', r'(?<![\w])Date')
EN_SUBTOTAL = (r'Item\(?s?\)?\s+Subtotal', r'(?<![\w-])Sub-?total')
EN_SHIPPING = (r'Shipping\s*(?:&|and)\s*Handling', r'(?<![\w-])Shipping', r'\bPostage', r'\bDelivery')
EN_TAX = (r'Estimated\s+tax\s+to\s+be\s+collected', r'Estimated\s+Tax', r'Sales\s+Tax',
          r'(?<!before )(?<![\w-])Tax')
EN_DISCOUNT = (r'\bDiscount', r'Promotions?(?:\s+Applied)?')
EN_TOTAL = (r'Grand\s+Total', r'Order\s+Total', r'Amount\s+Due', _FULL_TOTAL)

DE_ORDER = (r'Bestellnummer', r'Bestell-Nr\.?', r'Auftragsnummer', r'Bestellung')
DE_DATE = (r'Bestelldatum', r'Rechnungsdatum', r'(?<![\w])Datum')
DE_SUBTOTAL = (r'Zwischensumme', r'Teilsumme', r'Nettobetrag', r'(?<![\w])Summe')
DE_SHIPPING = (r'Versandkosten', r'Versand\s+und\s+Verpackung', r'(?<![\w])Versand', r'\bPorto')
DE_TAX = (r'\bMwSt\.?', r'Mehrwertsteuer', r'Umsatzsteuer', r'\bUSt\.?(?!-)')
DE_DISCOUNT = (r'Rabatt', r'Gutschein', r'Nachlass', r'Ermäßigung')
DE_TOTAL = (r'Gesamtbetrag', r'Gesamtsumme', r'Rechnungsbetrag', r'Zahlbetrag', r'Endbetrag',
            r'(?<![\w])Gesamt', _FULL_TOTAL)

FR_ORDER = (r'Num[ée]ro\s+de\s+commande', r'N°\s*de\s+commande', r'(?<![\w])Commande', r'R[ée]f[ée]rence')
FR_DATE = (r'Date\s+de\s+commande', r'Commande\s+pass[ée]e\s+le', r'Commande\s+du',
           r'Date\s+de\s+facturation')
FR_SUBTOTAL = (r'Sous-total', r'Total\s+HT', r'Total\s+partiel')
FR_SHIPPING = (r'Frais\s+de\s+(?:port|livraison)', r'Livraison', r'Exp[ée]dition')
FR_TAX = (r'T\.?V\.?A\.?',)
FR_DISCOUNT = (r'Remise', r'R[ée]duction', r'Bon\s+de\s+r[ée]duction')
FR_TOTAL = (r'Total\s+TTC', r'Montant\s+total', r'Total\s+[àa]\s+payer', _FULL_TOTAL)

IT_ORDER = (r"Numero\s+d['’]ordine", r"N\.\s*d['’]ordine", r'(?<![\w])Ordine')
IT_DATE = (r"Data\s+dell['’]ordine", r'Data\s+ordine', r'Ordine\s+effettuato\s+il', r'Ordine\s+del')
IT_SUBTOTAL = (r'Subtotale', r'Totale\s+parziale', r'Totale\s+merce', r'Imponibile')
IT_SHIPPING = (r'Spese\s+di\s+spedizione', r'Costi\s+di\s+spedizione', r'Spedizione', r'Consegna')
IT_TAX = (r'\bIVA',)
IT_DISCOUNT = (r'Sconto', r'Riduzione', r'Buono')
IT_TOTAL = (r'Totale\s+da\s+pagare', r'Totale\s+ordine', r'Importo\s+totale',
            r'(?<![\w])Totale(?!\s+(?:parziale|merce))')

ES_ORDER = (r'N[úu]mero\s+de\s+pedido', r'N[º°o]\.?\s*de\s+pedido', r'(?<![\w])Pedido')
ES_DATE = (r'Fecha\s+del?\s+pedido', r'Pedido\s+realizado\s+el', r'Pedido\s+del', r'(?<![\w])Fecha')
ES_SUBTOTAL = (r'(?<![\w-])Subtotal', r'Total\s+parcial', r'Base\s+imponible')
ES_SHIPPING = (r'Gastos\s+de\s+env[íi]o', r'Env[íi]o', r'Portes')
ES_TAX = (r'\bIVA', r'Impuestos')
ES_DISCOUNT = (r'Descuentos?', r'Rebaja', r'Reducci[óo]n')
ES_TOTAL = (r'Importe\s+total', r'Total\s+a\s+pagar', _FULL_TOTAL)


def _dedupe(*groups: Tuple[str, ...]) -> Tuple[str, ...]:
    """Concatenate label groups, keeping the first occurrence of each."""
    seen = []
    for group in groups:
        for label in group:
            if label not in seen:
                seen.append(label)
    return tuple(seen)


# =============================================================================
# REGISTRY
# =============================================================================

US_RULES = LocaleRules(
    name='us', language='EN', currency='USD',
    money=DOLLAR_FORMAT, money_token=re.compile(US_MONEY), day_first=False,
    order_number=_order_numbers(*EN_ORDER),
    order_date=_dates(*EN_DATE),
    subtotal=_labelled(US_MONEY, *EN_SUBTOTAL),
    shipping=_labelled(US_MONEY, *EN_SHIPPING),
    tax=_labelled(US_MONEY, *EN_TAX),
    discount=_labelled(US_MONEY, *EN_DISCOUNT),
    total=_labelled(US_MONEY, *EN_TOTAL),
    item_lines=(US_OF_ITEM,) + _item_lines(US_MONEY, r'[x×]'),
)

EN_RULES = LocaleRules(
    name='en', language='EN', currency='USD',
    money=DOLLAR_FORMAT, money_token=re.compile(US_MONEY), day_first=False,
    order_number=US_RULES.order_number,
    order_date=US_RULES.order_date,
    subtotal=US_RULES.subtotal,
    shipping=US_RULES.shipping,
    tax=_labelled(US_MONEY, *EN_TAX, r'\bVAT', r'\bGST'),
    discount=US_RULES.discount,
    total=US_RULES.total,
    item_lines=_item_lines(US_MONEY, r'[x×]') + (US_OF_ITEM,),
)

GB_RULES = LocaleRules(
    name='gb', language='GB', currency='GBP',
    money=MoneyFormat('£'), money_token=re.compile(GBP_MONEY), day_first=True,
    order_number=_order_numbers(*EN_ORDER),
    order_date=_dates(*EN_DATE, dotted_fallback=True),
    subtotal=_labelled(GBP_MONEY, *EN_SUBTOTAL),
    shipping=_labelled(GBP_MONEY, *EN_SHIPPING),
    tax=_labelled(GBP_MONEY, r'VAT\s+Included', r'\bVAT', *EN_TAX),
    discount=_labelled(GBP_MONEY, *EN_DISCOUNT),
    total=_labelled(GBP_MONEY, *EN_TOTAL),
    item_lines=_item_lines(GBP_MONEY, r'[x×]'),
)

AU_RULES = LocaleRules(
    name='au', language='AU', currency='AUD',
    money=DOLLAR_FORMAT, money_token=re.compile(US_MONEY), day_first=True,
    order_number=_order_numbers(*EN_ORDER),
    order_date=_dates(*EN_DATE),
    subtotal=_labelled(US_MONEY, *EN_SUBTOTAL),
    shipping=_labelled(US_MONEY, *EN_SHIPPING),
    tax=_labelled(US_MONEY, r'GST(?:\s+included)?', *EN_TAX),
    discount=_labelled(US_MONEY, *EN_DISCOUNT),
    total=_labelled(US_MONEY, *EN_TOTAL),
    item_lines=_item_lines(US_MONEY, r'[x×]'),
)

CA_RULES = LocaleRules(
    name='ca', language='CA', currency='CAD',
    money=MoneyFormat('$', prefix=False, decimal_separator=',', thousands_separator=' ', spaced=True),
    money_token=re.compile(CAD_MONEY), day_first=True,
    order_number=_order_numbers(*FR_ORDER, *EN_ORDER),
    order_date=_dates(*FR_DATE, *EN_DATE),
    subtotal=_labelled(CAD_MONEY, r'Sous-total\s+des\s+articles', *FR_SUBTOTAL, *EN_SUBTOTAL),
    shipping=_labelled(CAD_MONEY, r"Frais\s+d['’]exp[ée]dition", *FR_SHIPPING, *EN_SHIPPING),
    tax=_labelled(CAD_MONEY, r'\bTPS', r'\bTVH', r'\bTVQ', r'\bTaxes', r'\bGST', r'\bHST'),
    discount=_labelled(CAD_MONEY, *FR_DISCOUNT, *EN_DISCOUNT),
    total=_labelled(CAD_MONEY, r'Grand\s+total', r'Montant\s+total', r'Total\s+TTC',
                    r'[ÀA]\s+payer', _FULL_TOTAL),
    item_lines=_item_lines(CAD_MONEY, r'[x×]'),
)

DE_RULES = LocaleRules(
    name='de', language='DE', currency='EUR',
    money=EURO_FORMAT, money_token=re.compile(EURO_MONEY), day_first=True,
    order_number=_order_numbers(*DE_ORDER),
    order_date=_dates(*DE_DATE, dotted_fallback=True),
    subtotal=_labelled(EURO_MONEY, *DE_SUBTOTAL),
    shipping=_labelled(EURO_MONEY, *DE_SHIPPING),
    tax=_labelled(EURO_MONEY, *DE_TAX),
    discount=_labelled(EURO_MONEY, *DE_DISCOUNT),
    total=_labelled(EURO_MONEY, *DE_TOTAL),
    item_lines=_item_lines(EURO_MONEY, r'[x×]'),
)

FR_RULES = LocaleRules(
    name='fr', language='FR', currency='EUR',
    money=EURO_FORMAT, money_token=re.compile(EURO_MONEY), day_first=True,
    order_number=_order_numbers(*FR_ORDER),
    order_date=_dates(*FR_DATE, r'(?<![\w])Le'),
    subtotal=_labelled(EURO_MONEY, *FR_SUBTOTAL),
    shipping=_labelled(EURO_MONEY, *FR_SHIPPING, r'(?<![\w])Port'),
    tax=_labelled(EURO_MONEY, *FR_TAX),
    discount=_labelled(EURO_MONEY, *FR_DISCOUNT),
    total=_labelled(EURO_MONEY, *FR_TOTAL),
    item_lines=_item_lines(EURO_MONEY, r'[x×]'),
)

IT_RULES = LocaleRules(
    name='it', language='IT', currency='EUR',
    money=EURO_FORMAT, money_token=re.compile(EURO_MONEY), day_first=True,
    order_number=_order_numbers(*IT_ORDER),
    order_date=_dates(*IT_DATE, r'(?<![\w])Data', dotted_fallback=True),
    subtotal=_labelled(EURO_MONEY, *IT_SUBTOTAL),
    shipping=_labelled(EURO_MONEY, *IT_SHIPPING),
    tax=_labelled(EURO_MONEY, *IT_TAX, r'Imposta'),
    discount=_labelled(EURO_MONEY, *IT_DISCOUNT),
    total=_labelled(EURO_MONEY, *IT_TOTAL, r'Grand\s+Total'),
    item_lines=_item_lines(EURO_MONEY, r'[x×]', r'di'),
)

ES_RULES = LocaleRules(
    name='es', language='ES', currency='EUR',
    money=EURO_FORMAT, money_token=re.compile(EURO_MONEY), day_first=True,
    order_number=_order_numbers(*ES_ORDER),
    order_date=_dates(*ES_DATE),
    subtotal=_labelled(EURO_MONEY, *ES_SUBTOTAL),
    shipping=_labelled(EURO_MONEY, *ES_SHIPPING),
    tax=_labelled(EURO_MONEY, *ES_TAX),
    discount=_labelled(EURO_MONEY, *ES_DISCOUNT),
    total=_labelled(EURO_MONEY, *ES_TOTAL),
    item_lines=_item_lines(EURO_MONEY, r'[x×]'),
)

CH_RULES = LocaleRules(
    name='ch', language='CH', currency='CHF',
    money=MoneyFormat('CHF', decimal_separator='.', thousands_separator="'", spaced=True),
    money_token=re.compile(CHF_MONEY), day_first=True,
    order_number=_order_numbers(*DE_ORDER),
    order_date=_dates(*DE_DATE, dotted_fallback=True),
    subtotal=_labelled(CHF_MONEY, r'Zwischentotal', *DE_SUBTOTAL, *EN_SUBTOTAL),
    shipping=_labelled(CHF_MONEY, *DE_SHIPPING, r'\bLieferung'),
    tax=_labelled(CHF_MONEY, r'\bMWST', *DE_TAX, *FR_TAX),
    discount=_labelled(CHF_MONEY, *DE_DISCOUNT),
    total=_labelled(CHF_MONEY, *DE_TOTAL, r'(?<![\w])Betrag'),
    item_lines=_item_lines(CHF_MONEY, r'[x×]'),
)

JP_RULES = LocaleRules(
    name='jp', language='JP', currency='JPY',
    money=MoneyFormat('¥', decimals=0), money_token=re.compile(JPY_MONEY), day_first=False,
    order_number=_order_numbers(r'注文番号', r'オーダー番号', r'注文'),
    order_date=_dates(r'注文日時?', r'注文された日', r'日付'),
    subtotal=_labelled(JPY_MONEY, r'商品の小計', r'商品小計', r'小計'),
    shipping=_labelled(JPY_MONEY, r'配送料', r'送料', r'手数料'),
    tax=_labelled(JPY_MONEY, r'消費税', r'税額', r'税金'),
    discount=_labelled(JPY_MONEY, r'割引', r'クーポン'),
    total=_labelled(JPY_MONEY, r'ご請求額', r'注文合計', r'総合計', r'合計金額', r'(?<!小)合計'),
    item_lines=_item_lines(JPY_MONEY, r'[x×]', r'個'),
)

# amazon.eu: every marketplace language at once, euro or pound amounts
EU_MONEY = f'(?:{EURO_MONEY}|{GBP_MONEY})'

EU_RULES = LocaleRules(
    name='eu', language='EU', currency='EUR',
    money=EURO_FORMAT, money_token=re.compile(EU_MONEY), day_first=True,
    order_number=_order_numbers(
        r'Bestellnummer', r'Bestell-Nr\.?', r'Num[ée]ro\s+de\s+commande', r'N°\s*de\s+commande',
        r'N[úu]mero\s+de\s+pedido', r"Numero\s+d['’]ordine", r'Order\s*Number', r'Order\s*#',
        r'Bestellung', r'(?<![\w])Commande', r'(?<![\w])Pedido', r'(?<![\w])Ordine', r'\bOrder',
    ),
    order_date=_dates(
        r'Bestelldatum', r'Rechnungsdatum', r'Fecha\s+del?\s+pedido', r'Date\s+de\s+commande',
        r'Commande\s+pass[ée]e\s+le', r"Data\s+dell['’]ordine", r'Data\s+ordine',
        r'Order\s+Date', r'Order\s+Placed', r'Lieferdatum',
        dotted_fallback=True,
    ),
    subtotal=_labelled(EU_MONEY, *_dedupe(
        DE_SUBTOTAL[:3], FR_SUBTOTAL, IT_SUBTOTAL, ES_SUBTOTAL, EN_SUBTOTAL)),
    shipping=_labelled(EU_MONEY, *_dedupe(
        DE_SHIPPING, ES_SHIPPING, FR_SHIPPING, IT_SHIPPING, EN_SHIPPING)),
    tax=_labelled(EU_MONEY, *_dedupe(DE_TAX, IT_TAX, FR_TAX, (r'\bVAT',), EN_TAX)),
    discount=_labelled(EU_MONEY, *_dedupe(
        DE_DISCOUNT, ES_DISCOUNT, FR_DISCOUNT, IT_DISCOUNT, EN_DISCOUNT)),
    total=_labelled(EU_MONEY, *_dedupe(
        DE_TOTAL[:5], FR_TOTAL[:3], ES_TOTAL[:2], IT_TOTAL, (r'Grand\s+total', r'Order\s+Total'),
        DE_TOTAL[5:], (_FULL_TOTAL,))),
    item_lines=_item_lines(EU_MONEY, r'[x×]'),
)

# Last resort: generic labels, any currency
MINIMAL_RULES = LocaleRules(
    name='minimal', language='UNKNOWN', currency='',
    money=DOLLAR_FORMAT, money_token=re.compile(ANY_MONEY), day_first=True,
    order_number=(GENERIC_ORDER_NUMBER,),
    order_date=_dates(r'(?<![\w])Date', dotted_fallback=True),
    subtotal=_labelled(ANY_MONEY, *EN_SUBTOTAL),
    shipping=_labelled(ANY_MONEY, *EN_SHIPPING),
    tax=_labelled(ANY_MONEY, r'\bVAT', *EN_TAX),
    discount=_labelled(ANY_MONEY, *EN_DISCOUNT),
    total=_labelled(ANY_MONEY, *EN_TOTAL),
    item_lines=_item_lines(ANY_MONEY, r'[x×]'),
)

LOCALE_RULES = MappingProxyType({
    rules.name: rules
    for rules in (
        US_RULES, EN_RULES, GB_RULES, AU_RULES, CA_RULES, DE_RULES, FR_RULES,
        IT_RULES, ES_RULES, CH_RULES, JP_RULES, EU_RULES, MINIMAL_RULES,
    )
})


def get_rules(name: str) -> LocaleRules:
    """
    Look up a rule table by registry key.

    Raises:
        KeyError: If no table is registered under that name.
    """
    return LOCALE_RULES[name]
