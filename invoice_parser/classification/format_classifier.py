"""
Format Classifier Module.

Decides which marketplace layout an invoice text follows, using weighted
signature tables, and for international invoices whether it is a
business or a consumer invoice.

Scoring:
    Each signature token found in the text (case-insensitive substring)
    adds its weight once. The winning format's score is mapped to a
    confidence band, reduced when the other format scores too.

Author: ML Engineering Team
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Optional, Dict, Any, List, Tuple

from config import get_config
from invoice_parser.constants import (
    DOMESTIC, INTERNATIONAL, BUSINESS, CONSUMER,
    VERY_LOW, LOW, MEDIUM, HIGH, REJECT, REVIEW, ACCEPT,
)
from invoice_parser.preprocessing.light_preprocessor import light_preprocess
from invoice_parser.utils.exceptions import EmptyInputError
from invoice_parser.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


def _weighted(*groups: Tuple[int, Tuple[str, ...]]) -> MappingProxyType:
    """Build a read-only token->weight table, de-duplicated case-insensitively."""
    table: Dict[str, int] = {}
    for weight, tokens in groups:
        for token in tokens:
            table.setdefault(token.lower(), weight)
    return MappingProxyType(table)


SIGNATURES = MappingProxyType({
    DOMESTIC: _weighted(
        (40, ('amazon.com', 'Order #', 'Order Placed:', 'Shipped to:', 'Sold by:', 'Shipped by:')),
        (20, ('$', 'USD')),
        (15, ('January', 'February', 'March', 'April', 'May', 'June', 'July',
              'August', 'September', 'October', 'November', 'December')),
    ),
    INTERNATIONAL: _weighted(
        (40, ('amazon.de', 'amazon.fr', 'amazon.it', 'amazon.es', 'amazon.co.uk',
              'amazon.nl', 'amazon.se', 'amazon.pl', 'ASIN:')),
        (20, ('€', 'EUR', '£', 'GBP', 'CHF')),
        (25, ('Rechnung', 'Commande', 'Ordine', 'Pedido', 'Bestellung',
              'Facture', 'Fattura', 'Factura')),
        # German, French, Spanish, Italian months
        (15, ('Januar', 'Februar', 'März', 'April', 'Mai', 'Juni', 'Juli',
              'August', 'September', 'Oktober', 'November', 'Dezember',
              'janvier', 'février', 'mars', 'avril', 'juin', 'juillet',
              'août', 'septembre', 'octobre', 'novembre', 'décembre',
              'enero', 'febrero', 'marzo', 'abril', 'mayo', 'junio', 'julio',
              'agosto', 'septiembre', 'octubre', 'noviembre', 'diciembre',
              'gennaio', 'febbraio', 'aprile', 'maggio', 'giugno', 'luglio',
              'settembre', 'ottobre', 'dicembre')),
    ),
})

BUSINESS_INDICATORS = (
    re.compile(r'amazon\s+business', re.IGNORECASE),
    re.compile(r'Geschäftsadresse'),
    re.compile(r'Auftraggeber'),
    re.compile(r'Rechnung\s+an'),
    re.compile(r'Firma'),
    re.compile(r'USt-IdNr'),
    re.compile(r'Steuernummer'),
    re.compile(r'\bGmbH\b', re.IGNORECASE),
    re.compile(r'\bAG\b'),
    re.compile(r'\bUG\b', re.IGNORECASE),
    re.compile(r'\be\.V\.', re.IGNORECASE),
    re.compile(r'\bKGaA\b', re.IGNORECASE),
    re.compile(r'Dirección comercial'),
    re.compile(r'NIF sujeto de IVA'),
    re.compile(r'Adresse (?:professionnelle|commerciale)'),
    re.compile(r'Numéro de TVA'),
    re.compile(r'TVA\s+[A-Z]{2}\d'),
    re.compile(r'Facture\s+à'),
    re.compile(r'Entreprise'),
    re.compile(r'Société'),
    re.compile(r'S\.A\.R\.L'),
    re.compile(r'S\.A\.S'),
    re.compile(r'IVA\s+ES'),
    re.compile(r'TVA\s+FR'),
    re.compile(r'IVA\s+IT'),
    re.compile(r'Partita IVA'),
    re.compile(r'P\.?I\.?\s+\d'),
    re.compile(r'società', re.IGNORECASE),
    re.compile(r'azienda', re.IGNORECASE),
)

# Polish entity markers count only outside Amazon's own registration line
POLISH_BUSINESS = (
    re.compile(r'SP\.\s*Z\s*O\.O\.'),
    re.compile(r'ODDZIAŁ\s+W\s+POLSCE'),
)
AMAZON_POLISH_REGISTRATION = re.compile(r'Amazon EU S\.à r\.l\.,.*SP\. Z O\.O\. ODDZIAŁ W POLSCE', re.IGNORECASE)

CONSUMER_INDICATORS = (
    re.compile(r'amazon\.de\b', re.IGNORECASE),
    re.compile(r'amazon\.fr\b', re.IGNORECASE),
    re.compile(r'amazon\.co\.uk\b', re.IGNORECASE),
    re.compile(r'Rechnungsadresse(?!.*Geschäftsadresse)'),
    re.compile(r'Steuerfreie Ausfuhrlieferung'),
    re.compile(r'Privatkunde'),
    re.compile(r'Endverbraucher'),
    re.compile(r'Lieferanschrift'),
    re.compile(r'Zahlungsmethode'),
)

DECISIVE_BUSINESS = re.compile(r'Geschäftsadresse|USt-IdNr|Steuernummer|Rechnung\s+an|Firma', re.IGNORECASE)
DECISIVE_CONSUMER = re.compile(r'Privatkunde|Endverbraucher', re.IGNORECASE)

TABLE_BEFORE_ASIN = re.compile(r'\|\s*\d+\s*\|.*?ASIN:', re.DOTALL)
INVOICE_TO_BLOCK = re.compile(r'Rechnung\s+an[^\n]*\n[^\n]*\n[^\n]*\n', re.IGNORECASE)


@dataclass(frozen=True)
class FormatClassification:
    """
    Immutable result of format classification.

    Attributes:
        format: "domestic", "international" or None.
        subtype: "business", "consumer" or None (domestic/unknown).
        confidence: Banded confidence 0-100.
        quality_level: very_low, low, medium or high.
        action: Advisory action (reject, review, accept).
        scores: Raw signature score per format.
        is_ambiguous: Both formats scored at or above the cutoff.
        subtype_confidence: 0-1 certainty of the subtype decision.
        subtype_fallback: Subtype defaulted to consumer without evidence.
        subtype_scores: Business and consumer indicator scores.
    """
    format: Optional[str]
    subtype: Optional[str]
    confidence: int
    quality_level: str
    action: str
    scores: Dict[str, int] = field(default_factory=dict)
    is_ambiguous: bool = False
    subtype_confidence: float = 0.0
    subtype_fallback: bool = False
    subtype_scores: Dict[str, int] = field(default_factory=dict)

    @property
    def is_resolved(self) -> bool:
        """Whether a format was identified."""
        return self.format is not None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase wire shape."""
        return {
            'format': self.format,
            'subtype': self.subtype,
            'confidence': self.confidence,
            'qualityLevel': self.quality_level,
            'action': self.action,
            'scores': dict(self.scores),
            'isAmbiguous': self.is_ambiguous,
            'subtypeConfidence': self.subtype_confidence,
            'subtypeFallback': self.subtype_fallback,
        }


class FormatClassifier:
    """
    Weighted-signature format and subtype classifier.

    Example:
        >>> classifier = FormatClassifier()
        >>> result = classifier.classify("Order #123-4567890-1234567 ... $12.80")
        >>> result.format
        "domestic"
    """

    DEFAULT_BANDS = [[100, 100, 90], [80, 80, 60], [60, 60, 55], [40, 40, 35], [25, 25, 20]]

    def __init__(self) -> None:
        """Initialize the classifier with configured thresholds."""
        self.ambiguity_threshold = get_config("classification.ambiguity_threshold", 25)
        self.bands: List[List[int]] = get_config("classification.confidence_bands", self.DEFAULT_BANDS)
        self.floor_confidence = get_config("classification.floor_confidence", 15)
        self.quality_low = get_config("classification.quality.low", 25)
        self.quality_medium = get_config("classification.quality.medium", 40)
        self.quality_high = get_config("classification.quality.high", 70)
        self.decisive_boost = get_config("classification.subtype.decisive_boost", 2)
        self.fallback_confidence = get_config("classification.subtype.fallback_confidence", 0.3)

    def classify(self, text: Optional[str]) -> FormatClassification:
        """
        Classify an invoice text.

        Args:
            text: Raw or light-preprocessed invoice text.

        Returns:
            FormatClassification.

        Raises:
            EmptyInputError: If text is empty or whitespace only.
        """
        if not text or not text.strip():
            raise EmptyInputError()

        processed = light_preprocess(text)
        scores = self.calculate_scores(processed)
        format_name = self.determine_format(scores)
        ambiguous = all(score >= self.ambiguity_threshold for score in scores.values())
        confidence = self.calculate_confidence(scores, format_name, ambiguous)
        quality_level, action = self.determine_quality(confidence, scores)

        subtype = None
        subtype_confidence = 0.0
        subtype_fallback = False
        subtype_scores: Dict[str, int] = {}
        if format_name == INTERNATIONAL:
            subtype, subtype_confidence, subtype_scores, subtype_fallback = self.detect_subtype(processed)

        result = FormatClassification(
            format=format_name,
            subtype=subtype,
            confidence=confidence,
            quality_level=quality_level,
            action=action,
            scores=scores,
            is_ambiguous=ambiguous,
            subtype_confidence=subtype_confidence,
            subtype_fallback=subtype_fallback,
            subtype_scores=subtype_scores,
        )
        logger.debug(
            f"Classified as {format_name}/{subtype} "
            f"(confidence={confidence}, scores={scores})"
        )
        return result

    def calculate_scores(self, text: str) -> Dict[str, int]:
        """
        Score the text against each signature table.

        Args:
            text: Preprocessed text.

        Returns:
            Score per format.
        """
        lowered = text.lower()
        return {
            format_name: sum(weight for token, weight in table.items() if token in lowered)
            for format_name, table in SIGNATURES.items()
        }

    def determine_format(self, scores: Dict[str, int]) -> Optional[str]:
        """Pick the winning format; the international format wins ties."""
        domestic = scores.get(DOMESTIC, 0)
        international = scores.get(INTERNATIONAL, 0)

        if domestic < self.ambiguity_threshold and international < self.ambiguity_threshold:
            return None
        return INTERNATIONAL if international >= domestic else DOMESTIC

    def calculate_confidence(self, scores: Dict[str, int], format_name: Optional[str], ambiguous: bool) -> int:
        """
        Map the winning score to a confidence band.

        Args:
            scores: Score per format.
            format_name: Winning format or None.
            ambiguous: Whether both formats passed the ambiguity cutoff.

        Returns:
            Confidence 0-100.
        """
        if format_name is None:
            return 0

        winner = scores[format_name]
        for minimum, confidence, reduced in self.bands:
            if winner >= minimum:
                return reduced if ambiguous else confidence
        return self.floor_confidence

    def determine_quality(self, confidence: int, scores: Dict[str, int]) -> Tuple[str, str]:
        """Return (quality_level, action) for a confidence."""
        if confidence < self.quality_low or all(s < self.ambiguity_threshold for s in scores.values()):
            return VERY_LOW, REJECT
        if confidence < self.quality_medium:
            return LOW, REVIEW
        if confidence < self.quality_high:
            return MEDIUM, REVIEW
        return HIGH, ACCEPT

    def detect_subtype(self, text: str) -> Tuple[str, float, Dict[str, int], bool]:
        """
        Decide between business and consumer international layouts.

        Args:
            text: Preprocessed text.

        Returns:
            Tuple of (subtype, subtype_confidence, indicator scores,
            fallback flag). The flag is set when no evidence supported the
            consumer default.
        """
        business = sum(1 for pattern in BUSINESS_INDICATORS if pattern.search(text))
        if not AMAZON_POLISH_REGISTRATION.search(text) and any(p.search(text) for p in POLISH_BUSINESS):
            business += 1
        consumer = sum(1 for pattern in CONSUMER_INDICATORS if pattern.search(text))

        if DECISIVE_BUSINESS.search(text):
            business += self.decisive_boost
        if DECISIVE_CONSUMER.search(text):
            consumer += self.decisive_boost

        scores = {BUSINESS: business, CONSUMER: consumer}

        if business != consumer:
            subtype = BUSINESS if business > consumer else CONSUMER
            margin = abs(business - consumer)
            return subtype, min(1.0, 0.5 + 0.1 * margin), scores, False

        # Tie: fall back on layout structure
        if TABLE_BEFORE_ASIN.search(text) or INVOICE_TO_BLOCK.search(text):
            return BUSINESS, 0.5, scores, False

        logger.debug("No subtype evidence; defaulting to consumer")
        return CONSUMER, self.fallback_confidence, scores, True


def classify(text: Optional[str]) -> FormatClassification:
    """Module-level shortcut for FormatClassifier().classify()."""
    return FormatClassifier().classify(text)
