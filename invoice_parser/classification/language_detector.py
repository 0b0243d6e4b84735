"""
Language Detector Module.

Identifies the marketplace locale of an invoice (ES, DE, EN, FR, IT, JP,
CA, AU, CH, GB) from keyword, currency and date evidence. The result
drives language-based routing when format classification is
inconclusive.

Author: ML Engineering Team
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional, Dict, Any, Pattern, Tuple

from config import get_config
from invoice_parser.constants import UNKNOWN_LANGUAGE
from invoice_parser.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


def _patterns(*expressions: str) -> Tuple[Pattern, ...]:
    return tuple(re.compile(expression, re.IGNORECASE) for expression in expressions)


@dataclass(frozen=True)
class LanguageProfile:
    """
    Evidence table for one locale.

    Attributes:
        code: Locale code (e.g. "DE").
        name: Human readable name.
        high: Locale-specific terms, each worth the high weight.
        medium: Supporting phrases, each worth the medium weight.
        currency: Money pattern for the locale.
        currency_per_match: Weight per currency match; None for a flat bonus.
        currency_bonus: Flat bonus, or cap when weighting per match.
        date: Date pattern typical for the locale.
        date_bonus: Bonus when the date pattern is present.
    """
    code: str
    name: str
    high: Tuple[Pattern, ...]
    medium: Tuple[Pattern, ...]
    currency: Pattern
    currency_per_match: Optional[float]
    currency_bonus: float
    date: Pattern
    date_bonus: float = 0.10


EURO_AMOUNT = re.compile(r'\d+[,.]\d{2}\s*€')
DOTTED_OR_SLASHED_DATE = re.compile(r'\b\d{1,2}[./]\d{1,2}[./]\d{4}\b')
SLASHED_DATE = re.compile(r'\b\d{1,2}/\d{1,2}/\d{4}\b')
DOTTED_DATE = re.compile(r'\b\d{1,2}\.\d{1,2}\.\d{4}\b')

LANGUAGE_PROFILES = MappingProxyType({
    'ES': LanguageProfile(
        'ES', 'Spanish',
        high=_patterns(r'\bASIN:', r'\bIVA\s+\d', r'\bESPAÑA\b', r'\bIMPORTE\s+TOTAL\b',
                       r'\bPEDIDO\s+REALIZADO\b', r'\bFECHA\s+DEL\s+PEDIDO\b',
                       r'\bNÚMERO\s+DE\s+PEDIDO\b', r'\bSUBTOTAL\b', r'\bTOTAL\b',
                       r'\bENVÍO\b', r'\bPRODUCTOS\b', r'\bDESCRIPCIÓN\b'),
        medium=_patterns(r'\bEL\s+PEDIDO\b', r'\bSU\s+PEDIDO\b', r'\bHA\s+SIDO\b',
                         r'\bGRACIAS\s+POR\b', r'\bSU\s+COMPRA\b'),
        currency=re.compile(r'\d{1,3}(?:\.\d{3})*,\d{2}\s*€'),
        currency_per_match=0.05,
        currency_bonus=0.20,
        date=DOTTED_OR_SLASHED_DATE,
    ),
    'DE': LanguageProfile(
        'DE', 'German',
        high=_patterns(r'\bBESTELLNUMMER\b', r'\bBESTELLDATUM\b', r'\bARTIKEL\b',
                       r'\bZWISCHENSUMME\b', r'\bVERSAND\b', r'\bMWST\b',
                       r'\bGESAMTBETRAG\b', r'\bRECHNUNGSADRESSE\b', r'\bLIEFERADRESSE\b',
                       r'\bZAHLUNGSART\b', r'\bAMAZON\.DE\b'),
        medium=_patterns(r'\bIHR\s+AUFTRAG\b', r'\bVIELE\s+GRÜSSE\b',
                         r'\bAMAZON\s+EU\s+S\.À\s+R\.L\b', r'\bSTEUERNR\b', r'\bUST-IDNR\b'),
        currency=EURO_AMOUNT,
        currency_per_match=None,
        currency_bonus=0.15,
        date=DOTTED_DATE,
    ),
    'EN': LanguageProfile(
        'EN', 'English',
        high=_patterns(r'\bORDER\s+PLACED\b', r'\bORDER\s+NUMBER\b', r'\bORDER\s+CONFIRMATION\b',
                       r'\bITEMS\s+ORDERED\b', r'\bSHIPPING\b', r'\bSUBTOTAL\b', r'\bTAX\b',
                       r'\bGRAND\s+TOTAL\b', r'\bPAYMENT\s+METHOD\b', r'\bBILLING\s+ADDRESS\b',
                       r'\bSHIPPING\s+ADDRESS\b'),
        medium=_patterns(r'\bTHANK\s+YOU\b', r'\bFOR\s+YOUR\s+ORDER\b', r'\bAMAZON\.COM\b',
                         r'\bAMAZON\.CA\b', r'\bAMAZON\.CO\.UK\b'),
        currency=re.compile(r'[$£]\s*\d{1,3}(?:[,.]\d{3})*[,.]?\d*'),
        currency_per_match=0.05,
        currency_bonus=0.15,
        date=re.compile(r'\b(?:January|February|March|April|May|June|July|August|September|'
                        r'October|November|December)\s+\d{1,2},?\s+\d{4}\b', re.IGNORECASE),
    ),
    'FR': LanguageProfile(
        'FR', 'French',
        high=_patterns(r'\bNUMÉRO\s+DE\s+COMMANDE\b', r'\bDATE\s+DE\s+COMMANDE\b', r'\bARTICLES\b',
                       r'\bSOUS-TOTAL\b', r'\bLIVRAISON\b', r'\bTVA\b', r'\bTOTAL\s+TTC\b',
                       r'\bMODE\s+DE\s+PAIEMENT\b', r'\bADRESSE\s+DE\s+FACTURATION\b',
                       r'\bADRESSE\s+DE\s+LIVRAISON\b', r'\bAMAZON\.FR\b'),
        medium=_patterns(r'\bVOTRE\s+COMMANDE\b', r'\bMERCI\s+POUR\b', r'\bVOTRE\s+ACHAT\b',
                         r'\bNOUS\s+VOUS\b', r'\bTÉLÉPHONE\b'),
        currency=EURO_AMOUNT,
        currency_per_match=None,
        currency_bonus=0.15,
        date=DOTTED_OR_SLASHED_DATE,
    ),
    'IT': LanguageProfile(
        'IT', 'Italian',
        high=_patterns(r"\bNUMERO\s+D'ORDINE\b", r"\bDATA\s+DELL'ORDINE\b", r'\bARTICOLI\b',
                       r'\bSUBTOTALE\b', r'\bSPEDIZIONE\b', r'\bIVA\b', r'\bTOTALE\b',
                       r'\bAMAZON\.IT\b'),
        medium=_patterns(r'\bIL\s+TUO\s+ORDINE\b', r'\bGRAZIE\s+PER\b',
                         r'\bIL\s+TUO\s+ACQUISTO\b', r'\bTELEFONO\b'),
        currency=EURO_AMOUNT,
        currency_per_match=None,
        currency_bonus=0.15,
        date=DOTTED_OR_SLASHED_DATE,
    ),
    'JP': LanguageProfile(
        'JP', 'Japanese',
        high=_patterns(r'注文番号', r'注文日', r'商品', r'小計', r'配送料', r'消費税', r'合計',
                       r'\bAMAZON\.CO\.JP\b'),
        medium=_patterns(r'お届け先', r'お支払い方法', r'円', r'年\d{1,2}月\d{1,2}日'),
        currency=re.compile(r'[¥￥]\s*\d{1,3}(?:,\d{3})*'),
        currency_per_match=None,
        currency_bonus=0.15,
        date=re.compile(r'\d{4}年\d{1,2}月\d{1,2}日'),
    ),
    'CA': LanguageProfile(
        'CA', 'Canadian French',
        high=_patterns(r'\bNUMÉRO\s+DE\s+COMMANDE\b', r'\bCOMMANDE\s+PASSÉE\b', r'\bARTICLES\b',
                       r'\bSOUS-TOTAL\b', r'\bLIVRAISON\b', r'\bTPS\b', r'\bTVH\b',
                       r'(?<!\w)À\s+PAYER\b', r'\bAMAZON\.CA\b'),
        medium=_patterns(r'\bVOTRE\s+COMMANDE\b', r'\bADRESSE\s+DE\s+LIVRAISON\b',
                         r'\bMODE\s+DE\s+PAIEMENT\b', r'\bCANADA\b', r'\bQUÉBEC\b'),
        currency=re.compile(r'\$\s*\d{1,3}(?:[,.]\d{3})*[,.]\d{2}'),
        currency_per_match=None,
        currency_bonus=0.15,
        date=SLASHED_DATE,
    ),
    'AU': LanguageProfile(
        'AU', 'Australian English',
        high=_patterns(r'\bORDER\s+PLACED\b', r'\bORDER\s+NUMBER\b', r'\bITEMS\s+ORDERED\b',
                       r'\bSHIPPING\b', r'\bSUBTOTAL\b', r'\bGST\b', r'\bGRAND\s+TOTAL\b',
                       r'\bPAYMENT\s+METHOD\b', r'\bAMAZON\.COM\.AU\b'),
        medium=_patterns(r'\bDELIVERY\b', r'\bAUSTRALIA\b', r'\bTHANK\s+YOU\b',
                         r'\bFOR\s+YOUR\s+ORDER\b'),
        currency=re.compile(r'\$\s*\d{1,3}(?:[,.]\d{3})*[,.]\d{2}'),
        currency_per_match=None,
        currency_bonus=0.15,
        date=SLASHED_DATE,
    ),
    'CH': LanguageProfile(
        'CH', 'Swiss German',
        high=_patterns(r'\bBESTELLNUMMER\b', r'\bBESTELLDATUM\b', r'\bARTIKEL\b',
                       r'\bZWISCHENSUMME\b', r'\bVERSAND\b', r'\bMWST\b', r'\bGESAMTBETRAG\b',
                       r'\bZAHLUNGSART\b', r'\bAMAZON\.DE\b', r'\bSCHWEIZ\b'),
        medium=_patterns(r'\bIHR\s+AUFTRAG\b', r'\bVIELE\s+GRÜSSE\b', r'\bCHF\b', r'\bSTEUERNR\b'),
        currency=re.compile(r'\bCHF\s*\d+[,.]\d{2}', re.IGNORECASE),
        currency_per_match=None,
        currency_bonus=0.15,
        date=DOTTED_DATE,
    ),
    'GB': LanguageProfile(
        'GB', 'British English',
        high=_patterns(r'\bORDER\s+PLACED\b', r'\bORDER\s+NUMBER\b', r'\bORDER\s+CONFIRMATION\b',
                       r'\bITEMS\s+ORDERED\b', r'\bSHIPPING\b', r'\bSUBTOTAL\b', r'\bVAT\b',
                       r'\bGRAND\s+TOTAL\b', r'\bPAYMENT\s+METHOD\b', r'\bAMAZON\.CO\.UK\b'),
        medium=_patterns(r'\bDELIVERY\b', r'\bPOSTAGE\b', r'\bUNITED\s+KINGDOM\b',
                         r'\bTHANK\s+YOU\b', r'\bFOR\s+YOUR\s+ORDER\b'),
        currency=re.compile(r'£\s*\d{1,3}(?:[,.]\d{3})*[,.]\d{2}'),
        currency_per_match=None,
        currency_bonus=0.15,
        date=SLASHED_DATE,
    ),
})


@dataclass(frozen=True)
class LanguageDetection:
    """Result of language detection."""
    language: str
    confidence: float
    evidence: str
    supported: bool
    scores: Optional[Dict[str, float]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the wire shape."""
        return {
            'language': self.language,
            'confidence': self.confidence,
            'evidence': self.evidence,
            'supported': self.supported,
        }


class LanguageDetector:
    """
    Scores every locale profile and keeps the best.

    Example:
        >>> detector = LanguageDetector()
        >>> detector.detect("Bestellnummer ... Zwischensumme 12,80 €").language
        "DE"
    """

    def __init__(self) -> None:
        """Initialize the detector with configured weights."""
        self.min_confidence = get_config("language_detection.min_confidence", 0.3)
        self.high_weight = get_config("language_detection.weights.high", 0.15)
        self.medium_weight = get_config("language_detection.weights.medium", 0.08)

    def detect(self, text: Optional[str]) -> LanguageDetection:
        """
        Detect the locale of an invoice text.

        Args:
            text: Preprocessed invoice text.

        Returns:
            LanguageDetection; language is "UNKNOWN" when nothing scores
            at least the minimum confidence.
        """
        if not text or not isinstance(text, str):
            return self._result(UNKNOWN_LANGUAGE, 0.0, "No text provided")

        scores = {code: self.score(profile, text) for code, profile in LANGUAGE_PROFILES.items()}
        candidates = {code: score for code, score in scores.items() if score > 0}

        if not candidates:
            return self._result(UNKNOWN_LANGUAGE, 0.0, "No language patterns detected", scores)

        # Ties keep profile order
        best = max(candidates, key=lambda code: candidates[code])
        confidence = candidates[best]

        if confidence < self.min_confidence:
            return self._result(UNKNOWN_LANGUAGE, confidence, "Low confidence detection", scores)

        logger.debug(f"Detected language {best} (confidence={confidence:.2f})")
        return self._result(best, confidence, f"Detected {LANGUAGE_PROFILES[best].name} patterns", scores)

    def score(self, profile: LanguageProfile, text: str) -> float:
        """
        Score one locale profile against the text.

        Args:
            profile: Locale evidence table.
            text: Invoice text.

        Returns:
            Score in [0, 1].
        """
        score = self.high_weight * sum(1 for p in profile.high if p.search(text))
        score += self.medium_weight * sum(1 for p in profile.medium if p.search(text))

        if profile.currency_per_match is not None:
            matches = len(profile.currency.findall(text))
            score += min(matches * profile.currency_per_match, profile.currency_bonus)
        elif profile.currency.search(text):
            score += profile.currency_bonus

        if profile.date.search(text):
            score += profile.date_bonus

        return min(score, 1.0)

    @staticmethod
    def _result(language: str, confidence: float, evidence: str,
                scores: Optional[Dict[str, float]] = None) -> LanguageDetection:
        return LanguageDetection(
            language=language,
            confidence=round(confidence, 2),
            evidence=evidence,
            supported=language in LANGUAGE_PROFILES,
            scores={code: round(value, 2) for code, value in (scores or {}).items()},
        )


def detect_language(text: Optional[str]) -> LanguageDetection:
    """Module-level shortcut for LanguageDetector().detect()."""
    return LanguageDetector().detect(text)
