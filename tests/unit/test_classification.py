"""Unit tests for format classification and language detection."""

import pytest

from invoice_parser.classification import FormatClassifier, LanguageDetector, classify, detect_language
from invoice_parser.constants import BUSINESS, CONSUMER, DOMESTIC, INTERNATIONAL, UNKNOWN_LANGUAGE, VERY_LOW
from invoice_parser.utils.exceptions import EmptyInputError


def test_classify_domestic(domestic_text: str) -> None:
    """Test that an amazon.com invoice is classified as domestic."""
    result = classify(domestic_text)

    assert result.format == DOMESTIC
    assert result.subtype is None
    assert result.confidence == 100
    assert not result.is_ambiguous
    assert result.is_resolved


def test_classify_international_consumer(german_consumer_text: str) -> None:
    """Test that an amazon.de private invoice is an international consumer invoice."""
    result = classify(german_consumer_text)

    assert result.format == INTERNATIONAL
    assert result.subtype == CONSUMER
    assert not result.subtype_fallback


def test_classify_international_business(german_business_text: str) -> None:
    """Test that company markers select the business subtype."""
    result = classify(german_business_text)

    assert result.format == INTERNATIONAL
    assert result.subtype == BUSINESS
    assert result.subtype_scores[BUSINESS] > result.subtype_scores[CONSUMER]


def test_classify_subtype_fallback() -> None:
    """Test that an international invoice without evidence falls back to consumer."""
    result = FormatClassifier().classify("amazon.es\nPedido 123\nTotal 12,00 €")

    assert result.format == INTERNATIONAL
    assert result.subtype == CONSUMER
    assert result.subtype_fallback
    assert result.subtype_confidence == pytest.approx(0.3)


def test_classify_low_scores_give_no_format() -> None:
    """Test that text scoring below the cutoff on both formats is rejected."""
    result = classify("hello world, nothing to see here")

    assert result.format is None
    assert result.quality_level == VERY_LOW
    assert result.confidence == 0


def test_classify_ambiguous_reduces_confidence() -> None:
    """Test that scoring on both formats lowers the confidence band."""
    result = classify("amazon.com Order #1\namazon.de ASIN: B000000000")

    assert result.is_ambiguous
    assert result.format == INTERNATIONAL
    assert result.confidence == 60


@pytest.mark.parametrize("text", ["", "   \n\t "])
def test_classify_blank_text_raises(text: str) -> None:
    """Test that blank text cannot be classified."""
    with pytest.raises(EmptyInputError):
        classify(text)


def test_classification_to_dict(domestic_text: str) -> None:
    """Test the camelCase wire shape of a classification."""
    data = classify(domestic_text).to_dict()

    assert data["format"] == DOMESTIC
    assert data["qualityLevel"] == "high"
    assert data["action"] == "accept"
    assert set(data["scores"]) == {DOMESTIC, INTERNATIONAL}


def test_classifier_reads_ambiguity_threshold_from_config() -> None:
    """Test that the ambiguity cutoff comes from configuration."""
    from config import ConfigurationManager

    ConfigurationManager().override({"classification": {"ambiguity_threshold": 500}})

    result = FormatClassifier().classify("amazon.com Order #1 Order Placed: $5")

    assert result.format is None


def test_detect_language_english(domestic_text: str) -> None:
    """Test that an amazon.com invoice is detected as English."""
    result = detect_language(domestic_text)

    assert result.language == "EN"
    assert result.supported
    assert result.confidence >= 0.3


def test_detect_language_german(german_consumer_text: str) -> None:
    """Test that an amazon.de invoice is detected as German."""
    result = LanguageDetector().detect(german_consumer_text)

    assert result.language == "DE"
    assert "German" in result.evidence


def test_detect_language_empty() -> None:
    """Test that empty text is unknown and unsupported."""
    result = detect_language("")

    assert result.language == UNKNOWN_LANGUAGE
    assert result.confidence == 0.0
    assert not result.supported


def test_detect_language_weak_evidence_is_unknown() -> None:
    """Test that scores below the minimum confidence give UNKNOWN."""
    result = detect_language("TAX")

    assert result.language == UNKNOWN_LANGUAGE
    assert 0 < result.confidence < 0.3


def test_language_detection_to_dict() -> None:
    """Test the wire shape of a language detection."""
    data = detect_language("Bestellnummer Bestelldatum Zwischensumme 12,80 €").to_dict()

    assert set(data) == {"language", "confidence", "evidence", "supported"}
