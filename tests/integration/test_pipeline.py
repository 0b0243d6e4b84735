"""End-to-end tests of the invoice parsing pipeline."""

import pytest

from invoice_parser import InvoicePipeline, generate_performance_report, parse_invoice, parse_many
from invoice_parser.constants import BUSINESS, CONSUMER, DOMESTIC, INTERNATIONAL
from invoice_parser.utils.exceptions import DocumentAccessError


def test_parse_domestic_invoice(domestic_text: str) -> None:
    """Test a clean amazon.com invoice end to end."""
    invoice = parse_invoice(domestic_text)

    assert invoice is not None
    assert invoice.order_number == "123-4567890-1234567"
    assert invoice.order_date == "2023-12-15"
    assert invoice.total == "$172.78"
    assert invoice.currency == "USD"
    assert len(invoice.items) == 2

    assert invoice.format_classification.format == DOMESTIC
    assert invoice.language_detection.language == "EN"
    assert invoice.validation.is_valid
    assert invoice.validation.score == 100
    assert invoice.recovery is None

    metadata = invoice.processing_metadata
    assert metadata["pipeline"] == "invoice_parser"
    assert metadata["parser"] == {"route": [DOMESTIC, None, "EN"], "variant": "domestic"}
    assert metadata["route_fallback_level"] == 1
    assert metadata["schema_violations"] == []
    assert "debug" not in metadata

    metrics = invoice.performance_metrics
    assert metrics["extractionSuccess"] == 1.0
    assert metrics["textLength"] == len(domestic_text)
    assert set(metrics["stageTimes"]) == {
        "preprocessing", "classification", "formatPreprocessing",
        "languageDetection", "routing", "extraction", "validation",
    }


def test_parse_german_consumer_invoice(german_consumer_text: str) -> None:
    """Test an amazon.de consumer invoice end to end."""
    invoice = parse_invoice(german_consumer_text)

    assert invoice.format_classification.subtype == CONSUMER
    assert invoice.language_detection.language == "DE"
    assert invoice.processing_metadata["parser"]["variant"] == "eu-consumer"
    assert invoice.processing_metadata["route_fallback_level"] == 2
    assert invoice.order_number == "302-1234567-1234567"
    assert invoice.order_date == "2024-03-15"
    assert invoice.total == "49,99 €"
    assert invoice.currency == "EUR"
    assert invoice.items[0].asin == "B09B8V1LZ3"
    assert invoice.validation.is_valid
    assert invoice.processing_metadata["schema_violations"] == []


def test_parse_german_business_invoice(german_business_text: str) -> None:
    """Test an amazon.de business invoice end to end."""
    invoice = parse_invoice(german_business_text)

    assert invoice.format_classification.format == INTERNATIONAL
    assert invoice.format_classification.subtype == BUSINESS
    assert invoice.processing_metadata["parser"]["variant"] == "eu-business"
    assert invoice.items[0].quantity == 2
    assert invoice.items[0].unit_price == pytest.approx(42.01)
    assert invoice.subtotal == "84,02 €"
    assert invoice.validation.is_valid


def test_single_item_under_larger_subtotal_is_flagged() -> None:
    """Test that fields are extracted but an item list short of the subtotal is invalid."""
    text = (
        "amazon.com\nOrder #123-4567890-1234567\nOrder Placed: December 15, 2023\n\n"
        "1 of: Wireless Noise Cancelling Headphones $129.99\n\n"
        "Subtotal: $159.98\nShipping: $0.00\nTax: $12.80\nGrand Total: $172.78\n"
    )

    invoice = parse_invoice(text)

    assert invoice.order_number == "123-4567890-1234567"
    assert invoice.order_date == "2023-12-15"
    assert invoice.total == "$172.78"
    mismatches = [error for error in invoice.validation.errors if error["type"] == "item_subtotal_mismatch"]
    assert [error["severity"] for error in mismatches] == ["critical"]
    assert not invoice.validation.is_valid
    assert invoice.validation.score == 80


def test_unknown_layout_keeps_euro_subtotal() -> None:
    """Test that the generic route derives a subtotal in the items' currency."""
    invoice = parse_invoice("Invoice 123-4567890-1234567\n2 x Widget 10,00 €\nAmount Due: 20,00 €\n")

    assert invoice.processing_metadata["parser"]["variant"] == "minimal"
    assert invoice.subtotal == "20,00 €"
    assert invoice.total == "20,00 €"
    assert invoice.currency == "EUR"
    assert not invoice.validation.has_issue("inconsistent_invoice_currencies")


def test_parse_debug_metadata(domestic_text: str) -> None:
    """Test that debug mode attaches stage outputs."""
    invoice = parse_invoice(domestic_text, debug=True)

    debug = invoice.processing_metadata["debug"]
    assert debug["rawSample"].startswith("amazon.com")
    assert debug["route"]["variant"] == "domestic"
    assert set(debug["classificationScores"]) == {DOMESTIC, INTERNATIONAL}
    assert "EN" in debug["languageScores"]


@pytest.mark.parametrize("text", ["", "   \n  ", None])
def test_parse_blank_text_returns_none(text) -> None:
    """Test that blank input yields no invoice and no exception."""
    assert parse_invoice(text) is None


def test_stage_failure_returns_recovered_invoice(domestic_text: str, monkeypatch) -> None:
    """Test that a failing stage hands the document to error recovery."""
    pipeline = InvoicePipeline()

    def broken_validate(invoice, raw_text=None):
        raise RuntimeError("validator unavailable")

    monkeypatch.setattr(pipeline.validator, "validate", broken_validate)

    invoice = pipeline.parse(domestic_text)

    assert invoice is not None
    assert invoice.order_number == "123-4567890-1234567"
    assert invoice.total == "$172.78"
    assert invoice.validation is None
    assert invoice.processing_metadata["mode"] == "partial_recovery"
    assert invoice.processing_metadata["parser"] == {"variant": "us"}

    data = invoice.to_dict()
    assert data["recovery"]["error"]["context"] == "validation"
    assert data["recovery"]["usable"] is True


def test_critical_failure_returns_none(domestic_text: str, monkeypatch) -> None:
    """Test that an unrecoverable error yields no invoice."""
    pipeline = InvoicePipeline()

    def unreadable(text):
        raise DocumentAccessError("invoice.pdf")

    monkeypatch.setattr(pipeline.classifier, "classify", unreadable)

    assert pipeline.parse(domestic_text) is None


def test_pipeline_keeps_no_state_between_documents(domestic_text: str, german_consumer_text: str) -> None:
    """Test that consecutive documents do not share fields."""
    pipeline = InvoicePipeline()

    first = pipeline.parse(domestic_text)
    second = pipeline.parse(german_consumer_text)

    assert first.currency == "USD"
    assert second.currency == "EUR"
    assert len(first.items) == 2
    assert len(second.items) == 1


def test_batch_performance_report(domestic_text: str, german_consumer_text: str, german_business_text: str) -> None:
    """Test aggregation over a batch with one failure."""
    results = parse_many([domestic_text, german_consumer_text, german_business_text, ""])

    report = generate_performance_report(results)

    assert report.total_invoices == 4
    assert report.successful_invoices == 3
    assert report.failed_invoices == 1
    assert report.success_rate == 0.75
    assert report.parsers == {"domestic": 1, "eu-consumer": 1, "eu-business": 1}
    assert report.languages["DE"]["count"] == 2
    assert report.field_success_rates["order_number"] == 1.0
    assert report.validation_pass_rate == 1.0
    assert report.processing_times["p50"] <= report.processing_times["max"]

    data = report.to_dict()
    assert data["summary"]["failedInvoices"] == 1
    assert "INVOICE PARSING PERFORMANCE REPORT" in report.print_report()


def test_report_without_parsed_invoices() -> None:
    """Test that an all-failed batch still produces a report."""
    report = generate_performance_report([None, None])

    assert report.success_rate == 0.0
    assert report.processing_times["average"] == 0.0
