"""
Invoice Parsing Pipeline.

This module runs the complete parsing pipeline on one document's text:
    1. Light preprocessing
    2. Format classification
    3. Format-specific preprocessing
    4. Language detection
    5. Routing to a parser variant
    6. Field extraction
    7. Validation
    8. Metadata and performance metrics

Any exception is handed to error recovery; the pipeline itself never
raises.

Usage:
    from invoice_parser.pipeline import parse_invoice

    invoice = parse_invoice(text)
    if invoice is not None:
        print(invoice.to_json())

Author: ML Engineering Team
"""

import time
from typing import Any, Dict, Iterable, List, Optional

from invoice_parser.classification import FormatClassifier, LanguageDetector
from invoice_parser.extraction import InvoiceBuilder, InvoiceExtractor, calculate_extraction_metrics
from invoice_parser.extraction.invoice import ExtractedInvoice
from invoice_parser.pipeline.routing import RoutingTable
from invoice_parser.postprocessor import ValidationEngine, check_invoice_shape
from invoice_parser.preprocessing import FormatSpecificPreprocessor, LightPreprocessor
from invoice_parser.recovery import ErrorRecovery
from invoice_parser.utils.helpers import elapsed_ms, generate_timestamp, text_sample
from invoice_parser.utils.logger import get_logger, log_stage

# Initialize module logger
logger = get_logger(__name__)

PIPELINE_NAME = "invoice_parser"


class InvoicePipeline:
    """
    Orchestrates all parsing stages for invoice texts.

    Every parse() call assembles its own invoice; the pipeline keeps no
    per-document state between calls.

    Example:
        >>> pipeline = InvoicePipeline()
        >>> invoice = pipeline.parse(text)
        >>> invoice.validation.score
        100
    """

    def __init__(self, routing_table: Optional[RoutingTable] = None) -> None:
        """
        Initialize the pipeline with all stage components.

        Args:
            routing_table: Routing table; the default routes when omitted.
        """
        self.light_preprocessor = LightPreprocessor()
        self.classifier = FormatClassifier()
        self.format_preprocessor = FormatSpecificPreprocessor()
        self.language_detector = LanguageDetector()
        self.routing_table = routing_table or RoutingTable()
        self.validator = ValidationEngine()
        self.recovery = ErrorRecovery()

        logger.debug("InvoicePipeline initialized")

    def parse(self, text: Optional[str], debug: bool = False) -> Optional[ExtractedInvoice]:
        """
        Parse one invoice text.

        Args:
            text: Raw document text.
            debug: Attach stage outputs and text samples to the metadata.

        Returns:
            ExtractedInvoice, a recovered partial invoice, or None when
            recovery found nothing usable.
        """
        logger.info(f"Parsing invoice text ({len(text or '')} chars)")

        start = time.perf_counter()
        stage_times: Dict[str, float] = {}
        state: Dict[str, Any] = {'stage': 'preprocessing', 'text': text or ""}

        try:
            invoice = self._run(text or "", debug, start, stage_times, state)
        except Exception as e:
            logger.warning(f"Pipeline failed during {state['stage']}: {e}")
            return self._recover(state, e)

        logger.info(
            f"Parsed invoice {invoice.order_number or 'N/A'} "
            f"(score {invoice.validation.score}, {invoice.performance_metrics['totalProcessingTime']} ms)"
        )
        return invoice

    def _run(self, text: str, debug: bool, start: float,
             stage_times: Dict[str, float], state: Dict[str, Any]) -> ExtractedInvoice:
        builder = InvoiceBuilder()

        # Stage 1: Light preprocessing
        with log_stage(logger, "preprocessing", stage_times):
            light_text = self.light_preprocessor.process(text)
            state['text'] = light_text

        # Stage 2: Format classification
        state['stage'] = 'classification'
        with log_stage(logger, "classification", stage_times):
            classification = self.classifier.classify(light_text)

        # Stage 3: Format-specific preprocessing
        state['stage'] = 'preprocessing'
        with log_stage(logger, "formatPreprocessing", stage_times):
            processed_text = self.format_preprocessor.process(light_text, classification.format)
            state['text'] = processed_text

        # Stage 4: Language detection
        state['stage'] = 'language-detection'
        with log_stage(logger, "languageDetection", stage_times):
            language = self.language_detector.detect(processed_text)

        # Stage 5: Routing
        state['stage'] = 'routing'
        with log_stage(logger, "routing", stage_times):
            route = self.routing_table.resolve(classification.format, classification.subtype, language.language)
            extractor = route.variant.create_extractor()
            state['extractor'] = extractor

        # Stage 6: Field extraction
        state['stage'] = 'field-extraction'
        with log_stage(logger, "extraction", stage_times):
            extractor.populate(builder, processed_text)
            builder.update(format_classification=classification, language_detection=language)

        # Stage 7: Validation
        state['stage'] = 'validation'
        with log_stage(logger, "validation", stage_times):
            validation = self.validator.validate(builder.preview(), raw_text=text)
            builder.set('validation', validation)

        # Stage 8: Metadata and metrics
        state['stage'] = 'metadata'
        builder.add_metadata('pipeline', PIPELINE_NAME)
        builder.add_metadata('preprocessing', {
            'originalLength': len(text),
            'lightLength': len(light_text),
            'processedLength': len(processed_text)
        })
        builder.add_metadata('classification', classification.to_dict())
        builder.add_metadata('language_detection', language.to_dict())
        builder.add_metadata('parser', {'route': list(route.key), 'variant': route.variant.name})
        builder.add_metadata('route_fallback_level', route.fallback_level)
        builder.add_metadata('subtype_fallback', classification.subtype_fallback)
        builder.add_metadata('subtype_confidence', classification.subtype_confidence)
        builder.add_metadata('timestamp', generate_timestamp())
        if debug:
            builder.add_metadata('debug', {
                'rawSample': text_sample(text),
                'lightSample': text_sample(light_text),
                'processedSample': text_sample(processed_text),
                'classificationScores': dict(classification.scores),
                'subtypeScores': dict(classification.subtype_scores),
                'languageScores': dict(language.scores or {}),
                'route': route.to_dict(),
                'stageTimes': dict(stage_times)
            })

        metrics = calculate_extraction_metrics(builder.preview())
        builder.add_metric('totalProcessingTime', elapsed_ms(start))
        builder.add_metric('stageTimes', dict(stage_times))
        builder.add_metric('extractionSuccess', metrics['extractionSuccess'])
        builder.add_metric('languageConfidence', language.confidence)
        builder.add_metric('textLength', len(text))
        builder.add_metric('processedTextLength', len(processed_text))

        violations = check_invoice_shape(builder.preview().to_dict())
        for violation in violations:
            logger.warning(f"Invoice schema violation: {violation}")
        builder.add_metadata('schema_violations', violations)

        if route.fallback_level > 1:
            logger.debug(f"Routed with fallback level {route.fallback_level} ({route.variant.name})")

        return builder.build()

    def _recover(self, state: Dict[str, Any], error: Exception) -> Optional[ExtractedInvoice]:
        """Hand a pipeline failure to error recovery."""
        extractor: Optional[InvoiceExtractor] = state.get('extractor')
        record = self.recovery.recover(state['text'], error, context=state['stage'], extractor=extractor)
        if record.usable:
            for violation in check_invoice_shape(record.partial_data.to_dict()):
                logger.warning(f"Recovered invoice schema violation: {violation}")
            return record.partial_data
        return None


def parse_invoice(text: Optional[str], debug: bool = False) -> Optional[ExtractedInvoice]:
    """
    Parse one invoice text.

    Args:
        text: Raw document text.
        debug: Attach stage outputs to processing metadata.

    Returns:
        ExtractedInvoice or None.
    """
    return InvoicePipeline().parse(text, debug=debug)


def parse_many(texts: Iterable[Optional[str]], debug: bool = False) -> List[Optional[ExtractedInvoice]]:
    """
    Parse several invoice texts one after another.

    Args:
        texts: Raw document texts.
        debug: Attach stage outputs to processing metadata.

    Returns:
        One result per text, in input order.
    """
    pipeline = InvoicePipeline()
    return [pipeline.parse(text, debug=debug) for text in texts]
