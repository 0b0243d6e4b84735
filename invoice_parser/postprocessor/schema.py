"""
Wire Schema Module.

Pydantic models for the dictionary produced by ExtractedInvoice.to_dict().
They pin down the parts of the output contract that consumers rely on:
the order id shape, item quantities and prices, and the validation and
recovery sub-records.

check_invoice_shape() reports violations instead of raising. A parsed
invoice that breaks the schema is still returned; the pipeline logs
the violations and records them in the processing metadata.

Author: ML Engineering Team
"""

from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from invoice_parser.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

ORDER_NUMBER_PATTERN = r'^[A-Z0-9]{3}-\d{7}-\d{7}$'

OrderNumber = Annotated[str, Field(pattern=ORDER_NUMBER_PATTERN)]
Asin = Annotated[str, Field(pattern=r'^[A-Z0-9]{10}$')]
Fraction = Annotated[float, Field(ge=0, le=1)]
Amount = Annotated[float, Field(ge=0)]

Priority = Literal['low', 'medium', 'high']


class WireModel(BaseModel):
    """Base for the wire models; keys outside the contract are tolerated."""

    model_config = ConfigDict(extra='allow')


class LineItemSchema(WireModel):
    description: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    unitPrice: Optional[Amount] = None
    totalPrice: Optional[Amount] = None
    price: Optional[str] = None
    asin: Optional[Asin] = None
    currency: Optional[str] = None


class IssueSchema(WireModel):
    type: str
    severity: Literal['low', 'medium', 'high', 'critical']
    message: str
    fields: List[str] = Field(default_factory=list)


class ValidationSchema(WireModel):
    score: float = Field(ge=0, le=100)
    isValid: bool
    warnings: List[IssueSchema]
    errors: List[IssueSchema]
    info: List[IssueSchema] = Field(default_factory=list)
    summary: str


class LanguageDetectionSchema(WireModel):
    language: str
    confidence: Fraction
    evidence: str
    supported: bool


class FormatClassificationSchema(WireModel):
    format: Optional[Literal['domestic', 'international']] = None
    subtype: Optional[Literal['business', 'consumer']] = None
    confidence: int = Field(ge=0, le=100)
    qualityLevel: str
    action: str


class CategorizedErrorSchema(WireModel):
    level: Literal['critical', 'recoverable', 'info']
    type: str
    message: str
    context: str
    recoverable: bool
    suggestion: str


class SuggestionSchema(WireModel):
    action: str
    description: str
    priority: Priority


class FieldErrorSchema(WireModel):
    field: str
    type: str
    message: str


class RecoverySchema(WireModel):
    mode: Literal['partial_recovery']
    error: CategorizedErrorSchema
    confidence: Dict[str, Fraction]
    usable: bool
    suggestions: List[SuggestionSchema]
    errors: List[FieldErrorSchema]
    recoveryAttempted: str


class InvoiceSchema(WireModel):
    """
    Wire shape of one parsed invoice.

    Money fields are strings exactly as printed, so only their presence
    is described here; their format is checked by the validation engine.
    """

    orderNumber: Optional[OrderNumber] = None
    orderDate: Optional[str] = None
    items: List[LineItemSchema] = Field(default_factory=list)
    subtotal: Optional[str] = None
    shipping: Optional[str] = None
    tax: Optional[str] = None
    discount: Optional[str] = None
    total: Optional[str] = None
    currency: Optional[str] = None
    vendor: Optional[str] = None
    validation: Optional[ValidationSchema] = None
    languageDetection: Optional[LanguageDetectionSchema] = None
    formatClassification: Optional[FormatClassificationSchema] = None
    processingMetadata: Dict[str, Any] = Field(default_factory=dict)
    performanceMetrics: Dict[str, Any] = Field(default_factory=dict)
    recovery: Optional[RecoverySchema] = None


def check_invoice_shape(data: Dict[str, Any]) -> List[str]:
    """
    Check an invoice dictionary against the wire schema.

    Args:
        data: Output of ExtractedInvoice.to_dict().

    Returns:
        One "location: message" string per violation; empty when the
        dictionary conforms.

    Example:
        >>> check_invoice_shape({"orderNumber": "12-345", "items": []})
        ["orderNumber: String should match pattern '^[A-Z0-9]{3}-\\d{7}-\\d{7}$'"]
    """
    try:
        InvoiceSchema.model_validate(data)
    except ValidationError as e:
        violations = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        logger.debug(f"Invoice schema check found {len(violations)} violation(s)")
        return violations
    return []
