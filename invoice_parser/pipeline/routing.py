"""
Parser Routing Module.

One table keyed by (format, subtype, language) decides which rule table
and item strategy handle a document. "*" in a key matches any value.

Lookup order:
    1. Exact (format, subtype, language)
    2. (format, subtype, *)
    3. (format, *, *)
    4. (None, None, language), the language-routed variants
    5. The minimal extractor

Author: ML Engineering Team
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Type

from invoice_parser.constants import BUSINESS, CONSUMER, DOMESTIC, INTERNATIONAL
from invoice_parser.extraction import (
    BusinessItemStrategy,
    ConsumerItemStrategy,
    InvoiceExtractor,
    ItemStrategy,
    LineItemStrategy,
    LocaleRules,
    get_rules,
)
from invoice_parser.utils.exceptions import RoutingError
from invoice_parser.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)

WILDCARD = '*'

RouteKey = Tuple[Optional[str], Optional[str], Optional[str]]


@dataclass(frozen=True)
class ParserVariant:
    """
    A rule table paired with an item strategy.

    Attributes:
        name: Variant name reported in processing metadata
        rules: Locale rule table
        strategy_cls: Item layout strategy class
    """
    name: str
    rules: LocaleRules
    strategy_cls: Type[ItemStrategy] = LineItemStrategy

    def create_extractor(self) -> InvoiceExtractor:
        """Build a fresh extractor for one document."""
        return InvoiceExtractor(self.rules, self.strategy_cls(self.rules))


@dataclass(frozen=True)
class RouteMatch:
    """Resolved route of one document."""
    key: RouteKey
    matched_key: Optional[RouteKey]
    variant: ParserVariant
    fallback_level: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'route': list(self.key),
            'matched': list(self.matched_key) if self.matched_key else None,
            'variant': self.variant.name,
            'fallbackLevel': self.fallback_level
        }


def _variant(name: str, rules_name: str, strategy_cls: Type[ItemStrategy] = LineItemStrategy) -> ParserVariant:
    return ParserVariant(name, get_rules(rules_name), strategy_cls)


DEFAULT_ROUTES: Mapping[RouteKey, ParserVariant] = MappingProxyType({
    (DOMESTIC, None, 'EN'): _variant('domestic', 'us'),
    (DOMESTIC, WILDCARD, WILDCARD): _variant('domestic', 'us'),
    (INTERNATIONAL, BUSINESS, 'GB'): _variant('eu-business-gb', 'gb', BusinessItemStrategy),
    (INTERNATIONAL, CONSUMER, 'GB'): _variant('eu-consumer-gb', 'gb', ConsumerItemStrategy),
    (INTERNATIONAL, BUSINESS, WILDCARD): _variant('eu-business', 'eu', BusinessItemStrategy),
    (INTERNATIONAL, CONSUMER, WILDCARD): _variant('eu-consumer', 'eu', ConsumerItemStrategy),
    (INTERNATIONAL, WILDCARD, WILDCARD): _variant('eu-consumer', 'eu', ConsumerItemStrategy),
    # Language-routed variants for documents of unknown format
    (None, None, 'EN'): _variant('english', 'en'),
    (None, None, 'GB'): _variant('uk', 'gb'),
    (None, None, 'AU'): _variant('australian', 'au'),
    (None, None, 'CA'): _variant('canadian', 'ca'),
    (None, None, 'DE'): _variant('german', 'de'),
    (None, None, 'FR'): _variant('french', 'fr'),
    (None, None, 'IT'): _variant('italian', 'it'),
    (None, None, 'ES'): _variant('spanish', 'es'),
    (None, None, 'CH'): _variant('swiss', 'ch'),
    (None, None, 'JP'): _variant('japanese', 'jp'),
})

MINIMAL_VARIANT = _variant('minimal', 'minimal')


class RoutingTable:
    """
    Resolves a document's classification to a parser variant.

    Example:
        >>> table = RoutingTable()
        >>> match = table.resolve('international', 'business', 'DE')
        >>> match.variant.name, match.fallback_level
        ("eu-business", 2)
    """

    def __init__(
        self,
        routes: Optional[Mapping[RouteKey, ParserVariant]] = None,
        fallback: Optional[ParserVariant] = MINIMAL_VARIANT
    ) -> None:
        """
        Initialize the routing table.

        Args:
            routes: Route key to variant mapping; DEFAULT_ROUTES by default.
            fallback: Variant used when nothing matches; None disables it.
        """
        self.routes = MappingProxyType(dict(routes)) if routes is not None else DEFAULT_ROUTES
        self.fallback = fallback

    def candidates(self, format_name: Optional[str], subtype: Optional[str],
                   language: Optional[str]) -> Tuple[Tuple[int, RouteKey], ...]:
        """Route keys to try, in lookup order, with their fallback level."""
        keys = []
        if format_name is not None:
            keys.append((1, (format_name, subtype, language)))
            keys.append((2, (format_name, subtype, WILDCARD)))
            keys.append((3, (format_name, WILDCARD, WILDCARD)))
        keys.append((4, (None, None, language)))
        return tuple(keys)

    def resolve(self, format_name: Optional[str], subtype: Optional[str],
                language: Optional[str]) -> RouteMatch:
        """
        Find the parser variant for a document.

        Args:
            format_name: Classified format, or None.
            subtype: International subtype, or None.
            language: Detected language code.

        Returns:
            RouteMatch with the variant and the fallback level used.

        Raises:
            RoutingError: If nothing matches and no fallback is configured.
        """
        key = (format_name, subtype, language)

        for level, candidate in self.candidates(format_name, subtype, language):
            variant = self.routes.get(candidate)
            if variant is not None:
                logger.debug(f"Route {key} -> {variant.name} (level {level})")
                return RouteMatch(key, candidate, variant, level)

        if self.fallback is None:
            raise RoutingError(key)

        logger.debug(f"Route {key} -> {self.fallback.name} (level 5)")
        return RouteMatch(key, None, self.fallback, 5)


def resolve_route(format_name: Optional[str], subtype: Optional[str], language: Optional[str]) -> RouteMatch:
    """Module-level shortcut for RoutingTable().resolve()."""
    return RoutingTable().resolve(format_name, subtype, language)
