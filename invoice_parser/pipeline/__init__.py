"""
Pipeline Module for the Invoice Parser.

This module provides:
    - The (format, subtype, language) routing table
    - The stage orchestrator and the parse_invoice entry point
    - Batch performance reporting

Author: ML Engineering Team
"""

from .routing import DEFAULT_ROUTES, ParserVariant, RouteMatch, RoutingTable, resolve_route
from .orchestrator import InvoicePipeline, parse_invoice, parse_many
from .reporting import PerformanceReport, generate_performance_report

__all__ = [
    'DEFAULT_ROUTES',
    'ParserVariant',
    'RouteMatch',
    'RoutingTable',
    'resolve_route',
    'InvoicePipeline',
    'parse_invoice',
    'parse_many',
    'PerformanceReport',
    'generate_performance_report'
]
