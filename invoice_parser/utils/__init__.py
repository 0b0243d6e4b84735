"""
Utility Module for the Invoice Parser.

This module provides common utilities used across all other modules:
    - Logging configuration
    - Exception hierarchy
    - Common helpers
"""

from .logger import setup_logger, setup_logger_from_config, get_logger, log_stage
from .helpers import generate_timestamp, elapsed_ms, merge_dicts, text_sample

__all__ = [
    'setup_logger',
    'setup_logger_from_config',
    'get_logger',
    'log_stage',
    'generate_timestamp',
    'elapsed_ms',
    'merge_dicts',
    'text_sample'
]
