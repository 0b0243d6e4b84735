"""
Error Recovery Module for the Invoice Parser.

This module provides:
    - Error categorization by type, message and pipeline stage
    - Field-by-field partial extraction with confidence scores
    - Ranked recovery suggestions

Author: ML Engineering Team
"""

from .error_recovery import CategorizedError, ErrorRecovery, RecoveryRecord

__all__ = [
    'CategorizedError',
    'ErrorRecovery',
    'RecoveryRecord'
]
