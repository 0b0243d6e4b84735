"""
Classification Module for the Invoice Parser.

This module provides:
    - Format classification (domestic vs international, business vs consumer)
    - Language/locale detection for language-based routing

Author: ML Engineering Team
"""

from .format_classifier import FormatClassifier, FormatClassification, classify
from .language_detector import LanguageDetector, LanguageDetection, LanguageProfile, detect_language

__all__ = [
    'FormatClassifier',
    'FormatClassification',
    'classify',
    'LanguageDetector',
    'LanguageDetection',
    'LanguageProfile',
    'detect_language'
]
