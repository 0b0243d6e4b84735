"""
Preprocessing Module for the Invoice Parser.

This module provides the two text cleanup stages:
    - LightPreprocessor: locale-agnostic, runs before classification
    - FormatSpecificPreprocessor: format-aware, runs after classification

Author: ML Engineering Team
"""

from .light_preprocessor import LightPreprocessor, light_preprocess
from .format_specific_preprocessor import FormatSpecificPreprocessor, format_preprocess

__all__ = [
    'LightPreprocessor',
    'light_preprocess',
    'FormatSpecificPreprocessor',
    'format_preprocess'
]
