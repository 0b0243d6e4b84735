"""
Light Preprocessor Module.

Locale-agnostic cleanup applied to raw document text before format
classification: line endings, the most damaging encoding artifacts and
whitespace. Applying it twice gives the same text as applying it once.

Author: ML Engineering Team
"""

import re
from typing import Optional, Tuple

from invoice_parser.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


class LightPreprocessor:
    """
    Minimal, idempotent text cleanup.

    Example:
        >>> LightPreprocessor().process("Gesamt:\\t 12,80 â‚¬")
        "Gesamt: 12,80 €"
    """

    # UTF-8 read as Latin-1/CP1252. Longer sequences come first so that a
    # replacement never leaves a fragment another entry would match.
    CRITICAL_ENCODING_FIXES: Tuple[Tuple[str, str], ...] = (
        ('â‚¬', '€'),
        ('Ã¶', 'ö'),
        ('Ã¼', 'ü'),
        ('Ã¤', 'ä'),
        ('ÃŸ', 'ß'),
        ('Ã±', 'ñ'),
        ('Ã³', 'ó'),
        ('Ã\xad', 'í'),
        ('Ã©', 'é'),
        ('Ã§', 'ç'),
    )

    ZERO_WIDTH = re.compile(r'[\u200b\u200c\u200d\u2060\ufeff]')
    HORIZONTAL_SPACE = re.compile(r'[\t\u00a0\u2007\u202f]')
    SPACE_RUNS = re.compile(r' {2,}')
    TRAILING_SPACE = re.compile(r' +$', re.MULTILINE)
    EXCESS_NEWLINES = re.compile(r'\n{4,}')

    def process(self, text: Optional[str]) -> str:
        """
        Clean raw document text.

        Args:
            text: Raw text from the document-to-text step.

        Returns:
            Cleaned text, or "" for empty input. On an unexpected failure
            the input is returned unchanged.
        """
        if not text:
            return ""

        try:
            cleaned = text.replace('\r\n', '\n').replace('\r', '\n')
            # Invisible characters may split an encoding artifact
            cleaned = self.ZERO_WIDTH.sub('', cleaned)
            cleaned = self.HORIZONTAL_SPACE.sub(' ', cleaned)
            for broken, fixed in self.CRITICAL_ENCODING_FIXES:
                cleaned = cleaned.replace(broken, fixed)
            cleaned = self.SPACE_RUNS.sub(' ', cleaned)
            cleaned = self.TRAILING_SPACE.sub('', cleaned)
            cleaned = self.EXCESS_NEWLINES.sub('\n\n\n', cleaned)
        except (TypeError, AttributeError) as e:
            logger.warning(f"Light preprocessing skipped: {e}")
            return text if isinstance(text, str) else ""

        return cleaned


_default_preprocessor = LightPreprocessor()


def light_preprocess(text: Optional[str]) -> str:
    """Module-level shortcut for LightPreprocessor().process()."""
    return _default_preprocessor.process(text)
