"""
Format-Specific Preprocessor Module.

Cleanup that depends on the resolved invoice format: page markers and
legal boilerplate in the marketplace's language, money and date token
normalization that would be ambiguous before the format is known, and a
final whitespace pass shared by every format.

Author: ML Engineering Team
"""

import re
from typing import Optional, Tuple

from invoice_parser.constants import DOMESTIC, INTERNATIONAL
from invoice_parser.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


class FormatSpecificPreprocessor:
    """
    Format-aware cleanup run after classification.

    Example:
        >>> preprocessor = FormatSpecificPreprocessor()
        >>> preprocessor.process("Gesamt: 12,80€\\nSeite 1 von 2", "international")
        "Gesamt: 12,80 €"
    """

    # Full UTF-8-as-CP1252 repair table, longest sequences first.
    ENCODING_FIXES: Tuple[Tuple[str, str], ...] = (
        ('â‚¬', '€'),
        ('â€š', '‚'), ('â€ž', '„'), ('â€¦', '…'),
        ('â€¡', '‡'), ('â€°', '‰'), ('â€¹', '‹'), ('â€º', '›'),
        ('â€œ', '“'), ('â€\x9d', '”'), ('â€˜', '‘'), ('â€™', '’'),
        ('â€“', '–'), ('â€”', '—'), ('â€¢', '•'), ('â„¢', '™'),
        ('Ã©', 'é'), ('Ã¨', 'è'), ('Ãª', 'ê'), ('Ã«', 'ë'),
        ('Ã¡', 'á'), ('Ã¢', 'â'), ('Ã¤', 'ä'), ('Ã£', 'ã'), ('Ã¥', 'å'),
        ('Ã§', 'ç'),
        ('Ã\xad', 'í'), ('Ã®', 'î'), ('Ã¯', 'ï'),
        ('Ã³', 'ó'), ('Ã´', 'ô'), ('Ã¶', 'ö'), ('Ãµ', 'õ'),
        ('Ãº', 'ú'), ('Ã»', 'û'), ('Ã¼', 'ü'),
        ('Ã±', 'ñ'), ('ÃŸ', 'ß'),
        ('Ã‰', 'É'), ('Ã€', 'À'), ('Ã„', 'Ä'), ('Ã–', 'Ö'), ('Ãœ', 'Ü'),
        ('Å¥', 'ť'), ('Åˆ', 'ň'), ('Å™', 'ř'), ('Å¡', 'š'), ('Å¾', 'ž'),
        ('Ã\xa0', 'à'),
    )

    CHECKBOXES = re.compile(r'\[\s*(?:X|_{3,})?\s*\]', re.IGNORECASE)
    HYPHEN_BREAK = re.compile(r'(\w)-[ ]*\n[ ]*(\w)')

    # Domestic layout
    US_PAGE_MARKER = re.compile(r'Page\s+\d+\s+of\s+\d+', re.IGNORECASE)
    US_FOOTER = re.compile(r'Conditions of Use \| Privacy Notice.*$', re.MULTILINE)
    SELLER_PROFILE = re.compile(r'\(seller profile\)', re.IGNORECASE)
    RULE_LINE = re.compile(r'^[ ]*[-_=]{5,}[ ]*$', re.MULTILINE)
    DOLLAR_GAP = re.compile(r'\$[ ]+(?=\d)')
    ENGLISH_ORDINAL = re.compile(
        r'\b((?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*\.?\s+\d{1,2})(?:st|nd|rd|th)\b'
    )

    # International layout
    EU_PAGE_MARKERS = (
        re.compile(r'Seite\s+\d+\s*von\s+\d+', re.IGNORECASE),
        re.compile(r'Página\s+\d+\s+de\s+\d+', re.IGNORECASE),
        re.compile(r'Page\s+\d+\s+sur\s+\d+', re.IGNORECASE),
        re.compile(r'Pagina\s+\d+\s+di\s+\d+', re.IGNORECASE),
        re.compile(r'Page\s+\d+\s+of\s+\d+', re.IGNORECASE),
    )
    EU_BOILERPLATE = (
        re.compile(r'Amazon EU S\.à r\.l\. - 38 avenue.*?(?=\n\n|\n[A-Z]|$)', re.DOTALL),
        re.compile(r'Sitz der Gesellschaft:.*?Stammkapital:.*?EUR', re.DOTALL),
        re.compile(r'eingetragen im Luxemburgischen[^\n]*'),
    )
    VAT_FOOTNOTE = re.compile(r'\(\d+\)\s*Steuerfreie innergemeinschaftliche[^\n]*')
    GLUED_EURO = re.compile(r'(\d+,\d{2})€')

    GENERIC_PAGE_MARKER = re.compile(r'Page\s+\d+\s+(?:of|von|de|sur|di)\s+\d+', re.IGNORECASE)

    def process(self, text: Optional[str], format_name: Optional[str]) -> str:
        """
        Clean text for the given format.

        Args:
            text: Light-preprocessed text.
            format_name: "domestic", "international" or None.

        Returns:
            Cleaned text ("" for empty input).
        """
        if not text:
            return ""

        processed = self.fix_encoding(text)

        if format_name == DOMESTIC:
            processed = self._clean_domestic(processed)
        elif format_name == INTERNATIONAL:
            processed = self._clean_international(processed)
        else:
            processed = self._clean_generic(processed)

        processed = self._final_cleanup(processed)
        logger.debug(f"Format preprocessing ({format_name}): {len(text)} -> {len(processed)} chars")
        return processed

    def fix_encoding(self, text: str) -> str:
        """Apply the full mojibake repair table."""
        for broken, fixed in self.ENCODING_FIXES:
            text = text.replace(broken, fixed)
        return text

    def _clean_domestic(self, text: str) -> str:
        """amazon.com layout cleanup."""
        text = self.US_PAGE_MARKER.sub('', text)
        text = self.US_FOOTER.sub('', text)
        text = self.HYPHEN_BREAK.sub(r'\1\2', text)
        text = self.SELLER_PROFILE.sub('', text)
        text = self.RULE_LINE.sub('', text)
        text = self.CHECKBOXES.sub('', text)
        text = self.DOLLAR_GAP.sub('$', text)
        text = self.ENGLISH_ORDINAL.sub(r'\1', text)
        return text

    def _clean_international(self, text: str) -> str:
        """amazon.eu layout cleanup."""
        for pattern in self.EU_PAGE_MARKERS:
            text = pattern.sub('', text)
        for pattern in self.EU_BOILERPLATE:
            text = pattern.sub('', text)
        text = self.HYPHEN_BREAK.sub(r'\1\2', text)
        text = self.VAT_FOOTNOTE.sub('', text)
        text = self.GLUED_EURO.sub(r'\1 €', text)
        text = self.CHECKBOXES.sub('', text)
        return text

    def _clean_generic(self, text: str) -> str:
        """Cleanup when no format could be resolved."""
        text = self.GENERIC_PAGE_MARKER.sub('', text)
        text = self.HYPHEN_BREAK.sub(r'\1\2', text)
        text = self.CHECKBOXES.sub('', text)
        return text

    @staticmethod
    def _final_cleanup(text: str) -> str:
        """Whitespace pass shared by every format."""
        text = re.sub(r'[\t\f\v\r]+', ' ', text)
        text = re.sub(r' {2,}', ' ', text)
        text = '\n'.join(line.strip() for line in text.split('\n'))
        text = re.sub(r'\n{3,}', '\n\n', text)
        return text.strip()


_default_preprocessor = FormatSpecificPreprocessor()


def format_preprocess(text: Optional[str], format_name: Optional[str]) -> str:
    """Module-level shortcut for FormatSpecificPreprocessor().process()."""
    return _default_preprocessor.process(text, format_name)
