"""
Text Normalization Module

Canonicalizes raw extracted text before it is written out or embedded.
Each input format gets its own strategy; all of them share the same
base pipeline and are idempotent.
"""

import os
import re
import unicodedata
from typing import Dict, Iterable, Optional


# C0 controls except \t and \n, DEL, and the C1 block
CONTROL_CHARS = re.compile(r'[\x00-\x08\x0B-\x1F\x7F-\x9F]')
HORIZONTAL_SPACE = re.compile(r'[ \t]+')
SPACE_AROUND_NEWLINE = re.compile(r' *\n *')
EXCESS_NEWLINES = re.compile(r'\n{3,}')

SMART_QUOTES = str.maketrans({
    '\u2018': "'",
    '\u2019': "'",
    '\u201c': '"',
    '\u201d': '"',
})


class TextNormalizer:
    """Base normalization pipeline shared by every format."""

    name = "plain"

    def normalize(self, raw_text: Optional[str]) -> str:
        if not raw_text:
            return ""

        text = self._standardize_line_breaks(raw_text)
        # Control characters and format repairs go before composition so
        # neither can leave an uncomposed pair behind.
        text = CONTROL_CHARS.sub('', text)
        text = self._repair(text)
        text = unicodedata.normalize('NFC', text)
        text = text.translate(SMART_QUOTES)
        text = self._collapse_whitespace(text)
        return text.strip()

    @staticmethod
    def _standardize_line_breaks(text: str) -> str:
        return text.replace('\r\n', '\n').replace('\r', '\n')

    def _repair(self, text: str) -> str:
        """Hook for format-specific fixes applied before NFC composition."""
        return text

    def _collapse_whitespace(self, text: str) -> str:
        text = HORIZONTAL_SPACE.sub(' ', text)
        text = SPACE_AROUND_NEWLINE.sub('\n', text)
        return EXCESS_NEWLINES.sub('\n\n', text)


class PlainTextNormalizer(TextNormalizer):
    name = "plain"


class DocxNormalizer(TextNormalizer):
    """Word documents: python-docx already yields paragraphs, only cleanup is needed."""

    name = "docx"


class MarkupNormalizer(TextNormalizer):
    """
    Text pulled out of HTML or rendered Markdown.

    Block-level newlines must be injected into the DOM before the text is
    extracted (see DocumentProcessor.html_to_text); this strategy only
    tidies the result.
    """

    name = "markup"


class OcrNormalizer(TextNormalizer):
    """Cleans common OCR artifacts on top of the base pipeline."""

    name = "ocr"

    LIGATURES = str.maketrans({
        '\ufb00': 'ff',
        '\ufb01': 'fi',
        '\ufb02': 'fl',
        '\ufb03': 'ffi',
        '\ufb04': 'ffl',
    })
    # Pipes show up when table borders are scanned
    TABLE_PIPES = re.compile(r'\|')
    ZERO_IN_LOWER = re.compile(r'(?<=[a-z])0(?=[a-z])')
    ZERO_IN_UPPER = re.compile(r'(?<=[A-Z])0(?=[A-Z])')
    ONE_IN_LOWER = re.compile(r'(?<=[a-z])1(?=[a-z])')
    # At least four single letters separated by single spaces: "f i l e s"
    SPACED_LETTERS = re.compile(r'\b(?:[A-Za-z] ){3,}[A-Za-z]\b')

    def _repair(self, text: str) -> str:
        text = text.translate(self.LIGATURES)
        return self.TABLE_PIPES.sub(' ', text)

    def _collapse_whitespace(self, text: str) -> str:
        text = HORIZONTAL_SPACE.sub(' ', text)
        text = self.ZERO_IN_LOWER.sub('o', text)
        text = self.ZERO_IN_UPPER.sub('O', text)
        text = self.ONE_IN_LOWER.sub('l', text)
        text = self.SPACED_LETTERS.sub(lambda m: m.group(0).replace(' ', ''), text)
        text = SPACE_AROUND_NEWLINE.sub('\n', text)
        return EXCESS_NEWLINES.sub('\n\n', text)


class PdfNormalizer(TextNormalizer):
    """Flattens each page into a single line (no paragraph preservation)."""

    name = "pdf"

    ANY_WHITESPACE = re.compile(r'\s+')
    BREAK_CHARS = re.compile(r'[\r\n\t\f\v]')

    def _standardize_line_breaks(self, text: str) -> str:
        return self.BREAK_CHARS.sub(' ', text)

    def _collapse_whitespace(self, text: str) -> str:
        return self.ANY_WHITESPACE.sub(' ', text)

    def normalize_pages(self, pages: Iterable[Optional[str]]) -> str:
        """Normalize page texts and join them with page markers."""
        return "\n\n".join(
            f"[PAGE {number}] {self.normalize(page)}"
            for number, page in enumerate(pages, start=1)
        )


_NORMALIZERS: Dict[str, TextNormalizer] = {
    'txt': PlainTextNormalizer(),
    'docx': DocxNormalizer(),
    'html': MarkupNormalizer(),
    'md': MarkupNormalizer(),
    'ocr': OcrNormalizer(),
    'pdf': PdfNormalizer(),
}

SUPPORTED_FORMATS = tuple(_NORMALIZERS)

_EXTENSION_FORMATS = {
    '.txt': 'txt',
    '.text': 'txt',
    '.docx': 'docx',
    '.html': 'html',
    '.htm': 'html',
    '.md': 'md',
    '.markdown': 'md',
    '.pdf': 'pdf',
    '.png': 'ocr',
    '.jpg': 'ocr',
    '.jpeg': 'ocr',
    '.tif': 'ocr',
    '.tiff': 'ocr',
    '.bmp': 'ocr',
    '.gif': 'ocr',
    '.webp': 'ocr',
}


def get_normalizer(file_format: str) -> TextNormalizer:
    """Return the normalization strategy for a declared format."""
    try:
        return _NORMALIZERS[file_format.lower()]
    except KeyError:
        raise ValueError(
            f"Unsupported format: {file_format}. Supported: {', '.join(SUPPORTED_FORMATS)}"
        ) from None


def detect_format(file_path: str) -> str:
    """Map a file extension to one of SUPPORTED_FORMATS."""
    ext = os.path.splitext(file_path)[1].lower()
    if ext not in _EXTENSION_FORMATS:
        raise ValueError(f"Cannot detect format of {file_path} (extension {ext or 'missing'})")
    return _EXTENSION_FORMATS[ext]


def normalize_text(raw_text: Optional[str], file_format: str = 'txt') -> str:
    """Convenience wrapper: normalize with the strategy for file_format."""
    return get_normalizer(file_format).normalize(raw_text)
