"""
Document Processing Module

Handles text extraction and cleanup for the supported input formats
(TXT, DOCX, HTML, Markdown, image/OCR, PDF). One file in, one cleaned
UTF-8 text file out.
"""

import os
import re
import zipfile
from typing import List, Optional
from dataclasses import dataclass
import logging

from bs4 import BeautifulSoup
import markdown
from pypdf import PdfReader

from .config import RAGConfig
from .normalizer import PdfNormalizer, detect_format, get_normalizer


logger = logging.getLogger(__name__)


class ExtractionError(RuntimeError):
    """Raised when a format library cannot read the input document."""


@dataclass
class ExtractionResult:
    """Outcome of a single extraction run."""
    input_path: str
    output_path: str
    file_format: str
    raw_chars: int
    cleaned_chars: int
    page_count: int = 0


class DocumentProcessor:
    """Extracts, normalizes and writes text for one document at a time."""

    # Elements that never carry readable content
    HTML_NOISE_TAGS = ["script", "style", "nav", "footer", "header", "aside", "iframe", "noscript", "svg"]
    HTML_BLOCK_TAGS = ["p", "div", "h1", "h2", "h3", "h4", "h5", "h6", "li", "tr"]
    MARKDOWN_BLOCK_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6", "p", "ul", "ol", "li", "blockquote", "pre", "tr"]

    FRONT_MATTER_PATTERN = re.compile(r"^---\s*\n(.*?)\n---\s*\n", re.DOTALL)

    def __init__(self, config: Optional[RAGConfig] = None):
        self.config = config or RAGConfig()

    def process(self, input_path: str, output_path: str, file_format: Optional[str] = None) -> ExtractionResult:
        """
        Extract text from input_path, clean it and write it to output_path.

        Args:
            input_path: Document to read
            output_path: Text file to (over)write
            file_format: One of txt, docx, html, md, ocr, pdf. Detected from
                the extension when omitted.

        Returns:
            ExtractionResult with character counts before and after cleaning

        Raises:
            FileNotFoundError: If input_path doesn't exist
            ExtractionError: If the format library fails to read the document
        """
        if not os.path.isfile(input_path):
            raise FileNotFoundError(f"Input file not found at: {input_path}")

        file_format = (file_format or detect_format(input_path)).lower()
        logger.info(f"Reading {file_format.upper()}: {input_path}")

        page_count = 0
        if file_format == 'pdf':
            pages = self._extract_pdf_pages(input_path)
            page_count = len(pages)
            raw_chars = sum(len(p) for p in pages)
            cleaned_text = PdfNormalizer().normalize_pages(pages)
        else:
            raw_text = self._extract_text(input_path, file_format)
            raw_chars = len(raw_text)
            cleaned_text = get_normalizer(file_format).normalize(raw_text)

        output_dir = os.path.dirname(output_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(cleaned_text)

        logger.info(f"Cleaned {raw_chars} chars -> {len(cleaned_text)} chars, wrote {output_path}")
        return ExtractionResult(
            input_path=input_path,
            output_path=output_path,
            file_format=file_format,
            raw_chars=raw_chars,
            cleaned_chars=len(cleaned_text),
            page_count=page_count,
        )

    def _extract_text(self, file_path: str, file_format: str) -> str:
        """Extract raw text for every format except PDF."""
        extractors = {
            'txt': self._extract_txt_text,
            'docx': self._extract_docx_text,
            'html': self._extract_html_text,
            'md': self._extract_markdown_text,
            'ocr': self._extract_image_text,
        }
        if file_format not in extractors:
            raise ValueError(f"Unsupported file type: {file_format}")
        try:
            return extractors[file_format](file_path)
        except Exception as e:
            logger.error(f"Text extraction failed for {file_path}: {str(e)}")
            raise ExtractionError(f"Failed to extract {file_format} text from {file_path}: {e}") from e

    def _extract_txt_text(self, file_path: str) -> str:
        with open(file_path, 'r', encoding='utf-8') as f:
            return f.read()

    def _extract_docx_text(self, file_path: str) -> str:
        """Extract text from DOCX file using python-docx.

        Captures paragraphs and table cell text. Paragraphs are separated by a
        blank line so the normalizer can keep paragraph breaks.
        """
        from docx import Document  # type: ignore
        from docx.opc.exceptions import PackageNotFoundError  # type: ignore

        try:
            doc = Document(file_path)
        except (PackageNotFoundError, zipfile.BadZipFile, KeyError) as e:
            raise ValueError(f"Not a valid DOCX package: {e}") from e

        parts: List[str] = []

        for para in doc.paragraphs:
            text = (para.text or "").strip()
            if text:
                parts.append(text)

        for table in doc.tables:
            for row in table.rows:
                cells = [(cell.text or "").strip() for cell in row.cells]
                line = " | ".join([c for c in cells if c])
                if line:
                    parts.append(line)

        return "\n\n".join(parts)

    def _extract_html_text(self, file_path: str) -> str:
        with open(file_path, 'r', encoding='utf-8') as f:
            return self._dom_text(f.read(), self.HTML_BLOCK_TAGS)

    def _extract_markdown_text(self, file_path: str) -> str:
        with open(file_path, 'r', encoding='utf-8') as f:
            raw_md = f.read()
        if not raw_md:
            return ""
        return self._dom_text(self._render_markdown(raw_md), self.MARKDOWN_BLOCK_TAGS)

    def _extract_image_text(self, file_path: str) -> str:
        """Run Tesseract over an image file."""
        import pytesseract
        from PIL import Image, UnidentifiedImageError

        logger.info(f"Running OCR ({self.config.ocr_language}) on {file_path}")
        try:
            with Image.open(file_path) as image:
                return pytesseract.image_to_string(image, lang=self.config.ocr_language)
        except UnidentifiedImageError as e:
            raise ValueError(f"Not a readable image: {e}") from e
        except pytesseract.TesseractError as e:
            raise ValueError(f"Tesseract failed: {e}") from e

    def _extract_pdf_pages(self, file_path: str) -> List[str]:
        """Extract raw text per PDF page."""
        try:
            reader = PdfReader(file_path)
            return [page.extract_text() or "" for page in reader.pages]
        except Exception as e:
            logger.error(f"Text extraction failed for {file_path}: {str(e)}")
            raise ExtractionError(f"Failed to extract pdf text from {file_path}: {e}") from e

    @classmethod
    def _dom_text(cls, html: str, block_tags: List[str]) -> str:
        """Strip noise elements and return body text with block newlines injected."""
        if not html:
            return ""

        soup = BeautifulSoup(html, "html.parser")
        for tag in soup(cls.HTML_NOISE_TAGS):
            tag.decompose()

        # get_text() concatenates text nodes, so block boundaries need
        # explicit newlines or "<h1>Title</h1><p>Body</p>" becomes "TitleBody"
        for br in soup.find_all("br"):
            br.replace_with("\n")
        for tag in soup.find_all(block_tags):
            tag.insert_after("\n")

        root = soup.body or soup
        return root.get_text()

    @classmethod
    def _render_markdown(cls, raw_md: str) -> str:
        match = cls.FRONT_MATTER_PATTERN.match(raw_md)
        if match:
            logger.debug("Stripped YAML front matter from markdown")
            raw_md = raw_md[match.end():]
        return markdown.markdown(raw_md, extensions=["extra"])

    @classmethod
    def html_to_text(cls, html: str) -> str:
        """Extract clean text from an HTML string."""
        return get_normalizer('html').normalize(cls._dom_text(html, cls.HTML_BLOCK_TAGS))

    @classmethod
    def markdown_to_text(cls, raw_md: str) -> str:
        """Render Markdown to HTML, then extract clean text the same way as HTML."""
        if not raw_md:
            return ""
        html = cls._render_markdown(raw_md)
        return get_normalizer('md').normalize(cls._dom_text(html, cls.MARKDOWN_BLOCK_TAGS))
