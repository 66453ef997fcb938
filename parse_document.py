"""
Extract and clean the text of a single document.

Usage: python parse_document.py <format> [input_path] [output_path]

Formats: txt, docx, html, md, ocr, pdf. Input and output default to sample
files under INPUT_FOLDER / OUTPUT_FOLDER (./inputs and ./outputs).
"""
import argparse
import logging
import os
import sys
import time
from typing import List, Optional

from dotenv import load_dotenv

from rag.config import RAGConfig
from rag.document_processor import DocumentProcessor, ExtractionError
from rag.normalizer import SUPPORTED_FORMATS


logger = logging.getLogger("parse_document")

DEFAULT_FILES = {
    "txt": ("text.txt", "txt_output.txt"),
    "docx": ("sample.docx", "docx_output.txt"),
    "html": ("sample.html", "html_output.txt"),
    "md": ("sample.md", "md_output.txt"),
    "ocr": ("sample.png", "ocr_output.txt"),
    "pdf": ("sample.pdf", "output.txt"),
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Extract clean UTF-8 text from a document.")
    parser.add_argument("format", choices=SUPPORTED_FORMATS, help="Input document format")
    parser.add_argument("input_path", nargs="?", help="Document to read")
    parser.add_argument("output_path", nargs="?", help="Text file to write")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "WARNING").upper())

    args = build_parser().parse_args(argv)
    cfg = RAGConfig.from_env()
    default_input, default_output = DEFAULT_FILES[args.format]
    input_path = args.input_path or os.path.join(cfg.input_folder, default_input)
    output_path = args.output_path or os.path.join(cfg.output_folder, default_output)

    start_time = time.time()
    try:
        print(f"📖 Reading {args.format.upper()}: {input_path}")
        result = DocumentProcessor(cfg).process(input_path, output_path, args.format)

        print(f"✅ Success! Cleaned {result.raw_chars} chars -> {result.cleaned_chars} chars.")
        if result.page_count:
            print(f"📄 Total Pages: {result.page_count}")
        print(f"Output: {os.path.abspath(result.output_path)}")
        return 0
    except (FileNotFoundError, ExtractionError, OSError, ValueError) as e:
        logger.error(f"{args.format} extraction failed: {e}")
        print(f"❌ ERROR: {e}", file=sys.stderr)
        return 1
    finally:
        elapsed = (time.time() - start_time) * 1000
        print(f"⏱️  {args.format.upper()} Processing Time: {elapsed:.1f}ms")


def _run_format(file_format: str) -> None:
    sys.exit(main([file_format] + sys.argv[1:]))


def parse_txt() -> None:
    _run_format("txt")


def parse_docx() -> None:
    _run_format("docx")


def parse_html() -> None:
    _run_format("html")


def parse_md() -> None:
    _run_format("md")


def parse_ocr() -> None:
    _run_format("ocr")


def parse_pdf() -> None:
    _run_format("pdf")


if __name__ == "__main__":
    sys.exit(main())
