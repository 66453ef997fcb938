import pytest

from rag.normalizer import (
    SUPPORTED_FORMATS,
    OcrNormalizer,
    PdfNormalizer,
    detect_format,
    get_normalizer,
    normalize_text,
)


MESSY_SAMPLES = [
    "",
    "plain",
    "  leading and trailing  ",
    "Café “quoted” and ‘single’",
    "tabs\t\tand   spaces\r\nwindows\rmac",
    "a\n\n\n\n\nb\n \n \n \nc",
    "bell\x07 null\x00 del\x7f c1\x85 end",
    "e\x00\u0301 composed after strip",
    "| table | row |\nf i l e s and he1lo w0rld C0DE",
    "ﬁnance ﬂow",
    "\u00a0nbsp\u00a0\u00a0 line\u2028sep\u2028",
    "\ufb01\u0301le",
    "0\ufb01\u0301\tA\nAB\x00b\u03010\u2028e",
    "o\ufb03\u0308ce | \ufb01\u0301",
]


@pytest.mark.parametrize("file_format", SUPPORTED_FORMATS)
@pytest.mark.parametrize("sample", MESSY_SAMPLES)
def test_normalizer_is_idempotent(file_format, sample):
    normalizer = get_normalizer(file_format)
    once = normalizer.normalize(sample)
    assert normalizer.normalize(once) == once


@pytest.mark.parametrize("file_format", SUPPORTED_FORMATS)
@pytest.mark.parametrize("empty", ["", None])
def test_empty_input_returns_empty_string(file_format, empty):
    assert get_normalizer(file_format).normalize(empty) == ""


@pytest.mark.parametrize("file_format", SUPPORTED_FORMATS)
@pytest.mark.parametrize("sample", MESSY_SAMPLES)
def test_never_leaves_three_newlines(file_format, sample):
    assert "\n\n\n" not in get_normalizer(file_format).normalize(sample)


@pytest.mark.parametrize("file_format", ["txt", "docx", "html", "md", "ocr"])
def test_smart_quotes_become_ascii(file_format):
    text = "‘single’ and “double”"
    assert get_normalizer(file_format).normalize(text) == "'single' and \"double\""


def test_plain_pipeline_steps():
    raw = "  Café\t\tbar\r\n\r\n\r\n\r\nnext   line \n tail\x00  "
    assert normalize_text(raw, "txt") == "Café bar\n\nnext line\ntail"


def test_paragraph_breaks_are_kept():
    assert normalize_text("one\n\ntwo\nthree", "txt") == "one\n\ntwo\nthree"


def test_tabs_survive_control_stripping_as_spaces():
    assert normalize_text("a\tb", "txt") == "a b"


def test_ocr_removes_pipes_and_rejoins_spaced_letters():
    raw = "| Name | Value |\nthe f i l e s are here"
    assert OcrNormalizer().normalize(raw) == "Name Value\nthe files are here"


def test_ocr_leaves_normal_words_alone():
    assert OcrNormalizer().normalize("a cat sat on a mat") == "a cat sat on a mat"


def test_ocr_repairs_glyph_confusion():
    raw = "he1lo w0rld C0DE 2024 ﬁle"
    assert OcrNormalizer().normalize(raw) == "hello world CODE 2024 file"


def test_ocr_composes_marks_after_ligature_expansion():
    assert OcrNormalizer().normalize("\ufb01\u0301le") == "f\u00edle"
    assert OcrNormalizer().normalize("o\ufb03\u0308ce") == "off\u00efce"


def test_pdf_flattens_newlines_within_page():
    assert PdfNormalizer().normalize("line one\nline two\r\n\n  three\x0c") == "line one line two three"


def test_pdf_pages_get_markers():
    text = PdfNormalizer().normalize_pages(["first\npage", "", "third"])
    assert text == "[PAGE 1] first page\n\n[PAGE 2] \n\n[PAGE 3] third"


@pytest.mark.parametrize("path,expected", [
    ("notes.txt", "txt"),
    ("report.DOCX", "docx"),
    ("index.htm", "html"),
    ("README.md", "md"),
    ("scan.PNG", "ocr"),
    ("paper.pdf", "pdf"),
])
def test_detect_format(path, expected):
    assert detect_format(path) == expected


def test_detect_format_rejects_unknown_extension():
    with pytest.raises(ValueError):
        detect_format("archive.zip")


def test_get_normalizer_rejects_unknown_format():
    with pytest.raises(ValueError, match="Unsupported format"):
        get_normalizer("rtf")
