"""Tests for the PDF extractor strategies."""

import io

from pypdf import PdfWriter

from helpers import make_pdf, make_scanned_pdf
from sourcebook.extractors.base import DocumentExtractor, ExtractionResult, ExtractionStatus
from sourcebook.extractors.pdf_heuristic import HeuristicPdfExtractor, unescape_literal
from sourcebook.extractors.pdf_pypdf import PypdfExtractor


def test_no_text_tokens_is_empty():
    result = HeuristicPdfExtractor().extract(b"%PDF-1.4\n1 0 obj << /Type /Catalog >> endobj\n%%EOF")

    assert result.status is ExtractionStatus.EMPTY
    assert result.word_count == 0
    assert result.text == ""


def test_counts_one_word_per_literal():
    words = ["alpha", "bravo", "charlie", "delta", "echo", "foxtrot", "golf"]

    result = HeuristicPdfExtractor().extract(make_pdf(*words))

    assert result.word_count == len(words)
    assert result.text == " ".join(words)
    assert result.status is ExtractionStatus.PARTIAL


def test_fifty_words_or_more_is_extracted():
    words = [f"word{i}" for i in range(60)]

    result = HeuristicPdfExtractor().extract(make_pdf(*words))

    assert result.word_count == 60
    assert result.status is ExtractionStatus.EXTRACTED


def test_literals_outside_text_objects_are_ignored_when_text_objects_exist():
    data = (
        b"%PDF-1.4\n1 0 obj << /Title (Metadata Title) >> endobj\n"
        b"stream\nBT (visible) Tj ET\nendstream\n%%EOF"
    )

    result = HeuristicPdfExtractor().extract(data)

    assert result.text == "visible"


def test_falls_back_to_all_literals_without_text_objects():
    result = HeuristicPdfExtractor().extract(make_pdf("loose", "strings", text_objects=False))

    assert result.text == "loose strings"
    assert result.word_count == 2


def test_literal_spelling_an_operator_keeps_the_text_object_open():
    words = ["Meeting", "at", "five", "PM", "ET", "sharp", "tomorrow"]

    result = HeuristicPdfExtractor().extract(make_pdf(*words))

    assert result.text == " ".join(words)
    assert result.word_count == 7


def test_literal_spelling_bt_outside_text_objects_is_not_an_operator():
    result = HeuristicPdfExtractor().extract(make_pdf("BT", "then", "more", text_objects=False))

    assert result.text == "BT then more"


def test_scanned_pdf_metadata_is_not_page_text():
    result = HeuristicPdfExtractor().extract(make_scanned_pdf())

    assert result.status is ExtractionStatus.EMPTY
    assert result.text == ""


def test_fallback_reads_tj_arrays():
    data = b"%PDF-1.4\n<< /Author (Someone) >>\n[(Hel) -20 (lo) 10 (there)] TJ\n%%EOF"

    result = HeuristicPdfExtractor().extract(data)

    assert result.text == "Hel lo there"


def test_balanced_parentheses_need_no_escapes():
    result = HeuristicPdfExtractor().extract(b"BT (a (b) c) Tj ET")

    assert result.text == "a (b) c"
    assert result.word_count == 3


def test_unescapes_backslash_sequences():
    assert unescape_literal(rb"Hello\nWorld") == "Hello\nWorld"
    assert unescape_literal(rb"tab\there") == "tab\there"
    assert unescape_literal(rb"\(paren\)") == "(paren)"
    assert unescape_literal(rb"back\\slash") == "back\\slash"
    assert unescape_literal(rb"\101BC") == "ABC"


def test_escaped_parentheses_stay_inside_one_literal():
    result = HeuristicPdfExtractor().extract(b"BT (a \\(b\\) c) Tj ET")

    assert result.text == "a (b) c"
    assert result.word_count == 3


def test_extraction_is_deterministic():
    data = make_pdf("same", "bytes", "same", "text")

    assert HeuristicPdfExtractor().extract(data) == HeuristicPdfExtractor().extract(data)


def test_result_classification_thresholds():
    assert ExtractionResult.from_text("   ").status is ExtractionStatus.EMPTY
    assert ExtractionResult.from_text(" ".join(["w"] * 49)).status is ExtractionStatus.PARTIAL
    assert ExtractionResult.from_text(" ".join(["w"] * 50)).status is ExtractionStatus.EXTRACTED


def test_both_strategies_satisfy_the_protocol():
    assert isinstance(HeuristicPdfExtractor(), DocumentExtractor)
    assert isinstance(PypdfExtractor(), DocumentExtractor)


def test_pypdf_blank_page_is_empty():
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    buffer = io.BytesIO()
    writer.write(buffer)

    result = PypdfExtractor().extract(buffer.getvalue())

    assert result.status is ExtractionStatus.EMPTY
    assert result.word_count == 0


def test_pypdf_unreadable_bytes_are_empty():
    result = PypdfExtractor().extract(b"this is not a pdf at all")

    assert result.status is ExtractionStatus.EMPTY
