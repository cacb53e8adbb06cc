# SPDX-License-Identifier: Apache-2.0
"""Tests for TextIngestor and source format extraction."""

from __future__ import annotations

from io import BytesIO
from pathlib import Path

import docx
import pytest

from pdf_template_filler.config import IngestConfig
from pdf_template_filler.core.models import PageText, TextRun
from pdf_template_filler.errors import IngestionError, UnsupportedFormat
from pdf_template_filler.ingest import SourceFormat, TextIngestor, ingest
from pdf_template_filler.ingest.extractors import extract_docx, extract_pdf_pages

from conftest import text_pdf


def make_docx(paragraphs: list[str]) -> bytes:
    document = docx.Document()
    for text in paragraphs:
        document.add_paragraph(text)
    buffer = BytesIO()
    document.save(buffer)
    return buffer.getvalue()


class TestSourceFormat:
    """Tests for SourceFormat parsing."""

    def test_names_and_suffixes(self) -> None:
        assert SourceFormat.parse("txt") == SourceFormat.TXT
        assert SourceFormat.parse(".DOCX") == SourceFormat.DOCX
        assert SourceFormat.parse("application/pdf") == SourceFormat.PDF
        assert SourceFormat.parse(SourceFormat.PDF) == SourceFormat.PDF

    def test_from_path(self) -> None:
        assert SourceFormat.from_path(Path("notes.txt")) == SourceFormat.TXT
        assert SourceFormat.from_path("report.Pdf") == SourceFormat.PDF

    def test_unsupported(self) -> None:
        with pytest.raises(UnsupportedFormat) as exc_info:
            SourceFormat.parse("rtf")
        assert exc_info.value.source_format == "rtf"
        assert exc_info.value.stage == "ingest"


class TestPlainText:
    """Tests for plain text ingestion."""

    def test_title_and_body(self) -> None:
        doc = ingest("Title line\nFirst\nSecond\n\nNext block".encode("utf-8"), "txt")
        assert doc.title == "Title line"
        assert doc.body == "First\nSecond\n\nNext block"

    def test_bom_and_crlf(self) -> None:
        doc = ingest("\ufeffTítulo\r\nCuerpo".encode("utf-8"), "txt")
        assert doc.title == "Título"
        assert doc.body == "Cuerpo"

    def test_invalid_utf8_replaced(self) -> None:
        doc = ingest(b"Title\nbad \xff byte", "txt")
        assert doc.title == "Title"
        assert "\ufffd" in doc.body


class TestDocx:
    """Tests for DOCX ingestion."""

    def test_paragraphs(self) -> None:
        data = make_docx(["Quarterly notes", "First paragraph.", "Second paragraph."])
        doc = TextIngestor().ingest(data, "docx")
        assert doc.title == "Quarterly notes"
        assert doc.body == "First paragraph.\n\nSecond paragraph."

    def test_empty_paragraphs_collapse(self) -> None:
        data = make_docx(["Heading", "", "", "", "Body"])
        assert extract_docx(data).count("\n") == 8
        doc = TextIngestor().ingest(data, "docx")
        assert doc.body == "Body"

    def test_invalid_docx(self) -> None:
        with pytest.raises(IngestionError) as exc_info:
            TextIngestor().ingest(b"not a zip file", "docx")
        assert exc_info.value.source_format == "docx"


class TestPdf:
    """Tests for PDF ingestion via the positional text layer."""

    def test_extract_pages(self) -> None:
        data = text_pdf([[(72, 500, "Hello"), (72, 480, "World")]])
        pages = extract_pdf_pages(data)
        assert len(pages) == 1
        assert pages[0].height == 792
        texts = sorted(run.text.strip() for run in pages[0].runs)
        assert texts == ["Hello", "World"]

    def test_ingest_pdf(self) -> None:
        data = text_pdf(
            [
                [
                    (72, 750, "Company letterhead"),
                    (72, 600, "Annual Report"),
                    (72, 580, "Revenue grew."),
                    (72, 50, "Page 1 of 1"),
                ]
            ]
        )
        doc = ingest(data, "pdf")
        assert doc.title == "Annual Report"
        assert doc.body == "Revenue grew."

    def test_invalid_pdf(self) -> None:
        with pytest.raises(IngestionError):
            ingest(b"%PDF-garbage", "pdf")


class TestBoilerplateAcrossPages:
    """Tests for repeated line removal on multi-page sources."""

    def _pages(self) -> list[PageText]:
        pages = []
        for i in range(6):
            runs = [TextRun(x=72, y=600, text=f"Section {i} content")]
            if i < 5:
                runs.append(TextRun(x=72, y=200, text="ACME Corp Confidential"))
            pages.append(PageText(height=792, runs=runs))
        pages[0].runs.insert(0, TextRun(x=72, y=620, text="Report title"))
        return pages

    def test_repeated_line_absent_from_body(self) -> None:
        doc = TextIngestor().ingest_pages(self._pages())
        assert doc.title == "Report title"
        assert "ACME" not in doc.body
        for i in range(6):
            assert f"Section {i} content" in doc.body

    def test_custom_ratio(self) -> None:
        """A higher ratio keeps lines that repeat on fewer pages."""
        config = IngestConfig(boilerplate_ratio=0.9)
        doc = TextIngestor(config).ingest_pages(self._pages())
        assert "ACME Corp Confidential" in doc.body


class TestIngestPath:
    """Tests for TextIngestor.ingest_path."""

    def test_detects_format(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.docx"
        path.write_bytes(make_docx(["Notes", "Body"]))
        doc = TextIngestor().ingest_path(path)
        assert doc.title == "Notes"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            TextIngestor().ingest_path(tmp_path / "missing.txt")
