from __future__ import annotations

import io
import time
from typing import Dict, List

import fitz
import pandas as pd
from pypdf import PdfReader

from wedding_kb.exception.custom_exception import ExtractionError, ValidationError
from wedding_kb.logger import GLOBAL_LOGGER as log
from wedding_kb.src.document_ingestion.models import ExtractedContent

PDF_PARSERS = ("pymupdf", "pypdf")


def _pymupdf_text(data: bytes) -> tuple[str, int]:
    with fitz.open(stream=data, filetype="pdf") as pdf:
        pages = [page.get_text() for page in pdf]
    return "\n".join(pages), len(pages)


def _pypdf_text(data: bytes) -> tuple[str, int]:
    reader = PdfReader(io.BytesIO(data))
    pages = [page.extract_text() or "" for page in reader.pages]
    return "\n".join(pages), len(pages)


def extract_pdf_text(data: bytes, filename: str, parser: str = "pymupdf") -> ExtractedContent:
    """
    Extract plain text from PDF bytes.

    Empty text is a valid result (e.g. a scanned PDF with no text layer);
    callers check for it separately. Unreadable bytes raise ExtractionError.
    """
    if parser not in PDF_PARSERS:
        raise ValidationError(f"Unsupported PDF parser: {parser}")

    start = time.perf_counter()
    try:
        if parser == "pymupdf":
            text, page_count = _pymupdf_text(data)
        else:
            text, page_count = _pypdf_text(data)
    except Exception as e:
        log.error("PDF extraction failed", file=filename, parser=parser, error=str(e))
        raise ExtractionError(f"Could not parse {filename} as PDF: {e}", e) from e

    duration = time.perf_counter() - start
    log.info(
        "PDF text extracted",
        file=filename,
        parser=parser,
        pages=page_count,
        chars=len(text),
        seconds=round(duration, 3),
    )
    return ExtractedContent(
        text=text,
        source_filename=filename,
        method=parser,
        duration_seconds=duration,
        page_count=page_count,
    )


def extract_csv_rows(data: bytes, filename: str) -> List[Dict[str, str]]:
    """
    Parse CSV bytes into header-keyed rows.

    Header names are lower-cased and trimmed, values trimmed, and missing
    cells become "". Blank input yields [].
    """
    try:
        content = data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ExtractionError(f"{filename} is not valid UTF-8 text", e) from e

    if not content.strip():
        log.warning("No content in CSV file", file=filename)
        return []

    def drop_bad_line(fields: List[str]) -> None:
        log.warning(
            "Skipping malformed CSV row",
            file=filename,
            fields=len(fields),
            row=",".join(fields)[:120],
        )
        return None

    try:
        df: pd.DataFrame = pd.read_csv(
            io.StringIO(content),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            # a row with more fields than the header is dropped, not the whole file
            on_bad_lines=drop_bad_line,
            engine="python",
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        log.error("CSV parsing failed", file=filename, error=str(e))
        raise ExtractionError(f"Could not parse {filename} as CSV: {e}", e) from e

    df.columns = [str(c).lower().strip() for c in df.columns]
    if df.empty:
        log.warning("No data rows in CSV file", file=filename)
        return []
    df = df.fillna("").apply(lambda col: col.str.strip())

    rows = df.to_dict(orient="records")
    log.info("CSV rows parsed", file=filename, rows=len(rows), columns=list(df.columns))
    return rows
