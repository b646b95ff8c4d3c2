"""Default document-to-text collaborator for ``.docx`` uploads."""

from __future__ import annotations

from io import BytesIO
from typing import Callable
from zipfile import BadZipFile

from anyio import fail_after
from docx import Document
from docx.opc.exceptions import PackageNotFoundError

from leadengine.core.concurrency import run_in_thread_limited
from leadengine.core.config import settings
from leadengine.core.errors import FormatError

TextExtractor = Callable[[bytes], str]


def extract_docx_text(raw_bytes: bytes) -> str:
    """Return the paragraph text of a Word document, one paragraph per line."""

    document = Document(BytesIO(raw_bytes))
    lines = [paragraph.text for paragraph in document.paragraphs]
    for table in document.tables:
        for row in table.rows:
            lines.extend(cell.text for cell in row.cells)
    return "\n".join(lines)


async def extract_text(raw_bytes: bytes, extractor: TextExtractor = extract_docx_text) -> str:
    """Run ``extractor`` off the event loop with the configured timeout."""

    try:
        with fail_after(settings.DOC_OP_TIMEOUT_SEC):
            return await run_in_thread_limited(extractor, raw_bytes)
    except (PackageNotFoundError, BadZipFile, KeyError, ValueError) as exc:
        raise FormatError("The uploaded file is not a valid Word document.") from exc
