"""Turn the plain text of an uploaded lead document into assignment groups.

Expected layout, one item per line::

    Random Data(Ahmed)          <- cold calling header
    01012345678
    01098765432
    Data From Page(Sara)        <- targeted header
    01055555555

A header opens a group for the name between the parentheses; every line
that is a bare 10-11 digit number joins the open group. Anything else is
ignored.
"""

from __future__ import annotations

import re
from typing import List, Optional

from loguru import logger

from leadengine.core.errors import EmptyResultError, FormatError
from leadengine.models.enums import AssignmentMode
from leadengine.schemas.ingestion import ParsedAssignment, ParsedDocument

COLD_CALLING_MARKER = re.compile(r"Random Data", re.IGNORECASE)
TARGETED_MARKER = re.compile(r"Data Frome? Page", re.IGNORECASE)

_HEADER_RE = re.compile(r"(?:Random Data|Data Frome? Page)\s*\((.+?)\)", re.IGNORECASE)
_PHONE_LINE_RE = re.compile(r"^([0-9]{10,11})$")
_VALID_PHONE_RE = re.compile(r"^01[0-9]{8,9}$")


def detect_assignment_mode(text: str) -> AssignmentMode:
    """Return the document's mode; cold calling wins when both markers appear."""

    is_cold_calling = COLD_CALLING_MARKER.search(text) is not None
    is_targeted = TARGETED_MARKER.search(text) is not None
    if not is_cold_calling and not is_targeted:
        raise FormatError()
    if is_cold_calling and is_targeted:
        logger.warning("document_mixed_markers_cold_calling_preferred")
    return AssignmentMode.COLD_CALLING if is_cold_calling else AssignmentMode.TARGETED


def parse_document_text(text: str) -> ParsedDocument:
    mode = detect_assignment_mode(text)

    lines = [line.strip() for line in text.splitlines()]
    assignments: List[ParsedAssignment] = []
    current_name: Optional[str] = None
    current_numbers: List[str] = []

    for line in lines:
        if not line:
            continue
        header = _HEADER_RE.search(line)
        if header:
            if current_name and current_numbers:
                assignments.append(
                    ParsedAssignment(employee_name_hint=current_name, phone_numbers=current_numbers)
                )
            current_name = header.group(1).strip()
            current_numbers = []
            continue
        phone = _PHONE_LINE_RE.match(line)
        if phone and current_name:
            current_numbers.append(phone.group(1))

    if current_name and current_numbers:
        assignments.append(
            ParsedAssignment(employee_name_hint=current_name, phone_numbers=current_numbers)
        )

    if not assignments:
        raise EmptyResultError()

    parsed = ParsedDocument(assignment_mode=mode, assignments=assignments)
    logger.bind(
        mode=mode.value,
        groups=len(assignments),
        numbers=parsed.total_numbers,
    ).info("document_parsed")
    return parsed


def is_valid_phone_number(phone: str) -> bool:
    """Egyptian mobile format: ``01`` followed by 8 or 9 digits."""

    return _VALID_PHONE_RE.match(phone) is not None


def invalid_phone_numbers(parsed: ParsedDocument) -> List[str]:
    return [
        number
        for assignment in parsed.assignments
        for number in assignment.phone_numbers
        if not is_valid_phone_number(number)
    ]
