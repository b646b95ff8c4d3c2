"""Resolve free-text employee name hints to employee ids.

Matching is exact after normalization: lowercase, whitespace runs folded to
one space, ends trimmed. Both the display name and the contact address of
each employee are candidate keys. Nothing here writes; callers persist the
proposals through targeted distribution.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Sequence

from leadengine.models.phone_batch import PhoneTask
from leadengine.schemas.assignment import NameMatchOut, TargetedPair
from leadengine.services.employees import EmployeeRef

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_name(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", value.lower()).strip()


def build_name_index(employees: Iterable[EmployeeRef]) -> Dict[str, str]:
    """Map each normalized name/address to an employee id; first one wins."""

    index: Dict[str, str] = {}
    for employee in employees:
        for candidate in (employee.display_name, employee.contact_address):
            if not candidate:
                continue
            key = normalize_name(candidate)
            if key:
                index.setdefault(key, employee.id)
    return index


def match_hint(hint: Optional[str], index: Dict[str, str]) -> Optional[str]:
    if not hint:
        return None
    key = normalize_name(hint)
    return index.get(key) if key else None


def resolve_hints(hints: Iterable[str], employees: Sequence[EmployeeRef]) -> Dict[str, Optional[str]]:
    """Resolve raw hint strings; unmatched hints map to ``None``."""

    index = build_name_index(employees)
    return {hint: match_hint(hint, index) for hint in hints}


def propose_assignments(
    tasks: Iterable[PhoneTask], employees: Sequence[EmployeeRef]
) -> NameMatchOut:
    index = build_name_index(employees)
    matched: List[TargetedPair] = []
    unmatched: List[str] = []
    for task in tasks:
        employee_id = match_hint(task.assigned_employee_name, index)
        if employee_id is None:
            unmatched.append(task.id)
        else:
            matched.append(TargetedPair(phone_task_id=task.id, employee_id=employee_id))
    return NameMatchOut(matched=matched, unmatched_task_ids=unmatched)
