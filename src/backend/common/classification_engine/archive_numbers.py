"""Archive numbers: ``YYYY-MM-CODE-NNNN``.

The sequence counter is shared mutable state owned by the caller. The engine
only sees the `ArchiveNumberGenerator` protocol and calls it once per matched
receipt, after the mutation directive is complete.
"""

from __future__ import annotations

import re
import threading
from datetime import date
from typing import Dict, Iterable, Optional, Protocol, Tuple

from .models import MutationDirective, ReceiptCategory

ARCHIVE_NUMBER_RE = re.compile(r"^(?P<period>\d{4}-\d{2})-(?P<code>[A-Z0-9]+)-(?P<serial>\d+)$")
CATEGORY_CODE_RE = re.compile(r"^[A-Z0-9]{1,8}$")


class ArchiveNumberGenerator(Protocol):
    def next(self, period_key: str, category_code: str) -> str:
        """Return a number unique and increasing within (period_key, category_code)."""
        ...


def period_key_for(day: date) -> str:
    return f"{day.year:04d}-{day.month:02d}"


def format_archive_number(period_key: str, category_code: str, serial: int) -> str:
    return f"{period_key}-{category_code}-{serial:04d}"


def parse_archive_number(text: str) -> Optional[Tuple[str, str, int]]:
    match = ARCHIVE_NUMBER_RE.match((text or "").strip())
    if not match:
        return None
    return match.group("period"), match.group("code"), int(match.group("serial"))


def category_code_for(value: str) -> Optional[str]:
    """Map a category name (``EXPENSE``) or a literal code (``EXP``) to an archive code."""
    text = (value or "").strip().upper()
    if text in ReceiptCategory.__members__:
        return ReceiptCategory[text].archive_code
    if CATEGORY_CODE_RE.match(text):
        return text
    return None


class InMemoryArchiveNumberGenerator:
    """Process-local counter with one lock per (period, category) key.

    Seed it with the archive numbers already in storage so numbering resumes
    after the highest existing serial.
    """

    def __init__(self, existing: Iterable[str] = ()):
        self._guard = threading.Lock()
        self._locks: Dict[Tuple[str, str], threading.Lock] = {}
        self._counters: Dict[Tuple[str, str], int] = {}
        for number in existing:
            parsed = parse_archive_number(number)
            if parsed is None:
                continue
            period_key, code, serial = parsed
            key = (period_key, code)
            self._counters[key] = max(self._counters.get(key, 0), serial)

    def _lock_for(self, key: Tuple[str, str]) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def next(self, period_key: str, category_code: str) -> str:
        key = (period_key, category_code)
        with self._lock_for(key):
            serial = self._counters.get(key, 0) + 1
            self._counters[key] = serial
        return format_archive_number(period_key, category_code, serial)

    def current(self, period_key: str, category_code: str) -> int:
        return self._counters.get((period_key, category_code), 0)


def assign_archive_number(directive: MutationDirective, generator: ArchiveNumberGenerator) -> MutationDirective:
    request = directive.archive_number_request
    if request is None or directive.archive_number:
        return directive
    number = generator.next(request.period_key, request.category_code)
    return directive.model_copy(update={"archive_number": number})
