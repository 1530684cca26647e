"""
Employee identifier generation.

Identifiers look like "CISS/TCS/2025-26/001":

    <ORG>/<client abbreviation>/<financial year>/<sequence>

The sequence comes from a store-backed counter per (abbreviation,
financial year), so repeated and concurrent jobs never reuse a number.
"""

from __future__ import annotations

import re
from collections import Counter
from datetime import date

from workforce_ingest.core.logging import get_logger
from workforce_ingest.storage.base import DocumentStore

logger = get_logger(__name__)

KNOWN_ABBREVIATIONS: dict[str, str] = {
    "TATA CONSULTANCY SERVICES": "TCS",
    "WIPRO": "WIPRO",
}

DEFAULT_ABBREVIATION = "CLIENT"

_WORD_SPLIT_RE = re.compile(r"[\s-]+")


def abbreviate_client_name(name: str | None) -> str:
    """
    Short uppercase code for a client name.

    >>> abbreviate_client_name("Tata Consultancy Services")
    'TCS'
    >>> abbreviate_client_name("Global Ventures")
    'GV'
    >>> abbreviate_client_name("Acme")
    'ACME'
    >>> abbreviate_client_name("Megacorp")
    'MEGA'
    """
    cleaned = (name or "").strip()
    if not cleaned:
        return DEFAULT_ABBREVIATION

    known = KNOWN_ABBREVIATIONS.get(cleaned.upper())
    if known:
        return known

    words = [word for word in _WORD_SPLIT_RE.split(cleaned) if word]
    if len(words) > 1:
        return "".join(word[0] for word in words).upper()
    if len(cleaned) <= 4:
        return cleaned.upper()
    return cleaned[:4].upper()


def financial_year(today: date | None = None) -> str:
    """April-to-March financial year label, e.g. "2025-26"."""
    today = today or date.today()
    if today.month >= 4:
        return f"{today.year}-{str(today.year + 1)[-2:]}"
    return f"{today.year - 1}-{str(today.year)[-2:]}"


def counter_name(abbreviation: str, fy: str) -> str:
    return f"employee_id:{abbreviation}:{fy}"


class IdentifierGenerator:
    """
    Hands out employee identifiers for one job.

    Call reserve() once with every client name of the job; it reserves a
    contiguous block per (abbreviation, FY) key.  next_id() then draws
    from those blocks in call order.
    """

    def __init__(self, store: DocumentStore, org_prefix: str = "CISS", today: date | None = None) -> None:
        self.store = store
        self.org_prefix = org_prefix
        self.fy = financial_year(today)
        self._next: dict[str, int] = {}
        self._end: dict[str, int] = {}

    async def reserve(self, client_names: list[str]) -> None:
        demand = Counter(abbreviate_client_name(name) for name in client_names)
        for abbreviation, count in sorted(demand.items()):
            last = await self.store.reserve_counter_block(counter_name(abbreviation, self.fy), count)
            self._next[abbreviation] = last - count + 1
            self._end[abbreviation] = last
            logger.debug(
                "Identifier block reserved",
                abbreviation=abbreviation,
                fy=self.fy,
                first=last - count + 1,
                last=last,
            )

    def next_id(self, client_name: str) -> str:
        abbreviation = abbreviate_client_name(client_name)
        number = self._next.get(abbreviation)
        if number is None or number > self._end[abbreviation]:
            raise RuntimeError(f"No reserved identifiers left for {abbreviation}")
        self._next[abbreviation] = number + 1
        return f"{self.org_prefix}/{abbreviation}/{self.fy}/{number:03d}"
