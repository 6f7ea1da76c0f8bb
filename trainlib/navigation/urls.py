"""
URL hash encoding of the navigation state.

Hashes carry 1-based page numbers:
    #program=<id>&page=<n>   structured form
    #page-<n>                legacy form, no program id
    #                        dashboard
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import parse_qs, urlencode

DASHBOARD_HASH = "#"

_LEGACY_PAGE = re.compile(r"^#?page-(\d+)$")
_DIGITS = re.compile(r"^\d+$")


@dataclass(frozen=True)
class HashState:
    """What a hash says about the desired location."""

    program_id: str | None = None
    page_index: int | None = None
    legacy: bool = False

    @property
    def is_empty(self) -> bool:
        return self.program_id is None and self.page_index is None


def parse_page_number(value: str | None) -> int | None:
    """1-based page text -> 0-based index; None unless a positive integer."""
    if value is None or not _DIGITS.match(value):
        return None
    number = int(value)
    if number < 1:
        return None
    return number - 1


def build_hash(program_id: str | None, page_index: int | None = None) -> str:
    params: list[tuple[str, str]] = []
    if program_id:
        params.append(("program", program_id))
    if program_id and isinstance(page_index, int):
        params.append(("page", str(page_index + 1)))
    if not params:
        return DASHBOARD_HASH
    return "#" + urlencode(params)


def parse_hash(fragment: str | None) -> HashState:
    fragment = (fragment or "").strip()
    if not fragment or fragment == DASHBOARD_HASH:
        return HashState()

    legacy = _LEGACY_PAGE.match(fragment)
    if legacy:
        return HashState(program_id=None, page_index=parse_page_number(legacy.group(1)), legacy=True)

    params = parse_qs(fragment.lstrip("#"))
    program_values = params.get("program") or [None]
    page_values = params.get("page") or [None]
    return HashState(
        program_id=program_values[0] or None,
        page_index=parse_page_number(page_values[0]),
    )
