"""Total ordering of annotated bookmarks and tabs.

Each tie-breaker returns ``-1``, ``0`` or ``1``; :func:`compare_annotated`
returns the first non-zero result in this order:

1. bookmarks before folders
2. other sites before the target site
3. found pages before "not found" pages
4. more ratings first (unknown count last)
5. higher rating first (unknown rating last)
6. product title, ascending (unknown title last)
7. original bookmark name, ascending
"""

from __future__ import annotations

import unicodedata
from functools import cmp_to_key
from typing import Callable, Optional, Sequence, TypeVar

from shelf.config import settings
from shelf.organize.models import Annotated

T = TypeVar("T", bound=Annotated)


def _absent_last(lhs: object, rhs: object) -> Optional[int]:
    """Order by presence alone; ``None`` if both are present."""
    if lhs is None:
        return 0 if rhs is None else 1
    if rhs is None:
        return -1
    return None


def _text_key(text: str) -> tuple[str, str, str]:
    # Accent- and case-insensitive first, then case-insensitive, then exact,
    # so "Éclair" sorts among the E's and the order stays total.
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold(), text.casefold(), text


def _compare_text(lhs: str, rhs: str) -> int:
    a, b = _text_key(lhs), _text_key(rhs)
    return (a > b) - (a < b)


def compare_folder_or_bookmark(lhs: Annotated, rhs: Annotated) -> int:
    return int(lhs.is_folder) - int(rhs.is_folder)


def compare_target_site(lhs: Annotated, rhs: Annotated) -> int:
    return int(settings.is_target(lhs.url)) - int(settings.is_target(rhs.url))


def compare_not_found(lhs: Annotated, rhs: Annotated) -> int:
    return int(lhs.enrichment.is_not_found) - int(rhs.enrichment.is_not_found)


def compare_num_ratings(lhs: Annotated, rhs: Annotated) -> int:
    a, b = lhs.enrichment.num_ratings, rhs.enrichment.num_ratings
    presence = _absent_last(a, b)
    if presence is not None:
        return presence
    return (a < b) - (a > b)


def compare_rating(lhs: Annotated, rhs: Annotated) -> int:
    a, b = lhs.enrichment.rating, rhs.enrichment.rating
    presence = _absent_last(a, b)
    if presence is not None:
        return presence
    return (a < b) - (a > b)


def compare_title(lhs: Annotated, rhs: Annotated) -> int:
    a, b = lhs.enrichment.title, rhs.enrichment.title
    presence = _absent_last(a, b)
    if presence is not None:
        return presence
    return _compare_text(a, b)


def compare_original_title(lhs: Annotated, rhs: Annotated) -> int:
    a, b = lhs.original_title, rhs.original_title
    if a is None or b is None:
        return 0
    return _compare_text(a, b)


TIE_BREAKERS: tuple[Callable[[Annotated, Annotated], int], ...] = (
    compare_folder_or_bookmark,
    compare_target_site,
    compare_not_found,
    compare_num_ratings,
    compare_rating,
    compare_title,
    compare_original_title,
)


def compare_annotated(lhs: Annotated, rhs: Annotated) -> int:
    """Return ``-1`` if *lhs* sorts first, ``1`` if *rhs* does, else ``0``."""
    for breaker in TIE_BREAKERS:
        result = breaker(lhs, rhs)
        if result:
            return result
    return 0


sort_key = cmp_to_key(compare_annotated)


def sort_annotated(entries: Sequence[T]) -> list[T]:
    """Return *entries* in comparator order; ties keep their input order."""
    return sorted(entries, key=sort_key)
