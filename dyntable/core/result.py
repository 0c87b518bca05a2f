from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dyntable.typing import CanonicalRecord

__all__ = ("PagedResult", "total_pages_for")


def total_pages_for(total_records: int, page_size: int) -> int:
    """Number of pages needed for ``total_records`` rows, using integer arithmetic only."""
    total_pages = total_records // page_size
    if total_records % page_size > 0:
        total_pages += 1
    return total_pages


@dataclass
class PagedResult:
    """One page of a paged query.

    ``items`` is lazy: the page query runs when it is first iterated and can
    only be iterated once.
    """

    items: "Iterator[CanonicalRecord]"
    total_records: int
    total_pages: int

    def __iter__(self) -> "Iterator[CanonicalRecord]":
        return iter(self.items)
