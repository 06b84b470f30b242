"""Column pagination for wide period tables."""

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class Page:
    """One page of period columns; numbers start at 1."""

    number: int
    periods: tuple[str, ...]


def page_size(max_columns: int, reserved_columns: int) -> int:
    """Number of period columns that fit next to the fixed identity columns."""
    size = max_columns - reserved_columns
    if size < 1:
        raise ValueError(
            f"max_columns ({max_columns}) must exceed reserved_columns ({reserved_columns})"
        )
    return size


def paginate_periods(
    periods: Sequence[str], max_columns: int, reserved_columns: int
) -> list[Page]:
    """
    Split periods into consecutive pages, preserving order.

    Concatenating the periods of every page reproduces the input. An empty
    period list yields no pages.
    """
    size = page_size(max_columns, reserved_columns)
    return [
        Page(number=index // size + 1, periods=tuple(periods[index : index + size]))
        for index in range(0, len(periods), size)
    ]
