"""Pagination math for the listing page."""

from typing import Optional

from propertysearch.models.results import compute_total_pages


def total_pages(total: int, page_size: int) -> int:
    """Number of pages for ``total`` matching records."""
    return compute_total_pages(total, page_size)


def page_offset(page: int, page_size: int) -> int:
    """Zero-based row offset of a 1-based page."""
    return (max(page, 1) - 1) * page_size


def clamp_page(page: int, pages: int) -> int:
    """Keep ``page`` within 1..pages (1 when there are no pages)."""
    if pages <= 0:
        return 1
    return min(max(page, 1), pages)


def page_window(current: int, pages: int, radius: int = 1) -> list[Optional[int]]:
    """
    Page numbers for the pagination bar.

    Always includes the first and last page and every page within ``radius``
    of ``current``. A ``None`` entry marks a gap rendered as an ellipsis.
    """
    if pages <= 0:
        return []

    current = clamp_page(current, pages)
    visible = [
        number for number in range(1, pages + 1)
        if number in (1, pages) or abs(number - current) <= radius
    ]

    window: list[Optional[int]] = []
    for number in visible:
        if window and window[-1] is not None and number != window[-1] + 1:
            window.append(None)
        window.append(number)
    return window
