from __future__ import annotations

import math

from .datamodels import PageInfo


def compute_page_info(total_items: int, page_size: int, requested_page: int) -> PageInfo:
    """Derive page metadata for a feed of ``total_items`` entries.

    A requested page outside ``[1, total_pages]`` is clamped rather than
    rejected, so a stale page number from an old link or a shrinking feed
    still lands on a real page.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be at least 1, got {page_size}")

    total_pages = max(1, math.ceil(max(total_items, 0) / page_size))
    current_page = min(max(requested_page, 1), total_pages)
    return PageInfo(current_page=current_page, total_pages=total_pages)
