from __future__ import annotations

import math

import pytest

from lynx_tui.datamodels import PageInfo
from lynx_tui.pagination import compute_page_info


def test_first_page_of_partial_last_page():
    assert compute_page_info(47, 10, 1) == PageInfo(current_page=1, total_pages=5)


def test_empty_feed_has_one_page():
    assert compute_page_info(0, 10, 3) == PageInfo(current_page=1, total_pages=1)


def test_page_past_the_end_is_clamped():
    assert compute_page_info(47, 10, 99) == PageInfo(current_page=5, total_pages=5)


def test_page_below_one_is_clamped():
    assert compute_page_info(47, 10, 0).current_page == 1
    assert compute_page_info(47, 10, -4).current_page == 1


def test_exact_multiple_of_page_size():
    assert compute_page_info(30, 10, 3) == PageInfo(current_page=3, total_pages=3)


@pytest.mark.parametrize("total", [0, 1, 9, 10, 11, 99, 100, 101])
@pytest.mark.parametrize("page_size", [1, 7, 10])
@pytest.mark.parametrize("requested", [-1, 1, 2, 50])
def test_page_info_bounds(total, page_size, requested):
    info = compute_page_info(total, page_size, requested)
    assert info.total_pages == max(1, math.ceil(total / page_size))
    assert 1 <= info.current_page <= info.total_pages


def test_page_size_must_be_positive():
    with pytest.raises(ValueError):
        compute_page_info(10, 0, 1)
