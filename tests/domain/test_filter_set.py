"""Tests for FilterSet normalization and cache keys."""

import pytest
from pydantic import ValidationError

from auction_listing.domain.models import FilterSet, SortOrder


def test_defaults():
    filters = FilterSet()
    assert filters.page == 1
    assert filters.per_page == 12
    assert filters.sort is SortOrder.ENDING_SOON
    assert filters.ids == ()
    assert not filters.pinned
    assert filters.offset == 0


@pytest.mark.parametrize(
    "page,expected", [(0, 1), (-4, 1), ("abc", 1), (None, 1), ("3", 3), (2, 2)]
)
def test_page_normalization(page, expected):
    assert FilterSet(page=page).page == expected


@pytest.mark.parametrize(
    "per_page,expected", [(0, 1), (-1, 1), (500, 50), ("20", 20), (None, 12), ("x", 12)]
)
def test_per_page_is_clamped(per_page, expected):
    assert FilterSet(per_page=per_page).per_page == expected


@pytest.mark.parametrize(
    "sort,expected",
    [
        ("newest", SortOrder.NEWEST),
        (" NEWEST ", SortOrder.NEWEST),
        ("price", SortOrder.ENDING_SOON),
        (None, SortOrder.ENDING_SOON),
    ],
)
def test_unknown_sort_falls_back(sort, expected):
    assert FilterSet(sort=sort).sort is expected


def test_ids_are_cleaned_keeping_first_occurrence():
    assert FilterSet(ids="7,3,9,3,-1,x,0").ids == (7, 3, 9)
    assert FilterSet(ids=[4, "4", 2]).ids == (4, 2)
    assert FilterSet(ids="7,3").pinned


def test_text_and_id_fields():
    filters = FilterSet(
        owner_id=0,
        parent_id="-2",
        country=" nl ",
        subdivision="  ",
        search="  chair ",
    )
    assert filters.owner_id is None
    assert filters.parent_id is None
    assert filters.country == "NL"
    assert filters.subdivision is None
    assert filters.search == "chair"


def test_filter_set_is_immutable():
    filters = FilterSet()
    with pytest.raises(ValidationError):
        filters.page = 3


def test_offset_and_with_paging():
    filters = FilterSet(search="x").with_paging(3, 10)
    assert filters.offset == 20
    assert filters.search == "x"
    assert filters.with_paging(0, 999).per_page == 50


def test_criteria_key_ignores_paging_and_page_key_does_not():
    first = FilterSet(country="nl", page=1, per_page=10)
    second = FilterSet(country="NL ", page=4, per_page=20)

    assert first.criteria_key("auctions") == second.criteria_key("auctions")
    assert first.page_key("auctions") != second.page_key("auctions")
    assert first.criteria_key("auctions") != first.criteria_key("items")
    assert first.criteria_key("auctions") != FilterSet(country="BE").criteria_key(
        "auctions"
    )


def test_keys_are_stable_for_equal_input():
    a = FilterSet(ids="7,3,9", search="lamp")
    b = FilterSet(ids=[7, 3, 9], search=" lamp")
    assert a.page_key("items") == b.page_key("items")
    assert len(a.page_key("items")) == 64
