"""Sort Engine — tests for stable multi-key ordering.

Tests cover:
    - Empty descriptors return the input order untouched
    - Ascending / descending on numbers, strings and dates
    - Tie-breaking by later descriptors, stability for full ties
    - Purity (input never mutated)
    - Missing values sort last in both directions; mixed types raise SortKeyError
"""

from dataclasses import dataclass
from datetime import date

import pytest

from collection_sync.core.domain_types import SortDescriptor, SortOrder
from collection_sync.core.errors import SortKeyError
from collection_sync.core.sort_engine import is_sorted, read_field, sort_items


ASC = SortOrder.ASCENDING
DESC = SortOrder.DESCENDING


def _ids(items):
    return [i["id"] for i in items]


def test_no_descriptors_is_identity():
    items = [{"id": 3}, {"id": 1}, {"id": 2}]
    assert _ids(sort_items(items, [])) == [3, 1, 2]


def test_no_descriptors_returns_same_tuple_object():
    items = ({"id": 1}, {"id": 2})
    assert sort_items(items, ()) is items


def test_ascending_by_number():
    items = [{"id": 1, "pop": 50}, {"id": 2, "pop": 20}, {"id": 3, "pop": 30}]
    assert _ids(sort_items(items, [SortDescriptor("pop")])) == [2, 3, 1]


def test_descending_by_string():
    items = [{"id": 1, "name": "b"}, {"id": 2, "name": "c"}, {"id": 3, "name": "a"}]
    result = sort_items(items, [SortDescriptor("name", DESC)])
    assert _ids(result) == [2, 1, 3]


def test_dates_use_natural_ordering():
    items = [
        {"id": 1, "founded": date(2001, 1, 1)},
        {"id": 2, "founded": date(1999, 6, 1)},
    ]
    assert _ids(sort_items(items, [SortDescriptor("founded")])) == [2, 1]


def test_later_descriptor_breaks_ties():
    items = [
        {"id": 1, "country": "fr", "pop": 10},
        {"id": 2, "country": "de", "pop": 30},
        {"id": 3, "country": "fr", "pop": 40},
        {"id": 4, "country": "de", "pop": 20},
    ]
    result = sort_items(
        items, [SortDescriptor("country"), SortDescriptor("pop", DESC)],
    )
    assert _ids(result) == [2, 4, 3, 1]


def test_full_ties_keep_input_order_ascending():
    items = [{"id": i, "pop": 1} for i in (5, 2, 9, 1)]
    assert _ids(sort_items(items, [SortDescriptor("pop")])) == [5, 2, 9, 1]


def test_full_ties_keep_input_order_descending():
    items = [
        {"id": 1, "pop": 1}, {"id": 2, "pop": 2},
        {"id": 3, "pop": 1}, {"id": 4, "pop": 2},
    ]
    assert _ids(sort_items(items, [SortDescriptor("pop", DESC)])) == [2, 4, 1, 3]


def test_input_is_not_mutated():
    items = [{"id": 2, "pop": 2}, {"id": 1, "pop": 1}]
    sort_items(items, [SortDescriptor("pop")])
    assert _ids(items) == [2, 1]


def test_missing_values_sort_last_ascending():
    items = [{"id": 1}, {"id": 2, "pop": 5}, {"id": 3, "pop": None}, {"id": 4, "pop": 1}]
    assert _ids(sort_items(items, [SortDescriptor("pop")])) == [4, 2, 1, 3]


def test_missing_values_sort_last_descending():
    items = [{"id": 1}, {"id": 2, "pop": 5}, {"id": 3, "pop": 1}]
    assert _ids(sort_items(items, [SortDescriptor("pop", DESC)])) == [2, 3, 1]


def test_mixed_types_raise_sort_key_error():
    items = [{"id": 1, "pop": 5}, {"id": 2, "pop": "many"}]
    with pytest.raises(SortKeyError) as exc:
        sort_items(items, [SortDescriptor("pop")])
    assert exc.value.attribute == "pop"
    assert exc.value.code == "SORT_KEY_ERROR"


def test_attribute_entities_are_supported():
    @dataclass
    class City:
        id: int
        pop: int

    items = [City(1, 9), City(2, 3)]
    assert [c.id for c in sort_items(items, [SortDescriptor("pop")])] == [2, 1]


def test_read_field_handles_mappings_and_objects():
    @dataclass
    class City:
        id: int

    assert read_field({"id": 4}, "id") == 4
    assert read_field({"id": 4}, "pop") is None
    assert read_field(City(7), "id") == 7
    assert read_field(City(7), "pop") is None


def test_sorted_output_is_idempotent_under_resort():
    descriptors = [SortDescriptor("a"), SortDescriptor("b", DESC)]
    items = [{"id": i, "a": i % 3, "b": i % 5} for i in range(20)]
    once = sort_items(items, descriptors)
    assert sort_items(once, descriptors) == once
    assert is_sorted(once, descriptors)
    assert not is_sorted(items, descriptors)
