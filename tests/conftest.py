"""Shared test fixtures."""

import pytest

from layout_helpers import FakeStore, make_record


@pytest.fixture
def two_item_catalog():
    """The A/B catalog: A created before B, both open to user 7."""
    return [make_record(1, "Alpha", access=[7]), make_record(2, "Bravo", access=[7])]


@pytest.fixture
def fake_store(two_item_catalog):
    return FakeStore(items=two_item_catalog)
