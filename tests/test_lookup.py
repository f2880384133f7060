from __future__ import annotations

from merch_catalog.catalog.lookup import find_record
from merch_catalog.catalog.normalize import normalize_row


def records(*ids):
    return [normalize_row({"image_filename": rid}, i) for i, rid in enumerate(ids)]


def test_exact_match_wins_over_partial():
    recs = records("cat", "cat.png")
    assert find_record(recs, "cat.png").row_index == 1


def test_exact_match_ignores_surrounding_whitespace():
    assert find_record(records("cat.png"), "  cat.png ").id == "cat.png"


def test_fallback_query_contains_candidate():
    recs = records("dog.png", "cat")
    assert find_record(recs, "cat.png").id == "cat"


def test_fallback_candidate_contains_query():
    recs = records("dog.png", "cat_large.png")
    assert find_record(recs, "cat_large").id == "cat_large.png"


def test_fallback_returns_first_in_dataset_order():
    recs = records("cat_a.png", "cat_b.png")
    assert find_record(recs, "cat_").row_index == 0


def test_unique_fallback_rejects_ambiguous_ids():
    recs = records("cat_a.png", "cat_b.png", "dog.png")
    assert find_record(recs, "cat_", fallback="unique") is None
    assert find_record(recs, "dog", fallback="unique").id == "dog.png"


def test_fallback_off_requires_exact_match():
    recs = records("cat")
    assert find_record(recs, "cat.png", fallback="off") is None
    assert find_record(recs, "cat", fallback="off").id == "cat"


def test_not_found():
    assert find_record(records("cat.png"), "bird.png") is None
    assert find_record(records("cat.png"), "") is None
    assert find_record([], "cat.png") is None
