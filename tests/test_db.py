"""Tests for the Supabase helpers in db.py."""

from unittest.mock import MagicMock, call

import pytest

from db import fetch_all, get_supabase_uncached, upsert_rows
from supabase_mock import make_client, make_query


def test_fetch_all_pages_until_short_page():
    query = make_query()
    query.execute.side_effect = [MagicMock(data=[1, 2]), MagicMock(data=[3, 4]), MagicMock(data=[5])]
    assert fetch_all(lambda: query, page_size=2) == [1, 2, 3, 4, 5]
    assert query.range.call_args_list == [call(0, 1), call(2, 3), call(4, 5)]


def test_fetch_all_stops_on_empty_page():
    query = make_query()
    query.execute.side_effect = [MagicMock(data=[1, 2]), MagicMock(data=None)]
    assert fetch_all(lambda: query, page_size=2) == [1, 2]


def test_upsert_rows_dedupes_and_chunks():
    tables = {}
    client = make_client(tables)
    rows = [
        {"id": "a", "question": "old"},
        {"id": "b", "question": "b"},
        {"id": "a", "question": "new"},
        {"id": "c", "question": "c"},
    ]
    assert upsert_rows(client, "questions", rows, on_conflict="id", chunk_size=2) == 3
    upserts = tables["questions"].upsert.call_args_list
    assert len(upserts) == 2
    assert upserts[0] == call([{"id": "a", "question": "new"}, {"id": "b", "question": "b"}], on_conflict="id")
    assert upserts[1] == call([{"id": "c", "question": "c"}], on_conflict="id")


def test_missing_credentials(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_KEY", raising=False)
    with pytest.raises(ValueError):
        get_supabase_uncached()
