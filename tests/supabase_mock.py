"""Chainable stand-ins for the Supabase client and query builder."""

from unittest.mock import MagicMock

QUERY_METHODS = ("select", "eq", "in_", "lt", "order", "limit", "range", "insert", "update", "delete", "upsert")


def make_query(data=None, count=None):
    """Query builder mock: every filter returns itself, execute() returns the response."""
    query = MagicMock()
    for name in QUERY_METHODS:
        getattr(query, name).return_value = query
    query.execute.return_value = MagicMock(data=data if data is not None else [], count=count)
    return query


def make_client(tables=None):
    """Supabase client mock; `tables` maps table name -> query mock."""
    tables = tables if tables is not None else {}
    client = MagicMock()
    client.table.side_effect = lambda name: tables.setdefault(name, make_query())
    return client
