"""Supabase client factories and bulk helpers. Client is kept per Streamlit session."""
import logging
import os
from typing import Callable

import streamlit as st
from dotenv import load_dotenv
from supabase import create_client, Client

from engine import PAGE_SIZE, UPSERT_CHUNK_SIZE

load_dotenv()

logger = logging.getLogger(__name__)

_SESSION_KEY = "supabase_client"


def _env_client() -> Client:
    url = os.environ.get("SUPABASE_URL")
    key = os.environ.get("SUPABASE_KEY")
    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set")
    return create_client(url, key)


def get_supabase() -> Client:
    """One client per browser session: the signed-in user lives on the client."""
    if _SESSION_KEY not in st.session_state:
        st.session_state[_SESSION_KEY] = _env_client()
    return st.session_state[_SESSION_KEY]


def get_supabase_uncached() -> Client:
    """For CLI/scripts (no Streamlit context)."""
    return _env_client()


def fetch_all(query_factory: Callable, page_size: int = PAGE_SIZE) -> list[dict]:
    """Page through a select with .range(). query_factory() must return a fresh filtered query
    with an .order() on a unique column, otherwise pages may overlap or skip rows."""
    all_rows = []
    offset = 0
    while True:
        r = query_factory().range(offset, offset + page_size - 1).execute()
        data = r.data or []
        if not data:
            break
        all_rows.extend(data)
        if len(data) < page_size:
            break
        offset += page_size
    return all_rows


def upsert_rows(client: Client, table: str, rows: list[dict], on_conflict: str, chunk_size: int = UPSERT_CHUNK_SIZE):
    """Bulk upsert in chunks. Dedupes on the conflict key so no chunk has duplicates (avoids Postgres ON CONFLICT error)."""
    keys = [k.strip() for k in on_conflict.split(",")]
    n_before = len(rows)
    by_key = {tuple(r[k] for k in keys): r for r in rows}
    rows = list(by_key.values())
    if len(rows) < n_before:
        logger.info("Deduped %s by %s: %d -> %d", table, on_conflict, n_before, len(rows))
    n_chunks = (len(rows) + chunk_size - 1) // chunk_size
    for i in range(0, len(rows), chunk_size):
        chunk = rows[i : i + chunk_size]
        logger.info("Upserting %s chunk %d/%d (%d rows)", table, i // chunk_size + 1, n_chunks, len(chunk))
        client.table(table).upsert(chunk, on_conflict=on_conflict).execute()
    return len(rows)
