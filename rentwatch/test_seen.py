"""
Tests for seen-set persistence and exports.
"""
import pandas as pd

from rentwatch.export import export_delivered_since, save_output_rows
from rentwatch.models import Listing
from rentwatch.seen import NullSeenStore, SqliteSeenStore, db_connect, db_init, open_seen_store


def make_listing(item_id="1", **kwargs):
    return Listing(item_id=item_id, url=f"https://lalafo.kg/x/{item_id}", title=f"Flat {item_id}", **kwargs)


def test_mark_then_has_seen(tmp_path):
    store = open_seen_store(str(tmp_path / "seen.db"))
    assert isinstance(store, SqliteSeenStore)

    assert not store.has_seen("1")
    store.mark_seen(make_listing("1", price=30000))
    assert store.has_seen("1")
    assert not store.has_seen("2")
    store.close()


def test_seen_state_persists_across_opens(tmp_path):
    path = str(tmp_path / "nested" / "seen.db")
    store = open_seen_store(path)
    store.mark_seen(make_listing("7"))
    store.close()

    reopened = open_seen_store(path)
    assert reopened.has_seen("7")
    reopened.close()


def test_namespaces_are_independent(tmp_path):
    conn = db_connect(str(tmp_path / "seen.db"))
    db_init(conn)
    v3 = SqliteSeenStore(conn, "seen_v3")
    v4 = SqliteSeenStore(conn, "seen_v4")

    v3.mark_seen(make_listing("1"))
    assert v3.has_seen("1")
    assert not v4.has_seen("1")
    conn.close()


def test_marking_twice_is_harmless(tmp_path):
    store = open_seen_store(str(tmp_path / "seen.db"))
    store.mark_seen(make_listing("1"))
    store.mark_seen(make_listing("1"))
    count = store.conn.execute("SELECT COUNT(*) FROM seen").fetchone()[0]
    assert count == 1
    store.close()


def test_empty_path_gives_null_store():
    store = open_seen_store("")
    assert isinstance(store, NullSeenStore)
    store.mark_seen(make_listing("1"))
    assert not store.has_seen("1")


def test_unopenable_database_gives_null_store(tmp_path):
    # A directory cannot be opened as a SQLite file.
    store = open_seen_store(str(tmp_path))
    assert isinstance(store, NullSeenStore)


def test_store_errors_degrade_to_not_seen(tmp_path):
    store = open_seen_store(str(tmp_path / "seen.db"))
    store.mark_seen(make_listing("1"))
    store.close()

    assert store.has_seen("1") is False
    store.mark_seen(make_listing("2"))


def test_save_output_rows_csv(tmp_path):
    out = tmp_path / "matches.csv"
    listings = [
        make_listing("1", price=40000, rooms=2, images=["a", "b"]),
        make_listing("2"),
    ]
    assert save_output_rows(listings, str(out)) == 2

    df = pd.read_csv(out, dtype={"item_id": str})
    assert list(df["item_id"]) == ["1", "2"]
    assert df.loc[0, "images"] == "a|b"


def test_save_output_rows_empty_keeps_header(tmp_path):
    out = tmp_path / "empty.csv"
    save_output_rows([], str(out))
    assert "item_id" in out.read_text(encoding="utf-8")


def test_export_delivered_since(tmp_path):
    store = open_seen_store(str(tmp_path / "seen.db"))
    store.mark_seen(make_listing("1"))
    store.mark_seen(make_listing("2"))

    df = export_delivered_since(store.conn, "1970-01-01", "seen_v3")
    assert sorted(df["item_id"]) == ["1", "2"]
    assert export_delivered_since(store.conn, "9999-01-01").empty
    store.close()
