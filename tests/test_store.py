"""LocalStore: polls, posts, comments, reputation, stats."""

import duckdb
import pytest

from conftest import make_poll
from syncial.models import Comment, LedgerPollState, Post, ReputationRecord
from syncial.storage.store import LocalStore, StoreClosedError


def _post(post_id, ts, **kw):
    return Post(
        id=post_id,
        post_id_onchain=kw.pop("ledger_id", f"{post_id}field"),
        content=kw.pop("content", "gm"),
        content_hash="hash1field",
        author_address_hash="author1field",
        timestamp=ts,
        **kw,
    )


def test_categories_seeded(store):
    names = {c["name"] for c in store.list_categories()}
    assert names == {"Crypto", "Finance", "Sports", "Politics", "Culture", "Tech", "Entertainment", "Other"}


def test_reopen_keeps_data_and_seed_is_idempotent(tmp_path):
    path = tmp_path / "reopen.duckdb"
    with LocalStore(path) as s:
        s.create_poll(make_poll("p1", "1field"))
    with LocalStore(path) as s:
        assert s.get_poll("p1")["question"]
        assert len(s.list_categories()) == 8


def test_closed_store_raises(tmp_path):
    s = LocalStore(tmp_path / "closed.duckdb")
    with pytest.raises(StoreClosedError):
        s.get_stats()


def test_poll_lookup_by_local_or_ledger_id(store):
    store.create_poll(make_poll("p1", "101field"))
    assert store.get_poll("p1")["poll_id_onchain"] == "101field"
    assert store.get_poll("101field")["id"] == "p1"
    assert store.get_poll("nope") is None


def test_new_poll_defaults(store):
    store.create_poll(make_poll("p1", None))
    row = store.get_poll("p1")
    assert row["status"] == 0
    assert row["total_pool"] == 0
    assert row["winning_option"] == 0
    assert row["ledger_state_known"] is False
    assert row["created_at"] == 1_700_000_000_000


def test_duplicate_ledger_id_fails_loudly(store):
    store.create_poll(make_poll("p1", "101field"))
    with pytest.raises(duckdb.ConstraintException):
        store.create_poll(make_poll("p2", "101field"))


def test_unconfirmed_polls_may_share_null_ledger_id(store):
    store.create_poll(make_poll("p1", None))
    store.create_poll(make_poll("p2", None))
    assert store.poll_ledger_ids() == []


def _seed_polls(store):
    rows = [
        ("p1", "1field", "Crypto", 1_000, 500, 3, 0),
        ("p2", "2field", "Sports", 2_000, 9_000, 1, 0),
        ("p3", "3field", "Crypto", 3_000, 100, 50, 1),
        ("p4", None, "Other", 4_000, 0, 0, 0),
    ]
    for poll_id, ledger_id, category, created_at, pool, bets, status in rows:
        store.create_poll(make_poll(poll_id, ledger_id, category=category, created_at=created_at))
        if ledger_id:
            store.update_poll_ledger_state(
                ledger_id,
                LedgerPollState(status=status, pool_option_a=pool, total_pool=pool, total_bets=bets, known=True),
            )


def test_list_polls_default_newest_first(store):
    _seed_polls(store)
    assert [p["id"] for p in store.list_polls()] == ["p4", "p3", "p2", "p1"]


def test_list_polls_filters(store):
    _seed_polls(store)
    assert [p["id"] for p in store.list_polls(category="Crypto")] == ["p3", "p1"]
    assert [p["id"] for p in store.list_polls(category="all")] == ["p4", "p3", "p2", "p1"]
    assert [p["id"] for p in store.list_polls(status=1)] == ["p3"]
    assert [p["id"] for p in store.list_polls(status=0, category="Crypto")] == ["p1"]


def test_list_polls_sort_and_pagination(store):
    _seed_polls(store)
    assert [p["id"] for p in store.list_polls(sort_by="total_pool")] == ["p2", "p1", "p3", "p4"]
    assert [p["id"] for p in store.list_polls(sort_by="total_bets", limit=2)] == ["p3", "p1"]
    assert [p["id"] for p in store.list_polls(limit=2, offset=2)] == ["p2", "p1"]


def test_list_polls_unknown_sort_falls_back(store):
    _seed_polls(store)
    rows = store.list_polls(sort_by="question; DROP TABLE polls")
    assert [p["id"] for p in rows] == ["p4", "p3", "p2", "p1"]


def test_update_ledger_state_overwrites_whole_tuple(store):
    store.create_poll(make_poll("p1", "1field"))
    store.update_poll_ledger_state("1field", LedgerPollState(pool_option_a=10, pool_option_b=5, total_pool=15, total_bets=2))
    store.update_poll_ledger_state("1field", LedgerPollState(pool_option_b=1, total_pool=1, total_bets=1))
    row = store.get_poll("p1")
    assert (row["pool_option_a"], row["pool_option_b"], row["total_pool"], row["total_bets"]) == (0, 1, 1, 1)


def test_posts_newest_first_and_likes(store):
    store.create_post(_post("a", 100))
    store.create_post(_post("b", 300, is_poll=True, poll_id="p1"))
    store.create_post(_post("c", 200))
    assert [p["id"] for p in store.list_posts()] == ["b", "c", "a"]
    assert [p["id"] for p in store.list_posts(limit=1, offset=1)] == ["c"]
    post = store.get_post("bfield")
    assert post["is_poll"] is True
    assert post["poll_id"] == "p1"
    assert post["author_username"] == "Anonymous"

    assert store.like_post("a") == 1
    assert store.like_post("a") == 2
    assert store.get_post("a")["likes"] == 2
    assert store.like_post("missing") is None


def test_duplicate_post_ledger_id_fails(store):
    store.create_post(_post("a", 1, ledger_id="x"))
    with pytest.raises(duckdb.ConstraintException):
        store.create_post(_post("b", 2, ledger_id="x"))


def test_comments_oldest_first_per_post(store):
    store.create_post(_post("a", 1))
    for cid, post_id, ts in (("c1", "a", 30), ("c2", "a", 10), ("c3", "other", 20)):
        store.add_comment(
            Comment(id=cid, post_id=post_id, author_address_hash="u1field", content=f"comment {cid}", timestamp=ts)
        )
    assert [c["id"] for c in store.list_comments("a")] == ["c2", "c1"]
    assert [c["id"] for c in store.list_comments("other")] == ["c3"]


def test_reputation_upsert_and_leaderboard(store):
    store.upsert_reputation(ReputationRecord(user_hash="u1", accuracy_score=7000, total_predictions=10, level=2))
    store.upsert_reputation(ReputationRecord(user_hash="u2", accuracy_score=9000, total_predictions=3))
    store.upsert_reputation(ReputationRecord(user_hash="u3", accuracy_score=7000, total_predictions=40, level=3))
    store.upsert_reputation(ReputationRecord(user_hash="u4"))

    assert [r["user_hash"] for r in store.get_leaderboard()] == ["u2", "u3", "u1"]
    assert [r["user_hash"] for r in store.get_leaderboard(limit=1)] == ["u2"]

    store.upsert_reputation(ReputationRecord(user_hash="u1", username="bob", accuracy_score=100, total_predictions=11))
    row = store.get_reputation("u1")
    assert row["username"] == "Anonymous"
    assert row["accuracy_score"] == 100
    assert row["level"] == 1
    assert store.get_reputation("nobody") is None


def test_stats(store):
    _seed_polls(store)
    store.upsert_reputation(ReputationRecord(user_hash="u1"))
    assert store.get_stats() == {
        "total_polls": 4,
        "active_polls": 3,
        "total_volume": 9_600,
        "total_bets": 54,
        "total_users": 1,
    }


def test_stats_empty(store):
    assert store.get_stats() == {
        "total_polls": 0,
        "active_polls": 0,
        "total_volume": 0,
        "total_bets": 0,
        "total_users": 0,
    }
