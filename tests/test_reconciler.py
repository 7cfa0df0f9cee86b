"""Reconciliation passes: write-back, idempotence, isolation, overlap guard, reputation."""

import asyncio

import pytest

from conftest import BETTING, REPUTATION, make_poll
from syncial.ingestion.reconciler import Reconciler

TIMESTAMPS = ("last_synced", "updated_at")


def _without_timestamps(row):
    return {k: v for k, v in row.items() if k not in TIMESTAMPS}


def _run(store, reader, coro_fn, **kwargs):
    async def go():
        async with reader:
            rec = Reconciler(store, reader, betting_program=BETTING, reputation_program=REPUTATION, **kwargs)
            return await coro_fn(rec)

    return asyncio.run(go())


def test_sync_poll_writes_normalized_state(store, fake_ledger):
    store.create_poll(make_poll("p1", "101field"))
    fake_ledger.set_poll("101field", pool_a="150000000u64", pool_b="85000000u64", bets="42u64")

    ok = _run(store, fake_ledger.reader(), lambda r: r.sync_poll("101field"))

    assert ok is True
    row = store.get_poll("p1")
    assert row["pool_option_a"] == 150_000_000
    assert row["pool_option_b"] == 85_000_000
    assert row["total_pool"] == 235_000_000
    assert row["total_bets"] == 42
    assert row["status"] == 0
    assert row["winning_option"] == 0
    assert row["ledger_state_known"] is True
    assert row["last_synced"] > 0
    assert row["last_synced"] == row["updated_at"]


def test_sync_poll_reads_six_mappings(store, fake_ledger):
    store.create_poll(make_poll("p1", "101field"))
    fake_ledger.set_poll("101field")
    _run(store, fake_ledger.reader(), lambda r: r.sync_poll("101field"))
    mappings = sorted(path.rsplit("/", 2)[1] for path in fake_ledger.requests)
    assert mappings == sorted(
        ["poll_status", "pool_option_1", "pool_option_2", "total_pool", "total_bets_count", "winning_option"]
    )


def test_resolved_market_copied_as_read(store, fake_ledger):
    store.create_poll(make_poll("p1", "101field"))
    fake_ledger.set_poll("101field", status="1u8", pool_a="10u64", pool_b="20u64", winner="2u8")
    _run(store, fake_ledger.reader(), lambda r: r.sync_poll("101field"))
    row = store.get_poll("101field")
    assert (row["status"], row["winning_option"]) == (1, 2)


def test_missing_mappings_degrade_to_zero_but_marked_unknown(store, fake_ledger):
    store.create_poll(make_poll("p1", "101field"))
    fake_ledger.set(BETTING, "total_pool", "101field", "500u64")

    ok = _run(store, fake_ledger.reader(), lambda r: r.sync_poll("101field"))

    assert ok is True
    row = store.get_poll("p1")
    assert row["total_pool"] == 500
    assert row["pool_option_a"] == 0
    assert row["ledger_state_known"] is False


def test_sync_twice_is_idempotent_except_timestamps(store, fake_ledger):
    store.create_poll(make_poll("p1", "101field"))
    fake_ledger.set_poll("101field", pool_a="7u64", pool_b="3u64", bets="2u64")

    _run(store, fake_ledger.reader(), lambda r: r.sync_poll("101field"))
    first = store.get_poll("p1")
    _run(store, fake_ledger.reader(), lambda r: r.sync_poll("101field"))
    second = store.get_poll("p1")

    assert _without_timestamps(first) == _without_timestamps(second)
    assert second["last_synced"] >= first["last_synced"]


def test_sync_all_skips_unconfirmed_polls(store, fake_ledger):
    store.create_poll(make_poll("p1", "101field"))
    store.create_poll(make_poll("p2", None))
    fake_ledger.set_poll("101field", pool_a="5u64", pool_b="5u64")

    attempted = _run(store, fake_ledger.reader(), lambda r: r.sync_all())

    assert attempted == 1
    assert store.get_poll("p2")["last_synced"] == 0


def test_one_failing_market_does_not_abort_batch(store, fake_ledger):
    for i, key in enumerate(("1field", "2field", "3field")):
        store.create_poll(make_poll(f"p{i}", key, created_at=1_000 + i))
        fake_ledger.set_poll(key, pool_a=f"{(i + 1) * 100}u64", pool_b="0u64")

    reader = fake_ledger.reader()
    real_read = reader.read_mapping

    async def flaky(program, mapping, key):
        if key == "2field":
            raise RuntimeError("upstream exploded")
        return await real_read(program, mapping, key)

    reader.read_mapping = flaky

    attempted = _run(store, reader, lambda r: r.sync_all())

    assert attempted == 3
    assert store.get_poll("1field")["pool_option_a"] == 100
    assert store.get_poll("3field")["pool_option_a"] == 300
    assert store.get_poll("2field")["last_synced"] == 0


def test_hung_market_does_not_starve_the_rest(store, fake_ledger):
    for i, key in enumerate(("1field", "2field", "3field")):
        store.create_poll(make_poll(f"p{i}", key, created_at=1_000 + i))
        fake_ledger.set_poll(key, pool_a=f"{(i + 1) * 3}u64", pool_b="0u64")

    reader = fake_ledger.reader()
    real_read = reader.read_mapping

    async def hangs(program, mapping, key):
        if key == "1field":
            await asyncio.Event().wait()
        return await real_read(program, mapping, key)

    reader.read_mapping = hangs

    attempted, status = _run(
        store,
        reader,
        lambda r: asyncio.wait_for(_pass_and_status(r), timeout=5),
        max_concurrency=1,
        market_timeout_sec=0.2,
    )

    assert attempted == 3
    assert store.get_poll("1field")["last_synced"] == 0
    assert store.get_poll("2field")["pool_option_a"] == 6
    assert store.get_poll("3field")["pool_option_a"] == 9
    assert status["last_pass"]["synced"] == 2
    assert status["last_pass"]["failed"] == 1


async def _pass_and_status(rec):
    attempted = await rec.sync_all()
    return attempted, rec.get_status()


def test_sync_all_updates_category_rollups(store, fake_ledger):
    store.create_poll(make_poll("p1", "1field", category="Sports"))
    store.create_poll(make_poll("p2", "2field", category="Sports"))
    fake_ledger.set_poll("1field", pool_a="100u64", pool_b="50u64")
    fake_ledger.set_poll("2field", pool_a="10u64", pool_b="40u64")

    _run(store, fake_ledger.reader(), lambda r: r.sync_all())

    cats = {c["name"]: c for c in store.list_categories()}
    assert cats["Sports"]["poll_count"] == 2
    assert cats["Sports"]["total_volume"] == 200
    assert cats["Crypto"]["poll_count"] == 0


def test_overlapping_pass_is_skipped(store, fake_ledger):
    store.create_poll(make_poll("p1", "1field"))
    fake_ledger.set_poll("1field", pool_a="1u64", pool_b="1u64")
    reader = fake_ledger.reader()
    real_read = reader.read_mapping

    async def go():
        gate = asyncio.Event()

        async def slow(program, mapping, key):
            await gate.wait()
            return await real_read(program, mapping, key)

        reader.read_mapping = slow
        async with reader:
            rec = Reconciler(store, reader, betting_program=BETTING)
            first = asyncio.create_task(rec.sync_all())
            while not rec.pass_running:
                await asyncio.sleep(0)
            skipped = await rec.sync_all()
            gate.set()
            return skipped, await first, rec.get_status()

    skipped, attempted, status = asyncio.run(go())
    assert skipped == 0
    assert attempted == 1
    assert status["passes"] == 1
    assert status["last_pass"]["synced"] == 1


def test_sync_user_computes_tier_and_keeps_username(store, fake_ledger):
    for mapping, value in (
        ("public_reputation", "6500u64"),
        ("prediction_count", "40u64"),
        ("correct_count", "26u64"),
        ("total_volume", "9000000u64"),
        ("leaderboard_score", "777u64"),
    ):
        fake_ledger.set(REPUTATION, mapping, "user1field", value)

    record = _run(store, fake_ledger.reader(), lambda r: r.sync_user("user1field"))

    assert record.level == 4
    row = store.get_reputation("user1field")
    assert row["username"] == "Anonymous"
    assert row["accuracy_score"] == 6500
    assert row["total_predictions"] == 40
    assert row["correct_predictions"] == 26
    assert row["total_volume"] == 9_000_000
    assert row["leaderboard_score"] == 777

    from syncial.models import ReputationRecord

    store.upsert_reputation(ReputationRecord(user_hash="user1field", username="alice"), keep_username=False)
    _run(store, fake_ledger.reader(), lambda r: r.sync_user("user1field"))
    row = store.get_reputation("user1field")
    assert row["username"] == "alice"
    assert row["accuracy_score"] == 6500


def test_sync_user_unknown_user_is_tier_one(store, fake_ledger):
    record = _run(store, fake_ledger.reader(), lambda r: r.sync_user("ghostfield"))
    assert record.level == 1
    assert store.get_reputation("ghostfield")["total_predictions"] == 0


@pytest.mark.parametrize("key", ["101", "101field"])
def test_keys_get_field_tag(store, fake_ledger, key):
    fake_ledger.set_poll("101field", pool_a="3u64", pool_b="4u64")
    store.create_poll(make_poll("p1", key))
    _run(store, fake_ledger.reader(), lambda r: r.sync_poll(key))
    assert store.get_poll("p1")["total_pool"] == 7
