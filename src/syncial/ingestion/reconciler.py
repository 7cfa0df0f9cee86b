"""Reconciler - re-reads ledger mappings for known markets/users and writes them to the local store."""

from __future__ import annotations

import asyncio
import time
from typing import Any

import structlog

from syncial.derived.tiers import calculate_tier
from syncial.ingestion.ledger.client import LedgerReader
from syncial.ingestion.ledger.values import as_field_key, parse_int, read_int
from syncial.models import DEFAULT_USERNAME, LedgerPollState, ReputationRecord
from syncial.storage.store import LocalStore

log = structlog.get_logger(__name__)

# Betting program mappings, keyed by poll id, in LedgerPollState field order.
POLL_MAPPINGS = (
    ("status", "poll_status"),
    ("pool_option_a", "pool_option_1"),
    ("pool_option_b", "pool_option_2"),
    ("total_pool", "total_pool"),
    ("total_bets", "total_bets_count"),
    ("winning_option", "winning_option"),
)

# Reputation program mappings, keyed by user hash.
REPUTATION_MAPPINGS = (
    ("accuracy_score", "public_reputation"),
    ("total_predictions", "prediction_count"),
    ("correct_predictions", "correct_count"),
    ("total_volume", "total_volume"),
    ("leaderboard_score", "leaderboard_score"),
)


class Reconciler:
    """Mirrors ledger state into the LocalStore. Holds no state between passes
    beyond guards against overlapping work."""

    def __init__(
        self,
        store: LocalStore,
        reader: LedgerReader,
        *,
        betting_program: str = "syncial_betting_v1.aleo",
        reputation_program: str = "syncial_reputation_v1.aleo",
        max_concurrency: int = 16,
        market_timeout_sec: float | None = 20.0,
    ) -> None:
        self.store = store
        self.reader = reader
        self.betting_program = betting_program
        self.reputation_program = reputation_program
        self.max_concurrency = max(1, max_concurrency)
        self.market_timeout_sec = market_timeout_sec
        self._pass_lock = asyncio.Lock()
        self._in_flight: set[str] = set()
        self._pass_count = 0
        self._last_pass: dict[str, Any] = {}

    @property
    def pass_running(self) -> bool:
        return self._pass_lock.locked()

    async def _read_values(self, program: str, mappings: tuple[tuple[str, str], ...], key: str) -> list[str | None]:
        field_key = as_field_key(key)
        return await asyncio.gather(
            *(self.reader.read_mapping(program, mapping, field_key) for _, mapping in mappings)
        )

    async def fetch_poll_state(self, poll_id_onchain: str) -> LedgerPollState:
        """Read the six market mappings concurrently and normalize them."""
        raw = await self._read_values(self.betting_program, POLL_MAPPINGS, poll_id_onchain)
        values = {name: parse_int(value) for (name, _), value in zip(POLL_MAPPINGS, raw)}
        known = all(read_int(value) is not None for value in raw)
        return LedgerPollState(**values, known=known)

    async def sync_poll(self, poll_id_onchain: str) -> bool:
        """Sync one market. Never raises: failures are logged and reported as False."""
        if poll_id_onchain in self._in_flight:
            log.debug("poll_sync_in_flight", poll_id=poll_id_onchain)
            return False
        self._in_flight.add(poll_id_onchain)
        try:
            state = await self.fetch_poll_state(poll_id_onchain)
            self.store.update_poll_ledger_state(poll_id_onchain, state)
            log.info(
                "poll_synced",
                poll_id=poll_id_onchain[:12],
                total_pool=state.total_pool,
                total_bets=state.total_bets,
                status=state.status,
                known=state.known,
            )
            return True
        except Exception:
            log.exception("poll_sync_failed", poll_id=poll_id_onchain)
            return False
        finally:
            self._in_flight.discard(poll_id_onchain)

    async def sync_all(self) -> int:
        """One reconciliation pass over every known market. Returns the number attempted.

        If a pass is already running this call is skipped and returns 0.
        """
        if self._pass_lock.locked():
            log.warning("sync_pass_skipped", reason="previous pass still running")
            return 0
        async with self._pass_lock:
            started = time.time()
            poll_ids = self.store.poll_ledger_ids()
            semaphore = asyncio.Semaphore(self.max_concurrency)

            async def bounded(pid: str) -> bool:
                # A market that overruns its deadline gives its slot back.
                async with semaphore:
                    try:
                        return await asyncio.wait_for(self.sync_poll(pid), timeout=self.market_timeout_sec)
                    except asyncio.TimeoutError:
                        log.warning("poll_sync_timed_out", poll_id=pid, timeout_sec=self.market_timeout_sec)
                        return False

            results = await asyncio.gather(*(bounded(pid) for pid in poll_ids), return_exceptions=True)
            synced = sum(1 for r in results if r is True)
            try:
                self.store.refresh_category_rollups()
            except Exception:
                log.exception("category_rollup_failed")
            self._pass_count += 1
            self._last_pass = {
                "attempted": len(poll_ids),
                "synced": synced,
                "failed": len(poll_ids) - synced,
                "elapsed_sec": round(time.time() - started, 3),
                "finished_at": int(time.time() * 1000),
            }
            if poll_ids:
                log.info("sync_pass_done", **self._last_pass)
            return len(poll_ids)

    async def fetch_reputation(self, user_hash: str) -> ReputationRecord:
        raw = await self._read_values(self.reputation_program, REPUTATION_MAPPINGS, user_hash)
        values = {name: parse_int(value) for (name, _), value in zip(REPUTATION_MAPPINGS, raw)}
        level = calculate_tier(values["total_predictions"], values["accuracy_score"])
        return ReputationRecord(
            user_hash=user_hash,
            username=DEFAULT_USERNAME,
            level=level,
            last_synced=int(time.time() * 1000),
            **values,
        )

    async def sync_user(self, user_hash: str) -> ReputationRecord | None:
        """Sync one user's public reputation. Returns the stored record, None on failure."""
        try:
            record = await self.fetch_reputation(user_hash)
            self.store.upsert_reputation(record, keep_username=True)
            log.info(
                "reputation_synced",
                user_hash=user_hash[:12],
                accuracy=record.accuracy_score,
                predictions=record.total_predictions,
                level=record.level,
            )
            return record
        except Exception:
            log.exception("reputation_sync_failed", user_hash=user_hash)
            return None

    def get_status(self) -> dict[str, Any]:
        """Pass count, whether a pass is running, and the last pass summary."""
        return {
            "passes": self._pass_count,
            "running": self.pass_running,
            "last_pass": dict(self._last_pass),
        }
