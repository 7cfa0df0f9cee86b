"""Shared fixtures: temp DuckDB store and an in-memory fake ledger API."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from syncial.ingestion.ledger.client import LedgerReader
from syncial.models import Poll
from syncial.storage.store import LocalStore

LEDGER_BASE = "https://ledger.test/v1"
BETTING = "syncial_betting_v1.aleo"
REPUTATION = "syncial_reputation_v1.aleo"


class FakeLedger:
    """Serves /{network}/program/{program}[/mapping/{name}/{key}] from dicts."""

    def __init__(self) -> None:
        self.mappings: dict[tuple[str, str, str], str] = {}
        self.deployed: set[str] = set()
        self.unreachable_keys: set[str] = set()
        self.requests: list[str] = []

    def set(self, program: str, mapping: str, key: str, value: str) -> None:
        self.mappings[(program, mapping, key)] = value

    def set_poll(self, key: str, *, status="0u8", pool_a="0u64", pool_b="0u64", total=None, bets="0u64", winner="0u8"):
        total = total if total is not None else f"{int(pool_a[:-3]) + int(pool_b[:-3])}u64"
        for mapping, value in (
            ("poll_status", status),
            ("pool_option_1", pool_a),
            ("pool_option_2", pool_b),
            ("total_pool", total),
            ("total_bets_count", bets),
            ("winning_option", winner),
        ):
            self.set(BETTING, mapping, key, value)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request.url.path)
        parts = request.url.path.strip("/").split("/")
        # v1 / testnet / program / {program} [/ mapping / {name} / {key}]
        program = parts[3]
        if len(parts) == 4:
            return httpx.Response(200 if program in self.deployed else 404, text="program")
        mapping, key = parts[5], parts[6]
        if key in self.unreachable_keys:
            raise httpx.ConnectError("connection refused", request=request)
        value = self.mappings.get((program, mapping, key))
        if value is None:
            return httpx.Response(404, text="Mapping key not found")
        return httpx.Response(200, text=f'"{value}"')

    def reader(self) -> LedgerReader:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return LedgerReader(LEDGER_BASE, "testnet", client=client)


@pytest.fixture
def fake_ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def store(tmp_path: Path):
    s = LocalStore(tmp_path / "test.duckdb").open()
    yield s
    s.close()


def make_poll(
    poll_id: str,
    ledger_id: str | None = None,
    *,
    category: str = "Crypto",
    created_at: int = 1_700_000_000_000,
    question: str = "Will BTC close above 100k?",
) -> Poll:
    return Poll(
        id=poll_id,
        poll_id_onchain=ledger_id,
        question=question,
        option_a="Yes",
        option_b="No",
        category=category,
        creator_address_hash="creator1field",
        deadline=1_800_000_000,
        created_at=created_at,
    )
