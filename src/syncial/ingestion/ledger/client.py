"""Ledger explorer API client - public mapping reads and program lookups."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

log = structlog.get_logger(__name__)

DEFAULT_API_BASE = "https://api.explorer.aleo.org/v1"


class LedgerReader:
    """Reads public mapping values over HTTP.

    Every read is a single GET with no retry. Non-success statuses and
    transport errors come back as None so callers never see an exception.
    """

    def __init__(
        self,
        api_base: str = DEFAULT_API_BASE,
        network: str = "testnet",
        *,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.network = network
        self._owns_client = client is None
        if client is None:
            kwargs: dict[str, Any] = {}
            if timeout is not None:
                kwargs["timeout"] = timeout
            client = httpx.AsyncClient(**kwargs)
        self._client = client

    def program_url(self, program_id: str) -> str:
        return f"{self.api_base}/{self.network}/program/{program_id}"

    def mapping_url(self, program_id: str, mapping_name: str, key: str) -> str:
        return f"{self.program_url(program_id)}/mapping/{mapping_name}/{key}"

    async def _get_text(self, url: str) -> str | None:
        try:
            resp = await self._client.get(url)
        except Exception as e:
            log.warning("ledger_read_failed", url=url, error=str(e))
            return None
        if not resp.is_success:
            log.debug("ledger_read_absent", url=url, status=resp.status_code)
            return None
        return resp.text

    async def read_mapping(self, program_id: str, mapping_name: str, key: str) -> str | None:
        """Return the raw mapping value text, or None if absent/unreachable."""
        return await self._get_text(self.mapping_url(program_id, mapping_name, key))

    async def is_program_deployed(self, program_id: str) -> bool:
        return await self._get_text(self.program_url(program_id)) is not None

    async def check_deployments(self, programs: dict[str, str]) -> dict[str, bool]:
        """Look up each program concurrently. Keys of `programs` are labels (core, betting, ...)."""
        labels = list(programs)
        results = await asyncio.gather(*(self.is_program_deployed(programs[k]) for k in labels))
        status = dict(zip(labels, results))
        status["all_deployed"] = all(results)
        return status

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> LedgerReader:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()
