"""Ledger (Aleo explorer) reads and value decoding."""

from syncial.ingestion.ledger.client import LedgerReader
from syncial.ingestion.ledger.values import as_field_key, parse_bool, parse_int, read_int

__all__ = ["LedgerReader", "as_field_key", "parse_bool", "parse_int", "read_int"]
