"""Ledger ingestion: mapping reads, reconciliation passes, scheduling."""
