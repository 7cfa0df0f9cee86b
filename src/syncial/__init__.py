"""Syncial - off-chain index and reconciliation for a ledger-backed prediction feed."""

__version__ = "0.1.0"
