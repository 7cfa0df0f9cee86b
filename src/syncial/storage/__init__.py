"""DuckDB-backed local store."""
