"""TOML config layering."""

from syncial.config import get_settings, load_config
from syncial.config.settings import LEDGER_API_ENV


def _write(path, text):
    path.write_text(text)


def test_defaults_without_config(tmp_path):
    settings = get_settings(config_dir=tmp_path)
    assert settings.db_path == "data/syncial.duckdb"
    assert settings.sync_interval_sec == 30
    assert settings.ledger_network == "testnet"
    assert settings.ledger_timeout_sec is None


def test_profile_overlay_deep_merges(tmp_path):
    _write(tmp_path / "default.toml", '[ledger]\nnetwork = "testnet"\nbetting_program = "b.aleo"\n[sync]\ninterval_sec = 30\n')
    _write(tmp_path / "dev.toml", '[ledger]\nnetwork = "mainnet"\n[sync]\ninterval_sec = 5\n')
    raw = load_config("dev", tmp_path)
    assert raw["ledger"] == {"network": "mainnet", "betting_program": "b.aleo"}
    settings = get_settings("dev", tmp_path)
    assert settings.sync_interval_sec == 5
    assert settings.betting_program == "b.aleo"


def test_env_overrides_ledger_api(tmp_path, monkeypatch):
    monkeypatch.setenv(LEDGER_API_ENV, "http://localhost:3030/v1")
    assert get_settings(config_dir=tmp_path).ledger_api_base == "http://localhost:3030/v1"
