import pytest

from payday.config import Config


def test_defaults():
    config = Config()
    assert config.store_path == "data/finance.json"
    assert config.storage_key == "finance-storage"


def test_from_env(monkeypatch):
    monkeypatch.setenv("PAYDAY_STORE_PATH", "/tmp/payday.json")
    monkeypatch.setenv("PAYDAY_LOG_LEVEL", "debug")
    config = Config.from_env()
    assert config.store_path == "/tmp/payday.json"
    assert config.log_level == "debug"
    assert config.storage_key == "finance-storage"


def test_rejects_bad_values():
    with pytest.raises(ValueError):
        Config(store_path="")
    with pytest.raises(ValueError):
        Config(log_level="LOUD")
    with pytest.raises(ValueError):
        Config(json_indent=-1)
