import logging
import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Config:
    """Runtime settings for the dashboard.

    Only the front-end reads the environment; the core takes everything it
    needs as arguments.
    """

    store_path: str = "data/finance.json"
    storage_key: str = "finance-storage"
    log_level: str = "INFO"
    currency_symbol: str = "R$"
    json_indent: int = 2

    def __post_init__(self) -> None:
        if not isinstance(self.store_path, str) or not self.store_path:
            raise ValueError("store_path must be a non-empty string")

        if not isinstance(self.storage_key, str) or not self.storage_key:
            raise ValueError("storage_key must be a non-empty string")

        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"unknown log_level: {self.log_level}")

        if not isinstance(self.json_indent, int) or self.json_indent < 0:
            raise ValueError("json_indent must be a non-negative integer")

    @classmethod
    def from_env(cls) -> "Config":
        defaults = cls()
        return cls(
            store_path=os.getenv("PAYDAY_STORE_PATH", defaults.store_path),
            storage_key=os.getenv("PAYDAY_STORAGE_KEY", defaults.storage_key),
            log_level=os.getenv("PAYDAY_LOG_LEVEL", defaults.log_level),
        )
