"""
Configuration management using pydantic-settings.

Values come from ZCASH_* environment variables or a .env file.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from zlcore.constants import DEFAULT_FEE_ZATOSHI, DEFAULT_OVERAGE_CEILING


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ZCASH_", env_file=".env", env_file_encoding="utf-8", case_sensitive=False
    )

    network: Literal["mainnet", "testnet", "regtest"] = "testnet"
    rpc_url: str = "http://127.0.0.1:18232"
    rpc_user: str = "zcash"
    rpc_password: str = ""
    rpc_timeout: float = Field(default=30.0, gt=0)

    min_confirmations: int = Field(default=1, ge=0)
    fee_zatoshi: int = Field(default=DEFAULT_FEE_ZATOSHI, ge=0)
    overage_ceiling: float = Field(
        default=DEFAULT_OVERAGE_CEILING,
        ge=1.0,
        description="Greedy selection skips inputs pushing the total past this multiple",
    )

    log_level: str = "INFO"


def get_settings() -> Settings:
    return Settings()
