"""Configuration for :class:`~transferwise_rates.bank.ExchangeBank`.

Values are read from keyword arguments first, then from ``TRANSFERWISE_*``
environment variables and finally from a ``.env`` file in the working
directory::

    TRANSFERWISE_ACCESS_KEY=...
    TRANSFERWISE_TTL_IN_SECONDS=86400
    TRANSFERWISE_CACHE_PATH=/var/cache/rates.json
"""

from __future__ import annotations

import ssl
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .currencies import is_currency_code, normalize_code

DEFAULT_SOURCE = "USD"
DEFAULT_SSL_VERSION = "TLSv1_2"


class BankSettings(BaseSettings):
    access_key: Optional[str] = None
    source: str = DEFAULT_SOURCE
    # 0 means the rates never expire by age
    ttl_in_seconds: int = Field(default=0, ge=0)
    use_sandbox: bool = False
    ssl_version: str = DEFAULT_SSL_VERSION
    raise_on_failure: bool = True
    cache_path: Optional[Path] = None
    timeout: float = Field(default=5.0, gt=0)

    model_config = SettingsConfigDict(
        env_prefix="TRANSFERWISE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    @field_validator("source", mode="before")
    @classmethod
    def _coerce_source(cls, value: object) -> str:
        code = normalize_code(value)
        if code and is_currency_code(code):
            return code
        return DEFAULT_SOURCE

    @field_validator("ssl_version")
    @classmethod
    def _check_ssl_version(cls, value: str) -> str:
        normalized = value.replace(".", "_")
        if normalized not in ssl.TLSVersion.__members__:
            raise ValueError(f"Unknown TLS version: {value!r}")
        return normalized

    @property
    def tls_version(self) -> ssl.TLSVersion:
        return ssl.TLSVersion[self.ssl_version]


@lru_cache
def get_settings() -> BankSettings:
    return BankSettings()
