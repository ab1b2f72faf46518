"""Top level package for the TransferWise exchange rates client.

Importing from this module exposes the main classes directly:

>>> from transferwise_rates import ExchangeBank
>>> bank = ExchangeBank(access_key="...", cache="rates.json")
>>> bank.get_rate("EUR", "GBP")

The freshness and resolution logic lives in :mod:`.bank` and
:mod:`.resolver`.
"""

from .bank import ExchangeBank  # noqa: F401
from .cache import CacheStore, CallbackCacheStore, FileCacheStore, build_cache_store  # noqa: F401
from .exceptions import (  # noqa: F401
    InvalidCache,
    MissingCredential,
    NoAccessKey,
    ParseFailure,
    RateUnavailable,
    TransferwiseRatesError,
    TransportFailure,
)
from .fetcher import RateFetcher  # noqa: F401
from .settings import BankSettings, get_settings  # noqa: F401
from .table import RateTable  # noqa: F401

__all__ = [
    "BankSettings",
    "CacheStore",
    "CallbackCacheStore",
    "ExchangeBank",
    "FileCacheStore",
    "InvalidCache",
    "MissingCredential",
    "NoAccessKey",
    "ParseFailure",
    "RateFetcher",
    "RateTable",
    "RateUnavailable",
    "TransferwiseRatesError",
    "TransportFailure",
    "build_cache_store",
    "get_settings",
]
