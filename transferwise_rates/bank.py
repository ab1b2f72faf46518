"""Exchange rates from TransferWise with caching and derived pairs.

:class:`ExchangeBank` keeps an in-memory :class:`~transferwise_rates.table.RateTable`
filled from the TransferWise rates API and answers ``get_rate(from, to)``
for any pair it can derive from that data:

>>> bank = ExchangeBank(access_key="...", cache="/tmp/rates.json", ttl_in_seconds=86400)
>>> bank.get_rate("EUR", "GBP")
0.8571...

Freshness
---------
Before every query the bank checks whether its rates are still usable:

* **expired** - the rates in memory are older than ``ttl_in_seconds``.  They
  are fetched again from the network and the cache is rewritten.
* **stale** - the cache holds a different timestamp than the rates in memory,
  which means another process already refreshed it.  The rates are reloaded
  from the cache without touching the network.

Update strategies
-----------------
``update_rates()`` is *careful*: it reads the cache first and only goes to
the network if the cache is missing or unparseable.  ``update_rates(True)`` is
*straight*: it goes to the network first and only reads the cache if the
response cannot be parsed.  Each strategy falls back to the other at most
once, so a corrupt cache combined with a corrupt response ends with no rates
instead of looping.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from . import resolver
from .cache import CacheStore, CacheTarget, build_cache_store
from .currencies import CurrencyRecognizer, is_currency_code, normalize_code
from .exceptions import ParseFailure, RateUnavailable
from .fetcher import RateFetcher
from .settings import BankSettings, get_settings
from .table import Pair, RateTable

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

Record = Dict[str, Any]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_rates(text: Optional[str]) -> List[Record]:
    """Parse a rates payload into a list of records.

    Raises
    ------
    ParseFailure
        If ``text`` is missing, is not JSON or is not a list of objects.
    """
    if text is None:
        raise ParseFailure("No rates payload")
    try:
        records = json.loads(text)
    except (TypeError, ValueError) as exc:
        raise ParseFailure(f"Rates payload is not valid JSON: {exc}") from exc
    if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
        raise ParseFailure("Rates payload is not a list of rate records")
    return records


def valid_rates(text: Optional[str]) -> bool:
    """Return ``True`` if ``text`` is worth writing to the cache."""
    try:
        records = parse_rates(text)
    except ParseFailure:
        return False
    return bool(records) and bool(records[0])


def parse_timestamp(value: Any) -> datetime:
    """Parse the ``time`` field of a record; anything unusable gives the epoch."""
    if not isinstance(value, str):
        return EPOCH
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        try:
            # TransferWise sends offsets such as "+0000"
            parsed = datetime.strptime(value, "%Y-%m-%dT%H:%M:%S%z")
        except ValueError:
            logger.warning("Ignoring unparseable rates timestamp %r", value)
            return EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def records_timestamp(records: List[Record]) -> datetime:
    if records and "time" in records[0]:
        return parse_timestamp(records[0]["time"])
    return EPOCH


class ExchangeBank:
    """Currency rates backed by the TransferWise API.

    Parameters
    ----------
    settings : BankSettings, optional
        Configuration.  When omitted a copy of :func:`get_settings` is used,
        or a new instance built from ``options`` if any are given.
    cache : CacheStore, path or callable, optional
        Where the raw payload is kept.  Defaults to ``settings.cache_path``.
        With no cache every refresh goes to the network.
    fetcher : RateFetcher, optional
        Network client.  Built from the settings when omitted.
    currency_recognizer : callable, optional
        Predicate deciding which target currencies are kept.  Records for
        unrecognised codes are dropped.
    **options
        Any :class:`BankSettings` field, overriding ``settings``.
    """

    def __init__(
        self,
        settings: Optional[BankSettings] = None,
        *,
        cache: CacheTarget = None,
        fetcher: Optional[RateFetcher] = None,
        currency_recognizer: CurrencyRecognizer = is_currency_code,
        **options: Any,
    ) -> None:
        if options:
            base = settings.model_dump() if settings is not None else {}
            settings = BankSettings(**{**base, **options})
        # private copy; the source setter assigns to it
        self.settings = settings.model_copy() if settings is not None else get_settings().model_copy()
        self.cache: Optional[CacheStore] = build_cache_store(
            cache if cache is not None else self.settings.cache_path
        )
        self.fetcher = fetcher or RateFetcher(
            self.settings.access_key,
            source=self.settings.source,
            use_sandbox=self.settings.use_sandbox,
            tls_version=self.settings.tls_version,
            raise_on_failure=self.settings.raise_on_failure,
            timeout=self.settings.timeout,
        )
        self.currency_recognizer = currency_recognizer
        self.table = RateTable()
        self._rates: List[Record] = []

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    @property
    def source(self) -> str:
        return self.settings.source

    @source.setter
    def source(self, value: str) -> None:
        self.settings.source = value
        self.fetcher.source = self.settings.source

    @property
    def ttl_in_seconds(self) -> int:
        return self.settings.ttl_in_seconds

    @property
    def rates(self) -> List[Record]:
        """The records returned by the last update attempt."""
        return self._rates

    @property
    def rates_mem_timestamp(self) -> Optional[datetime]:
        return self.table.memory_timestamp

    # ------------------------------------------------------------------
    # Rate queries
    # ------------------------------------------------------------------
    def get_rate(self, from_currency: str, to_currency: str) -> Optional[float]:
        """Return the rate for ``from_currency -> to_currency``.

        The rates are refreshed first if they are expired or stale.  ``None``
        is returned when the pair cannot be derived from the known rates.
        """
        from_code = normalize_code(from_currency)
        to_code = normalize_code(to_currency)
        if not from_code or not to_code:
            return None
        with self.table.transaction():
            self.expire_rates()
            return resolver.resolve(self.table, self.source, from_code, to_code)

    def rate(self, from_currency: str, to_currency: str) -> float:
        """Like :meth:`get_rate` but raises :class:`RateUnavailable` instead of returning ``None``."""
        value = self.get_rate(from_currency, to_currency)
        if value is None:
            raise RateUnavailable(from_currency, to_currency)
        return value

    def add_rate(self, from_currency: str, to_currency: str, rate: float) -> float:
        return self.table.add_rate(*self._pair(from_currency, to_currency), float(rate))

    def set_rate(self, from_currency: str, to_currency: str, rate: float) -> None:
        self.table.set_rate(*self._pair(from_currency, to_currency), float(rate))

    @staticmethod
    def _pair(from_currency: str, to_currency: str) -> Pair:
        from_code = normalize_code(from_currency)
        to_code = normalize_code(to_currency)
        if not from_code or not to_code:
            raise ValueError(f"Invalid currency pair: {from_currency!r} -> {to_currency!r}")
        return from_code, to_code

    # ------------------------------------------------------------------
    # Freshness
    # ------------------------------------------------------------------
    def expire_rates(self) -> bool:
        """Refresh the rates if they are expired or stale.

        Returns ``True`` if an update was attempted.
        """
        with self.table.transaction():
            if self.expired():
                logger.debug("Rates expired, fetching from %s", self.fetcher.service_host)
                self.update_rates(straight=True)
                return True
            if self.stale():
                logger.debug("Rates stale, reloading")
                self.update_rates()
                return True
            return False

    def expired(self) -> bool:
        expiration = self.rates_expiration()
        return expiration is not None and _utcnow() > expiration

    def stale(self) -> bool:
        """True if no rates were loaded yet or the cache was refreshed elsewhere."""
        memory_timestamp = self.table.memory_timestamp
        if memory_timestamp is None:
            return True
        cache_timestamp = self.rates_timestamp()
        return cache_timestamp is not None and cache_timestamp != memory_timestamp

    def rates_expiration(self) -> Optional[datetime]:
        """When the rates in memory expire, or ``None`` if they never do."""
        memory_timestamp = self.table.memory_timestamp
        if not self.ttl_in_seconds or memory_timestamp is None:
            return None
        return memory_timestamp + timedelta(seconds=self.ttl_in_seconds)

    def rates_timestamp(self) -> Optional[datetime]:
        """Timestamp of the cached payload, or ``None`` if nothing usable is cached."""
        if self.cache is None:
            return None
        try:
            records = parse_rates(self.cache.read())
        except ParseFailure:
            return None
        if not records:
            return None
        return records_timestamp(records)

    # ------------------------------------------------------------------
    # Updating
    # ------------------------------------------------------------------
    def update_rates(self, straight: bool = False) -> List[Record]:
        """Reload the rate table.

        Parameters
        ----------
        straight : bool, optional
            Fetch from the network first instead of the cache.

        Returns
        -------
        list of dict
            The records that were applied, or an empty list when no rates
            were available and the table was left untouched.
        """
        with self.table.transaction():
            records = self._exchange_rates(straight)
            if not records or not records[0]:
                return []
            source = self.source
            new_rates: Dict[Pair, float] = {}
            for record in records:
                target = normalize_code(record.get("target"))
                rate = self._record_rate(record)
                if not target or rate is None or not self.currency_recognizer(target):
                    continue
                new_rates[(source, target)] = rate
                new_rates[(target, source)] = 1.0 / rate
            timestamp = records_timestamp(records)
            self.table.reset(new_rates, timestamp)
        logger.info(
            "Loaded %d rates for %s (timestamp %s)", len(new_rates) // 2, source, timestamp.isoformat()
        )
        return records

    @staticmethod
    def _record_rate(record: Record) -> Optional[float]:
        value = record.get("rate")
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            return None
        try:
            rate = float(value)
        except (ValueError, OverflowError):
            return None
        if not math.isfinite(rate) or rate <= 0:
            return None
        return rate

    def _exchange_rates(self, straight: bool) -> List[Record]:
        self._rates = self._raw_rates_straight() if straight else self._raw_rates_careful()
        return self._rates

    def _raw_rates_careful(self, rescue_straight: bool = True) -> List[Record]:
        text = self.cache.read() if self.cache is not None else None
        try:
            return parse_rates(text)
        except ParseFailure as exc:
            if rescue_straight:
                logger.debug("No usable cached rates (%s), fetching from network", exc)
                return self._raw_rates_straight()
            logger.warning("Neither the network nor the cache returned usable rates")
            return []

    def _raw_rates_straight(self) -> List[Record]:
        try:
            return parse_rates(self._read_from_url())
        except ParseFailure as exc:
            logger.warning("Could not parse rates response (%s), using cached rates", exc)
            return self._raw_rates_careful(rescue_straight=False)

    def _read_from_url(self) -> str:
        text = self.fetcher.fetch()
        if self.cache is not None and valid_rates(text):
            self.cache.write(text)
        return text
