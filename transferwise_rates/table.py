"""In-memory rate storage."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, Iterator, Mapping, Optional, Tuple

Pair = Tuple[str, str]


class RateTable:
    """Mapping of ``(from, to)`` currency pairs to rates.

    The table is replaced as a whole by :meth:`reset` and otherwise only
    grows through :meth:`add_rate`.  All access goes through one re-entrant
    lock; hold :meth:`transaction` to make a sequence of operations atomic.
    """

    def __init__(self) -> None:
        self._rates: Dict[Pair, float] = {}
        self._lock = threading.RLock()
        self.memory_timestamp: Optional[datetime] = None

    @contextmanager
    def transaction(self) -> Iterator["RateTable"]:
        with self._lock:
            yield self

    def reset(self, rates: Mapping[Pair, float], timestamp: datetime) -> None:
        """Replace every rate and the timestamp in one step."""
        new_rates = dict(rates)
        with self._lock:
            self._rates = new_rates
            self.memory_timestamp = timestamp

    def get_rate(self, from_currency: str, to_currency: str) -> Optional[float]:
        with self._lock:
            return self._rates.get((from_currency, to_currency))

    def add_rate(self, from_currency: str, to_currency: str, rate: float) -> float:
        """Store ``rate`` unless the pair is already known; return the stored rate."""
        with self._lock:
            return self._rates.setdefault((from_currency, to_currency), rate)

    def set_rate(self, from_currency: str, to_currency: str, rate: float) -> None:
        with self._lock:
            self._rates[(from_currency, to_currency)] = rate

    def snapshot(self) -> Dict[Pair, float]:
        with self._lock:
            return dict(self._rates)

    def __contains__(self, pair: object) -> bool:
        with self._lock:
            return pair in self._rates

    def __len__(self) -> int:
        with self._lock:
            return len(self._rates)
