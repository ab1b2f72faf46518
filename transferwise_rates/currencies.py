"""Helpers for handling ISO 4217 currency codes.

The package does not ship a currency catalog.  A code is recognised when it
has the shape of an ISO 4217 alphabetic code (three ASCII letters).  Callers
with a real catalog can pass their own predicate to
:class:`~transferwise_rates.bank.ExchangeBank`.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Optional

CurrencyRecognizer = Callable[[str], bool]

_CODE_RE = re.compile(r"^[A-Z]{3}$")


def normalize_code(value: Any) -> Optional[str]:
    """Return ``value`` as an upper-case code, or ``None`` if it is not a string."""
    if not isinstance(value, str):
        return None
    return value.strip().upper()


def is_currency_code(code: str) -> bool:
    return bool(_CODE_RE.match(code or ""))
