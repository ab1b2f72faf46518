"""Rate resolution over a :class:`~transferwise_rates.table.RateTable`.

Only rates from the source currency are published by TransferWise, so most
pairs have to be derived.  :func:`lookup` finds a direct rate or derives it
from the inverse pair; :func:`resolve` builds on it and triangulates through
the source currency::

    EUR -> GBP = (USD -> GBP) / (USD -> EUR)

Every derived rate is written back to the table so later lookups are direct.
"""

from __future__ import annotations

from typing import Optional

from .table import RateTable


def lookup(table: RateTable, from_currency: str, to_currency: str) -> Optional[float]:
    """Return the direct rate, or the inverse of the reverse pair."""
    rate = table.get_rate(from_currency, to_currency)
    if rate is not None:
        return rate
    inverse = table.get_rate(to_currency, from_currency)
    if not inverse:
        return None
    return table.add_rate(from_currency, to_currency, 1.0 / inverse)


def resolve(
    table: RateTable, source: str, from_currency: str, to_currency: str
) -> Optional[float]:
    """Return the rate for ``from_currency -> to_currency`` or ``None``.

    Identical currencies always resolve to ``1.0``.  Triangulation only uses
    :func:`lookup` for its two legs, so it never recurses further.
    """
    if from_currency == to_currency:
        return 1.0
    rate = lookup(table, from_currency, to_currency)
    if rate is not None:
        return rate

    to_base = lookup(table, source, to_currency)
    from_base = lookup(table, source, from_currency)
    if not to_base or not from_base:
        return None
    return table.add_rate(from_currency, to_currency, to_base / from_base)
