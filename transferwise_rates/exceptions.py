"""Exceptions raised by :mod:`transferwise_rates`."""


class TransferwiseRatesError(Exception):
    """Base class for every error raised by this package."""


class MissingCredential(TransferwiseRatesError):
    """Raised when a network fetch is attempted without an access key."""

    def __init__(self, message: str = "No TransferWise access key configured") -> None:
        super().__init__(message)


# Alias of MissingCredential.
NoAccessKey = MissingCredential


class InvalidCache(TransferwiseRatesError):
    """Raised when the cache target cannot be written."""


class TransportFailure(TransferwiseRatesError):
    """Raised when the rates request fails and ``raise_on_failure`` is set."""


class ParseFailure(TransferwiseRatesError):
    """Raised internally when a rates payload is not a JSON list of records."""


class RateUnavailable(TransferwiseRatesError):
    """Raised by :meth:`ExchangeBank.rate` when no rate can be derived."""

    def __init__(self, from_currency: str, to_currency: str) -> None:
        self.from_currency = from_currency
        self.to_currency = to_currency
        super().__init__(f"No rate available for {from_currency} -> {to_currency}")
