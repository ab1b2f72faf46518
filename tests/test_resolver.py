import pytest

from transferwise_rates.bank import EPOCH
from transferwise_rates.resolver import lookup, resolve
from transferwise_rates.table import RateTable


@pytest.fixture
def table():
    t = RateTable()
    t.reset(
        {
            ("USD", "EUR"): 0.8,
            ("EUR", "USD"): 1 / 0.8,
            ("USD", "GBP"): 0.75,
            ("GBP", "USD"): 1 / 0.75,
        },
        EPOCH,
    )
    return t


def test_direct_lookup(table):
    assert lookup(table, "USD", "EUR") == 0.8


def test_inverse_lookup_is_memoized():
    table = RateTable()
    table.set_rate("USD", "EUR", 0.8)

    assert lookup(table, "EUR", "USD") == pytest.approx(1.25)
    assert table.get_rate("EUR", "USD") == pytest.approx(1.25)


def test_triangulation_through_source(table):
    rate = resolve(table, "USD", "EUR", "GBP")

    assert rate == pytest.approx(0.75 / 0.8)
    assert table.get_rate("EUR", "GBP") == pytest.approx(0.75 / 0.8)


def test_triangulated_inverse_uses_memoized_pair(table):
    eur_gbp = resolve(table, "USD", "EUR", "GBP")

    assert resolve(table, "USD", "GBP", "EUR") == pytest.approx(1 / eur_gbp)


def test_same_currency_is_one(table):
    assert resolve(table, "USD", "EUR", "EUR") == 1.0
    assert resolve(table, "USD", "XYZ", "XYZ") == 1.0
    assert ("EUR", "EUR") not in table


def test_unknown_currency_is_none(table):
    assert resolve(table, "USD", "EUR", "JPY") is None
    assert resolve(table, "USD", "JPY", "EUR") is None
    assert ("EUR", "JPY") not in table


def test_memoization_never_replaces_existing_rate(table):
    table.set_rate("EUR", "GBP", 0.9)

    assert resolve(table, "USD", "EUR", "GBP") == 0.9
    assert table.add_rate("EUR", "GBP", 1.0) == 0.9


def test_reset_replaces_everything(table):
    table.reset({("USD", "CHF"): 0.9}, EPOCH)

    assert table.get_rate("USD", "EUR") is None
    assert len(table) == 1
    assert table.snapshot() == {("USD", "CHF"): 0.9}
