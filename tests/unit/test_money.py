"""Unit tests for money conversion"""

from decimal import Decimal

import pytest

from tropipay_wallet.domain.money import (
    Money,
    convert_account_fields,
    convert_movement_fields,
    convert_simulation_fields,
    format_currency,
    to_display_units,
    to_minor_units,
)


def test_to_minor_units_rounds_half_up():
    """Half a centavo rounds up, anything below rounds down"""
    assert to_minor_units(10.555) == 1056
    assert to_minor_units(10.554) == 1055
    assert to_minor_units(Decimal("0.005")) == 1
    assert to_minor_units("25.10") == 2510


def test_to_minor_units_missing_and_invalid():
    assert to_minor_units(None) == 0
    with pytest.raises(ValueError):
        to_minor_units("abc")
    with pytest.raises(ValueError):
        to_minor_units(True)


def test_to_display_units():
    assert to_display_units(1056) == 10.56
    assert to_display_units(0) == 0.0
    assert to_display_units(None) == 0.0
    assert to_display_units("not a number") == 0.0


def test_display_amount_survives_conversion():
    """Every two decimal display amount up to 1000.00 maps to minor units and back unchanged"""
    for minor in range(100001):
        amount = minor / 100
        assert to_minor_units(amount) == minor
        assert to_display_units(minor) == amount

    for amount in (19.99, 1234.56, 99999.99):
        assert to_display_units(to_minor_units(amount)) == amount


def test_money_arithmetic_same_currency():
    a = Money.from_display(10.50, "USD")
    b = Money.from_minor(250, "USD")

    assert (a + b).minor == 1300
    assert (a - b).display == 8.0
    assert b < a
    assert a <= a
    assert str(a) == "10.50 USD"


def test_money_rejects_mixed_currencies():
    with pytest.raises(ValueError, match="Currency mismatch"):
        Money(100, "USD") + Money(100, "EUR")


def test_convert_account_fields_defaults_available_to_balance():
    """Accounts without `available` report their balance as available"""
    converted = convert_account_fields({"id": "acc-1", "balance": 50000, "blocked": 0})

    assert converted["balance"] == 500.0
    assert converted["available"] == 500.0
    assert converted["pendingIn"] == 0.0
    assert converted["accountId"] == "acc-1"


def test_convert_account_fields_does_not_mutate_input():
    raw = {"accountId": "acc-1", "balance": 100, "available": 50}
    convert_account_fields(raw)
    assert raw["balance"] == 100


def test_convert_movement_fields_optional_amounts():
    converted = convert_movement_fields({"amount": 2500, "balanceBefore": 10000, "fee": 150})

    assert converted["amount"] == 25.0
    assert converted["balanceAfter"] == 0.0
    assert converted["fee"] == 1.5
    assert "destinationAmount" not in converted


def test_convert_simulation_fields():
    converted = convert_simulation_fields(
        {"amountToPay": 10100, "amountToGet": 10000, "fees": 100, "accountLeftBalance": 134900, "requires2FA": True}
    )

    assert converted["amountToPay"] == 101.0
    assert converted["fees"] == 1.0
    assert converted["accountLeftBalance"] == 1349.0
    assert converted["requires2FA"] is True


def test_format_currency():
    assert format_currency(1234.5, "USD") == "$1,234.50"
    assert format_currency(10, "EUR") == "€10.00"
    assert format_currency(99.9, "CUP") == "99.90 CUP"
    with pytest.raises(ValueError):
        format_currency(1, "GBP")
