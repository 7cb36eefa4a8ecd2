from __future__ import annotations

from datetime import date

import pytest

from conftest import brokerage_csv, brokerage_row
from ledger_insights.errors import LedgerParseError
from ledger_insights.models import CashType, TradeSide, TransCode
from ledger_insights.parsing import classify_cash, parse_amount, parse_brokerage_csv


def single_cash_row(amount: str, description: str):
    ledger = parse_brokerage_csv(brokerage_csv(brokerage_row("1/2/2024", "ACH", amount, description=description)))
    assert len(ledger.cash_transactions) == 1
    return ledger.cash_transactions[0]


def test_ach_outflow_is_withdrawal():
    tx = single_cash_row("-50.00", "Visa Debit")
    assert tx.type is CashType.WITHDRAWAL
    assert tx.amount == -50


def test_ach_inflow_is_deposit():
    tx = single_cash_row("50.00", "Visa Debit")
    assert tx.type is CashType.DEPOSIT
    assert tx.amount == 50


def test_ach_fee_description_is_fee():
    tx = single_cash_row("-5.00", "Monthly Fee")
    assert tx.type is CashType.FEE
    assert tx.amount == -5


@pytest.mark.parametrize(
    "code, amount, expected",
    [
        (TransCode.CASH_DIVIDEND, 1.25, CashType.DIVIDEND),
        (TransCode.INTEREST, 0.4, CashType.INTEREST),
        (TransCode.SLIP, 0.1, CashType.INTEREST),
        (TransCode.GOLD, -5.0, CashType.FEE),
        (TransCode.MARGIN_INTEREST, -2.0, CashType.FEE),
        (TransCode.MISC, 3.0, CashType.INTEREST),
        (TransCode.FUTURES_SWEEP, -3.0, CashType.FEE),
        (TransCode.RTP, 20.0, CashType.DEPOSIT),
    ],
)
def test_classify_cash_codes(code, amount, expected):
    assert classify_cash(code, amount) is expected


def test_buy_and_sell_emit_stock_and_cash_legs():
    text = brokerage_csv(
        brokerage_row("1/2/2024", "Buy", "($500.00)", instrument="ABC", quantity="5", price="$100.00"),
        brokerage_row("2/1/2024", "Sell", "$330.00", instrument="ABC", quantity="3", price="$110.00"),
    )
    ledger = parse_brokerage_csv(text)

    buy, sell = ledger.stock_transactions
    assert buy.type is TradeSide.BUY
    assert (buy.quantity, buy.price, buy.amount) == (5, 100, 500)
    assert sell.type is TradeSide.SELL
    assert sell.quantity == 3
    assert sell.date == date(2024, 2, 1)

    buy_leg, sell_leg = ledger.cash_transactions
    assert buy_leg.amount == -500
    assert buy_leg.type is CashType.FEE
    assert buy_leg.source_code is TransCode.BUY
    assert sell_leg.amount == 330
    assert sell_leg.type is CashType.DIVIDEND
    assert sell_leg.ticker == "ABC"


def test_received_shares_have_no_cost_basis():
    ledger = parse_brokerage_csv(
        brokerage_csv(brokerage_row("3/1/2024", "REC", instrument="ABC", quantity="2"))
    )
    (tx,) = ledger.stock_transactions
    assert tx.source_code is TransCode.RECEIVED
    assert tx.type is TradeSide.BUY
    assert (tx.quantity, tx.price, tx.amount) == (2, 0, 0)
    assert ledger.cash_transactions == []


def test_unknown_codes_and_malformed_rows_are_counted():
    text = brokerage_csv(
        brokerage_row("1/2/2024", "ACH", "100.00", description="Deposit"),
        brokerage_row("1/3/2024", "OEXP", "0.00", instrument="ABC"),
        brokerage_row("1/4/2024", "OEXP", "0.00", instrument="ABC"),
        brokerage_row("not a date", "ACH", "10.00"),
        brokerage_row("1/5/2024", "ACH", "ten dollars"),
        brokerage_row("1/6/2024", "Buy", "(10.00)", instrument="ABC", quantity="1"),
    )
    ledger = parse_brokerage_csv(text)
    diagnostics = ledger.diagnostics

    assert len(ledger.cash_transactions) == 1
    assert diagnostics.total_rows == 6
    assert diagnostics.parsed_rows == 1
    assert diagnostics.dropped_rows == 3
    assert diagnostics.unrecognized_codes == {"OEXP": 2}
    assert {"ACH", "OEXP", "Buy"} <= diagnostics.codes_seen


def test_disclaimer_footer_row_is_dropped():
    text = brokerage_csv(
        brokerage_row("1/2/2024", "ACH", "100.00", description="Deposit"),
        '"","","","","","","","","The data provided is for informational purposes only."',
    )
    ledger = parse_brokerage_csv(text)
    assert len(ledger.cash_transactions) == 1
    assert ledger.diagnostics.dropped_rows == 1


def test_streams_are_sorted_ascending():
    text = brokerage_csv(
        brokerage_row("3/1/2024", "ACH", "10.00", description="Deposit"),
        brokerage_row("1/1/2024", "ACH", "20.00", description="Deposit"),
        brokerage_row("2/1/2024", "INT", "0.50"),
    )
    ledger = parse_brokerage_csv(text)
    dates = [tx.date for tx in ledger.cash_transactions]
    assert dates == sorted(dates)


def test_missing_required_column_raises():
    with pytest.raises(LedgerParseError):
        parse_brokerage_csv("Activity Date,Instrument\n1/2/2024,ABC\n")


def test_empty_export_raises():
    with pytest.raises(LedgerParseError):
        parse_brokerage_csv("   \n")


def test_bytes_with_bom_are_accepted():
    text = brokerage_csv(brokerage_row("1/2/2024", "ACH", "25.00", description="Deposit"))
    ledger = parse_brokerage_csv(("\ufeff" + text).encode("utf-8"))
    assert ledger.cash_transactions[0].amount == 25


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("$1,234.50", 1234.5),
        ("($42.10)", -42.1),
        ("-7", -7.0),
        ("", None),
        ("abc", None),
        ("nan", None),
    ],
)
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == expected


def test_parse_amount_blank_default():
    assert parse_amount("  ", empty=0.0) == 0.0
