from __future__ import annotations

import random
from datetime import datetime, timedelta

import pytest

from conftest import brokerage_csv, brokerage_row
from ledger_insights.models import CashType, StockTransaction, TradeSide, TransCode
from ledger_insights.parsing import parse_brokerage_csv
from ledger_insights.portfolio import compute_portfolio_at
from ledger_insights.splits import adjust_for_splits, find_split_ratios, replay_key

DAY_0 = datetime(2024, 1, 2)


def stock_tx(day: int, code: TransCode, quantity: float, price: float = 0.0, ticker: str = "XYZ") -> StockTransaction:
    timestamp = DAY_0 + timedelta(days=day)
    side = TradeSide.SELL if code is TransCode.SELL else TradeSide.BUY
    return StockTransaction(
        date=timestamp.date(),
        timestamp=timestamp,
        ticker=ticker,
        type=side,
        quantity=quantity,
        price=price,
        amount=quantity * price,
        source_code=code,
    )


def test_split_conserves_notional_and_zeroes_split_row():
    result = adjust_for_splits(
        [
            stock_tx(0, TransCode.BUY, 4, 90.0),
            stock_tx(10, TransCode.SPLIT, 8),
        ]
    )
    buy, split = result.transactions
    assert buy.quantity == pytest.approx(12)
    assert buy.price == pytest.approx(30.0)
    assert buy.quantity * buy.price == pytest.approx(360.0)
    assert (split.quantity, split.price) == (0.0, 0.0)
    assert result.diagnostics.splits_applied == 1


def test_rows_after_split_are_unchanged():
    sell = stock_tx(40, TransCode.SELL, 3, 25.0)
    result = adjust_for_splits([stock_tx(0, TransCode.BUY, 2, 100.0), stock_tx(20, TransCode.SPLIT, 2), sell])
    assert result.transactions[-1] == sell


def test_consecutive_splits_compound():
    result = adjust_for_splits(
        [
            stock_tx(0, TransCode.BUY, 1, 120.0),
            stock_tx(10, TransCode.SPLIT, 1),
            stock_tx(20, TransCode.SPLIT, 4),
        ]
    )
    buy = result.transactions[0]
    assert buy.quantity == pytest.approx(6)
    assert buy.price == pytest.approx(20.0)


def test_transfer_in_keeps_zero_price():
    result = adjust_for_splits([stock_tx(0, TransCode.RECEIVED, 5), stock_tx(5, TransCode.SPLIT, 5)])
    received = result.transactions[0]
    assert received.quantity == pytest.approx(10)
    assert received.price == 0.0


def test_split_without_position_is_ignored():
    orphan = stock_tx(0, TransCode.SPLIT, 5)
    ratios, ignored = find_split_ratios([orphan])
    assert ratios == []
    assert ignored == 1

    result = adjust_for_splits([orphan, stock_tx(10, TransCode.BUY, 1, 10.0)])
    assert result.diagnostics.ignored_splits == 1
    assert result.transactions[1].quantity == 1


def test_negative_holdings_are_flagged_not_corrected():
    result = adjust_for_splits([stock_tx(0, TransCode.BUY, 1, 10.0), stock_tx(1, TransCode.SELL, 3, 10.0)])
    assert result.diagnostics.negative_holdings == {"XYZ"}
    assert result.transactions[1].quantity == 3


def test_adjustment_is_order_independent():
    history = [
        stock_tx(0, TransCode.BUY, 5, 100.0),
        stock_tx(3, TransCode.BUY, 1, 110.0, ticker="ABC"),
        stock_tx(15, TransCode.BUY, 2, 80.0),
        stock_tx(30, TransCode.SPLIT, 7),
        stock_tx(30, TransCode.BUY, 1, 40.0),
        stock_tx(45, TransCode.SPLIT, 1, ticker="ABC"),
        stock_tx(60, TransCode.SELL, 10, 60.0),
    ]
    expected = adjust_for_splits(history).transactions

    shuffled = list(history)
    random.Random(7).shuffle(shuffled)
    assert adjust_for_splits(shuffled).transactions == expected


def test_adjusting_raw_input_twice_gives_same_result():
    history = [stock_tx(0, TransCode.BUY, 5, 100.0), stock_tx(30, TransCode.SPLIT, 5)]
    assert adjust_for_splits(history).transactions == adjust_for_splits(history).transactions


def test_same_day_buy_is_counted_before_split():
    same_day_buy = stock_tx(30, TransCode.BUY, 5, 50.0)
    split = stock_tx(30, TransCode.SPLIT, 10)
    ordered = sorted([split, same_day_buy, stock_tx(0, TransCode.BUY, 5, 100.0)], key=replay_key)
    assert ordered[-1] is split
    ratios, _ = find_split_ratios(ordered)
    assert ratios[0][1] == pytest.approx(2.0)

    early, same_day, zeroed = adjust_for_splits(ordered).transactions
    assert early.quantity == pytest.approx(10)
    assert early.price == pytest.approx(50.0)
    assert same_day.quantity == pytest.approx(10)
    assert same_day.price == pytest.approx(25.0)
    assert zeroed.quantity == 0.0


def test_same_day_buy_and_split_export_keeps_broker_holdings():
    text = brokerage_csv(
        brokerage_row("1/2/2024", "Buy", "($500.00)", instrument="XYZ", quantity="5", price="$100.00"),
        brokerage_row("2/1/2024", "Buy", "($250.00)", instrument="XYZ", quantity="5", price="$50.00"),
        brokerage_row("2/1/2024", "SPL", instrument="XYZ", description="Forward Split", quantity="10"),
    )
    ledger = parse_brokerage_csv(text)
    portfolio = compute_portfolio_at(ledger.stock_transactions, ledger.cash_transactions, datetime(2024, 2, 2))
    assert portfolio.holdings == {"XYZ": pytest.approx(20.0)}


def test_buy_split_sell_export_end_to_end():
    text = brokerage_csv(
        brokerage_row("1/2/2024", "Buy", "($500.00)", instrument="XYZ", quantity="5", price="$100.00"),
        brokerage_row("2/1/2024", "SPL", instrument="XYZ", description="Forward Split", quantity="5"),
        brokerage_row("3/2/2024", "Sell", "$600.00", instrument="XYZ", quantity="10", price="$60.00"),
    )
    ledger = parse_brokerage_csv(text)
    buy, split, sell = ledger.stock_transactions

    assert buy.quantity == pytest.approx(10)
    assert buy.price == pytest.approx(50.0)
    assert split.source_code is TransCode.SPLIT
    assert (split.quantity, split.price) == (0.0, 0.0)
    assert (sell.quantity, sell.price) == (10, 60.0)
    assert ledger.split_diagnostics.splits_applied == 1

    sell_leg = ledger.cash_transactions[-1]
    assert sell_leg.amount == 600
    assert sell_leg.type is CashType.DIVIDEND
