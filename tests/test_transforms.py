import json
from pathlib import Path
from datetime import datetime
from decimal import Decimal

import pytest

from budgetcore.domain import Transaction, TransactionType, as_decimal, month_key
from budgetcore.transforms import (
    LedgerError,
    add_transaction,
    budget_transactions,
    expense_transactions,
    income_transactions,
    load_seed,
    parse_transaction,
)

SEED = str(Path(__file__).resolve().parent.parent / "data" / "seed.json")


def make_tx(id, budget_id, amount, t_type, date):
    return Transaction(id=id, budget_id=budget_id, amount=Decimal(amount), type=t_type, date=date)


def test_add_transaction_immutability():
    t1 = make_tx("t1", "b1", "100", TransactionType.INCOME, datetime(2025, 9, 1))
    t2 = make_tx("t2", "b1", "50", TransactionType.EXPENSE, datetime(2025, 9, 2))

    transactions = (t1,)
    new_transactions = add_transaction(transactions, t2)

    assert new_transactions is not transactions
    assert len(new_transactions) == 2
    assert len(transactions) == 1


def test_filters_by_budget_and_type():
    trans = (
        make_tx("t1", "b1", "100", TransactionType.INCOME, datetime(2025, 1, 1)),
        make_tx("t2", "b1", "40", TransactionType.EXPENSE, datetime(2025, 1, 2)),
        make_tx("t3", "b2", "70", TransactionType.INCOME, datetime(2025, 1, 3)),
    )

    assert [t.id for t in budget_transactions(trans, "b1")] == ["t1", "t2"]
    assert [t.id for t in income_transactions(trans)] == ["t1", "t3"]
    assert [t.id for t in expense_transactions(trans)] == ["t2"]


def test_month_key_ignores_day_and_time():
    assert month_key(datetime(2024, 3, 1, 0, 0)) == "2024-03"
    assert month_key(datetime(2024, 3, 31, 23, 59)) == "2024-03"


def test_as_decimal_defaults_to_zero():
    assert as_decimal(None) == Decimal(0)
    assert as_decimal(12.5) == Decimal("12.5")
    assert as_decimal("7") == Decimal("7")


def test_load_seed():
    budgets, transactions = load_seed(SEED)

    assert {b.id for b in budgets} == {"b1", "b2"}
    assert budgets[0].start_balance == Decimal("1000")
    assert budgets[1].start_balance is None
    assert len(transactions) >= 5
    assert all(isinstance(t.amount, Decimal) for t in transactions)
    assert transactions[0].type == TransactionType.INCOME


def test_load_seed_rejects_malformed_record(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({
        "budgets": [],
        "transactions": [{"id": "t1", "budget_id": "b1", "amount": "10", "type": "refund", "date": "2025-01-01"}],
    }))

    with pytest.raises(LedgerError):
        load_seed(str(path))


def test_parse_transaction_requires_date():
    with pytest.raises(LedgerError):
        parse_transaction({"id": "t1", "budget_id": "b1", "amount": "10", "type": "income"})
