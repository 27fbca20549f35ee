import json
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Tuple

from budgetcore.domain import Budget, Transaction, TransactionType


class LedgerError(RuntimeError):
    """Raised by a ledger store when its records cannot be read."""


def parse_budget(raw: dict) -> Budget:
    start = raw.get("start_balance")
    try:
        return Budget(
            id=str(raw["id"]),
            start_balance=None if start is None else Decimal(str(start)),
            name=raw.get("name", ""),
        )
    except (KeyError, InvalidOperation) as e:
        raise LedgerError(f"malformed budget record {raw!r}") from e


def parse_transaction(raw: dict) -> Transaction:
    try:
        return Transaction(
            id=str(raw["id"]),
            budget_id=str(raw["budget_id"]),
            amount=Decimal(str(raw["amount"])),
            type=TransactionType(raw["type"]),
            date=datetime.fromisoformat(raw["date"]),
            category=raw.get("category", ""),
            description=raw.get("description", ""),
        )
    except (KeyError, ValueError, TypeError, InvalidOperation) as e:
        raise LedgerError(f"malformed transaction record {raw!r}") from e


def load_seed(path: str) -> Tuple[Tuple[Budget, ...], Tuple[Transaction, ...]]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    budgets = tuple(parse_budget(b) for b in data.get("budgets", []))
    transactions = tuple(parse_transaction(t) for t in data.get("transactions", []))

    return budgets, transactions


def add_transaction(
    trans: Tuple[Transaction, ...], t: Transaction
) -> Tuple[Transaction, ...]:
    return trans + (t,)


def budget_transactions(trans: Tuple[Transaction, ...], budget_id: str) -> Tuple[Transaction, ...]:
    return tuple(filter(lambda t: t.budget_id == budget_id, trans))


def income_transactions(trans: Tuple[Transaction, ...]) -> Tuple[Transaction, ...]:
    return tuple(filter(lambda t: t.type == TransactionType.INCOME, trans))


def expense_transactions(trans: Tuple[Transaction, ...]) -> Tuple[Transaction, ...]:
    return tuple(filter(lambda t: t.type == TransactionType.EXPENSE, trans))


def transactions_of_type(trans: Tuple[Transaction, ...], t_type: TransactionType) -> Tuple[Transaction, ...]:
    if t_type == TransactionType.INCOME:
        return income_transactions(trans)
    return expense_transactions(trans)
