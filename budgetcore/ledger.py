"""Read-only query interface over a transaction store.

The engine only ever talks to a ledger through ``LedgerQuery``. Two stores are
provided: ``InMemoryLedger`` over a tuple of transactions and ``FrameLedger``
over a pandas DataFrame loaded from a seed file.
"""
import asyncio
import logging
from datetime import datetime
from abc import ABC, abstractmethod
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

import pandas as pd

from budgetcore.domain import Budget, MonthlyBucket, Transaction, TransactionType, as_decimal, month_key
from budgetcore.transforms import (
    LedgerError,
    add_transaction,
    budget_transactions,
    load_seed,
    transactions_of_type,
)

logger = logging.getLogger(__name__)

__all__ = ["LedgerQuery", "InMemoryLedger", "FrameLedger", "LedgerError"]


class LedgerQuery(ABC):

    @abstractmethod
    async def sum_by_type(self, budget_id: str, t_type: TransactionType) -> Decimal:
        """Sum of amounts for one budget and type, 0 when nothing matches."""

    @abstractmethod
    async def sum_income_and_expense(self, budget_id: str) -> Tuple[Decimal, Decimal]:
        """Income and expense sums for one budget in a single pass."""

    @abstractmethod
    async def monthly_buckets(self, budget_id: str, t_type: TransactionType) -> List[MonthlyBucket]:
        """One bucket per calendar month with activity, ordered by ascending sum."""


def _sort_buckets(totals: Dict[str, Decimal]) -> List[MonthlyBucket]:
    # sorted() is stable, so equal sums keep chronological order
    ordered = sorted(sorted(totals.items()), key=lambda item: item[1])
    return [MonthlyBucket(year_month=ym, sum=total) for ym, total in ordered]


def _strip_tz(value):
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.replace(tzinfo=None)
    return value


def _wall_clock_dates(dates: pd.Series) -> pd.Series:
    """Naive datetimes in each value's own local time, as ``month_key`` reads them."""
    if isinstance(dates.dtype, pd.DatetimeTZDtype):
        return dates.dt.tz_localize(None)
    if pd.api.types.is_datetime64_any_dtype(dates):
        return dates
    return pd.to_datetime(dates.map(_strip_tz))


class InMemoryLedger(LedgerQuery):

    def __init__(self, transactions: Iterable[Transaction] = ()):
        self._transactions: Tuple[Transaction, ...] = tuple(transactions)

    @property
    def transactions(self) -> Tuple[Transaction, ...]:
        return self._transactions

    def with_transaction(self, t: Transaction) -> "InMemoryLedger":
        return type(self)(add_transaction(self._transactions, t))

    async def sum_by_type(self, budget_id: str, t_type: TransactionType) -> Decimal:
        matching = transactions_of_type(budget_transactions(self._transactions, budget_id), t_type)
        await asyncio.sleep(0)  # cooperate
        return sum((t.amount for t in matching), Decimal(0))

    async def sum_income_and_expense(self, budget_id: str) -> Tuple[Decimal, Decimal]:
        income = Decimal(0)
        expense = Decimal(0)
        for t in budget_transactions(self._transactions, budget_id):
            if t.type == TransactionType.INCOME:
                income += t.amount
            else:
                expense += t.amount
        await asyncio.sleep(0)
        return income, expense

    async def monthly_buckets(self, budget_id: str, t_type: TransactionType) -> List[MonthlyBucket]:
        monthly: Dict[str, Decimal] = defaultdict(Decimal)
        for t in transactions_of_type(budget_transactions(self._transactions, budget_id), t_type):
            monthly[month_key(t.date)] += t.amount
        await asyncio.sleep(0)
        return _sort_buckets(monthly)


class FrameLedger(LedgerQuery):
    """Ledger backed by a DataFrame with budget_id, type, amount and date columns.

    Amounts are kept as ``Decimal`` objects in an object column so sums stay exact.
    """

    COLUMNS = ["id", "budget_id", "amount", "type", "date", "category", "description"]

    def __init__(self, frame: pd.DataFrame, budgets: Iterable[Budget] = ()):
        missing = [c for c in ("budget_id", "amount", "type", "date") if c not in frame.columns]
        if missing:
            raise LedgerError(f"Missing required columns: {missing}")
        frame = frame.copy()
        try:
            frame["date"] = _wall_clock_dates(frame["date"])
        except (ValueError, TypeError) as e:
            raise LedgerError(f"Unreadable date column: {e}") from e
        self._frame = frame
        self.budgets: Dict[str, Budget] = {b.id: b for b in budgets}

    @classmethod
    def from_transactions(cls, transactions: Iterable[Transaction], budgets: Iterable[Budget] = ()) -> "FrameLedger":
        rows = [
            {
                "id": t.id,
                "budget_id": t.budget_id,
                "amount": t.amount,
                "type": TransactionType(t.type).value,
                "date": t.date,
                "category": t.category,
                "description": t.description,
            }
            for t in transactions
        ]
        frame = pd.DataFrame(rows, columns=cls.COLUMNS)
        frame["amount"] = frame["amount"].astype(object)
        return cls(frame, budgets)

    @classmethod
    def from_seed(cls, path: str) -> "FrameLedger":
        budgets, transactions = load_seed(path)
        logger.info("Loaded %d budgets and %d transactions from %s", len(budgets), len(transactions), path)
        return cls.from_transactions(transactions, budgets)

    def budget(self, budget_id: str) -> Budget:
        """Budget descriptor by id; unknown budgets get a zero start balance."""
        return self.budgets.get(budget_id, Budget(id=budget_id))

    def _select(self, budget_id: str, t_type: TransactionType = None) -> pd.DataFrame:
        mask = self._frame["budget_id"] == budget_id
        if t_type is not None:
            mask &= self._frame["type"] == TransactionType(t_type).value
        return self._frame.loc[mask]

    async def sum_by_type(self, budget_id: str, t_type: TransactionType) -> Decimal:
        rows = self._select(budget_id, t_type)
        await asyncio.sleep(0)
        if rows.empty:
            return Decimal(0)
        return as_decimal(rows["amount"].sum())

    async def sum_income_and_expense(self, budget_id: str) -> Tuple[Decimal, Decimal]:
        rows = self._select(budget_id)
        await asyncio.sleep(0)
        if rows.empty:
            return Decimal(0), Decimal(0)
        totals = rows.groupby("type")["amount"].sum()
        return (
            as_decimal(totals.get(TransactionType.INCOME.value)),
            as_decimal(totals.get(TransactionType.EXPENSE.value)),
        )

    async def monthly_buckets(self, budget_id: str, t_type: TransactionType) -> List[MonthlyBucket]:
        rows = self._select(budget_id, t_type)
        await asyncio.sleep(0)
        if rows.empty:
            return []
        months = rows["date"].dt.strftime("%Y-%m").rename("year_month")
        grouped = rows.groupby(months)["amount"].sum()
        return _sort_buckets({str(ym): as_decimal(total) for ym, total in grouped.items()})
