import asyncio
import logging
from decimal import Decimal
from typing import Iterable, Optional

from budgetcore.domain import TransactionType, as_decimal
from budgetcore.ledger import LedgerQuery

logger = logging.getLogger(__name__)


def median(values: Iterable[Decimal]) -> Decimal:
    """Statistical median of a finite sample, 0 for an empty one.

    The sample is sorted here rather than trusting the order it arrives in.
    Even-sized samples average the two middle values.
    """
    ordered = sorted(values)
    n = len(ordered)
    if n == 0:
        return Decimal(0)
    mid = n // 2
    if n % 2 == 1:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


class MetricsEngine:
    """Balance and monthly cash-flow statistics over an injected ledger.

    Holds no state besides the ledger; absence of data always yields 0 (or the
    start balance) and store failures propagate untouched.
    """

    def __init__(self, ledger: LedgerQuery):
        self.ledger = ledger

    async def calculate_total_balance(self, budget_id: str, start_balance: Optional[Decimal] = None) -> Decimal:
        start = as_decimal(start_balance)
        income, expense = await self.ledger.sum_income_and_expense(budget_id)
        balance = start + income - expense
        logger.debug("budget %s balance=%s (start=%s income=%s expense=%s)", budget_id, balance, start, income, expense)
        return balance

    async def calculate_total_income(self, budget_id: str) -> Decimal:
        return await self.ledger.sum_by_type(budget_id, TransactionType.INCOME)

    async def calculate_total_expenses(self, budget_id: str) -> Decimal:
        return await self.ledger.sum_by_type(budget_id, TransactionType.EXPENSE)

    async def calculate_net_amount(self, budget_id: str) -> Decimal:
        income, expenses = await asyncio.gather(
            self.calculate_total_income(budget_id),
            self.calculate_total_expenses(budget_id),
        )
        return income - expenses

    async def _monthly_median(self, budget_id: str, t_type: TransactionType) -> Decimal:
        buckets = await self.ledger.monthly_buckets(budget_id, t_type)
        if not buckets:
            return Decimal(0)
        result = median(b.sum for b in buckets)
        logger.debug("budget %s %s median over %d months=%s", budget_id, t_type.value, len(buckets), result)
        return result

    async def calculate_monthly_income_median(self, budget_id: str) -> Decimal:
        return await self._monthly_median(budget_id, TransactionType.INCOME)

    async def calculate_monthly_expense_median(self, budget_id: str) -> Decimal:
        return await self._monthly_median(budget_id, TransactionType.EXPENSE)
