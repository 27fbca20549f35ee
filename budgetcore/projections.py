import asyncio
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from budgetcore.metrics import MetricsEngine

logger = logging.getLogger(__name__)


def remaining_months(as_of: datetime) -> int:
    """Whole months left in the calendar year after the month of ``as_of``."""
    return 12 - as_of.month


class ProjectionEngine:
    """Year-end balance forecast from the median monthly net flow.

    Medians rather than means keep a single unusual month from skewing the
    projection.
    """

    def __init__(self, metrics: MetricsEngine):
        self.metrics = metrics

    async def calculate_projected_year_end_balance(
        self,
        budget_id: str,
        start_balance: Optional[Decimal] = None,
        as_of: Optional[datetime] = None,
    ) -> Decimal:
        as_of = as_of or datetime.now()
        months_left = remaining_months(as_of)

        if months_left <= 0:
            return await self.metrics.calculate_total_balance(budget_id, start_balance)

        current_balance, income_median, expense_median = await asyncio.gather(
            self.metrics.calculate_total_balance(budget_id, start_balance),
            self.metrics.calculate_monthly_income_median(budget_id),
            self.metrics.calculate_monthly_expense_median(budget_id),
        )

        monthly_net_flow = income_median - expense_median
        projected = current_balance + monthly_net_flow * months_left
        logger.debug(
            "budget %s projection: %s + %s x %d = %s",
            budget_id, current_balance, monthly_net_flow, months_left, projected,
        )
        return projected
