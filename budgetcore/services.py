import asyncio
import logging
from datetime import datetime
from decimal import Decimal
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Union

from budgetcore.config import EngineConfig, load_config
from budgetcore.domain import Budget, MetricsResult
from budgetcore.ledger import FrameLedger
from budgetcore.logger import setup_logger
from budgetcore.metrics import MetricsEngine
from budgetcore.projections import ProjectionEngine

logger = logging.getLogger(__name__)

TOTAL_BALANCE = "totalBalance"
MONTHLY_INCOME_MEDIAN = "monthlyIncomeMedian"
MONTHLY_EXPENSE_MEDIAN = "monthlyExpenseMedian"
PROJECTED_YEAR_END_BALANCE = "projectedYearEndBalance"
TOTAL_INCOME = "totalIncome"
TOTAL_EXPENSES = "totalExpenses"
NET_AMOUNT = "netAmount"

METRIC_NAMES = (
    TOTAL_BALANCE,
    MONTHLY_INCOME_MEDIAN,
    MONTHLY_EXPENSE_MEDIAN,
    PROJECTED_YEAR_END_BALANCE,
    TOTAL_INCOME,
    TOTAL_EXPENSES,
    NET_AMOUNT,
)

Requested = Union[None, str, Iterable[str]]


def requested_names(requested: Requested) -> List[str]:
    """Canonical names to compute, in canonical order.

    Nothing requested means every metric; unknown names are dropped.
    """
    if requested is None:
        return list(METRIC_NAMES)
    if isinstance(requested, str):
        wanted = {requested} if requested else set()
    else:
        wanted = set(requested)
    if not wanted:
        return list(METRIC_NAMES)

    unknown = wanted.difference(METRIC_NAMES)
    if unknown:
        logger.debug("ignoring unknown metrics: %s", sorted(unknown))
    return [name for name in METRIC_NAMES if name in wanted]


class MetricSelector:
    """Facade that computes only the requested metrics for a budget.

    Each metric name maps to a zero-argument closure returning an awaitable;
    a closure is called only when its name is requested, and the selected
    ones run concurrently.
    """

    def __init__(self, metrics: MetricsEngine, projections: ProjectionEngine):
        self.metrics = metrics
        self.projections = projections

    def _dispatch(self, budget: Budget, as_of: Optional[datetime]) -> Dict[str, Callable[[], Awaitable[Decimal]]]:
        m = self.metrics
        bid = budget.id
        return {
            TOTAL_BALANCE: lambda: m.calculate_total_balance(bid, budget.start_balance),
            MONTHLY_INCOME_MEDIAN: lambda: m.calculate_monthly_income_median(bid),
            MONTHLY_EXPENSE_MEDIAN: lambda: m.calculate_monthly_expense_median(bid),
            PROJECTED_YEAR_END_BALANCE: lambda: self.projections.calculate_projected_year_end_balance(
                bid, budget.start_balance, as_of
            ),
            TOTAL_INCOME: lambda: m.calculate_total_income(bid),
            TOTAL_EXPENSES: lambda: m.calculate_total_expenses(bid),
            NET_AMOUNT: lambda: m.calculate_net_amount(bid),
        }

    async def select_metrics(
        self,
        budget: Budget,
        requested: Requested = None,
        as_of: Optional[datetime] = None,
    ) -> MetricsResult:
        names = requested_names(requested)
        if not names:
            return {}

        table = self._dispatch(budget, as_of)
        values = await asyncio.gather(*(table[name]() for name in names))
        return dict(zip(names, values))


def build_selector(config: Optional[EngineConfig] = None) -> MetricSelector:
    """Wire a selector over the seed ledger named in ``config``.

    Without a config the environment is read through ``load_config``.
    """
    config = config or load_config()
    setup_logger("budgetcore", config.log_level)
    ledger = FrameLedger.from_seed(config.seed_path)
    metrics = MetricsEngine(ledger)
    return MetricSelector(metrics, ProjectionEngine(metrics))
