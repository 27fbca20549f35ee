from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


@dataclass(frozen=True)
class Transaction:
    id: str
    budget_id: str
    amount: Decimal          # always >= 0, direction comes from type
    type: TransactionType
    date: datetime
    category: str = ""
    description: str = ""


# The engine's view of a budget
@dataclass(frozen=True)
class Budget:
    id: str
    start_balance: Optional[Decimal] = None  # None means 0
    name: str = ""


@dataclass(frozen=True)
class MonthlyBucket:
    year_month: str  # "YYYY-MM"
    sum: Decimal


MetricsResult = Dict[str, Decimal]


def month_key(d: datetime) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def as_decimal(value) -> Decimal:
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))
