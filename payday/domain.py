from dataclasses import dataclass, field
from typing import Optional, Tuple

SAFE = "safe"
WARNING = "warning"
DANGER = "danger"

# daily budget thresholds in currency units
SAFE_DAILY_BUDGET = 100
WARNING_DAILY_BUDGET = 50

RISK_RANK = {SAFE: 0, WARNING: 1, DANGER: 2}

DEFAULT_CATEGORY = "Other"
EXPENSE_CATEGORIES = (
    "Food",
    "Transport",
    "Housing",
    "Leisure",
    "Health",
    "Education",
    DEFAULT_CATEGORY,
)

# labels written by earlier pt-BR releases
LEGACY_CATEGORIES = {
    "Alimentação": "Food",
    "Transporte": "Transport",
    "Moradia": "Housing",
    "Lazer": "Leisure",
    "Saúde": "Health",
    "Educação": "Education",
    "Outros": DEFAULT_CATEGORY,
}


@dataclass(frozen=True)
class Expense:
    id: str
    amount: float
    date: str        # ISO instant, e.g. "2025-09-01T10:00:00"
    category: str = DEFAULT_CATEGORY


@dataclass(frozen=True)
class LongTermGoal:
    target_amount: float = 0.0
    accumulated_amount: float = 0.0
    is_completed: bool = False


@dataclass(frozen=True)
class CycleHistoryEntry:
    cycle_date: str      # pay date of the closed cycle, "YYYY-MM-DD"
    salary: float
    total_expenses: float
    saved_amount: float  # salary - total_expenses, may be negative
    goal_amount: float
    goal_achieved: bool


@dataclass(frozen=True)
class FinanceState:
    current_balance: float = 0.0
    next_salary_date: str = ""   # "YYYY-MM-DD", empty until onboarding
    next_salary_amount: float = 0.0
    goal_amount: float = 0.0
    long_term_goal: LongTermGoal = field(default_factory=LongTermGoal)
    expenses: Tuple[Expense, ...] = ()
    cycles_history: Tuple[CycleHistoryEntry, ...] = ()


@dataclass(frozen=True)
class ProjectionPoint:
    date: str
    projected_balance: float


@dataclass(frozen=True)
class ProjectionSnapshot:
    days_left: int
    total_cycle_days: int
    days_passed: int
    progress_percentage: float
    total_expenses: float
    remaining_balance: float
    effective_balance: float
    achievable: bool
    daily_budget: float
    projected_balance_before_salary: float
    projected_balance_after_salary: float
    is_deficit: bool
    risk_level: str
    daily_projection: Tuple[ProjectionPoint, ...]


@dataclass(frozen=True)
class ExpenseSimulation:
    amount: float
    simulated_remaining_balance: float
    simulated_daily_budget: float
    simulated_risk_level: str
    is_risk_worse: bool


# Result of a rollover; applied to FinanceState in one step
@dataclass(frozen=True)
class RolloverPatch:
    cycles_history: Tuple[CycleHistoryEntry, ...]
    long_term_goal: LongTermGoal
    next_salary_date: str
    goal_amount: float = 0.0
    expenses: Tuple[Expense, ...] = ()


def normalize_category(category: Optional[str]) -> str:
    if not isinstance(category, str):
        return DEFAULT_CATEGORY
    category = LEGACY_CATEGORIES.get(category, category)
    if category in EXPENSE_CATEGORIES:
        return category
    return DEFAULT_CATEGORY
