"""
Projection Calculator

Turns the stored facts of the open cycle (balance, pay date, pay amount,
short-term goal and expenses) into a ProjectionSnapshot. Pure: the only
implicit input is ``today``, which defaults to the current local date.
"""

from datetime import datetime
from typing import Iterable, Optional, Tuple

from payday.dates import (
    add_days,
    days_between_ceil,
    days_between_floor,
    days_between_round,
    format_date_only,
    parse_date_only,
    start_of_day,
)
from payday.domain import (
    DANGER,
    RISK_RANK,
    SAFE,
    SAFE_DAILY_BUDGET,
    WARNING,
    WARNING_DAILY_BUDGET,
    Expense,
    ExpenseSimulation,
    FinanceState,
    ProjectionPoint,
    ProjectionSnapshot,
)
from payday.transforms import safe_amount, total_expenses

CYCLE_LOOKBACK_DAYS = 30


def risk_level_for(daily_budget: float) -> str:
    if daily_budget >= SAFE_DAILY_BUDGET:
        return SAFE
    if daily_budget >= WARNING_DAILY_BUDGET:
        return WARNING
    return DANGER


def days_left(pay_date: Optional[datetime], today: datetime) -> int:
    """Whole days until the pay date, never below 1."""
    if pay_date is None:
        return 1
    return max(days_between_ceil(today, pay_date), 1)


def cycle_progress(pay_date: Optional[datetime], today: datetime) -> Tuple[int, int, float]:
    """Return ``(total_cycle_days, days_passed, progress_percentage)``.

    The previous pay date is not stored, so the cycle is assumed to have
    started a fixed 30 days before the next one.
    """
    if pay_date is None:
        return CYCLE_LOOKBACK_DAYS, 0, 0.0

    cycle_start = add_days(start_of_day(pay_date), -CYCLE_LOOKBACK_DAYS)
    total_cycle_days = max(days_between_round(cycle_start, pay_date), 1)
    days_passed = min(max(days_between_floor(cycle_start, today), 0), total_cycle_days)
    progress = min(max(days_passed / total_cycle_days * 100, 0.0), 100.0)
    return total_cycle_days, days_passed, progress


def daily_projection(
    effective_balance: float, daily_budget: float, days: int, today: datetime
) -> Tuple[ProjectionPoint, ...]:
    # straight-line decay to zero, not a simulation of future expenses
    return tuple(
        ProjectionPoint(
            date=format_date_only(add_days(today, i)),
            projected_balance=max(effective_balance - daily_budget * i, 0.0),
        )
        for i in range(days)
    )


def project(
    balance: float,
    pay_date,
    pay_amount: float,
    goal_amount: float,
    expenses: Iterable[Expense],
    today: Optional[datetime] = None,
) -> ProjectionSnapshot:
    today = start_of_day(today or datetime.now())
    parsed_pay_date = parse_date_only(pay_date)

    balance = safe_amount(balance)
    pay_amount = safe_amount(pay_amount)
    goal_amount = safe_amount(goal_amount)

    left = days_left(parsed_pay_date, today)
    total_cycle_days, days_passed, progress = cycle_progress(parsed_pay_date, today)

    spent = total_expenses(expenses)
    remaining = balance - spent
    achievable = remaining - goal_amount >= 0
    effective = max(remaining - goal_amount, 0.0)
    daily_budget = effective / left if achievable else 0.0
    risk_level = risk_level_for(daily_budget) if achievable else DANGER

    return ProjectionSnapshot(
        days_left=left,
        total_cycle_days=total_cycle_days,
        days_passed=days_passed,
        progress_percentage=progress,
        total_expenses=spent,
        remaining_balance=remaining,
        effective_balance=effective,
        achievable=achievable,
        daily_budget=daily_budget,
        projected_balance_before_salary=effective,
        projected_balance_after_salary=effective + pay_amount,
        is_deficit=effective <= 0,
        risk_level=risk_level,
        daily_projection=daily_projection(effective, daily_budget, left, today),
    )


def project_state(state: FinanceState, today: Optional[datetime] = None) -> ProjectionSnapshot:
    return project(
        state.current_balance,
        state.next_salary_date,
        state.next_salary_amount,
        state.goal_amount,
        state.expenses,
        today,
    )


def has_missing_data(state: FinanceState) -> bool:
    """Onboarding facts a projection cannot be made without."""
    return (
        state.current_balance <= 0
        or not state.next_salary_date
        or state.next_salary_amount <= 0
    )


def simulate_expense(snapshot: ProjectionSnapshot, amount: float) -> ExpenseSimulation:
    """What the budget would look like after spending ``amount`` right now."""
    amount = max(safe_amount(amount), 0.0)
    remaining = max(snapshot.effective_balance - amount, 0.0)
    daily_budget = remaining / snapshot.days_left
    risk_level = risk_level_for(daily_budget)
    return ExpenseSimulation(
        amount=amount,
        simulated_remaining_balance=remaining,
        simulated_daily_budget=daily_budget,
        simulated_risk_level=risk_level,
        is_risk_worse=RISK_RANK[risk_level] > RISK_RANK[snapshot.risk_level],
    )
