import math
from dataclasses import replace
from functools import reduce
from typing import Iterable, Tuple

from payday.domain import (
    CycleHistoryEntry,
    Expense,
    FinanceState,
    LongTermGoal,
    RolloverPatch,
    normalize_category,
)


def safe_amount(value) -> float:
    """Numbers that are not finite (or not numbers at all) count as 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def total_expenses(expenses: Iterable[Expense]) -> float:
    return reduce(lambda acc, e: acc + safe_amount(e.amount), expenses, 0.0)


def add_expense(
    expenses: Tuple[Expense, ...], expense: Expense
) -> Tuple[Expense, ...]:
    return expenses + (expense,)


def remove_expense(
    expenses: Tuple[Expense, ...], expense_id: str
) -> Tuple[Expense, ...]:
    return tuple(filter(lambda e: e.id != expense_id, expenses))


def long_term_goal_with_target(goal: LongTermGoal, target_amount: float) -> LongTermGoal:
    return LongTermGoal(
        target_amount=target_amount,
        accumulated_amount=goal.accumulated_amount,
        is_completed=target_amount > 0 and goal.accumulated_amount >= target_amount,
    )


def contribute_to_long_term_goal(goal: LongTermGoal, saved_amount: float) -> LongTermGoal:
    # deficit cycles contribute nothing; a completed goal stops accumulating
    if saved_amount <= 0 or goal.target_amount <= 0 or goal.is_completed:
        return goal
    accumulated = goal.accumulated_amount + saved_amount
    return LongTermGoal(
        target_amount=goal.target_amount,
        accumulated_amount=accumulated,
        is_completed=accumulated >= goal.target_amount,
    )


def append_history(
    history: Tuple[CycleHistoryEntry, ...], entry: CycleHistoryEntry
) -> Tuple[CycleHistoryEntry, ...]:
    return history + (entry,)


def apply_patch(state: FinanceState, patch: RolloverPatch) -> FinanceState:
    return replace(
        state,
        cycles_history=patch.cycles_history,
        long_term_goal=patch.long_term_goal,
        expenses=patch.expenses,
        goal_amount=patch.goal_amount,
        next_salary_date=patch.next_salary_date,
    )


def category_totals(expenses: Iterable[Expense]) -> Tuple[Tuple[str, float], ...]:
    totals: dict = {}
    for e in expenses:
        category = normalize_category(e.category)
        totals[category] = totals.get(category, 0.0) + safe_amount(e.amount)
    return tuple(sorted(totals.items(), key=lambda item: item[1], reverse=True))
