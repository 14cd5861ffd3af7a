"""
Cycle Rollover Engine

Closes every pay cycle whose pay date has passed: the cycle's expenses and
short-term goal are folded into a CycleHistoryEntry, positive savings feed the
long-term goal, and the pay date moves forward one calendar month at a time
until it is after ``today``. The engine only computes a RolloverPatch; the
caller applies it.
"""

import logging
from datetime import datetime
from typing import Optional

from payday.dates import add_months, format_date_only, parse_date_only, start_of_day
from payday.domain import CycleHistoryEntry, FinanceState, RolloverPatch
from payday.transforms import (
    append_history,
    apply_patch,
    contribute_to_long_term_goal,
    safe_amount,
    total_expenses,
)

logger = logging.getLogger(__name__)

# upper bound on cycles closed in one call
MAX_ROLLOVER_CYCLES = 120


def is_cycle_due(state: FinanceState, today: datetime) -> bool:
    pay_date = parse_date_only(state.next_salary_date)
    return pay_date is not None and start_of_day(today) >= pay_date


def rollover(
    state: FinanceState,
    today: Optional[datetime] = None,
    force_one_cycle: bool = False,
) -> Optional[RolloverPatch]:
    """
    Compute the patch that closes elapsed cycles.

    Args:
        state: Current persisted state
        today: Reference date (defaults to now)
        force_one_cycle: Close exactly one cycle even if it is not due yet

    Returns:
        RolloverPatch, or None when nothing is due or the pay date is unreadable
    """
    today = start_of_day(today or datetime.now())
    active_date = parse_date_only(state.next_salary_date)

    if active_date is None:
        logger.debug("Skipping rollover: unreadable pay date %r", state.next_salary_date)
        return None
    if not force_one_cycle and today < active_date:
        return None

    salary = safe_amount(state.next_salary_amount)
    history = state.cycles_history
    long_term_goal = state.long_term_goal
    expenses = state.expenses
    goal_amount = safe_amount(state.goal_amount)

    cycles = 0
    while True:
        spent = total_expenses(expenses)
        saved = salary - spent
        history = append_history(
            history,
            CycleHistoryEntry(
                cycle_date=format_date_only(active_date),
                salary=salary,
                total_expenses=spent,
                saved_amount=saved,
                goal_amount=goal_amount,
                goal_achieved=saved >= goal_amount,
            ),
        )
        long_term_goal = contribute_to_long_term_goal(long_term_goal, saved)

        expenses = ()
        goal_amount = 0.0
        active_date = add_months(active_date, 1)
        cycles += 1

        if force_one_cycle or today < active_date:
            break
        if cycles >= MAX_ROLLOVER_CYCLES:
            logger.warning(
                "Rollover stopped after %d cycles; pay date still at %s",
                cycles, format_date_only(active_date),
            )
            break

    logger.info(
        "Closed %d cycle(s); next pay date %s", cycles, format_date_only(active_date)
    )
    return RolloverPatch(
        cycles_history=history,
        long_term_goal=long_term_goal,
        expenses=(),
        goal_amount=goal_amount,
        next_salary_date=format_date_only(active_date),
    )


def ensure_cycle_current(state: FinanceState, today: Optional[datetime] = None) -> FinanceState:
    """Return ``state`` with every elapsed cycle closed (the same object if none)."""
    patch = rollover(state, today)
    if patch is None:
        return state
    return apply_patch(state, patch)
