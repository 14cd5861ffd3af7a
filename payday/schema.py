"""
Persisted schema for FinanceState.

The state is stored as one JSON blob ``{"state": {...}, "version": N}`` with
camelCase keys. Loading migrates older blobs and defaults every missing or
invalid field, so nothing undefined reaches the engine.

Versions:
    0: bare state object, no envelope
    1: envelope, no ``longTermGoal`` and no expense ``category``
    2: current
"""
from typing import Any, Dict, Optional, Tuple
from uuid import uuid4

from payday.dates import format_date_only, parse_date_only
from payday.domain import (
    CycleHistoryEntry,
    Expense,
    FinanceState,
    LongTermGoal,
    normalize_category,
)
from payday.errors import SchemaError
from payday.transforms import safe_amount

SCHEMA_VERSION = 2


def _non_negative(value) -> float:
    return max(safe_amount(value), 0.0)


def _text(value) -> str:
    return value if isinstance(value, str) else ""


def _date_only(value) -> str:
    parsed = parse_date_only(value)
    return format_date_only(parsed) if parsed is not None else ""


def dump_expense(e: Expense) -> Dict[str, Any]:
    return {"id": e.id, "amount": e.amount, "date": e.date, "category": e.category}


def dump_cycle(c: CycleHistoryEntry) -> Dict[str, Any]:
    return {
        "cycleDate": c.cycle_date,
        "salary": c.salary,
        "totalExpenses": c.total_expenses,
        "savedAmount": c.saved_amount,
        "goalAmount": c.goal_amount,
        "goalAchieved": c.goal_achieved,
    }


def dump_state(state: FinanceState) -> Dict[str, Any]:
    goal = state.long_term_goal
    return {
        "state": {
            "currentBalance": state.current_balance,
            "nextSalaryDate": state.next_salary_date,
            "nextSalaryAmount": state.next_salary_amount,
            "goalAmount": state.goal_amount,
            "longTermGoal": {
                "targetAmount": goal.target_amount,
                "accumulatedAmount": goal.accumulated_amount,
                "isCompleted": goal.is_completed,
            },
            "expenses": [dump_expense(e) for e in state.expenses],
            "cyclesHistory": [dump_cycle(c) for c in state.cycles_history],
        },
        "version": SCHEMA_VERSION,
    }


def load_expense(raw) -> Optional[Expense]:
    if not isinstance(raw, dict):
        return None
    expense_id = raw.get("id")
    return Expense(
        id=expense_id if isinstance(expense_id, str) and expense_id else uuid4().hex,
        amount=safe_amount(raw.get("amount")),
        date=_text(raw.get("date")),
        category=normalize_category(raw.get("category")),
    )


def load_cycle(raw) -> Optional[CycleHistoryEntry]:
    if not isinstance(raw, dict):
        return None
    cycle_date = _date_only(raw.get("cycleDate"))
    if not cycle_date:
        return None
    saved = safe_amount(raw.get("savedAmount"))
    goal = _non_negative(raw.get("goalAmount"))
    achieved = raw.get("goalAchieved")
    return CycleHistoryEntry(
        cycle_date=cycle_date,
        salary=safe_amount(raw.get("salary")),
        total_expenses=safe_amount(raw.get("totalExpenses")),
        saved_amount=saved,
        goal_amount=goal,
        goal_achieved=achieved if isinstance(achieved, bool) else saved >= goal,
    )


def load_long_term_goal(raw) -> LongTermGoal:
    if not isinstance(raw, dict):
        return LongTermGoal()
    target = _non_negative(raw.get("targetAmount"))
    accumulated = _non_negative(raw.get("accumulatedAmount"))
    return LongTermGoal(
        target_amount=target,
        accumulated_amount=accumulated,
        is_completed=target > 0 and accumulated >= target,
    )


def _load_list(raw, loader) -> Tuple:
    if not isinstance(raw, list):
        return ()
    return tuple(item for item in map(loader, raw) if item is not None)


def migrate(blob) -> Tuple[int, Dict[str, Any]]:
    """Return ``(version, raw_state)`` for any known blob layout."""
    if not isinstance(blob, dict):
        return SCHEMA_VERSION, {}
    if "state" not in blob:
        return 0, blob

    version = blob.get("version", 1)
    if not isinstance(version, int) or isinstance(version, bool):
        raise SchemaError(f"invalid schema version: {version!r}")
    if version > SCHEMA_VERSION:
        raise SchemaError(f"schema version {version} is newer than supported {SCHEMA_VERSION}")

    raw = blob.get("state")
    return version, raw if isinstance(raw, dict) else {}


def load_state(blob) -> FinanceState:
    _, raw = migrate(blob)
    # versions 0 and 1 lack longTermGoal and categories; the loaders default both
    return FinanceState(
        current_balance=safe_amount(raw.get("currentBalance")),
        next_salary_date=_date_only(raw.get("nextSalaryDate")),
        next_salary_amount=safe_amount(raw.get("nextSalaryAmount")),
        goal_amount=_non_negative(raw.get("goalAmount")),
        long_term_goal=load_long_term_goal(raw.get("longTermGoal")),
        expenses=_load_list(raw.get("expenses"), load_expense),
        cycles_history=_load_list(raw.get("cyclesHistory"), load_cycle),
    )
