"""
FinanceStore: the state container owned by the application.

Every change goes through ``mutate``, which reads the current state, closes
any elapsed cycles, applies the change and persists the result in one step.
"""
import logging
import math
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional
from uuid import uuid4

from payday.dates import format_date_only, parse_date_only
from payday.domain import Expense, FinanceState, LongTermGoal, normalize_category
from payday.errors import ValidationError
from payday.events import (
    CYCLE_CLOSED,
    EXPENSE_ADDED,
    EXPENSE_REMOVED,
    GOAL_CHANGED,
    LONG_TERM_GOAL_COMPLETED,
    EventBus,
)
from payday.projection import has_missing_data, project_state
from payday.rollover import ensure_cycle_current, rollover
from payday.schema import dump_state, load_state
from payday.transforms import (
    add_expense,
    apply_patch,
    long_term_goal_with_target,
    remove_expense,
)

logger = logging.getLogger(__name__)

STORAGE_KEY = "finance-storage"

Mutation = Callable[[FinanceState], FinanceState]


def _finite(value, name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(number):
        raise ValidationError(f"{name} must be finite, got {value!r}")
    return number


def _non_negative(value, name: str) -> float:
    number = _finite(value, name)
    if number < 0:
        raise ValidationError(f"{name} must not be negative, got {value!r}")
    return number


class FinanceStore:
    def __init__(
        self,
        storage,
        key: str = STORAGE_KEY,
        clock: Callable[[], datetime] = datetime.now,
        bus: Optional[EventBus] = None,
    ):
        self.storage = storage
        self.key = key
        self.clock = clock
        self.bus = bus if bus is not None else EventBus()
        self._state = FinanceState()

    @property
    def state(self) -> FinanceState:
        return self._state

    def load(self) -> FinanceState:
        """Rehydrate from storage and close any cycles that elapsed meanwhile."""
        blob = self.storage.get(self.key)
        loaded = load_state(blob) if blob is not None else FinanceState()
        current = ensure_cycle_current(loaded, self.clock())
        self._state = current
        if current is not loaded:
            self._persist()
            self._publish_changes(loaded, current)
        logger.debug("Loaded state with %d open expense(s)", len(current.expenses))
        return current

    def mutate(self, fn: Mutation, roll: bool = True) -> FinanceState:
        """Apply ``fn`` to the current state after closing elapsed cycles."""
        before = self._state
        rolled = ensure_cycle_current(before, self.clock()) if roll else before
        after = fn(rolled)
        self._state = after
        self._persist()
        self._publish_changes(before, after)
        return after

    def _persist(self) -> None:
        self.storage.set(self.key, dump_state(self._state))

    def _publish_changes(self, before: FinanceState, after: FinanceState) -> None:
        # history only grows, so the new entries are the tail
        for entry in after.cycles_history[len(before.cycles_history):]:
            self.bus.publish(CYCLE_CLOSED, {
                "cycle_date": entry.cycle_date,
                "saved_amount": entry.saved_amount,
                "goal_amount": entry.goal_amount,
                "goal_achieved": entry.goal_achieved,
            })
        goal = after.long_term_goal
        if goal.is_completed and not before.long_term_goal.is_completed:
            self.bus.publish(LONG_TERM_GOAL_COMPLETED, {
                "target_amount": goal.target_amount,
                "accumulated_amount": goal.accumulated_amount,
            })

    def _risk_payload(self) -> dict:
        if has_missing_data(self._state):
            return {}
        snapshot = project_state(self._state, self.clock())
        return {"risk_level": snapshot.risk_level, "daily_budget": snapshot.daily_budget}

    # onboarding setters do not roll the open cycle

    def set_current_balance(self, value) -> FinanceState:
        balance = _finite(value, "current balance")
        return self.mutate(lambda s: replace(s, current_balance=balance), roll=False)

    def set_next_salary_date(self, value) -> FinanceState:
        parsed = parse_date_only(value)
        if parsed is None:
            raise ValidationError(f"next salary date is not a date: {value!r}")
        return self.mutate(
            lambda s: replace(s, next_salary_date=format_date_only(parsed)), roll=False
        )

    def set_next_salary_amount(self, value) -> FinanceState:
        amount = _non_negative(value, "next salary amount")
        return self.mutate(lambda s: replace(s, next_salary_amount=amount), roll=False)

    def complete_onboarding(self, balance, salary_date, salary_amount) -> FinanceState:
        self.set_current_balance(balance)
        self.set_next_salary_date(salary_date)
        self.set_next_salary_amount(salary_amount)
        # a pay date in the past closes its cycles right away
        return self.mutate(lambda s: s)

    def set_goal(self, value) -> FinanceState:
        goal = _non_negative(value, "goal amount")
        state = self.mutate(lambda s: replace(s, goal_amount=goal))
        self.bus.publish(GOAL_CHANGED, {"goal_amount": goal, **self._risk_payload()})
        return state

    def set_long_term_goal(self, value) -> FinanceState:
        target = _non_negative(value, "long-term goal")
        return self.mutate(
            lambda s: replace(s, long_term_goal=long_term_goal_with_target(s.long_term_goal, target))
        )

    def reset_long_term_goal(self) -> FinanceState:
        return self.mutate(lambda s: replace(s, long_term_goal=LongTermGoal()))

    def add_expense(self, amount, category: Optional[str] = None, when: Optional[datetime] = None) -> Expense:
        value = _finite(amount, "expense amount")
        if value <= 0:
            raise ValidationError(f"expense amount must be positive, got {amount!r}")
        expense = Expense(
            id=uuid4().hex,
            amount=value,
            date=(when or self.clock()).isoformat(),
            category=normalize_category(category),
        )
        self.mutate(lambda s: replace(s, expenses=add_expense(s.expenses, expense)))
        self.bus.publish(EXPENSE_ADDED, {
            "id": expense.id,
            "amount": expense.amount,
            "category": expense.category,
            **self._risk_payload(),
        })
        return expense

    def remove_expense(self, expense_id: str) -> FinanceState:
        removed = []

        def drop(state: FinanceState) -> FinanceState:
            # looked up after the rollover; an archived expense is no longer open
            remaining = remove_expense(state.expenses, expense_id)
            if len(remaining) == len(state.expenses):
                logger.debug("Ignoring removal of unknown expense %s", expense_id)
                return state
            removed.append(expense_id)
            return replace(state, expenses=remaining)

        state = self.mutate(drop)
        if removed:
            self.bus.publish(EXPENSE_REMOVED, {"id": expense_id})
        return state

    def advance_cycle(self) -> FinanceState:
        """Close the open cycle now, even if its pay date has not come yet."""
        today = self.clock()

        def close_open_cycle(state: FinanceState) -> FinanceState:
            patch = rollover(state, today, force_one_cycle=True)
            if patch is None:
                logger.info("Cannot advance cycle without a readable pay date")
                return state
            return apply_patch(state, patch)

        return self.mutate(close_open_cycle, roll=False)

    def reset(self) -> FinanceState:
        self.storage.remove(self.key)
        self._state = FinanceState()
        logger.info("State reset")
        return self._state
