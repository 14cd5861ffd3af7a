from datetime import datetime
from typing import Any, Callable, Dict, Optional, Sequence

from payday.domain import DANGER, FinanceState
from payday.formatting import format_cycle_label
from payday.projection import has_missing_data, project_state
from payday.transforms import category_totals

Calculator = Callable[[FinanceState, datetime, Dict[str, Any]], Dict[str, Any]]


def projection_calculator(state: FinanceState, today: datetime, acc: Dict[str, Any]) -> Dict[str, Any]:
    missing = has_missing_data(state)
    projection = None if missing else project_state(state, today)
    return {
        "has_missing_data": missing,
        "projection": projection,
        "risk_level": projection.risk_level if projection else DANGER,
    }


def history_calculator(state: FinanceState, today: datetime, acc: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "chart_data": [
            {
                "cycle": format_cycle_label(c.cycle_date),
                "saved_amount": c.saved_amount,
                "goal_amount": c.goal_amount,
                "goal_achieved": c.goal_achieved,
            }
            for c in state.cycles_history
        ]
    }


def long_term_goal_calculator(state: FinanceState, today: datetime, acc: Dict[str, Any]) -> Dict[str, Any]:
    goal = state.long_term_goal
    percentage = (
        min(goal.accumulated_amount / goal.target_amount * 100, 100.0)
        if goal.target_amount > 0
        else 0.0
    )
    return {
        "long_term_goal": goal,
        "long_term_goal_percentage": max(percentage, 0.0),
        "remaining_long_term_amount": max(goal.target_amount - goal.accumulated_amount, 0.0),
    }


def category_calculator(state: FinanceState, today: datetime, acc: Dict[str, Any]) -> Dict[str, Any]:
    return {"category_totals": list(category_totals(state.expenses))}


DEFAULT_CALCULATORS = (
    projection_calculator,
    history_calculator,
    long_term_goal_calculator,
    category_calculator,
)


class DashboardService:
    """Facade that assembles the dashboard view from injected calculators.

    calculators: sequence of functions taking (state, today, acc) -> dict (partial results);
    ``acc`` holds everything the earlier calculators produced.
    """

    def __init__(self, store, calculators: Sequence[Calculator] = DEFAULT_CALCULATORS):
        self.store = store
        self.calculators = calculators

    def dashboard(self, today: Optional[datetime] = None) -> Dict[str, Any]:
        today = today or self.store.clock()
        state = self.store.state
        acc: Dict[str, Any] = {}
        for calc in self.calculators:
            out = calc(state, today, acc)
            if isinstance(out, dict):
                acc.update(out)
        return acc
