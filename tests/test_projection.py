import math
from datetime import datetime, timedelta

from payday.dates import format_date_only
from payday.domain import DANGER, SAFE, WARNING, Expense, FinanceState
from payday.projection import (
    cycle_progress,
    has_missing_data,
    project,
    project_state,
    risk_level_for,
    simulate_expense,
)

TODAY = datetime(2025, 3, 15)


def in_days(n):
    return format_date_only(TODAY + timedelta(days=n))


def make_expense(id, amount):
    return Expense(id=id, amount=amount, date="2025-03-10T12:00:00")


def test_safe_scenario():
    p = project(1000, in_days(10), 0, 0, [], TODAY)
    assert p.days_left == 10
    assert p.effective_balance == 1000
    assert p.daily_budget == 100
    assert p.risk_level == SAFE
    assert p.projected_balance_after_salary == 1000
    assert p.achievable is True


def test_goal_larger_than_balance_is_danger():
    p = project(500, in_days(10), 0, 600, [], TODAY)
    assert p.achievable is False
    assert p.effective_balance == 0
    assert p.daily_budget == 0
    assert p.risk_level == DANGER
    assert p.is_deficit is True


def test_expenses_reduce_remaining_balance():
    expenses = [make_expense("e1", 200), make_expense("e2", 100)]
    p = project(1000, in_days(7), 0, 0, expenses, TODAY)
    assert p.total_expenses == 300
    assert p.remaining_balance == 700
    assert p.effective_balance == 700
    assert math.isclose(p.daily_budget, 100)
    assert p.risk_level == SAFE


def test_goal_is_set_aside_before_daily_budget():
    p = project(1000, in_days(10), 2500, 400, [], TODAY)
    assert p.effective_balance == 600
    assert p.daily_budget == 60
    assert p.risk_level == WARNING
    assert p.projected_balance_before_salary == 600
    assert p.projected_balance_after_salary == 3100


def test_days_left_never_below_one():
    assert project(100, in_days(0), 0, 0, [], TODAY).days_left == 1
    assert project(100, in_days(-5), 0, 0, [], TODAY).days_left == 1


def test_unparseable_pay_date_degrades():
    p = project(300, "garbage", 0, 0, [], TODAY)
    assert p.days_left == 1
    assert p.total_cycle_days == 30
    assert p.days_passed == 0
    assert p.progress_percentage == 0
    assert p.daily_budget == 300


def test_non_finite_amounts_count_as_zero():
    expenses = [make_expense("e1", float("nan")), make_expense("e2", float("inf")), make_expense("e3", 50)]
    p = project(1000, in_days(10), float("nan"), 0, expenses, TODAY)
    assert p.total_expenses == 50
    assert p.projected_balance_after_salary == 950


def test_negative_balance_is_clamped():
    p = project(-200, in_days(4), 0, 0, [], TODAY)
    assert p.effective_balance == 0
    assert p.daily_budget == 0
    assert p.risk_level == DANGER
    assert p.achievable is False


def test_cycle_progress_uses_thirty_day_lookback():
    pay_date = TODAY + timedelta(days=10)
    total, passed, pct = cycle_progress(pay_date, TODAY)
    assert total == 30
    assert passed == 20
    assert math.isclose(pct, 20 / 30 * 100)


def test_cycle_progress_is_clamped():
    assert cycle_progress(TODAY + timedelta(days=45), TODAY) == (30, 0, 0.0)
    assert cycle_progress(TODAY - timedelta(days=3), TODAY) == (30, 30, 100.0)


def test_daily_projection_shape():
    p = project(1000, in_days(10), 0, 0, [], TODAY)
    points = p.daily_projection
    assert len(points) == p.days_left
    assert points[0].date == "2025-03-15"
    assert points[-1].date == "2025-03-24"
    assert points[0].projected_balance == 1000
    assert points[-1].projected_balance == 100
    balances = [pt.projected_balance for pt in points]
    assert all(a >= b for a, b in zip(balances, balances[1:]))
    assert all(b >= 0 for b in balances)


def test_daily_projection_when_not_achievable_stays_flat_at_zero():
    p = project(100, in_days(5), 0, 500, [], TODAY)
    assert [pt.projected_balance for pt in p.daily_projection] == [0.0] * 5


def test_invariants_over_many_inputs():
    for balance in (-100, 0, 1, 49, 500, 10000):
        for goal in (0, 50, 1000):
            for offset in (-3, 0, 1, 7, 31):
                p = project(balance, in_days(offset), 100, goal, [make_expense("e", 20)], TODAY)
                assert p.days_left >= 1
                assert p.daily_budget >= 0
                assert p.effective_balance >= 0
                if not p.achievable:
                    assert p.daily_budget == 0
                    assert p.risk_level == DANGER
                assert len(p.daily_projection) == p.days_left


def test_risk_level_thresholds():
    assert risk_level_for(100) == SAFE
    assert risk_level_for(99.99) == WARNING
    assert risk_level_for(50) == WARNING
    assert risk_level_for(49.99) == DANGER


def test_project_state_uses_stored_facts():
    state = FinanceState(
        current_balance=1000,
        next_salary_date=in_days(10),
        next_salary_amount=3000,
        goal_amount=0,
    )
    p = project_state(state, TODAY)
    assert p.daily_budget == 100
    assert p.projected_balance_after_salary == 4000


def test_has_missing_data():
    assert has_missing_data(FinanceState()) is True
    assert has_missing_data(FinanceState(current_balance=10, next_salary_date="2025-04-01")) is True
    assert has_missing_data(
        FinanceState(current_balance=10, next_salary_date="2025-04-01", next_salary_amount=1)
    ) is False


def test_simulate_expense_flags_worse_risk():
    p = project(1000, in_days(10), 0, 0, [], TODAY)
    sim = simulate_expense(p, 400)
    assert sim.simulated_remaining_balance == 600
    assert sim.simulated_daily_budget == 60
    assert sim.simulated_risk_level == WARNING
    assert sim.is_risk_worse is True


def test_simulate_expense_ignores_negative_amounts():
    p = project(1000, in_days(10), 0, 0, [], TODAY)
    sim = simulate_expense(p, -50)
    assert sim.amount == 0
    assert sim.simulated_daily_budget == 100
    assert sim.is_risk_worse is False


def test_pay_date_at_calendar_limits_degrades():
    for pay_date in ("0001-01-10", "9999-12-15"):
        p = project(1000, pay_date, 0, 0, [], TODAY)
        assert p.days_left == 1
        assert (p.total_cycle_days, p.days_passed, p.progress_percentage) == (30, 0, 0)
        assert p.daily_budget == 1000
