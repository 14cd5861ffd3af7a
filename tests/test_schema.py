import pytest

from payday.domain import CycleHistoryEntry, Expense, FinanceState, LongTermGoal
from payday.errors import SchemaError
from payday.schema import SCHEMA_VERSION, dump_state, load_state


def make_state():
    return FinanceState(
        current_balance=1500.5,
        next_salary_date="2025-04-05",
        next_salary_amount=3200,
        goal_amount=300,
        long_term_goal=LongTermGoal(target_amount=1000, accumulated_amount=250, is_completed=False),
        expenses=(Expense(id="e1", amount=42.9, date="2025-03-10T08:30:00", category="Food"),),
        cycles_history=(CycleHistoryEntry("2025-03-05", 3200, 2800, 400, 300, True),),
    )


def test_dump_state_uses_persisted_shape():
    blob = dump_state(make_state())
    assert blob["version"] == SCHEMA_VERSION
    state = blob["state"]
    assert state["currentBalance"] == 1500.5
    assert state["nextSalaryDate"] == "2025-04-05"
    assert state["longTermGoal"] == {"targetAmount": 1000, "accumulatedAmount": 250, "isCompleted": False}
    assert state["expenses"][0] == {"id": "e1", "amount": 42.9, "date": "2025-03-10T08:30:00", "category": "Food"}
    assert state["cyclesHistory"][0]["savedAmount"] == 400
    assert state["cyclesHistory"][0]["goalAchieved"] is True


def test_load_state_reads_dumped_state():
    state = make_state()
    assert load_state(dump_state(state)) == state


def test_load_state_defaults_missing_fields():
    assert load_state({"state": {}, "version": 2}) == FinanceState()
    assert load_state(None) == FinanceState()
    assert load_state("junk") == FinanceState()


def test_load_state_sanitizes_invalid_values():
    blob = {
        "state": {
            "currentBalance": "abc",
            "nextSalaryDate": "not a date",
            "nextSalaryAmount": None,
            "goalAmount": -50,
            "longTermGoal": {"targetAmount": 100, "accumulatedAmount": 150, "isCompleted": False},
            "expenses": [{"amount": 10, "date": "2025-03-01T10:00:00"}, "junk", {"id": "e2", "amount": "NaN"}],
            "cyclesHistory": [{"cycleDate": "bad"}, {"cycleDate": "2025-02-05", "salary": 10, "savedAmount": -5}],
        },
        "version": 2,
    }
    state = load_state(blob)
    assert state.current_balance == 0
    assert state.next_salary_date == ""
    assert state.next_salary_amount == 0
    assert state.goal_amount == 0
    assert state.long_term_goal.is_completed is True
    assert len(state.expenses) == 2
    assert state.expenses[0].id
    assert state.expenses[0].category == "Other"
    assert state.expenses[1].amount == 0
    assert len(state.cycles_history) == 1
    assert state.cycles_history[0].goal_achieved is False


def test_load_state_normalizes_pay_date():
    blob = {"state": {"nextSalaryDate": "2025-04-05T00:00:00.000Z"}, "version": 2}
    assert load_state(blob).next_salary_date == "2025-04-05"


def test_load_state_migrates_bare_state():
    state = load_state({"currentBalance": 700, "nextSalaryDate": "2025-04-05", "nextSalaryAmount": 900})
    assert state.current_balance == 700
    assert state.long_term_goal == LongTermGoal()


def test_load_state_migrates_version_one():
    blob = {
        "state": {
            "currentBalance": 700,
            "nextSalaryDate": "2025-04-05",
            "nextSalaryAmount": 900,
            "goalAmount": 100,
            "expenses": [{"id": "e1", "amount": 20, "date": "2025-03-02T10:00:00"}],
            "cyclesHistory": [],
        },
        "version": 1,
    }
    state = load_state(blob)
    assert state.goal_amount == 100
    assert state.expenses[0].category == "Other"
    assert state.long_term_goal == LongTermGoal()


def test_load_state_rejects_newer_version():
    with pytest.raises(SchemaError):
        load_state({"state": {}, "version": SCHEMA_VERSION + 1})


def test_load_state_rejects_non_integer_version():
    with pytest.raises(SchemaError):
        load_state({"state": {}, "version": "2"})


def test_load_state_maps_portuguese_categories():
    blob = {
        "state": {
            "expenses": [
                {"id": "e1", "amount": 10, "date": "2025-03-01T10:00:00", "category": "Alimentação"},
                {"id": "e2", "amount": 20, "date": "2025-03-02T10:00:00", "category": "Saúde"},
                {"id": "e3", "amount": 30, "date": "2025-03-03T10:00:00", "category": "Outros"},
                {"id": "e4", "amount": 40, "date": "2025-03-04T10:00:00", "category": ["Lazer"]},
            ],
        },
        "version": 2,
    }
    state = load_state(blob)
    assert [e.category for e in state.expenses] == ["Food", "Health", "Other", "Other"]
