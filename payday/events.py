from collections import deque
from typing import Callable, Deque, Dict, List, NamedTuple, Optional, Tuple
from datetime import datetime

from payday.domain import DANGER, WARNING

__all__ = [
    'EXPENSE_ADDED', 'EXPENSE_REMOVED', 'GOAL_CHANGED', 'CYCLE_CLOSED',
    'LONG_TERM_GOAL_COMPLETED', 'Event', 'EventBus', 'register_default_handlers',
]

class Event(NamedTuple):
    name: str
    ts: str
    payload: dict

Handler = Callable[[Event, dict], dict]

class EventBus:
    """Dispatches store events and keeps a short log of what handlers reported.

    Each published event is recorded with the results of its handlers, so the
    dashboard can show recent alerts without subscribing its own callbacks.
    """

    def __init__(self, history_size: int = 50):
        self._subscribers: Dict[str, List[Handler]] = {}
        self._history: Deque[Tuple[Event, List[dict]]] = deque(maxlen=history_size)

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers.setdefault(name, []).append(handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        if handler in self._subscribers.get(name, []):
            self._subscribers[name].remove(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        results = [handler(event, payload) for handler in self._subscribers.get(name, [])]
        # events nobody handles are still part of the activity log
        self._history.append((event, results))
        return results

    def recent(self, name: Optional[str] = None) -> List[Event]:
        return [event for event, _ in self._history if name is None or event.name == name]

    def notifications(self) -> List[str]:
        """Alert and message texts from handler results, oldest first."""
        texts = []
        for _, results in self._history:
            for result in results:
                text = result.get("alert") or result.get("message")
                if text:
                    texts.append(text)
        return texts

    def clear_history(self) -> None:
        self._history.clear()

EXPENSE_ADDED = "EXPENSE_ADDED"
EXPENSE_REMOVED = "EXPENSE_REMOVED"
GOAL_CHANGED = "GOAL_CHANGED"
CYCLE_CLOSED = "CYCLE_CLOSED"
LONG_TERM_GOAL_COMPLETED = "LONG_TERM_GOAL_COMPLETED"

def risk_alert_handler(event: Event, payload: dict) -> dict:
    risk_level = payload.get("risk_level")
    daily_budget = payload.get("daily_budget", 0)

    if risk_level in (WARNING, DANGER):
        return {
            "alert": f"Daily budget is down to {daily_budget:,.2f} ({risk_level})",
            "risk_level": risk_level,
            "daily_budget": daily_budget,
        }
    return {}

def cycle_closed_handler(event: Event, payload: dict) -> dict:
    saved = payload.get("saved_amount", 0)
    cycle_date = payload.get("cycle_date", "")

    if not payload.get("goal_achieved", False):
        return {
            "alert": f"Cycle {cycle_date} closed below its goal: saved {saved:,.2f}",
            "cycle_date": cycle_date,
        }
    return {"message": f"Cycle {cycle_date} closed, saved {saved:,.2f}"}

def long_term_goal_handler(event: Event, payload: dict) -> dict:
    target = payload.get("target_amount", 0)
    return {"message": f"Long-term goal of {target:,.2f} reached"}

def register_default_handlers(bus: EventBus) -> EventBus:
    bus.subscribe(EXPENSE_ADDED, risk_alert_handler)
    bus.subscribe(GOAL_CHANGED, risk_alert_handler)
    bus.subscribe(CYCLE_CLOSED, cycle_closed_handler)
    bus.subscribe(LONG_TERM_GOAL_COMPLETED, long_term_goal_handler)
    return bus
