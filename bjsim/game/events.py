"""Events published by the round engine."""

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable


class EventType(Enum):
    """Types of simulation events."""

    # Flow events
    ROUND_STARTED = auto()
    ROUND_ENDED = auto()
    SIMULATION_ENDED = auto()

    # Betting events
    BETS_PLACED = auto()
    BOX_SAT_OUT = auto()
    INSURANCE_TAKEN = auto()

    # Shoe events
    SHOE_SHUFFLED = auto()

    # Dealer events
    DEALER_BLACKJACK = auto()

    # Settlement events
    HAND_SETTLED = auto()
    PLAYER_BUSTED = auto()
    PLAYER_RETIRED = auto()


@dataclass(frozen=True)
class GameEvent:
    """Something that happened at the table, with its payload."""

    event_type: EventType
    data: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.event_type.name}: {self.data}"


Handler = Callable[[GameEvent], None]


class EventEmitter:
    """
    Dispatches events to handlers in subscription order.

    A handler registered under ``None`` receives every event after the
    type-specific handlers. A long run emits one event per settled hand, so
    events are only remembered when ``keep_history`` is set.
    """

    def __init__(self, keep_history: bool = False) -> None:
        self._by_type: dict[EventType | None, list[Handler]] = defaultdict(list)
        self.keep_history = keep_history
        self._history: list[GameEvent] = []

    def subscribe(self, handler: Handler, event_type: EventType | None = None) -> None:
        """Call ``handler`` for ``event_type``, or for every event when None."""
        self._by_type[event_type].append(handler)

    def unsubscribe(self, handler: Handler, event_type: EventType | None = None) -> None:
        handlers = self._by_type.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def emit(self, event: GameEvent) -> None:
        if self.keep_history:
            self._history.append(event)
        for handler in (*self._by_type.get(event.event_type, ()), *self._by_type.get(None, ())):
            handler(event)

    def emit_new(self, event_type: EventType, **data: Any) -> GameEvent:
        """Build an event from keyword data and emit it."""
        event = GameEvent(event_type, data)
        self.emit(event)
        return event

    @property
    def history(self) -> list[GameEvent]:
        return list(self._history)

    def clear_history(self) -> None:
        self._history.clear()
