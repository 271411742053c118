"""
Change notifications emitted by the game.

The game never touches rendering or UI; adapters subscribe to an EventBus
and re-query the game (e.g. eligible_neighbors()) when notified.
"""

from dataclasses import dataclass
from typing import Callable, List, Union

from popquiz.types import GameStatus, RegionState


@dataclass(frozen=True)
class ClassificationChanged:
    index: int
    state: RegionState


@dataclass(frozen=True)
class ScoreChanged:
    score: int


@dataclass(frozen=True)
class QuestionOpened:
    current_name: str
    current_value: float
    neighbor_name: str
    neighbor_value: float


@dataclass(frozen=True)
class GameEnded:
    outcome: GameStatus  # WON or LOST
    message: str


GameEvent = Union[ClassificationChanged, ScoreChanged, QuestionOpened, GameEnded]
Listener = Callable[[GameEvent], None]


class EventBus:
    """Synchronous fan-out to listeners, in subscription order."""

    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Listener:
        if listener not in self._listeners:
            self._listeners.append(listener)
        return listener

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, event: GameEvent) -> None:
        for listener in list(self._listeners):
            listener(event)
