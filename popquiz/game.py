"""
Turn-based game over the region adjacency graph.

Play:
    1. initialize() picks a start region (preferred subset if any, else any);
       a start with no neighbors is lost at once
    2. select_neighbor(i) opens a question: is i's population lower than the
       current region's?
    3. answer(claim_lower) scores it:
       - correct: +10, i joins the path and becomes the current region;
         reaching a goal region wins
       - wrong: i is excluded for the rest of the game
       - either way, no eligible neighbor left -> lost

Illegal calls (non-neighbor selection, answer without a question, anything
after the game ended) are ignored, so stale or duplicate UI events are
harmless. The whole game state is one immutable GameState value that is
replaced on every transition.
"""

import random
from dataclasses import dataclass, replace
from typing import Callable, FrozenSet, Iterable, Mapping, Optional

from popquiz import config
from popquiz.adjacency import AdjacencyIndex
from popquiz.errors import MissingAttributeError
from popquiz.events import (
    ClassificationChanged,
    EventBus,
    GameEnded,
    QuestionOpened,
    ScoreChanged,
)
from popquiz.registry import Region, RegionRegistry
from popquiz.types import GameStatus, RegionState

StartPolicy = Callable[[Region], bool]

WIN_MESSAGE = "Congratulations! You reached {name} ({code})!"
LOSS_MESSAGE = "No more moves available! You lost."


@dataclass(frozen=True)
class Question:
    """A pending lower/higher comparison between the current region and a neighbor."""
    current_index: int
    neighbor_index: int
    current_value: float
    neighbor_value: float

    @property
    def neighbor_is_lower(self) -> bool:
        # Strict: a tie is "not lower"
        return self.neighbor_value < self.current_value


@dataclass(frozen=True)
class GameState:
    status: GameStatus = GameStatus.SETUP
    current: Optional[int] = None
    correct: FrozenSet[int] = frozenset()
    incorrect: FrozenSet[int] = frozenset()
    pending: Optional[Question] = None
    score: int = 0
    message: str = ''

    @property
    def resolved(self) -> FrozenSet[int]:
        return self.correct | self.incorrect


def start_codes_policy(codes: Iterable[str]) -> StartPolicy:
    """Start policy accepting regions whose code is in `codes`."""
    wanted = frozenset(c.upper() for c in codes)
    return lambda region: region.code in wanted


class GameStateMachine:
    """
    Owns the GameState and drives it through SETUP -> PLAYING -> WON | LOST.

    Args:
        registry: Loaded regions; classifications are updated in step with play
        adjacency: Neighbor relation over the same registry
        attributes: Region code -> value; every region code must be present
        is_preferred_start: Which regions may be picked as start (None = all)
        goal_codes: Reaching one of these codes wins the game
        rng: Random source for the start pick
        events: Bus receiving change notifications
        points: Score per correct answer

    Raises:
        MissingAttributeError: if any region's code has no attribute value
    """

    def __init__(self, registry: RegionRegistry, adjacency: AdjacencyIndex,
                 attributes: Mapping[str, float],
                 is_preferred_start: Optional[StartPolicy] = None,
                 goal_codes: Iterable[str] = (),
                 rng: Optional[random.Random] = None,
                 events: Optional[EventBus] = None,
                 points: int = config.POINTS_PER_CORRECT_ANSWER):
        missing = {r.code for r in registry if r.code not in attributes}
        if missing:
            raise MissingAttributeError(missing)

        self.registry = registry
        self.adjacency = adjacency
        self.attributes = attributes
        self.is_preferred_start = is_preferred_start
        self.goal_codes = frozenset(c.upper() for c in goal_codes)
        self.rng = rng or random.Random()
        self.events = events or EventBus()
        self.points = points
        self._state = GameState()

    @property
    def state(self) -> GameState:
        return self._state

    def _value(self, i: int) -> float:
        return self.attributes[self.registry.region(i).code]

    def _classify(self, i: int, state: RegionState) -> None:
        if self.registry.set_classification(i, state):
            self.events.emit(ClassificationChanged(i, state))

    def _pick_start(self) -> int:
        indices = range(self.registry.region_count())
        candidates = []
        if self.is_preferred_start is not None:
            candidates = [i for i in indices if self.is_preferred_start(self.registry.region(i))]
        return self.rng.choice(candidates or list(indices))

    def initialize(self) -> GameState:
        """Start a fresh game; any previous state is discarded."""
        previously_marked = [r.index for r in self.registry if r.state != RegionState.UNVISITED]
        self.registry.reset()
        for i in previously_marked:
            self.events.emit(ClassificationChanged(i, RegionState.UNVISITED))

        start = self._pick_start()
        self._state = GameState(
            status=GameStatus.PLAYING,
            current=start,
            correct=frozenset({start}),
        )
        self.events.emit(ScoreChanged(0))
        self._classify(start, RegionState.CURRENT)
        if not self.eligible_neighbors():
            return self._end(GameStatus.LOST, LOSS_MESSAGE)
        return self._state

    def restart(self) -> GameState:
        return self.initialize()

    def eligible_neighbors(self) -> FrozenSet[int]:
        """Neighbors of the current region not yet resolved (empty unless playing)."""
        state = self._state
        if state.status != GameStatus.PLAYING or state.current is None:
            return frozenset()
        return self.adjacency.neighbors_of(state.current) - state.resolved

    def select_neighbor(self, i: int) -> GameState:
        """Open a question about neighbor i; ignored unless i is eligible."""
        if i not in self.eligible_neighbors():
            return self._state

        current = self._state.current
        question = Question(
            current_index=current,
            neighbor_index=i,
            current_value=self._value(current),
            neighbor_value=self._value(i),
        )
        self._state = replace(self._state, pending=question)
        self.events.emit(QuestionOpened(
            current_name=self.registry.region(current).name,
            current_value=question.current_value,
            neighbor_name=self.registry.region(i).name,
            neighbor_value=question.neighbor_value,
        ))
        return self._state

    def answer(self, claim_lower: bool) -> GameState:
        """
        Resolve the pending question with the player's claim.

        Args:
            claim_lower: True if the player says the neighbor's value is lower
        """
        state = self._state
        question = state.pending
        if question is None or state.status != GameStatus.PLAYING:
            return state

        neighbor = question.neighbor_index
        if claim_lower == question.neighbor_is_lower:
            score = state.score + self.points
            self._state = replace(
                state,
                current=neighbor,
                correct=state.correct | {neighbor},
                pending=None,
                score=score,
            )
            self._classify(state.current, RegionState.CORRECT)
            self._classify(neighbor, RegionState.CURRENT)
            self.events.emit(ScoreChanged(score))

            region = self.registry.region(neighbor)
            if region.code in self.goal_codes:
                return self._end(GameStatus.WON, WIN_MESSAGE.format(name=region.name, code=region.code))
        else:
            self._state = replace(
                state,
                incorrect=state.incorrect | {neighbor},
                pending=None,
            )
            self._classify(neighbor, RegionState.INCORRECT)

        if not self.eligible_neighbors():
            return self._end(GameStatus.LOST, LOSS_MESSAGE)
        return self._state

    def _end(self, outcome: GameStatus, message: str) -> GameState:
        self._state = replace(self._state, status=outcome, message=message, pending=None)
        self.events.emit(GameEnded(outcome, message))
        return self._state
