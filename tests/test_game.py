"""
Tests for the game state machine: scoring, win/loss, ignored moves, events.

Run with: pytest tests/test_game.py -v
"""
import random

import pytest

from popquiz.adjacency import AdjacencyIndex
from popquiz.errors import MissingAttributeError
from popquiz.events import ClassificationChanged, GameEnded, QuestionOpened, ScoreChanged
from popquiz.game import GameState, GameStateMachine, Question, start_codes_policy
from popquiz.loading import AttributeTable
from popquiz.registry import RegionRegistry
from popquiz.types import GameStatus, RegionState
from conftest import A, B, C, D, make_feature, square


def record_events(game):
    events = []
    game.events.subscribe(events.append)
    return events


class TestScenario:
    """The four-region scenario: C | A | B | D, start on A."""

    def test_initialize(self, scenario_game):
        state = scenario_game.initialize()

        assert state.status == GameStatus.PLAYING
        assert state.current == A
        assert state.correct == frozenset({A})
        assert state.incorrect == frozenset()
        assert state.score == 0
        assert state.pending is None
        assert scenario_game.eligible_neighbors() == frozenset({B, C})
        assert scenario_game.registry.classification(A) == RegionState.CURRENT

    def test_wrong_then_right_then_lost(self, scenario_game):
        scenario_game.initialize()

        state = scenario_game.select_neighbor(B)
        assert state.pending == Question(A, B, 10, 20)

        # B (20) is not lower than A (10)
        state = scenario_game.answer(True)
        assert state.incorrect == frozenset({B})
        assert state.score == 0
        assert state.current == A
        assert state.pending is None
        assert state.status == GameStatus.PLAYING
        assert scenario_game.registry.classification(B) == RegionState.INCORRECT

        state = scenario_game.select_neighbor(C)
        assert state.pending == Question(A, C, 10, 5)

        state = scenario_game.answer(True)
        assert state.current == C
        assert state.correct == frozenset({A, C})
        assert state.score == 10
        assert scenario_game.registry.classification(A) == RegionState.CORRECT
        assert scenario_game.registry.classification(C) == RegionState.CURRENT

        # C's only neighbor (A) is already on the path
        assert state.status == GameStatus.LOST
        assert state.message == "No more moves available! You lost."

    def test_goal_needs_to_be_reached_not_just_adjacent(self, scenario_game):
        scenario_game.initialize()
        scenario_game.select_neighbor(B)
        state = scenario_game.answer(False)

        assert state.current == B
        assert state.score == 10
        assert state.status == GameStatus.PLAYING
        assert scenario_game.eligible_neighbors() == frozenset({D})

        scenario_game.select_neighbor(D)
        state = scenario_game.answer(False)

        assert state.status == GameStatus.WON
        assert state.current == D
        assert state.score == 20
        assert "Delta (GOAL)" in state.message

    def test_win_takes_precedence_over_no_moves(self, scenario_game):
        """D has no unresolved neighbors left, but reaching it is a win, not a loss."""
        scenario_game.initialize()
        scenario_game.select_neighbor(B)
        scenario_game.answer(False)
        scenario_game.select_neighbor(D)
        assert scenario_game.answer(False).status == GameStatus.WON

    def test_wrong_answer_can_lose_immediately(self, scenario_game):
        scenario_game.initialize()
        scenario_game.select_neighbor(B)
        scenario_game.answer(True)
        scenario_game.select_neighbor(C)
        state = scenario_game.answer(False)

        assert state.incorrect == frozenset({B, C})
        assert state.status == GameStatus.LOST
        assert state.score == 0


class TestTies:

    def test_tie_is_not_lower(self, scenario_registry):
        game = GameStateMachine(
            scenario_registry, AdjacencyIndex(scenario_registry),
            {'X': 10, 'Y': 10, 'Z': 5, 'GOAL': 30},
            is_preferred_start=start_codes_policy(['X']),
        )
        game.initialize()
        game.select_neighbor(B)
        assert game.answer(True).incorrect == frozenset({B})

        game.restart()
        game.select_neighbor(B)
        assert game.answer(False).correct == frozenset({A, B})


class TestIgnoredMoves:

    def test_select_non_neighbor(self, scenario_game):
        before = scenario_game.initialize()
        assert scenario_game.select_neighbor(D) is before
        assert scenario_game.state.pending is None

    def test_select_current_or_unknown_region(self, scenario_game):
        before = scenario_game.initialize()
        assert scenario_game.select_neighbor(A) is before
        assert scenario_game.select_neighbor(42) is before

    def test_answer_without_question(self, scenario_game):
        before = scenario_game.initialize()
        assert scenario_game.answer(True) is before
        assert scenario_game.answer(False) is before

    def test_select_resolved_region(self, scenario_game):
        scenario_game.initialize()
        scenario_game.select_neighbor(B)
        after_wrong = scenario_game.answer(True)
        assert scenario_game.select_neighbor(B) is after_wrong

    def test_moves_before_initialize(self, scenario_game):
        assert scenario_game.state == GameState()
        assert scenario_game.eligible_neighbors() == frozenset()
        assert scenario_game.select_neighbor(B) == GameState()
        assert scenario_game.answer(True) == GameState()

    def test_moves_after_game_over(self, scenario_game):
        scenario_game.initialize()
        scenario_game.select_neighbor(B)
        scenario_game.answer(False)
        scenario_game.select_neighbor(D)
        final = scenario_game.answer(False)

        assert scenario_game.eligible_neighbors() == frozenset()
        assert scenario_game.select_neighbor(A) is final
        assert scenario_game.answer(True) is final

    def test_reselect_replaces_question(self, scenario_game):
        scenario_game.initialize()
        scenario_game.select_neighbor(B)
        state = scenario_game.select_neighbor(C)
        assert state.pending.neighbor_index == C


class TestRestart:

    def test_restart_discards_everything(self, scenario_game):
        scenario_game.initialize()
        scenario_game.select_neighbor(B)
        scenario_game.answer(True)
        scenario_game.select_neighbor(C)

        state = scenario_game.restart()

        assert state == GameState(status=GameStatus.PLAYING, current=A, correct=frozenset({A}))
        registry = scenario_game.registry
        assert [registry.classification(i) for i in (A, B, C, D)] == [
            RegionState.CURRENT, RegionState.UNVISITED, RegionState.UNVISITED, RegionState.UNVISITED,
        ]

    def test_restart_after_win(self, scenario_game):
        scenario_game.initialize()
        scenario_game.select_neighbor(B)
        scenario_game.answer(False)
        scenario_game.select_neighbor(D)
        scenario_game.answer(False)

        state = scenario_game.restart()
        assert state.status == GameStatus.PLAYING
        assert state.score == 0
        assert state.message == ''


class TestStartSelection:

    def test_preferred_start_fallback_to_all(self, grid_features):
        registry = RegionRegistry.from_features(grid_features)
        attributes = {f'R{n}': n for n in range(9)}
        seen = set()
        for seed in range(40):
            game = GameStateMachine(registry, AdjacencyIndex(registry), attributes,
                                    is_preferred_start=start_codes_policy(['NOWHERE']),
                                    rng=random.Random(seed))
            seen.add(game.initialize().current)
        assert len(seen) > 1
        assert seen <= set(range(9))

    def test_preferred_start_subset(self, grid_features):
        registry = RegionRegistry.from_features(grid_features)
        attributes = {f'R{n}': n for n in range(9)}
        for seed in range(20):
            game = GameStateMachine(registry, AdjacencyIndex(registry), attributes,
                                    is_preferred_start=start_codes_policy(['r0', 'R6']),
                                    rng=random.Random(seed))
            assert game.initialize().current in (0, 6)

    def test_isolated_start_is_lost(self):
        features = [
            make_feature('Island', 'IS', rings=[square(0, 0)]),
            make_feature('Mainland', 'ML', rings=[square(10, 10)]),
        ]
        registry = RegionRegistry.from_features(features)
        game = GameStateMachine(registry, AdjacencyIndex(registry), {'IS': 1, 'ML': 2},
                                is_preferred_start=start_codes_policy(['IS']))
        events = record_events(game)
        state = game.initialize()

        assert state.status == GameStatus.LOST
        assert state.message == "No more moves available! You lost."
        assert state.current == 0
        assert state.score == 0
        assert events[-1] == GameEnded(GameStatus.LOST, "No more moves available! You lost.")
        assert game.eligible_neighbors() == frozenset()
        assert game.select_neighbor(1) is state
        assert game.answer(True) is state


class TestAttributes:

    def test_missing_attribute_surfaces_before_play(self, scenario_registry):
        with pytest.raises(MissingAttributeError) as exc_info:
            GameStateMachine(scenario_registry, AdjacencyIndex(scenario_registry),
                             {'X': 10, 'Y': 20})
        assert exc_info.value.missing == ['GOAL', 'Z']

    def test_attribute_table_lookup_is_case_insensitive(self, scenario_registry):
        table = AttributeTable({'x': 10, 'y': 20, 'z': 5, 'goal': 30})
        game = GameStateMachine(scenario_registry, AdjacencyIndex(scenario_registry), table,
                                is_preferred_start=start_codes_policy(['X']))
        game.initialize()
        assert game.select_neighbor(C).pending == Question(A, C, 10, 5)


class TestEvents:

    def test_initialize_events(self, scenario_game):
        events = record_events(scenario_game)
        scenario_game.initialize()
        assert events == [ScoreChanged(0), ClassificationChanged(A, RegionState.CURRENT)]

    def test_question_event(self, scenario_game):
        scenario_game.initialize()
        events = record_events(scenario_game)
        scenario_game.select_neighbor(B)
        assert events == [QuestionOpened('Alpha', 10, 'Beta', 20)]

    def test_correct_answer_events(self, scenario_game):
        scenario_game.initialize()
        scenario_game.select_neighbor(C)
        events = record_events(scenario_game)
        scenario_game.answer(True)

        assert events[:3] == [
            ClassificationChanged(A, RegionState.CORRECT),
            ClassificationChanged(C, RegionState.CURRENT),
            ScoreChanged(10),
        ]
        assert events[3] == GameEnded(GameStatus.LOST, "No more moves available! You lost.")

    def test_wrong_answer_events(self, scenario_game):
        scenario_game.initialize()
        scenario_game.select_neighbor(B)
        events = record_events(scenario_game)
        scenario_game.answer(True)
        assert events == [ClassificationChanged(B, RegionState.INCORRECT)]

    def test_restart_clears_marked_regions(self, scenario_game):
        scenario_game.initialize()
        scenario_game.select_neighbor(B)
        scenario_game.answer(True)
        events = record_events(scenario_game)
        scenario_game.restart()

        assert ClassificationChanged(B, RegionState.UNVISITED) in events
        assert events[-1] == ClassificationChanged(A, RegionState.CURRENT)

    def test_listener_sees_updated_state(self, scenario_game):
        scenario_game.initialize()
        scenario_game.select_neighbor(C)
        seen = []
        scenario_game.events.subscribe(
            lambda event: seen.append(scenario_game.state.current)
            if isinstance(event, ScoreChanged) else None
        )
        scenario_game.answer(True)
        assert seen == [C]


class TestRandomPlayInvariants:

    @pytest.mark.parametrize("seed", range(25))
    def test_invariants_hold(self, grid_features, seed):
        rng = random.Random(seed)
        registry = RegionRegistry.from_features(grid_features)
        attributes = {f'R{n}': rng.randint(1, 5) for n in range(9)}
        game = GameStateMachine(registry, AdjacencyIndex(registry), attributes,
                                is_preferred_start=start_codes_policy(['R0']),
                                goal_codes=['R8'], rng=rng)
        prev = game.initialize()
        correct_answers = 0
        steps = 0

        while prev.status == GameStatus.PLAYING:
            choice = rng.choice(sorted(game.eligible_neighbors()))
            game.select_neighbor(choice)
            state = game.answer(rng.random() < 0.5)
            steps += 1
            if choice in state.correct:
                correct_answers += 1

            assert prev.correct <= state.correct
            assert prev.incorrect <= state.incorrect
            assert not (state.correct & state.incorrect)
            assert state.score == 10 * correct_answers
            assert state.score >= prev.score
            assert state.current in state.correct
            prev = state

        assert prev.status in (GameStatus.WON, GameStatus.LOST)
        assert steps <= registry.region_count()
        assert prev.pending is None
