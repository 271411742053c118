"""
Type definitions for the population quiz.

This module contains enums used throughout the codebase.
"""

from enum import Enum


class RegionState(str, Enum):
    """
    Play classification of a single region.

    - UNVISITED: not yet resolved (may be highlighted as a neighbor)
    - CURRENT: the active frontier region
    - CORRECT: reached with a correct answer (part of the path)
    - INCORRECT: answered wrong, permanently excluded

    Inherits from str so it's JSON-serializable and works with string comparisons.
    """
    UNVISITED = "unvisited"
    CURRENT = "current"
    CORRECT = "correct"
    INCORRECT = "incorrect"

    def __str__(self) -> str:
        """Return the string value for easy printing."""
        return self.value


class GameStatus(str, Enum):
    """Lifecycle of a game: SETUP -> PLAYING -> WON | LOST."""
    SETUP = "setup"
    PLAYING = "playing"
    WON = "won"
    LOST = "lost"

    def __str__(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        return self in (GameStatus.WON, GameStatus.LOST)
