"""
Exceptions raised by the population quiz.

Illegal game moves are never errors (they are ignored); these cover load-time
data problems and programming mistakes.
"""

from typing import Iterable


class PopQuizError(Exception):
    """Base class for all quiz errors."""


class DataLoadError(PopQuizError):
    """A feature collection or attribute table could not be read or parsed."""


class SettingsError(PopQuizError):
    """The settings file exists but is not valid JSON."""


class MissingAttributeError(PopQuizError):
    """One or more region codes have no value in the attribute table."""

    def __init__(self, missing: Iterable[str]):
        self.missing = sorted(missing)
        super().__init__(f"No attribute value for region code(s): {', '.join(self.missing)}")


class IllegalTransitionError(PopQuizError):
    """A region classification change that would leave CORRECT or INCORRECT."""

    def __init__(self, index: int, old, new):
        self.index = index
        self.old = old
        self.new = new
        super().__init__(f"Region {index}: cannot change state {old} -> {new}")
