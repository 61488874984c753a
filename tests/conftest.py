"""Shared fixtures for adminkit tests."""

from collections import deque
from typing import Iterable

import pytest

from adminkit.wordlist import parse_wordlist


class ScriptedRandom:
    """Random source that replays fixed draws in call order."""

    def __init__(self, rolls: Iterable[int] = (), positions: Iterable[int] = ()) -> None:
        self.rolls = deque(rolls)
        self.positions = deque(positions)

    def randint(self, a: int, b: int) -> int:
        value = self.rolls.popleft()
        assert a <= value <= b
        return value

    def randrange(self, stop: int) -> int:
        value = self.positions.popleft()
        assert 0 <= value < stop
        return value


@pytest.fixture
def small_wordlist():
    return parse_wordlist(["111111\tabacus", "123456\tzebra"])


@pytest.fixture
def two_dice_wordlist():
    """Complete 36-entry list: key 'ab' -> word built from the roll letters."""
    letters = "abcdef"
    lines = []
    for first in range(1, 7):
        for second in range(1, 7):
            word = f"{letters[first - 1]}{letters[second - 1]}word"
            lines.append(f"{first}{second}\t{word}")
    return parse_wordlist(lines)
