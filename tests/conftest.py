"""Shared pytest fixtures for the acronym expansion tests."""

import pytest

from def_acronyms import GRAMMARS
from registry import Registry


class ScriptedDraws:
    """Random source returning preset draws, then `default` forever."""

    def __init__(self, draws, default=0.99):
        self.draws = list(draws)
        self.default = default
        self.calls = 0

    def random(self):
        self.calls += 1
        if self.draws:
            return self.draws.pop(0)
        return self.default


@pytest.fixture
def scripted_draws():
    return ScriptedDraws


@pytest.fixture(scope="session")
def pasta_registry():
    return Registry.from_table(GRAMMARS["Oodles"])


@pytest.fixture
def small_registry():
    """A -> C -> e; MEAL uses a comma-tagged reference; LOST names a missing acronym."""
    return Registry.from_table({
        "A": ["C"],
        "C": ["e"],
        "MEAL": ["SAUCE_CO", "typical"],
        "SAUCE": ["shad", "and", "unusual"],
        "LOST": ["MISSING", "tail"],
    })
