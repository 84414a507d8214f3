"""
Pytest fixtures for rules engine tests.
"""

import random

import pytest

from codenames_engine import EngineConfig, GameEngine, ListWordSource
from codenames_engine.game import Game, Round

from helpers import WORDS


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source so boards are reproducible."""
    return random.Random(1234)


@pytest.fixture
def word_source(rng) -> ListWordSource:
    return ListWordSource(WORDS, rng=rng)


@pytest.fixture
def engine(word_source, rng) -> GameEngine:
    return GameEngine(word_source=word_source, config=EngineConfig(), rng=rng)


@pytest.fixture
def started_game(engine) -> Game:
    """Two teams (Red opens), two active players each, out of the lobby."""
    game = engine.create_game(("Red", "Blue"))
    for team in game.teams:
        for seat in range(2):
            engine.add_player(game.id, team.id, f"{team.name}-{seat + 1}")
    return engine.start_game(game.id)


@pytest.fixture
def live_round(engine, started_game) -> Round:
    """Round 1 dealt, roles assigned and started: Red's turn is open."""
    return engine.begin_next_round(started_game.id)


@pytest.fixture
def three_red_game(engine) -> Game:
    """Red fields three active players, Blue two."""
    game = engine.create_game(("Red", "Blue"))
    red, blue = game.teams
    for seat in range(3):
        engine.add_player(game.id, red.id, f"Red-{seat + 1}")
    for seat in range(2):
        engine.add_player(game.id, blue.id, f"Blue-{seat + 1}")
    return engine.start_game(game.id)
