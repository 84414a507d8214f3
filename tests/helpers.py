"""Shared lookups for engine tests."""

from typing import Optional

from codenames_engine import GameEngine
from codenames_engine.game import Card, CardCategory, Game, GuessResult, Role, Round

WORDS = [
    "APPLE", "BANK", "BARK", "BERLIN", "BOLT", "BOOT", "BRIDGE", "CANADA",
    "CASTLE", "CHAIR", "CLOCK", "CLOUD", "CROWN", "DIAMOND", "DRAGON", "EAGLE",
    "ENGINE", "FENCE", "FIRE", "FOREST", "GHOST", "GLASS", "HAMMER", "HONEY",
    "ICE", "JUPITER", "KETTLE", "KNIGHT", "LEMON", "MARBLE", "MOUSE", "NEEDLE",
    "ORANGE", "PIANO", "PIRATE", "QUEEN", "ROBOT", "SATURN", "TABLE", "WHALE",
]


def snapshot(engine: GameEngine, round_id: str) -> tuple[Game, Round]:
    """Current stored state of a round and its game."""
    game = engine.store.load(engine.store.game_id_for(round_id))
    return game, game.get_round(round_id)


def cards_of(rnd: Round, category: CardCategory, team_id: Optional[str] = None) -> list[Card]:
    """Unrevealed cards of one category (and team, for TEAM cards)."""
    return [
        c for c in rnd.cards
        if c.category == category and c.team_id == team_id and not c.revealed
    ]


def player_with_role(rnd: Round, team_id: str, role: Role) -> str:
    return next(a.player_id for a in rnd.roles if a.team_id == team_id and a.role == role)


def clue_giver_of(rnd: Round, team_id: str) -> str:
    return player_with_role(rnd, team_id, Role.CLUE_GIVER)


def guesser_of(rnd: Round, team_id: str) -> str:
    return player_with_role(rnd, team_id, Role.GUESSER)


def hit_trap(engine: GameEngine, round_id: str, clue_word: str = "ZEPHYR") -> GuessResult:
    """Let the team on turn give a clue and reveal the trap."""
    _, rnd = snapshot(engine, round_id)
    turn = rnd.active_turn
    engine.give_clue(turn.id, clue_giver_of(rnd, turn.team_id), clue_word, 1)
    trap = cards_of(rnd, CardCategory.TRAP)[0]
    return engine.submit_guess(turn.id, guesser_of(rnd, turn.team_id), trap.id)
