"""Simulation runner: plays whole games through the engine with random agents."""

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ..config import EngineConfig
from ..engine import GameEngine
from ..game import CardCategory, Game, GameStatus, Outcome, Role, Round, RoundStatus, Turn
from ..words import DeckWordSource, WordSource
from .metrics import BenchmarkMetrics, GameMetrics, TurnMetrics

logger = logging.getLogger(__name__)


@dataclass
class RunnerConfig:
    """Configuration for the simulation runner."""
    skill: float = 0.7  # chance a guesser picks one of its own cards
    max_clue_number: int = 3
    players_per_team: int = 2
    max_turns: int = 500  # Safety limit


class GameRunner:
    """
    Plays one complete game through a `GameEngine`.

    Each turn:
    1. The clue-giver gives a placeholder clue aimed at 1..max_clue_number own cards
    2. A guesser picks cards, an own card with probability `skill`, any card otherwise
    3. The guesser stops after hitting the clue's number, or when the engine ends the turn
    4. Repeat until the game completes
    """

    def __init__(
        self,
        engine: GameEngine,
        config: Optional[RunnerConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.engine = engine
        self.config = config or RunnerConfig()
        self.rng = rng or random.Random()

    def setup_game(self, team_names: Sequence[str]) -> Game:
        """Create a game, seat the players and leave the lobby."""
        game = self.engine.create_game(team_names)
        for team in game.teams:
            for seat in range(self.config.players_per_team):
                self.engine.add_player(game.id, team.id, f"{team.name}-{seat + 1}")
        return self.engine.start_game(game.id)

    def run_game(
        self,
        team_names: Sequence[str] = ("Red", "Blue"),
        on_turn: Optional[Callable[[TurnMetrics], None]] = None,
    ) -> GameMetrics:
        """
        Run a complete game.

        Args:
            team_names: Teams in play order
            on_turn: Optional callback after each turn

        Returns:
            GameMetrics with full game statistics
        """
        start_time = time.time()
        game = self.setup_game(team_names)
        turns: list[TurnMetrics] = []

        while game.status == GameStatus.IN_PROGRESS and len(turns) < self.config.max_turns:
            rnd = self.engine.begin_next_round(game.id)
            while len(turns) < self.config.max_turns:
                game = self.engine.get_game(game.id)
                rnd = game.get_round(rnd.id)
                if rnd.status != RoundStatus.IN_PROGRESS:
                    break
                metrics = self._play_turn(rnd, rnd.active_turn)
                turns.append(metrics)
                if on_turn:
                    on_turn(metrics)
            game = self.engine.get_game(game.id)

        if game.status == GameStatus.IN_PROGRESS:
            logger.warning("Game %s stopped after %d turns without finishing", game.id, len(turns))

        return GameMetrics(
            game_id=game.id,
            game_format=game.game_format.value,
            first_team_id=game.team_ids[0],
            winner_id=game.winning_team_id,
            rounds_played=len(game.rounds),
            total_turns=len(turns),
            trap_loss=any(t.hit_trap for t in turns),
            turns=turns,
            game_duration_s=time.time() - start_time,
        )

    def _play_turn(self, rnd: Round, turn: Turn) -> TurnMetrics:
        clue_giver = rnd.clue_giver(turn.team_id)
        guessers = [
            a.player_id for a in rnd.roles
            if a.team_id == turn.team_id and a.role == Role.GUESSER
        ]
        guesser = self.rng.choice(guessers)

        own = [
            c for c in rnd.cards
            if c.category == CardCategory.TEAM and c.team_id == turn.team_id and not c.revealed
        ]
        number = self.rng.randint(1, min(self.config.max_clue_number, len(own)))
        clue = self.engine.give_clue(turn.id, clue_giver, f"HINT{len(rnd.turns)}", number)

        unrevealed = [c for c in rnd.cards if not c.revealed]
        guesses: list[str] = []
        correct = 0
        hit_trap = hit_other = False
        ended_by = "passed"

        while True:
            own = [c for c in unrevealed if c.category == CardCategory.TEAM and c.team_id == turn.team_id]
            if own and self.rng.random() < self.config.skill:
                card = self.rng.choice(own)
            else:
                card = self.rng.choice(unrevealed)
            unrevealed.remove(card)

            result = self.engine.submit_guess(turn.id, guesser, card.id)
            guesses.append(card.word)
            if result.outcome == Outcome.CORRECT_TEAM:
                correct += 1
            hit_trap = hit_trap or result.outcome == Outcome.TRAP
            hit_other = hit_other or result.outcome == Outcome.OTHER_TEAM

            if result.turn_ended:
                if result.outcome == Outcome.TRAP:
                    ended_by = "trap"
                elif result.round_over:
                    ended_by = "round_won"
                elif result.outcome == Outcome.CORRECT_TEAM:
                    ended_by = "out_of_guesses"
                else:
                    ended_by = "wrong_guess"
                break
            if correct >= clue.target_count:
                self.engine.end_turn(turn.id, guesser)
                break

        logger.debug("Turn %s: %s %d -> %s (%s)", turn.id, clue.word, number, guesses, ended_by)
        return TurnMetrics(
            round_number=rnd.number,
            team_id=turn.team_id,
            clue_word=clue.word,
            clue_number=clue.target_count,
            guesses_made=guesses,
            correct_guesses=correct,
            hit_trap=hit_trap,
            hit_other_team=hit_other,
            turn_ended_by=ended_by,
        )


class BenchmarkRunner:
    """
    Runs many simulated games, each against a fresh in-memory engine.

    With a seed, game i uses `random.Random(seed + i)` for dealing and for
    the agents, so a batch is reproducible.
    """

    def __init__(
        self,
        engine_config: Optional[EngineConfig] = None,
        runner_config: Optional[RunnerConfig] = None,
        word_source_factory: Optional[Callable[[random.Random], WordSource]] = None,
    ):
        self.engine_config = engine_config or EngineConfig()
        self.runner_config = runner_config or RunnerConfig()
        self.word_source_factory = word_source_factory or (lambda rng: DeckWordSource(rng=rng))

    def make_runner(self, seed: Optional[int] = None) -> GameRunner:
        rng = random.Random(seed)
        engine = GameEngine(
            word_source=self.word_source_factory(rng),
            config=self.engine_config,
            rng=rng,
        )
        return GameRunner(engine, self.runner_config, rng)

    def run(
        self,
        games: int,
        seed: Optional[int] = None,
        team_names: Sequence[str] = ("Red", "Blue"),
        on_game: Optional[Callable[[GameMetrics], None]] = None,
    ) -> BenchmarkMetrics:
        """
        Play a batch of games.

        Args:
            games: Number of games to play
            seed: Base seed, or None for unseeded games
            team_names: Teams in play order
            on_game: Optional callback after each game

        Returns:
            BenchmarkMetrics with aggregated results
        """
        all_games: list[GameMetrics] = []
        for i in range(games):
            runner = self.make_runner(seed + i if seed is not None else None)
            metrics = runner.run_game(team_names)
            all_games.append(metrics)
            if on_game:
                on_game(metrics)

        label = f"{self.engine_config.game_format.value} skill={self.runner_config.skill:.2f}"
        return BenchmarkMetrics(label=label, games=all_games)
