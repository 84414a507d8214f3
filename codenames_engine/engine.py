"""Transactional front door to the rules engine.

`GameEngine` turns id-based requests into rule transitions: it loads the
owning game from the store, applies one `GameRules` transition to a private
copy and commits the result. Operations on the same game are serialized, so
two guesses racing on one turn, or a redeal racing the round start, are
applied one after the other and the loser sees the winner's state.
"""

import logging
import random
import threading
from typing import Callable, Optional, Sequence, TypeVar

from .config import EngineConfig
from .game.errors import (
    GameRulesError,
    InvalidAllocationError,
    InvariantViolationError,
    NotFoundError,
)
from .game.generator import CardAllocator
from .game.rules import GameRules, GuessResult
from .game.state import (
    Card,
    Clue,
    Game,
    GameFormat,
    GameStatus,
    Player,
    PlayerContext,
    PlayerRoundRole,
    PlayerStatus,
    Round,
    Turn,
)
from .store import GameStore, InMemoryGameStore
from .words import DeckWordSource, WordSource

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GameEngine:
    """
    Runs games against a store and a word source.

    Args:
        store: Persistence collaborator (defaults to an in-memory store)
        word_source: Supplies board words (defaults to the bundled decks)
        config: Engine defaults
        rng: Random source for dealing; seed it only for tests and simulations
    """

    def __init__(
        self,
        store: Optional[GameStore] = None,
        word_source: Optional[WordSource] = None,
        config: Optional[EngineConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.store = store or InMemoryGameStore()
        self.config = config or EngineConfig()
        self.word_source = word_source or DeckWordSource(rng=rng)
        self.allocator = CardAllocator(
            self.word_source, rng=rng, non_team_ratio=self.config.non_team_ratio
        )
        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    # -- transaction plumbing --------------------------------------------

    def _lock_for(self, game_id: str) -> threading.RLock:
        with self._locks_guard:
            return self._locks.setdefault(game_id, threading.RLock())

    def _drop_lock(self, game_id: str) -> None:
        # completed games take no further transitions
        with self._locks_guard:
            self._locks.pop(game_id, None)

    def _apply(
        self,
        entity_id: str,
        action: str,
        transition: Callable[[Game], tuple[Game, T]],
    ) -> T:
        """Load the owning game, run one transition and commit it atomically."""
        game_id = self.store.game_id_for(entity_id)
        with self._lock_for(game_id):
            game = self.store.load(game_id)
            if game.status == GameStatus.COMPLETED:
                self._drop_lock(game_id)
            try:
                new_game, result = transition(game)
            except InvariantViolationError:
                logger.error(
                    "Invariant violated during %s (game=%s entity=%s version=%d status=%s)",
                    action, game.id, entity_id, game.version, game.status.value,
                    exc_info=True,
                )
                raise
            except GameRulesError as e:
                logger.debug("Rejected %s on %s: %s: %s", action, entity_id, type(e).__name__, e)
                raise
            saved = self.store.save(new_game)
            if saved.status == GameStatus.COMPLETED:
                self._drop_lock(game_id)
        return result

    # -- setup and lobby -------------------------------------------------

    def create_game(
        self,
        team_names: Sequence[str] = ("Red", "Blue"),
        game_format: Optional[GameFormat] = None,
    ) -> Game:
        game = GameRules.create_game(team_names, game_format or self.config.game_format)
        saved = self.store.save(game)
        logger.info(
            "Created game %s (%s) with teams %s",
            saved.id, saved.game_format.value, ", ".join(t.name for t in saved.teams),
        )
        return saved

    def get_game(self, game_id: str) -> Game:
        return self.store.load(game_id)

    def add_player(self, game_id: str, team_id: str, name: str) -> Player:
        player = self._apply(game_id, "add_player", lambda g: GameRules.add_player(g, team_id, name))
        logger.info("Game %s: %s joined team %s", game_id, player.name, team_id)
        return player

    def remove_player(self, player_id: str) -> Player:
        player = self._apply(player_id, "remove_player", lambda g: GameRules.remove_player(g, player_id))
        logger.info("Player %s (%s) left team %s", player_id, player.name, player.team_id)
        return player

    def modify_player(
        self,
        player_id: str,
        name: Optional[str] = None,
        team_id: Optional[str] = None,
    ) -> Player:
        player = self._apply(
            player_id, "modify_player",
            lambda g: GameRules.modify_player(g, player_id, name=name, team_id=team_id),
        )
        logger.info("Player %s is now %s on team %s", player_id, player.name, player.team_id)
        return player

    def set_player_status(self, player_id: str, status: PlayerStatus) -> Player:
        player = self._apply(
            player_id, "set_player_status",
            lambda g: GameRules.set_player_status(g, player_id, status),
        )
        logger.info("Player %s is now %s", player_id, status.value)
        return player

    def start_game(self, game_id: str) -> Game:
        def transition(game: Game) -> tuple[Game, Game]:
            new_game = GameRules.start_game(
                game,
                min_teams=self.config.min_teams,
                min_players_per_team=self.config.min_players_per_team,
            )
            return new_game, new_game

        game = self._apply(game_id, "start_game", transition)
        logger.info("Game %s started", game_id)
        return game

    # -- rounds ----------------------------------------------------------

    def create_round(self, game_id: str) -> Round:
        rnd = self._apply(game_id, "create_round", GameRules.create_round)
        logger.info("Game %s: round %d created", game_id, rnd.number)
        return rnd

    def allocate_cards(
        self,
        round_id: str,
        size: Optional[int] = None,
        team_count: Optional[int] = None,
        trap_count: Optional[int] = None,
        starting_team_id: Optional[str] = None,
    ) -> list[Card]:
        """Deal the first board of a round in SETUP."""
        size = size if size is not None else self.config.round_size
        trap_count = trap_count if trap_count is not None else self.config.trap_count

        def transition(game: Game) -> tuple[Game, list[Card]]:
            rnd = GameRules.check_can_deal(game, round_id)
            if team_count is not None and team_count != len(game.teams):
                raise InvalidAllocationError(
                    f"Game has {len(game.teams)} teams, allocation asked for {team_count}"
                )
            starting = starting_team_id or rnd.starting_team_id
            cards = self._deal(game, size, starting, trap_count)
            return GameRules.place_cards(game, round_id, cards, starting, trap_count)

        cards = self._apply(round_id, "allocate_cards", transition)
        logger.info("Round %s: dealt %d cards", round_id, len(cards))
        return cards

    def redeal_cards(self, round_id: str) -> list[Card]:
        """Replace every card of a round still in SETUP, keeping its size and trap count."""
        def transition(game: Game) -> tuple[Game, list[Card]]:
            rnd = GameRules.check_can_deal(game, round_id, redeal=True)
            cards = self._deal(game, rnd.size, rnd.starting_team_id, rnd.trap_count)
            return GameRules.place_cards(
                game, round_id, cards, rnd.starting_team_id, rnd.trap_count, redeal=True
            )

        cards = self._apply(round_id, "redeal_cards", transition)
        logger.info("Round %s: redealt %d cards", round_id, len(cards))
        return cards

    def _deal(self, game: Game, size: int, starting_team_id: str, trap_count: int) -> list[Card]:
        return self.allocator.deal(
            size,
            game.team_ids,
            starting_team_id,
            trap_count,
            deck_id=self.config.deck_id,
            language_code=self.config.language_code,
        )

    def assign_roles(self, round_id: str) -> list[PlayerRoundRole]:
        roles = self._apply(
            round_id, "assign_roles",
            lambda g: GameRules.assign_roles(g, round_id, self.config.rotation_window),
        )
        logger.info("Round %s: roles assigned to %d players", round_id, len(roles))
        return roles

    def start_round(self, round_id: str) -> Round:
        rnd = self._apply(round_id, "start_round", lambda g: GameRules.start_round(g, round_id))
        logger.info("Round %s (#%d) started, team %s opens", rnd.id, rnd.number, rnd.starting_team_id)
        return rnd

    def begin_next_round(self, game_id: str) -> Round:
        """Create, deal, assign roles and start the next round in one go."""
        rnd = self.create_round(game_id)
        self.allocate_cards(rnd.id)
        self.assign_roles(rnd.id)
        return self.start_round(rnd.id)

    # -- turns -----------------------------------------------------------

    def player_context(self, round_id: str, player_id: str) -> PlayerContext:
        game = self.store.load(self.store.game_id_for(round_id))
        return GameRules.resolve_actor(game, round_id, player_id)

    @staticmethod
    def _turn_actor(game: Game, turn_id: str, player_id: str) -> PlayerContext:
        rnd, _ = game.find_turn(turn_id)
        if rnd is None:
            raise NotFoundError(f"Turn {turn_id} not found in game {game.id}")
        return GameRules.resolve_actor(game, rnd.id, player_id)

    def open_turn(self, round_id: str, team_id: str) -> Turn:
        turn = self._apply(round_id, "open_turn", lambda g: GameRules.open_turn(g, round_id, team_id))
        logger.info("Round %s: turn opened for team %s", round_id, team_id)
        return turn

    def give_clue(self, turn_id: str, player_id: str, word: str, target_count: int) -> Clue:
        def transition(game: Game) -> tuple[Game, Clue]:
            actor = self._turn_actor(game, turn_id, player_id)
            return GameRules.give_clue(
                game, turn_id, actor, word, target_count,
                strict=self.config.strict_clue_words,
            )

        clue = self._apply(turn_id, "give_clue", transition)
        logger.info("Turn %s: clue %s %d", turn_id, clue.word, clue.target_count)
        return clue

    def submit_guess(self, turn_id: str, player_id: str, card_id: str) -> GuessResult:
        def transition(game: Game) -> tuple[Game, GuessResult]:
            actor = self._turn_actor(game, turn_id, player_id)
            return GameRules.make_guess(game, turn_id, actor, card_id)

        result = self._apply(turn_id, "submit_guess", transition)
        logger.info(
            "Turn %s: %s guessed %s -> %s",
            turn_id, player_id, result.card.word, result.outcome.value,
        )
        if result.round_over:
            logger.info("Round over, winner %s (game over: %s)", result.round_winner_id, result.game_over)
        return result

    def end_turn(self, turn_id: str, player_id: Optional[str] = None) -> Turn:
        def transition(game: Game) -> tuple[Game, Turn]:
            actor = self._turn_actor(game, turn_id, player_id) if player_id is not None else None
            return GameRules.end_turn(game, turn_id, actor)

        turn = self._apply(turn_id, "end_turn", transition)
        logger.info("Turn %s ended by %s", turn_id, player_id or "system")
        return turn
