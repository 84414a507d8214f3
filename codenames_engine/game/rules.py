"""Game rules: turn, round and game lifecycle transitions.

Every transition takes a `Game`, checks its preconditions, and returns a new
`Game` plus whatever the caller asked for. The input game is never touched,
so a failed check leaves nothing half-applied and the caller decides when
to persist the result.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from .errors import (
    InvalidClueError,
    InvalidLifecycleTransitionError,
    InvalidTurnStateError,
    InvariantViolationError,
    NotFoundError,
    UnauthorizedActionError,
)
from .legality import check_clue_word
from .outcomes import effect_of, evaluate_guess
from .roles import build_role_assignments, can_assign_roles
from .state import (
    Card,
    Clue,
    Game,
    GameFormat,
    GameStatus,
    Guess,
    Outcome,
    Player,
    PlayerContext,
    PlayerRoundRole,
    PlayerStatus,
    Role,
    Round,
    RoundStatus,
    Team,
    Turn,
    TurnPhase,
    TurnStatus,
    new_id,
    utcnow,
)


@dataclass
class GuessResult:
    """Result of a single guess."""
    guess: Guess
    card: Card
    turn_ended: bool  # Did this guess end the turn?
    round_over: bool  # Did this guess end the round?
    game_over: bool  # Did the round's end also end the game?
    round_winner_id: Optional[str] = None
    next_turn: Optional[Turn] = None  # Turn opened for the next team, if any

    @property
    def outcome(self) -> Outcome:
        return self.guess.outcome


def _get_round(game: Game, round_id: str) -> Round:
    rnd = game.get_round(round_id)
    if rnd is None:
        raise NotFoundError(f"Round {round_id} not found in game {game.id}")
    return rnd


def _get_turn(game: Game, turn_id: str) -> tuple[Round, Turn]:
    rnd, turn = game.find_turn(turn_id)
    if rnd is None or turn is None:
        raise NotFoundError(f"Turn {turn_id} not found in game {game.id}")
    return rnd, turn


class GameRules:
    """
    Codenames rules engine.

    Rules:
    - A game runs one or more rounds, depending on its format
    - Each round deals a fresh board and assigns one clue-giver per team
    - Teams take turns in play order; a turn opens without a clue
    - The clue-giver gives a clue (word + number); guessers may guess up to number + 1 times
    - A turn ends on a wrong guess, on using every guess, or when the team ends it
    - A round ends when a team finds all its cards (it wins) or the trap is
      revealed (the team after the guessing team wins)
    """

    # -- setup and lobby -------------------------------------------------

    @staticmethod
    def create_game(team_names: Sequence[str], game_format: GameFormat = GameFormat.QUICK) -> Game:
        names = [n.strip() for n in team_names]
        if len(names) < 2:
            raise InvalidLifecycleTransitionError("A game needs at least 2 teams")
        if any(not n for n in names) or len(set(names)) != len(names):
            raise InvalidLifecycleTransitionError("Team names must be unique and non-empty")

        return Game(
            id=new_id(),
            game_format=game_format,
            teams=[Team(id=new_id(), name=name) for name in names],
        )

    @staticmethod
    def _check_lobby(game: Game, action: str) -> None:
        if game.status != GameStatus.LOBBY:
            raise InvalidLifecycleTransitionError(
                f"Cannot {action} once the game has left the lobby (status {game.status.value})"
            )

    @staticmethod
    def add_player(game: Game, team_id: str, name: str) -> tuple[Game, Player]:
        GameRules._check_lobby(game, "add players")
        if game.get_team(team_id) is None:
            raise NotFoundError(f"Team {team_id} not found in game {game.id}")
        if not name.strip():
            raise InvalidLifecycleTransitionError("Player name must not be empty")

        new_game = game.copy()
        seat = max((p.seat for p in new_game.players), default=-1) + 1
        player = Player(id=new_id(), team_id=team_id, name=name.strip(), seat=seat)
        new_game.players.append(player)
        return new_game, player

    @staticmethod
    def remove_player(game: Game, player_id: str) -> tuple[Game, Player]:
        GameRules._check_lobby(game, "remove players")
        player = game.get_player(player_id)
        if player is None:
            raise NotFoundError(f"Player {player_id} not found in game {game.id}")

        new_game = game.copy()
        new_game.players = [p for p in new_game.players if p.id != player_id]
        return new_game, player

    @staticmethod
    def modify_player(
        game: Game,
        player_id: str,
        name: Optional[str] = None,
        team_id: Optional[str] = None,
    ) -> tuple[Game, Player]:
        """Rename a player or move them to another team. Seats are kept."""
        GameRules._check_lobby(game, "modify players")
        if game.get_player(player_id) is None:
            raise NotFoundError(f"Player {player_id} not found in game {game.id}")
        if team_id is not None and game.get_team(team_id) is None:
            raise NotFoundError(f"Team {team_id} not found in game {game.id}")
        if name is not None and not name.strip():
            raise InvalidLifecycleTransitionError("Player name must not be empty")

        new_game = game.copy()
        player = new_game.get_player(player_id)
        if name is not None:
            player.name = name.strip()
        if team_id is not None:
            player.team_id = team_id
        return new_game, player

    @staticmethod
    def set_player_status(game: Game, player_id: str, status: PlayerStatus) -> tuple[Game, Player]:
        if game.get_player(player_id) is None:
            raise NotFoundError(f"Player {player_id} not found in game {game.id}")

        new_game = game.copy()
        player = new_game.get_player(player_id)
        player.status = status
        return new_game, player

    @staticmethod
    def start_game(game: Game, min_teams: int = 2, min_players_per_team: int = 2) -> Game:
        """Move a game out of the lobby once every team can field enough active players."""
        if game.status != GameStatus.LOBBY:
            raise InvalidLifecycleTransitionError(
                f"Cannot start game in '{game.status.value}' state"
            )
        if len(game.teams) < min_teams:
            raise InvalidLifecycleTransitionError(
                f"Cannot start game with less than {min_teams} teams"
            )
        for team in game.teams:
            active = [p for p in game.team_players(team.id) if p.is_active]
            if len(active) < min_players_per_team:
                raise InvalidLifecycleTransitionError(
                    f"Team {team.name!r} needs at least {min_players_per_team} active players"
                )

        new_game = game.copy()
        new_game.status = GameStatus.IN_PROGRESS
        return new_game

    # -- round setup -----------------------------------------------------

    @staticmethod
    def create_round(game: Game) -> tuple[Game, Round]:
        """Create the next round in SETUP. The previous round must be finished."""
        if game.status != GameStatus.IN_PROGRESS:
            raise InvalidLifecycleTransitionError(
                f"Game must be IN_PROGRESS to create a round, is {game.status.value}"
            )
        latest = game.latest_round
        if latest is not None and latest.status != RoundStatus.COMPLETED:
            raise InvalidLifecycleTransitionError(
                "Previous round must be completed before creating a new round"
            )
        max_rounds = game.game_format.max_rounds
        if len(game.rounds) >= max_rounds:
            raise InvalidLifecycleTransitionError(
                f"Maximum of {max_rounds} rounds allowed for {game.game_format.value} format"
            )

        new_game = game.copy()
        number = len(new_game.rounds) + 1
        order = new_game.team_ids
        rnd = Round(
            id=new_id(),
            game_id=new_game.id,
            number=number,
            starting_team_id=order[(number - 1) % len(order)],
        )
        new_game.rounds.append(rnd)
        return new_game, rnd

    @staticmethod
    def check_can_deal(game: Game, round_id: str, redeal: bool = False) -> Round:
        """
        Raise unless cards may be (re)dealt for the round.

        A first deal needs an empty board; a redeal needs an existing one.
        Both are only allowed while the round is in SETUP.
        """
        rnd = _get_round(game, round_id)
        if rnd.status != RoundStatus.SETUP:
            raise InvalidLifecycleTransitionError(
                f"Round must be in SETUP state to deal cards, is {rnd.status.value}"
            )
        if redeal and not rnd.cards:
            raise InvalidLifecycleTransitionError("No cards have been dealt yet; nothing to redeal")
        if not redeal and rnd.cards:
            raise InvalidLifecycleTransitionError("Cards have already been dealt for this round")
        return rnd

    @staticmethod
    def place_cards(
        game: Game,
        round_id: str,
        cards: Sequence[Card],
        starting_team_id: str,
        trap_count: int,
        redeal: bool = False,
    ) -> tuple[Game, list[Card]]:
        """Put a freshly dealt board on the round, replacing any previous one."""
        GameRules.check_can_deal(game, round_id, redeal)
        if starting_team_id not in game.team_ids:
            raise NotFoundError(f"Team {starting_team_id} not found in game {game.id}")

        new_game = game.copy()
        rnd = new_game.get_round(round_id)
        rnd.cards = list(cards)
        rnd.size = len(cards)
        rnd.trap_count = trap_count
        rnd.starting_team_id = starting_team_id
        return new_game, rnd.cards

    @staticmethod
    def assign_roles(
        game: Game,
        round_id: str,
        rotation_window: Optional[int] = None,
    ) -> tuple[Game, list[PlayerRoundRole]]:
        rnd = _get_round(game, round_id)
        if not can_assign_roles(rnd):
            raise InvalidLifecycleTransitionError(
                "Roles can only be assigned once, while the round is in SETUP"
            )

        new_game = game.copy()
        new_round = new_game.get_round(round_id)
        new_round.roles = build_role_assignments(new_game, new_round, rotation_window)
        return new_game, new_round.roles

    @staticmethod
    def start_round(game: Game, round_id: str, now: Optional[datetime] = None) -> tuple[Game, Round]:
        """SETUP -> IN_PROGRESS. Opens the first turn for the starting team."""
        rnd = _get_round(game, round_id)
        if game.status != GameStatus.IN_PROGRESS:
            raise InvalidLifecycleTransitionError("Game must be IN_PROGRESS to start a round")
        if rnd.status != RoundStatus.SETUP:
            raise InvalidLifecycleTransitionError(
                f"Round must be in SETUP state to start, is {rnd.status.value}"
            )
        if not rnd.cards:
            raise InvalidLifecycleTransitionError("Cards must be dealt before starting the round")
        missing = [t.name for t in game.teams if rnd.clue_giver(t.id) is None]
        if missing:
            raise InvalidLifecycleTransitionError(
                f"Roles must be assigned before starting the round (no clue-giver for {', '.join(missing)})"
            )

        new_game = game.copy()
        new_round = new_game.get_round(round_id)
        new_round.status = RoundStatus.IN_PROGRESS
        GameRules._open_turn(new_game, new_round, new_round.starting_team_id, now or utcnow())
        return new_game, new_round

    # -- turns -----------------------------------------------------------

    @staticmethod
    def expected_team_id(game: Game, rnd: Round) -> str:
        """Team whose turn comes next in the round."""
        last = rnd.last_turn
        if last is None:
            return rnd.starting_team_id
        return game.next_team_id(last.team_id)

    @staticmethod
    def open_turn(
        game: Game,
        round_id: str,
        team_id: str,
        now: Optional[datetime] = None,
    ) -> tuple[Game, Turn]:
        rnd = _get_round(game, round_id)
        if rnd.status != RoundStatus.IN_PROGRESS:
            raise InvalidTurnStateError(
                f"Round must be IN_PROGRESS to open a turn, is {rnd.status.value}"
            )
        if rnd.active_turn is not None:
            raise InvalidTurnStateError("Another turn is still active in this round")
        expected = GameRules.expected_team_id(game, rnd)
        if team_id != expected:
            raise InvalidTurnStateError(f"It's team {expected}'s turn, not {team_id}'s")

        new_game = game.copy()
        new_round = new_game.get_round(round_id)
        turn = GameRules._open_turn(new_game, new_round, team_id, now or utcnow())
        return new_game, turn

    @staticmethod
    def resolve_actor(game: Game, round_id: str, player_id: str) -> PlayerContext:
        """Turn a player id into the identity tuple the turn rules check against."""
        player = game.get_player(player_id)
        if player is None:
            raise NotFoundError(f"Player {player_id} not found in game {game.id}")
        rnd = _get_round(game, round_id)
        return PlayerContext(
            game_id=game.id,
            player_id=player.id,
            team_id=player.team_id,
            role=rnd.role_of(player.id),
        )

    @staticmethod
    def give_clue(
        game: Game,
        turn_id: str,
        actor: PlayerContext,
        word: str,
        target_count: int,
        strict: bool = False,
        now: Optional[datetime] = None,
    ) -> tuple[Game, Clue]:
        """
        Process a clue-giver giving a clue.

        Args:
            game: Current game
            turn_id: The turn the clue is for
            actor: Who is giving the clue
            word: Clue word
            target_count: How many cards the clue points at
            strict: Also reject board-word substrings and plural variants

        Returns:
            New game with the clue attached, and the clue
        """
        rnd, turn = _get_turn(game, turn_id)
        GameRules._check_turn_playable(game, rnd, turn)
        GameRules._check_actor(actor, game, turn, {Role.CLUE_GIVER}, "give a clue")
        if turn.phase != TurnPhase.OPEN:
            raise InvalidTurnStateError("A clue has already been given this turn")

        max_target = len(rnd.cards) - 1
        if not 0 <= target_count <= max_target:
            raise InvalidClueError(
                f"Target count must be between 0 and {max_target}, got {target_count}"
            )
        ok, reason = check_clue_word(word, rnd.words, rnd.used_clue_words(), strict=strict)
        if not ok:
            raise InvalidClueError(f"Clue word '{word}' is not allowed: {reason}")

        new_game = game.copy()
        _, new_turn = new_game.find_turn(turn_id)
        clue = Clue(
            id=new_id(),
            turn_id=turn_id,
            word=word.strip(),
            target_count=target_count,
            created_at=now or utcnow(),
        )
        new_turn.clue = clue
        new_turn.guesses_remaining = target_count + 1  # Can guess number + 1 times
        return new_game, clue

    @staticmethod
    def make_guess(
        game: Game,
        turn_id: str,
        actor: PlayerContext,
        card_id: str,
        now: Optional[datetime] = None,
    ) -> tuple[Game, GuessResult]:
        """
        Process a single guess.

        Reveals the card and records the guess. Only the guessing team's own
        cards score. A correct guess uses up one guess; any other outcome
        ends the turn. A completed team or a revealed trap ends the round,
        and the round's end may end the game.

        Returns:
            Tuple of (new game, result of the guess)
        """
        now = now or utcnow()
        rnd, turn = _get_turn(game, turn_id)
        GameRules._check_turn_playable(game, rnd, turn)
        GameRules._check_actor(actor, game, turn, {Role.GUESSER}, "guess")
        if turn.phase != TurnPhase.CLUED:
            raise InvalidTurnStateError("No clue has been given yet")
        if turn.guesses_remaining <= 0:
            raise InvalidTurnStateError("No guesses remaining this turn")

        card = rnd.get_card(card_id)
        if card is None:
            raise InvalidTurnStateError(f"Card {card_id} is not on this round's board")
        if card.revealed:
            raise InvalidTurnStateError(f"Card '{card.word}' has already been revealed")

        outcome = evaluate_guess(card.category, card.team_id, turn.team_id, game.team_ids)
        effect = effect_of(outcome)

        new_game = game.copy()
        new_round, new_turn = new_game.find_turn(turn_id)

        revealed = card.reveal()
        new_round.replace_card(revealed)
        if outcome == Outcome.CORRECT_TEAM:
            new_game.get_team(turn.team_id).score += 1
        if revealed.team_id is not None:
            if new_round.team_cards_revealed(revealed.team_id) > new_round.team_card_total(revealed.team_id):
                raise InvariantViolationError(
                    f"Team {revealed.team_id} has more revealed cards than it was dealt"
                )

        guess = Guess(
            id=new_id(),
            turn_id=turn_id,
            player_id=actor.player_id,
            card_id=card_id,
            outcome=outcome,
            created_at=now,
        )
        new_turn.guesses.append(guess)

        if outcome == Outcome.CORRECT_TEAM:
            new_turn.guesses_remaining -= 1
        else:
            new_turn.guesses_remaining = 0

        round_winner = None
        if effect.opponent_wins:
            round_winner = new_game.next_team_id(new_turn.team_id)
        elif effect.check_round_win:
            round_winner = GameRules.round_winner(new_game, new_round, new_turn.team_id)

        result = GuessResult(
            guess=guess,
            card=revealed,
            turn_ended=False,
            round_over=False,
            game_over=False,
        )

        if effect.ends_round or round_winner is not None:
            GameRules._complete_turn(new_turn, now)
            GameRules._complete_round(new_game, new_round, round_winner)
            result.turn_ended = True
            result.round_over = True
            result.round_winner_id = round_winner
            result.game_over = new_game.status == GameStatus.COMPLETED
        elif effect.ends_turn or new_turn.guesses_remaining == 0:
            GameRules._complete_turn(new_turn, now)
            result.turn_ended = True
            result.next_turn = GameRules._open_turn(
                new_game, new_round, new_game.next_team_id(new_turn.team_id), now
            )

        return new_game, result

    @staticmethod
    def end_turn(
        game: Game,
        turn_id: str,
        actor: Optional[PlayerContext] = None,
        now: Optional[datetime] = None,
    ) -> tuple[Game, Turn]:
        """
        End a clued turn early and hand over to the next team.

        `actor` is None when the call comes from the system (a turn timer)
        rather than a player.

        Returns:
            New game and the completed turn
        """
        now = now or utcnow()
        rnd, turn = _get_turn(game, turn_id)
        GameRules._check_turn_playable(game, rnd, turn)
        if actor is not None:
            GameRules._check_actor(actor, game, turn, {Role.GUESSER, Role.CLUE_GIVER}, "end the turn")
        if turn.phase != TurnPhase.CLUED:
            raise InvalidTurnStateError("A turn can only be ended after its clue has been given")

        new_game = game.copy()
        new_round, new_turn = new_game.find_turn(turn_id)
        new_turn.guesses_remaining = 0
        GameRules._complete_turn(new_turn, now)
        GameRules._open_turn(new_game, new_round, new_game.next_team_id(new_turn.team_id), now)
        return new_game, new_turn

    # -- round and game end ----------------------------------------------

    @staticmethod
    def round_winner(game: Game, rnd: Round, guessing_team_id: str) -> Optional[str]:
        """
        Team that has revealed all of its cards, if any.

        The guessing team is checked first, then the others in play order.
        """
        order = game.team_ids
        start = order.index(guessing_team_id)
        for team_id in order[start:] + order[:start]:
            total = rnd.team_card_total(team_id)
            if total and rnd.team_cards_revealed(team_id) == total:
                return team_id
        return None

    @staticmethod
    def game_winner(game: Game) -> Optional[str]:
        """Decisive winner of the game under its format, or None."""
        wins = game.round_wins()
        completed = [r for r in game.rounds if r.status == RoundStatus.COMPLETED]

        if game.game_format == GameFormat.QUICK:
            return completed[0].winning_team_id if completed else None

        if game.game_format == GameFormat.BEST_OF_THREE:
            needed = game.game_format.max_rounds // 2 + 1
            for team_id, count in wins.items():
                if count >= needed:
                    return team_id
            return None

        # ROUND_ROBIN plays every round; most wins takes it, ties have no winner
        if len(completed) < game.game_format.max_rounds:
            return None
        best = max(wins.values())
        leaders = [team_id for team_id, count in wins.items() if count == best]
        return leaders[0] if len(leaders) == 1 else None

    @staticmethod
    def complete_round(game: Game, round_id: str, winning_team_id: Optional[str]) -> Game:
        rnd = _get_round(game, round_id)
        if rnd.status != RoundStatus.IN_PROGRESS:
            raise InvalidLifecycleTransitionError(
                f"Only a round in progress can be completed, is {rnd.status.value}"
            )
        if winning_team_id is not None and winning_team_id not in game.team_ids:
            raise NotFoundError(f"Team {winning_team_id} not found in game {game.id}")

        new_game = game.copy()
        new_round = new_game.get_round(round_id)
        active = new_round.active_turn
        if active is not None:
            GameRules._complete_turn(active, utcnow())
        GameRules._complete_round(new_game, new_round, winning_team_id)
        return new_game

    # -- helpers (operate on an already-copied game) ---------------------

    @staticmethod
    def _open_turn(game: Game, rnd: Round, team_id: str, now: datetime) -> Turn:
        if rnd.active_turn is not None:
            raise InvariantViolationError(f"Round {rnd.id} already has an active turn")
        turn = Turn(id=new_id(), round_id=rnd.id, team_id=team_id, created_at=now)
        rnd.turns.append(turn)
        return turn

    @staticmethod
    def _complete_turn(turn: Turn, now: datetime) -> None:
        turn.status = TurnStatus.COMPLETED
        turn.completed_at = now

    @staticmethod
    def _complete_round(game: Game, rnd: Round, winning_team_id: Optional[str]) -> None:
        rnd.status = RoundStatus.COMPLETED
        rnd.winning_team_id = winning_team_id

        winner = GameRules.game_winner(game)
        rounds_done = len(game.rounds) >= game.game_format.max_rounds
        if winner is not None or rounds_done:
            game.status = GameStatus.COMPLETED
            game.winning_team_id = winner

    @staticmethod
    def _check_turn_playable(game: Game, rnd: Round, turn: Turn) -> None:
        if game.status != GameStatus.IN_PROGRESS:
            raise InvalidTurnStateError(f"Game is {game.status.value}")
        if rnd.status != RoundStatus.IN_PROGRESS:
            raise InvalidTurnStateError(f"Round is {rnd.status.value}")
        if not turn.is_active:
            raise InvalidTurnStateError("Turn is already completed")

    @staticmethod
    def _check_actor(
        actor: PlayerContext,
        game: Game,
        turn: Turn,
        allowed: set[Role],
        action: str,
    ) -> None:
        if actor.game_id != game.id or actor.team_id != turn.team_id:
            raise UnauthorizedActionError(f"Only the playing team can {action}")
        if actor.role not in allowed:
            role = actor.role.value if actor.role else "no role"
            raise UnauthorizedActionError(f"A player with {role} cannot {action}")
