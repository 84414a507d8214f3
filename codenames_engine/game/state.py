"""Game state types and data structures for the Codenames rules engine."""

import copy
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from .errors import InvariantViolationError


def new_id() -> str:
    """Generate an opaque entity identifier."""
    return uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GameStatus(Enum):
    LOBBY = "LOBBY"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class RoundStatus(Enum):
    SETUP = "SETUP"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class TurnStatus(Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class TurnPhase(Enum):
    """Finer-grained view of a turn: an ACTIVE turn is OPEN until its clue arrives."""
    OPEN = "OPEN"
    CLUED = "CLUED"
    COMPLETED = "COMPLETED"


class CardCategory(Enum):
    """Categories of cards on the board."""
    TEAM = "TEAM"
    NEUTRAL = "NEUTRAL"
    TRAP = "TRAP"


class Role(Enum):
    """Functional role a player holds for one round."""
    CLUE_GIVER = "CLUE_GIVER"
    GUESSER = "GUESSER"
    OBSERVER = "OBSERVER"


class PlayerStatus(Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class Outcome(Enum):
    """Result of revealing a card, relative to the guessing team."""
    CORRECT_TEAM = "CORRECT_TEAM"
    OTHER_TEAM = "OTHER_TEAM"
    NEUTRAL = "NEUTRAL"
    TRAP = "TRAP"


class GameFormat(Enum):
    """How many rounds a game may run and what counts as a decisive win."""
    QUICK = "QUICK"
    BEST_OF_THREE = "BEST_OF_THREE"
    ROUND_ROBIN = "ROUND_ROBIN"

    @property
    def max_rounds(self) -> int:
        return {
            GameFormat.QUICK: 1,
            GameFormat.BEST_OF_THREE: 3,
            GameFormat.ROUND_ROBIN: 5,
        }[self]


@dataclass
class Team:
    """A team and its cumulative score across the game."""
    id: str
    name: str
    score: int = 0


@dataclass
class Player:
    """A player seated on one team. `seat` is the join order within the game."""
    id: str
    team_id: str
    name: str
    seat: int
    status: PlayerStatus = PlayerStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.status == PlayerStatus.ACTIVE


@dataclass(frozen=True)
class Card:
    """A single card on the board."""
    id: str
    word: str
    category: CardCategory
    team_id: Optional[str] = None  # only set for TEAM cards
    revealed: bool = False

    def reveal(self) -> "Card":
        """Return a new card with revealed=True. A card is only ever revealed once."""
        if self.revealed:
            raise InvariantViolationError(f"Card {self.word!r} is already revealed")
        return replace(self, revealed=True)


@dataclass(frozen=True)
class PlayerRoundRole:
    """Which role a player held in a round. Kept forever for rotation history."""
    player_id: str
    round_id: str
    team_id: str
    role: Role


@dataclass(frozen=True)
class Clue:
    """A clue given by a clue-giver."""
    id: str
    turn_id: str
    word: str
    target_count: int
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class Guess:
    """A single recorded guess and its outcome."""
    id: str
    turn_id: str
    player_id: str
    card_id: str
    outcome: Outcome
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class Turn:
    """One team's turn within a round."""
    id: str
    round_id: str
    team_id: str
    status: TurnStatus = TurnStatus.ACTIVE
    guesses_remaining: int = 0
    clue: Optional[Clue] = None
    guesses: list[Guess] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    @property
    def phase(self) -> TurnPhase:
        if self.status == TurnStatus.COMPLETED:
            return TurnPhase.COMPLETED
        return TurnPhase.OPEN if self.clue is None else TurnPhase.CLUED

    @property
    def is_active(self) -> bool:
        return self.status == TurnStatus.ACTIVE


@dataclass
class Round:
    """A round: a fixed set of cards, role assignments and an ordered list of turns."""
    id: str
    game_id: str
    number: int
    status: RoundStatus = RoundStatus.SETUP
    starting_team_id: Optional[str] = None
    winning_team_id: Optional[str] = None
    size: int = 0
    trap_count: int = 0
    cards: list[Card] = field(default_factory=list)
    roles: list[PlayerRoundRole] = field(default_factory=list)
    turns: list[Turn] = field(default_factory=list)

    @property
    def active_turn(self) -> Optional[Turn]:
        for turn in self.turns:
            if turn.is_active:
                return turn
        return None

    @property
    def last_turn(self) -> Optional[Turn]:
        return self.turns[-1] if self.turns else None

    @property
    def words(self) -> list[str]:
        return [card.word for card in self.cards]

    def get_card(self, card_id: str) -> Optional[Card]:
        for card in self.cards:
            if card.id == card_id:
                return card
        return None

    def get_turn(self, turn_id: str) -> Optional[Turn]:
        for turn in self.turns:
            if turn.id == turn_id:
                return turn
        return None

    def replace_card(self, card: Card) -> None:
        self.cards = [card if c.id == card.id else c for c in self.cards]

    def team_card_total(self, team_id: str) -> int:
        return sum(
            1 for c in self.cards
            if c.category == CardCategory.TEAM and c.team_id == team_id
        )

    def team_cards_revealed(self, team_id: str) -> int:
        return sum(
            1 for c in self.cards
            if c.category == CardCategory.TEAM and c.team_id == team_id and c.revealed
        )

    def role_of(self, player_id: str) -> Optional[Role]:
        """Role held by a player this round; None when no role was assigned."""
        for assignment in self.roles:
            if assignment.player_id == player_id:
                return assignment.role
        return None

    def clue_giver(self, team_id: str) -> Optional[str]:
        for assignment in self.roles:
            if assignment.team_id == team_id and assignment.role == Role.CLUE_GIVER:
                return assignment.player_id
        return None

    def used_clue_words(self) -> list[str]:
        return [t.clue.word for t in self.turns if t.clue is not None]


@dataclass(frozen=True)
class PlayerContext:
    """Resolved caller identity: who is acting, on which team, in which role."""
    game_id: str
    player_id: str
    team_id: str
    role: Optional[Role]


@dataclass
class Game:
    """Complete state of one game: the aggregate the persistence layer stores."""
    id: str
    game_format: GameFormat
    teams: list[Team] = field(default_factory=list)
    players: list[Player] = field(default_factory=list)
    rounds: list[Round] = field(default_factory=list)
    status: GameStatus = GameStatus.LOBBY
    winning_team_id: Optional[str] = None
    version: int = 0

    @property
    def team_ids(self) -> list[str]:
        """Team ids in play order."""
        return [team.id for team in self.teams]

    @property
    def latest_round(self) -> Optional[Round]:
        return self.rounds[-1] if self.rounds else None

    def get_team(self, team_id: str) -> Optional[Team]:
        for team in self.teams:
            if team.id == team_id:
                return team
        return None

    def get_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def get_round(self, round_id: str) -> Optional[Round]:
        for rnd in self.rounds:
            if rnd.id == round_id:
                return rnd
        return None

    def find_turn(self, turn_id: str) -> tuple[Optional[Round], Optional[Turn]]:
        for rnd in self.rounds:
            turn = rnd.get_turn(turn_id)
            if turn is not None:
                return rnd, turn
        return None, None

    def team_players(self, team_id: str) -> list[Player]:
        """Players of a team in seat order."""
        return sorted(
            (p for p in self.players if p.team_id == team_id),
            key=lambda p: p.seat,
        )

    def next_team_id(self, team_id: str) -> str:
        """The team that plays after `team_id`."""
        order = self.team_ids
        return order[(order.index(team_id) + 1) % len(order)]

    def round_wins(self) -> dict[str, int]:
        wins = {team_id: 0 for team_id in self.team_ids}
        for rnd in self.rounds:
            if rnd.status == RoundStatus.COMPLETED and rnd.winning_team_id:
                wins[rnd.winning_team_id] += 1
        return wins

    def copy(self) -> "Game":
        """Create a deep copy of the game."""
        return copy.deepcopy(self)
