# Game rules module
from .state import (
    Card,
    CardCategory,
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
)
from .errors import (
    ConcurrentUpdateError,
    GameRulesError,
    InsufficientWordsError,
    InvalidAllocationError,
    InvalidClueError,
    InvalidLifecycleTransitionError,
    InvalidTurnStateError,
    InvariantViolationError,
    NoEligiblePlayersError,
    NotFoundError,
    UnauthorizedActionError,
)
from .outcomes import OutcomeEffect, effect_of, evaluate_guess
from .generator import CardAllocator, CardDistribution, compute_distribution
from .board import Board
from .rules import GameRules, GuessResult

__all__ = [
    "Card",
    "CardCategory",
    "Clue",
    "Game",
    "GameFormat",
    "GameStatus",
    "Guess",
    "Outcome",
    "Player",
    "PlayerContext",
    "PlayerRoundRole",
    "PlayerStatus",
    "Role",
    "Round",
    "RoundStatus",
    "Team",
    "Turn",
    "TurnPhase",
    "TurnStatus",
    "ConcurrentUpdateError",
    "GameRulesError",
    "InsufficientWordsError",
    "InvalidAllocationError",
    "InvalidClueError",
    "InvalidLifecycleTransitionError",
    "InvalidTurnStateError",
    "InvariantViolationError",
    "NoEligiblePlayersError",
    "NotFoundError",
    "UnauthorizedActionError",
    "OutcomeEffect",
    "effect_of",
    "evaluate_guess",
    "CardAllocator",
    "CardDistribution",
    "compute_distribution",
    "Board",
    "GameRules",
    "GuessResult",
]
