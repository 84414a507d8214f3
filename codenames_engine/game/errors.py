"""Errors raised by the rules engine.

Every error carries a `category` so the transport layer can map it without
knowing the concrete class:

- ``precondition``: the game is not in a state that allows the action.
  The caller may retry once the state is corrected.
- ``authorization``: the caller does not hold the role the action needs.
- ``resource``: an outside collaborator is under-provisioned
  (not enough words, not enough players).
- ``invariant``: a defect. Never caught inside the engine.
"""


class GameRulesError(Exception):
    """Base class for all engine errors."""
    category = "precondition"


class InvalidLifecycleTransitionError(GameRulesError):
    """A game or round transition was requested whose preconditions are unmet."""


class ConcurrentUpdateError(InvalidLifecycleTransitionError):
    """The stored game changed between load and commit."""


class InvalidTurnStateError(GameRulesError):
    """Action does not fit the turn (or the card it targets) in its current state."""


class InvalidAllocationError(GameRulesError):
    """Card distribution parameters cannot produce a legal board."""


class InvalidClueError(GameRulesError):
    """The clue word or count is not allowed on this board."""


class NotFoundError(GameRulesError):
    """Unknown game, round, turn, card or player id."""


class UnauthorizedActionError(GameRulesError):
    category = "authorization"


class InsufficientWordsError(GameRulesError):
    category = "resource"


class NoEligiblePlayersError(GameRulesError):
    category = "resource"


class InvariantViolationError(GameRulesError):
    """Unreachable state reached. Indicates a bug, not bad input."""
    category = "invariant"
