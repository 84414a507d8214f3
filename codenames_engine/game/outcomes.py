"""Guess outcome evaluation.

`evaluate_guess` is a pure function from a card's category, the team the
card is bound to and the guessing team to an `Outcome`. `effect_of` maps an
outcome to what the turn and round lifecycle must do next.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from .errors import InvariantViolationError
from .state import CardCategory, Outcome


@dataclass(frozen=True)
class OutcomeEffect:
    """Lifecycle consequences of one outcome."""
    ends_turn: bool          # turn completes regardless of the counter
    ends_round: bool         # round completes immediately
    check_round_win: bool    # a team may have just completed its cards
    opponent_wins: bool      # round goes to the team after the guessing team


_EFFECTS = {
    Outcome.CORRECT_TEAM: OutcomeEffect(
        ends_turn=False, ends_round=False, check_round_win=True, opponent_wins=False,
    ),
    Outcome.OTHER_TEAM: OutcomeEffect(
        ends_turn=True, ends_round=False, check_round_win=True, opponent_wins=False,
    ),
    Outcome.NEUTRAL: OutcomeEffect(
        ends_turn=True, ends_round=False, check_round_win=False, opponent_wins=False,
    ),
    Outcome.TRAP: OutcomeEffect(
        ends_turn=True, ends_round=True, check_round_win=False, opponent_wins=True,
    ),
}


def evaluate_guess(
    category: CardCategory,
    bound_team_id: Optional[str],
    turn_team_id: str,
    team_ids: Iterable[str],
) -> Outcome:
    """
    Decide the outcome of revealing a card.

    Args:
        category: Category of the guessed card
        bound_team_id: Team the card belongs to (TEAM cards only)
        turn_team_id: Team whose turn it is
        team_ids: All teams in the game

    Returns:
        The outcome relative to the guessing team

    Raises:
        InvariantViolationError: the combination can not occur on a legal board
    """
    known = set(team_ids)
    if turn_team_id not in known:
        raise InvariantViolationError(f"Turn team {turn_team_id!r} is not part of the game")

    if category == CardCategory.TEAM:
        if bound_team_id not in known:
            raise InvariantViolationError(
                f"TEAM card bound to unknown team {bound_team_id!r}"
            )
        if bound_team_id == turn_team_id:
            return Outcome.CORRECT_TEAM
        return Outcome.OTHER_TEAM

    if bound_team_id is not None:
        raise InvariantViolationError(
            f"{category.value} card must not be bound to a team (got {bound_team_id!r})"
        )
    if category == CardCategory.NEUTRAL:
        return Outcome.NEUTRAL
    if category == CardCategory.TRAP:
        return Outcome.TRAP

    raise InvariantViolationError(f"Unknown card category: {category!r}")


def effect_of(outcome: Outcome) -> OutcomeEffect:
    return _EFFECTS[outcome]
