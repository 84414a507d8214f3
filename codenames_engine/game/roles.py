"""Role assignment and clue-giver rotation."""

from typing import Optional, Sequence

from .errors import NoEligiblePlayersError
from .state import Game, Player, PlayerRoundRole, Role, Round, RoundStatus

# one clue-giver plus at least one guesser
MIN_ACTIVE_PLAYERS = 2


def clue_giver_history(game: Game, team_id: str, before_round: int) -> list[str]:
    """Player ids that gave clues for a team, oldest round first."""
    history = []
    for rnd in sorted(game.rounds, key=lambda r: r.number):
        if rnd.number >= before_round:
            continue
        player_id = rnd.clue_giver(team_id)
        if player_id is not None:
            history.append(player_id)
    return history


def pick_clue_giver(
    eligible: Sequence[Player],
    history: Sequence[str],
    rotation_window: Optional[int] = None,
) -> Player:
    """
    Choose the next clue-giver for one team.

    With no window, nobody repeats until every eligible teammate has served
    once; then the cycle starts over. With a window of k rounds, anyone who
    served in the team's last k rounds is skipped. When that leaves nobody,
    all eligible players are candidates again. Ties go to the lowest seat.

    Args:
        eligible: Active players of the team
        history: Previous clue-givers of the team, oldest first
        rotation_window: Number of recent rounds to skip, or None

    Returns:
        The selected player
    """
    if not eligible:
        raise NoEligiblePlayersError("No eligible players to give clues")

    eligible_ids = {p.id for p in eligible}
    if rotation_window is None:
        served: set[str] = set()
        for player_id in history:
            served.add(player_id)
            if eligible_ids <= served:
                served = set()
    else:
        served = set(history[-rotation_window:]) if rotation_window > 0 else set()

    candidates = [p for p in eligible if p.id not in served] or list(eligible)
    return min(candidates, key=lambda p: p.seat)


def build_role_assignments(
    game: Game,
    rnd: Round,
    rotation_window: Optional[int] = None,
) -> list[PlayerRoundRole]:
    """
    Assign one clue-giver per team and make every other active teammate a
    guesser. Inactive players watch as observers.

    Raises:
        NoEligiblePlayersError: a team cannot field both a clue-giver and a guesser
    """
    assignments = []
    for team in game.teams:
        players = game.team_players(team.id)
        eligible = [p for p in players if p.is_active]
        if len(eligible) < MIN_ACTIVE_PLAYERS:
            raise NoEligiblePlayersError(
                f"Team {team.name!r} has {len(eligible)} active player(s), needs at least "
                f"{MIN_ACTIVE_PLAYERS}; add more players"
            )

        history = clue_giver_history(game, team.id, rnd.number)
        clue_giver = pick_clue_giver(eligible, history, rotation_window)

        for player in players:
            if player.id == clue_giver.id:
                role = Role.CLUE_GIVER
            elif player.is_active:
                role = Role.GUESSER
            else:
                role = Role.OBSERVER
            assignments.append(PlayerRoundRole(
                player_id=player.id,
                round_id=rnd.id,
                team_id=team.id,
                role=role,
            ))
    return assignments


def roles_assigned(rnd: Round) -> bool:
    return bool(rnd.roles)


def can_assign_roles(rnd: Round) -> bool:
    return rnd.status == RoundStatus.SETUP and not roles_assigned(rnd)
