"""Metrics collection and analysis for simulated games."""

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Optional

import numpy as np
from scipy import stats


def wilson_interval(successes: int, n: int, confidence: float = 0.95) -> tuple[float, float]:
    """
    Wilson score interval for a binomial proportion.

    Args:
        successes: Number of successes
        n: Number of trials
        confidence: Confidence level (default 95%)

    Returns:
        Tuple of (lower bound, upper bound), (0, 0) when there were no trials
    """
    if n == 0:
        return (0.0, 0.0)

    p = successes / n
    z = stats.norm.ppf(0.5 + confidence / 2)
    z2 = z * z
    denominator = 1 + z2 / n
    center = (p + z2 / (2 * n)) / denominator
    half_width = z / denominator * np.sqrt(p * (1 - p) / n + z2 / (4 * n * n))
    low, high = np.clip([center - half_width, center + half_width], 0.0, 1.0)
    return (float(low), float(high))


@dataclass
class TurnMetrics:
    """What happened in one turn."""
    round_number: int
    team_id: str
    clue_word: str
    clue_number: int
    guesses_made: list[str]
    correct_guesses: int
    hit_trap: bool
    hit_other_team: bool
    turn_ended_by: str  # out_of_guesses, wrong_guess, trap, round_won, passed


@dataclass
class GameMetrics:
    """Outcome and turn log of one simulated game."""
    game_id: str
    game_format: str
    first_team_id: str
    winner_id: Optional[str]
    rounds_played: int
    total_turns: int
    trap_loss: bool
    turns: list[TurnMetrics] = field(default_factory=list)
    game_duration_s: float = 0.0

    @property
    def first_team_won(self) -> bool:
        return self.winner_id is not None and self.winner_id == self.first_team_id

    @property
    def correct_per_clue(self) -> float:
        if not self.turns:
            return 0.0
        return float(np.mean([t.correct_guesses for t in self.turns]))

    def to_dict(self) -> dict:
        data = asdict(self)
        data["correct_per_clue"] = self.correct_per_clue
        return data


@dataclass
class BenchmarkMetrics:
    """
    Aggregated metrics for a batch of simulated games.

    Wins are counted for the team that opens the first round, so the win
    rate measures the first-move advantage of the current rules.
    """
    label: str
    games: list[GameMetrics] = field(default_factory=list)

    @property
    def wins(self) -> int:
        return sum(1 for g in self.games if g.first_team_won)

    @property
    def undecided(self) -> int:
        """Games that completed without a winner."""
        return sum(1 for g in self.games if g.winner_id is None)

    @property
    def trap_losses(self) -> int:
        return sum(1 for g in self.games if g.trap_loss)

    @property
    def win_rate(self) -> float:
        return self.wins / len(self.games) if self.games else 0.0

    @property
    def trap_loss_rate(self) -> float:
        """Share of games in which some round ended on the trap."""
        return self.trap_losses / len(self.games) if self.games else 0.0

    @property
    def other_team_flip_rate(self) -> float:
        """Share of turns that revealed another team's card."""
        flags = [t.hit_other_team for g in self.games for t in g.turns]
        return float(np.mean(flags)) if flags else 0.0

    @property
    def avg_correct_per_clue(self) -> float:
        counts = [t.correct_guesses for g in self.games for t in g.turns]
        return float(np.mean(counts)) if counts else 0.0

    @property
    def avg_game_length(self) -> float:
        lengths = [g.total_turns for g in self.games]
        return float(np.mean(lengths)) if lengths else 0.0

    def win_rate_ci(self, confidence: float = 0.95) -> tuple[float, float]:
        return wilson_interval(self.wins, len(self.games), confidence)

    def trap_loss_ci(self, confidence: float = 0.95) -> tuple[float, float]:
        return wilson_interval(self.trap_losses, len(self.games), confidence)

    def summary(self) -> str:
        """Human-readable summary of simulation results."""
        win_low, win_high = self.win_rate_ci()
        trap_low, trap_high = self.trap_loss_ci()
        lines = [
            f"Simulation Results: {self.label}",
            "=" * 50,
            f"Games played: {len(self.games)}",
            f"First team win rate: {self.win_rate:.1%} (95% CI: {win_low:.1%} - {win_high:.1%})",
            f"Games without winner: {self.undecided}",
            f"Trap loss rate: {self.trap_loss_rate:.1%} (95% CI: {trap_low:.1%} - {trap_high:.1%})",
            f"Other team flip rate: {self.other_team_flip_rate:.1%}",
            f"Avg correct per clue: {self.avg_correct_per_clue:.2f}",
            f"Avg game length: {self.avg_game_length:.1f} turns",
        ]
        return "\n".join(lines)

    def to_dict(self) -> dict:
        win_low, win_high = self.win_rate_ci()
        return {
            "label": self.label,
            "total_games": len(self.games),
            "wins": self.wins,
            "undecided": self.undecided,
            "win_rate": self.win_rate,
            "win_rate_ci": [win_low, win_high],
            "trap_loss_rate": self.trap_loss_rate,
            "other_team_flip_rate": self.other_team_flip_rate,
            "avg_correct_per_clue": self.avg_correct_per_clue,
            "avg_game_length": self.avg_game_length,
            "games": [g.to_dict() for g in self.games],
        }

    def save(self, filepath: Path) -> None:
        """Write the batch, games included, as JSON."""
        filepath.parent.mkdir(parents=True, exist_ok=True)
        filepath.write_text(json.dumps(self.to_dict(), indent=2))
