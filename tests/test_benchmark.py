"""Tests for the simulation runner and its metrics."""

import pytest

from codenames_engine import EngineConfig, ListWordSource
from codenames_engine.benchmark import BenchmarkMetrics, BenchmarkRunner, GameMetrics, RunnerConfig
from codenames_engine.benchmark.metrics import wilson_interval
from codenames_engine.game import GameFormat
from helpers import WORDS


def make_game(winner_id, trap_loss=False, turns=10):
    return GameMetrics(
        game_id="g",
        game_format="QUICK",
        first_team_id="red",
        winner_id=winner_id,
        rounds_played=1,
        total_turns=turns,
        trap_loss=trap_loss,
    )


class TestBenchmarkMetrics:
    def test_empty(self):
        metrics = BenchmarkMetrics(label="empty")
        assert metrics.win_rate == 0.0
        assert metrics.win_rate_ci() == (0.0, 0.0)
        assert metrics.avg_game_length == 0.0

    def test_rates(self):
        games = [make_game("red")] * 6 + [make_game("blue", trap_loss=True)] * 3 + [make_game(None)]
        metrics = BenchmarkMetrics(label="mixed", games=games)

        assert metrics.wins == 6
        assert metrics.undecided == 1
        assert metrics.win_rate == pytest.approx(0.6)
        assert metrics.trap_loss_rate == pytest.approx(0.3)
        assert metrics.avg_game_length == pytest.approx(10.0)

    def test_wilson_interval(self):
        games = [make_game("red")] * 50 + [make_game("blue")] * 50
        low, high = BenchmarkMetrics(label="even", games=games).win_rate_ci()
        assert low == pytest.approx(0.404, abs=0.01)
        assert high == pytest.approx(0.596, abs=0.01)

    def test_interval_stays_in_bounds(self):
        low, high = BenchmarkMetrics(label="sweep", games=[make_game("red")] * 5).win_rate_ci()
        assert 0.0 <= low < high <= 1.0

    def test_wilson_interval_without_trials(self):
        assert wilson_interval(0, 0) == (0.0, 0.0)

    def test_wilson_interval_narrows_with_more_trials(self):
        small = wilson_interval(5, 10)
        large = wilson_interval(500, 1000)
        assert small[1] - small[0] > large[1] - large[0]

    def test_trap_loss_ci(self):
        games = [make_game("red")] * 7 + [make_game("blue", trap_loss=True)] * 3
        low, high = BenchmarkMetrics(label="traps", games=games).trap_loss_ci()
        assert low < 0.3 < high

    def test_summary(self):
        summary = BenchmarkMetrics(label="mixed", games=[make_game("red")]).summary()
        assert "Games played: 1" in summary
        assert "95% CI" in summary


class TestBenchmarkRunner:
    @pytest.fixture
    def runner(self):
        return BenchmarkRunner(
            engine_config=EngineConfig(),
            runner_config=RunnerConfig(skill=0.8),
            word_source_factory=lambda rng: ListWordSource(WORDS, rng=rng),
        )

    def test_quick_games_always_decided(self, runner):
        metrics = runner.run(4, seed=11)
        assert len(metrics.games) == 4
        for game in metrics.games:
            assert game.winner_id is not None
            assert game.rounds_played == 1
            assert game.total_turns == len(game.turns) > 0

    def test_seeded_runs_repeat(self, runner):
        first = [(g.total_turns, g.trap_loss) for g in runner.run(3, seed=5).games]
        second = [(g.total_turns, g.trap_loss) for g in runner.run(3, seed=5).games]
        assert first == second

    def test_turn_endings(self, runner):
        metrics = runner.run(3, seed=2)
        endings = {"out_of_guesses", "wrong_guess", "trap", "round_won", "passed"}
        for game in metrics.games:
            assert all(t.turn_ended_by in endings for t in game.turns)
            assert game.turns[-1].turn_ended_by in {"trap", "round_won"}

    def test_best_of_three(self):
        runner = BenchmarkRunner(
            engine_config=EngineConfig(game_format=GameFormat.BEST_OF_THREE),
            word_source_factory=lambda rng: ListWordSource(WORDS, rng=rng),
        )
        game = runner.run(1, seed=9).games[0]
        assert 2 <= game.rounds_played <= 3
        assert game.winner_id is not None
