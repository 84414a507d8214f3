"""Command-line interface for the Codenames rules engine."""

import logging
import random
from dataclasses import replace
from pathlib import Path
from typing import Optional

import click

from .config import EngineConfig, load_engine_config
from .engine import GameEngine
from .game import Board, CardCategory, GameFormat, GameRulesError
from .words import DeckWordSource
from .benchmark import BenchmarkRunner, GameRunner, RunnerConfig, TurnMetrics


def _make_engine(config: EngineConfig, seed: Optional[int]) -> GameEngine:
    rng = random.Random(seed) if seed is not None else None
    return GameEngine(word_source=DeckWordSource(rng=rng), config=config, rng=rng)


@click.group()
@click.option("--config", "-c", "config_path", type=click.Path(exists=True), help="Engine config JSON file")
@click.option("--log-level", default="WARNING",
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
              help="Logging level")
@click.pass_context
def main(ctx: click.Context, config_path: Optional[str], log_level: str):
    """Codenames rules engine CLI."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_engine_config(config_path) if config_path else EngineConfig()
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--config")


@main.command()
@click.option("--size", "-n", type=int, help="Number of cards (default from config)")
@click.option("--teams", "-t", default=2, help="Number of teams")
@click.option("--seed", "-s", type=int, help="Random seed for reproducibility")
@click.option("--language", "-l", help="Deck language code (default from config)")
@click.option("--guesser-view", is_flag=True, help="Hide card categories")
@click.pass_context
def deal(
    ctx: click.Context,
    size: Optional[int],
    teams: int,
    seed: Optional[int],
    language: Optional[str],
    guesser_view: bool,
):
    """Deal one board and print it."""
    config: EngineConfig = ctx.obj["config"]
    if language:
        config = replace(config, language_code=language)
    engine = _make_engine(config, seed)

    team_names = ["Red", "Blue", "Green", "Yellow", "Purple", "Orange"][:teams]
    if len(team_names) < teams:
        raise click.BadParameter(f"At most {len(team_names)} teams supported", param_hint="--teams")

    try:
        game = engine.create_game(team_names)
        for team in game.teams:
            for seat in range(config.min_players_per_team):
                engine.add_player(game.id, team.id, f"{team.name}-{seat + 1}")
        game = engine.start_game(game.id)
        rnd = engine.create_round(game.id)
        engine.allocate_cards(rnd.id, size=size)
    except GameRulesError as e:
        raise click.ClickException(f"{type(e).__name__}: {e}")

    game = engine.get_game(game.id)
    board = Board.from_round(game, game.get_round(rnd.id))
    click.echo(board.render_for_guesser() if guesser_view else board.render_for_spymaster())

    click.echo(f"Starting team: {game.get_team(rnd.starting_team_id).name}")
    for team in game.teams:
        click.echo(f"  {team.name}: {len(board.get_remaining_team_words(team.id))} cards")
    click.echo(f"  Neutral: {sum(1 for c in board.cards if c.category == CardCategory.NEUTRAL)} cards")
    click.echo(f"  Trap: {len(board.trap_words)} cards")


@main.command()
@click.option("--seed", "-s", type=int, default=42, help="Random seed")
@click.option("--skill", default=0.7, type=click.FloatRange(0.0, 1.0), help="Chance a guess picks an own card")
@click.option("--format", "game_format", type=click.Choice([f.value for f in GameFormat]),
              help="Game format (default from config)")
@click.pass_context
def play(ctx: click.Context, seed: int, skill: float, game_format: Optional[str]):
    """Play a single simulated game with verbose output."""
    config: EngineConfig = ctx.obj["config"]
    if game_format:
        config = replace(config, game_format=GameFormat(game_format))
    engine = _make_engine(config, seed)
    runner = GameRunner(
        engine,
        RunnerConfig(skill=skill, players_per_team=max(2, config.min_players_per_team)),
        random.Random(seed),
    )

    def on_turn(t: TurnMetrics) -> None:
        click.echo(
            f"R{t.round_number} {t.team_id[:6]}: {t.clue_word} {t.clue_number} -> "
            f"{', '.join(t.guesses_made)} ({t.turn_ended_by})"
        )

    click.echo(f"Starting {config.game_format.value} game with seed {seed}...")
    click.echo("=" * 60)
    metrics = runner.run_game(on_turn=on_turn)
    game = engine.get_game(metrics.game_id)

    click.echo("=" * 60)
    winner = game.get_team(metrics.winner_id) if metrics.winner_id else None
    click.echo(f"Winner: {winner.name if winner else 'None'}")
    click.echo(f"Rounds: {metrics.rounds_played}")
    click.echo(f"Total turns: {metrics.total_turns}")
    click.echo(f"Scores: {', '.join(f'{t.name}={t.score}' for t in game.teams)}")
    click.echo(f"Avg correct per clue: {metrics.correct_per_clue:.2f}")


@main.command()
@click.option("--games", "-n", default=100, help="Number of games to simulate")
@click.option("--seed", "-s", type=int, help="Base random seed")
@click.option("--skill", default=0.7, type=click.FloatRange(0.0, 1.0), help="Chance a guess picks an own card")
@click.option("--output", "-o", type=click.Path(), help="Output results file")
@click.pass_context
def simulate(ctx: click.Context, games: int, seed: Optional[int], skill: float, output: Optional[str]):
    """Simulate many games and report win-rate statistics."""
    config: EngineConfig = ctx.obj["config"]
    runner = BenchmarkRunner(
        engine_config=config,
        runner_config=RunnerConfig(skill=skill, players_per_team=max(2, config.min_players_per_team)),
    )

    click.echo(f"Simulating {games} games...")
    metrics = runner.run(games, seed=seed)
    click.echo(f"\n{metrics.summary()}")

    if output:
        output_path = Path(output)
        metrics.save(output_path)
        click.echo(f"\nResults saved to {output_path}")


@main.command()
def decks():
    """List the bundled word decks."""
    source = DeckWordSource()
    click.echo(f"{'Deck':<10} {'Language':<10} {'Words':>6}")
    click.echo("-" * 28)
    for deck, language, count in source.available_decks():
        click.echo(f"{deck:<10} {language:<10} {count:>6}")


if __name__ == "__main__":
    main()
