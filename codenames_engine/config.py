"""Engine configuration."""

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Optional

from .game.generator import DEFAULT_NON_TEAM_RATIO
from .game.state import GameFormat


@dataclass(frozen=True)
class EngineConfig:
    """Defaults the engine applies when a call does not override them."""
    round_size: int = 25
    trap_count: int = 1
    non_team_ratio: float = DEFAULT_NON_TEAM_RATIO
    game_format: GameFormat = GameFormat.QUICK
    rotation_window: Optional[int] = None  # None: nobody repeats until all teammates served
    min_teams: int = 2
    min_players_per_team: int = 2
    deck_id: str = "BASE"
    language_code: str = "en"
    strict_clue_words: bool = False

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["game_format"] = self.game_format.value
        return data


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ValueError(msg)


def config_from_dict(data: dict[str, Any]) -> EngineConfig:
    known = {f.name for f in fields(EngineConfig)}
    unknown = sorted(set(data) - known)
    _require(not unknown, f"Unknown config keys: {', '.join(unknown)}")

    defaults = EngineConfig()
    window = data.get("rotation_window", defaults.rotation_window)
    cfg = EngineConfig(
        round_size=int(data.get("round_size", defaults.round_size)),
        trap_count=int(data.get("trap_count", defaults.trap_count)),
        non_team_ratio=float(data.get("non_team_ratio", defaults.non_team_ratio)),
        game_format=GameFormat(data.get("game_format", defaults.game_format.value)),
        rotation_window=int(window) if window is not None else None,
        min_teams=int(data.get("min_teams", defaults.min_teams)),
        min_players_per_team=int(data.get("min_players_per_team", defaults.min_players_per_team)),
        deck_id=str(data.get("deck_id", defaults.deck_id)),
        language_code=str(data.get("language_code", defaults.language_code)),
        strict_clue_words=bool(data.get("strict_clue_words", defaults.strict_clue_words)),
    )

    _require(cfg.round_size > 0, "round_size must be positive")
    _require(0 <= cfg.trap_count < cfg.round_size, "trap_count must be in [0, round_size)")
    _require(0.0 <= cfg.non_team_ratio < 1.0, "non_team_ratio must be in [0, 1)")
    _require(cfg.rotation_window is None or cfg.rotation_window >= 0, "rotation_window must not be negative")
    _require(cfg.min_teams >= 2, "min_teams must be at least 2")
    _require(cfg.min_players_per_team >= 2, "min_players_per_team must be at least 2")
    return cfg


def load_engine_config(path: str | Path) -> EngineConfig:
    p = Path(path)
    data = json.loads(p.read_text())
    _require(isinstance(data, dict), "Config must be a JSON object")
    return config_from_dict(data)
