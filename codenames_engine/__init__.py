# Codenames rules engine
from .config import EngineConfig, config_from_dict, load_engine_config
from .engine import GameEngine
from .store import GameStore, InMemoryGameStore
from .words import DeckWordSource, ListWordSource, WordSource, load_wordlist

__all__ = [
    "EngineConfig",
    "config_from_dict",
    "load_engine_config",
    "GameEngine",
    "GameStore",
    "InMemoryGameStore",
    "DeckWordSource",
    "ListWordSource",
    "WordSource",
    "load_wordlist",
]
