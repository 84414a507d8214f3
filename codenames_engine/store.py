"""Persistence for game aggregates."""

import threading
from typing import Protocol

from .game.errors import ConcurrentUpdateError, NotFoundError
from .game.state import Game


class GameStore(Protocol):
    """
    What the engine needs from persistence.

    `load` returns a private copy of the stored game. `save` commits a game
    only if the stored version still equals `game.version`; it then bumps the
    version. `game_id_for` resolves a round, turn, card or player id to the
    game that owns it.
    """

    def load(self, game_id: str) -> Game: ...

    def save(self, game: Game) -> Game: ...

    def game_id_for(self, entity_id: str) -> str: ...


class InMemoryGameStore:
    """
    Keeps games in a dict. Reads and writes hand out copies so callers can
    never mutate the stored state directly.
    """

    def __init__(self) -> None:
        self._games: dict[str, Game] = {}
        self._owners: dict[str, str] = {}
        self._lock = threading.Lock()

    def load(self, game_id: str) -> Game:
        with self._lock:
            game = self._games.get(game_id)
            if game is None:
                raise NotFoundError(f"Game {game_id} not found")
            return game.copy()

    def save(self, game: Game) -> Game:
        with self._lock:
            stored = self._games.get(game.id)
            stored_version = stored.version if stored is not None else 0
            if stored is not None and stored_version != game.version:
                raise ConcurrentUpdateError(
                    f"Game {game.id} changed (version {stored_version}, expected {game.version})"
                )
            saved = game.copy()
            saved.version = stored_version + 1
            self._games[game.id] = saved
            self._index(saved)
            return saved.copy()

    def game_id_for(self, entity_id: str) -> str:
        with self._lock:
            if entity_id in self._games:
                return entity_id
            game_id = self._owners.get(entity_id)
        if game_id is None:
            raise NotFoundError(f"No game owns {entity_id}")
        return game_id

    def _index(self, game: Game) -> None:
        ids = [t.id for t in game.teams] + [p.id for p in game.players]
        for rnd in game.rounds:
            ids.append(rnd.id)
            ids.extend(c.id for c in rnd.cards)
            ids.extend(t.id for t in rnd.turns)
        for entity_id in ids:
            self._owners[entity_id] = game.id
