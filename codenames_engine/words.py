"""Word sources: where board words come from."""

import json
import random
from pathlib import Path
from typing import Optional, Protocol, Sequence

from .game.errors import InsufficientWordsError
from .paths import DECKS_DIR


class WordSource(Protocol):
    def fetch_words(self, count: int, deck_id: str, language_code: str) -> list[str]:
        """Return exactly `count` unique words, or raise InsufficientWordsError."""
        ...


def load_wordlist(path: str | Path) -> list[str]:
    """Read a plain wordlist: one word per line, '#' comments, duplicates dropped."""
    p = Path(path)
    words: list[str] = []
    for line in p.read_text(encoding="utf-8").splitlines():
        w = line.strip()
        if not w or w.startswith("#"):
            continue
        words.append(w.upper())
    return list(dict.fromkeys(words))


class ListWordSource:
    """Serves words from a fixed list, ignoring deck and language."""

    def __init__(self, words: Sequence[str], rng: Optional[random.Random] = None):
        self.words = list(dict.fromkeys(w.strip().upper() for w in words if w.strip()))
        self.rng = rng or random.SystemRandom()

    def fetch_words(self, count: int, deck_id: str = "BASE", language_code: str = "en") -> list[str]:
        if count > len(self.words):
            raise InsufficientWordsError(
                f"Wordlist has {len(self.words)} words, {count} requested"
            )
        return self.rng.sample(self.words, count)


class DeckWordSource:
    """
    Serves words from JSON deck files.

    Each file holds ``{"decks": [{"deck": ..., "language_code": ..., "word": ...}, ...]}``;
    rows from every file in the directory are merged and grouped by
    (deck, language).
    """

    def __init__(self, decks_dir: Optional[Path] = None, rng: Optional[random.Random] = None):
        self.decks_dir = Path(decks_dir) if decks_dir is not None else DECKS_DIR
        self.rng = rng or random.SystemRandom()
        self._decks = self._load_decks(self.decks_dir)

    @staticmethod
    def _load_decks(decks_dir: Path) -> dict[tuple[str, str], list[str]]:
        if not decks_dir.exists():
            raise FileNotFoundError(f"Could not find deck directory at {decks_dir}")

        decks: dict[tuple[str, str], list[str]] = {}
        for path in sorted(decks_dir.glob("*.json")):
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            for row in data.get("decks", []):
                key = (row["deck"], row["language_code"])
                decks.setdefault(key, []).append(row["word"].strip().upper())

        return {key: list(dict.fromkeys(words)) for key, words in decks.items()}

    def available_decks(self) -> list[tuple[str, str, int]]:
        """(deck, language, word count) for every deck loaded."""
        return [(deck, lang, len(words)) for (deck, lang), words in sorted(self._decks.items())]

    def fetch_words(self, count: int, deck_id: str, language_code: str) -> list[str]:
        pool = self._decks.get((deck_id, language_code), [])
        if count > len(pool):
            raise InsufficientWordsError(
                f"Deck {deck_id}/{language_code} has {len(pool)} words, {count} requested"
            )
        return self.rng.sample(pool, count)
