"""Board view of a round's cards."""

import math
from dataclasses import dataclass
from typing import Iterator, Optional

from .state import Card, CardCategory, Game, Round


@dataclass
class Board:
    """
    Read-only view of one round's cards laid out in a grid.

    The cards are kept in deal order, row-major. The grid is as close to
    square as the round size allows (25 cards -> 5x5, 9 cards -> 3x3).
    """
    cards: list[Card]
    team_names: dict[str, str]

    @classmethod
    def from_round(cls, game: Game, rnd: Round) -> "Board":
        """Create a board from a round of a game."""
        return cls(
            cards=list(rnd.cards),
            team_names={team.id: team.name for team in game.teams},
        )

    @property
    def columns(self) -> int:
        return max(1, math.ceil(math.sqrt(len(self.cards))))

    @property
    def rows(self) -> int:
        return math.ceil(len(self.cards) / self.columns) if self.cards else 0

    def get_card(self, row: int, col: int) -> Card:
        """Card at grid position (row, col)."""
        index = row * self.columns + col
        if row < 0 or not (0 <= col < self.columns and index < len(self.cards)):
            raise ValueError(f"Invalid position: ({row}, {col})")
        return self.cards[index]

    def get_card_by_word(self, word: str) -> Optional[Card]:
        """Look a card up by word, ignoring case and surrounding blanks."""
        wanted = word.strip().upper()
        return next((card for card in self.cards if card.word.upper() == wanted), None)

    @property
    def unrevealed_words(self) -> list[str]:
        return [card.word for card in self.cards if not card.revealed]

    def get_remaining_team_words(self, team_id: str) -> list[str]:
        """Words of the team's cards still face down."""
        return [
            card.word for card in self.cards
            if card.category == CardCategory.TEAM and card.team_id == team_id and not card.revealed
        ]

    @property
    def trap_words(self) -> list[str]:
        return [card.word for card in self.cards if card.category == CardCategory.TRAP]

    def _label(self, card: Card) -> str:
        if card.category == CardCategory.TEAM:
            return self.team_names.get(card.team_id, "?")[:3].upper()
        if card.category == CardCategory.TRAP:
            return "XXX"
        return "---"

    def _grid_rows(self) -> Iterator[list[Card]]:
        for start in range(0, len(self.cards), self.columns):
            yield self.cards[start:start + self.columns]

    def render_for_spymaster(self) -> str:
        """Clue-giver view: each word with its category underneath, lowercased once revealed."""
        lines = []
        for row in self._grid_rows():
            labels = [self._label(c).lower() if c.revealed else self._label(c) for c in row]
            lines.append(" ".join(f"{card.word:12}" for card in row))
            lines.append(" ".join(f"{label:^12}" for label in labels))
            lines.append("")
        return "\n".join(lines)

    def render_for_guesser(self) -> str:
        """Guesser view: categories appear only on revealed cards."""
        return "\n".join(
            " ".join(
                f"{'[' + self._label(card) + ']':^12}" if card.revealed else f"{card.word:12}"
                for card in row
            )
            for row in self._grid_rows()
        )
