"""Card allocation: category distribution and word binding for a round."""

import math
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence

from .errors import InsufficientWordsError, InvalidAllocationError
from .state import Card, CardCategory, new_id

if TYPE_CHECKING:
    from ..words import WordSource


DEFAULT_NON_TEAM_RATIO = 8 / 25


@dataclass(frozen=True)
class CardDistribution:
    """How many cards of each category a round gets."""
    team_counts: dict[str, int]  # in play order, starting team first
    neutral: int
    trap: int

    @property
    def total(self) -> int:
        return sum(self.team_counts.values()) + self.neutral + self.trap

    def slots(self) -> list[tuple[CardCategory, Optional[str]]]:
        """Flat list of (category, team) slots, one per card."""
        slots: list[tuple[CardCategory, Optional[str]]] = []
        for team_id, count in self.team_counts.items():
            slots.extend([(CardCategory.TEAM, team_id)] * count)
        slots.extend([(CardCategory.NEUTRAL, None)] * self.neutral)
        slots.extend([(CardCategory.TRAP, None)] * self.trap)
        return slots


def compute_distribution(
    size: int,
    team_ids: Sequence[str],
    starting_team_id: str,
    trap_count: int = 1,
    non_team_ratio: float = DEFAULT_NON_TEAM_RATIO,
) -> CardDistribution:
    """
    Work out the category counts for a round.

    Non-team cards take `non_team_ratio` of the board (rounded half up). The rest
    is split as evenly as possible between teams; when it does not divide, the
    starting team (then the next teams in play order) get one extra card.
    The trap cards come out of the non-team share.

    Args:
        size: Number of cards in the round
        team_ids: Teams in play order
        starting_team_id: Team that plays first
        trap_count: Number of trap cards
        non_team_ratio: Share of the board that is neutral or trap

    Returns:
        The distribution, with team counts ordered from the starting team
    """
    if starting_team_id not in team_ids:
        raise InvalidAllocationError(f"Starting team {starting_team_id!r} is not playing")
    if len(set(team_ids)) != len(team_ids):
        raise InvalidAllocationError("Team ids must be unique")
    if trap_count < 0:
        raise InvalidAllocationError(f"Trap count must not be negative, got {trap_count}")
    if trap_count >= size:
        raise InvalidAllocationError(
            f"Trap count {trap_count} must be smaller than the round size {size}"
        )

    non_team = math.floor(non_team_ratio * size + 0.5)
    neutral = non_team - trap_count
    if neutral < 0:
        raise InvalidAllocationError(
            f"{trap_count} trap cards do not fit in {non_team} non-team cards for size {size}"
        )

    base, extra = divmod(size - non_team, len(team_ids))
    if base < 1:
        raise InvalidAllocationError(
            f"Round size {size} is too small for {len(team_ids)} teams"
        )

    start = team_ids.index(starting_team_id)
    ordered = list(team_ids[start:]) + list(team_ids[:start])
    team_counts = {
        team_id: base + (1 if i < extra else 0)
        for i, team_id in enumerate(ordered)
    }
    return CardDistribution(team_counts=team_counts, neutral=neutral, trap=trap_count)


class CardAllocator:
    """
    Deals the cards for a round.

    Words come from a word source; each word is bound to a category slot
    picked uniformly at random from the slots still free. The default random
    source is the operating system's, so boards can not be predicted from
    earlier ones. Pass a seeded `random.Random` for reproducible boards.
    """

    def __init__(
        self,
        word_source: "WordSource",
        rng: Optional[random.Random] = None,
        non_team_ratio: float = DEFAULT_NON_TEAM_RATIO,
    ):
        self.word_source = word_source
        self.rng = rng or random.SystemRandom()
        self.non_team_ratio = non_team_ratio

    def deal(
        self,
        size: int,
        team_ids: Sequence[str],
        starting_team_id: str,
        trap_count: int = 1,
        deck_id: str = "BASE",
        language_code: str = "en",
    ) -> list[Card]:
        """
        Allocate and bind a full set of cards.

        Returns:
            `size` cards in board order
        """
        distribution = compute_distribution(
            size, team_ids, starting_team_id, trap_count, self.non_team_ratio
        )
        words = [w.strip() for w in self.word_source.fetch_words(size, deck_id, language_code)][:size]
        self._check_words(words, size)
        return self.bind(words, distribution)

    def bind(self, words: Sequence[str], distribution: CardDistribution) -> list[Card]:
        """Assign each word, in order, to a randomly chosen free slot."""
        slots = distribution.slots()
        if len(words) != len(slots):
            raise InsufficientWordsError(
                f"Need {len(slots)} words, got {len(words)}"
            )

        cards = []
        for word in words:
            category, team_id = slots.pop(self.rng.randrange(len(slots)))
            cards.append(Card(id=new_id(), word=word, category=category, team_id=team_id))
        return cards

    @staticmethod
    def _check_words(words: Sequence[str], size: int) -> None:
        unique = {w.upper() for w in words if w}
        if len(words) < size or len(unique) < size:
            raise InsufficientWordsError(
                f"Word source returned {len(unique)} unique words, {size} needed"
            )
