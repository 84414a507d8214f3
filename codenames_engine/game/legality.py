"""Clue word legality checks."""

import re
from typing import Iterable, Tuple


def normalize_token(s: str) -> str:
    # Keep letters only for strict substring checks
    return re.sub(r"[^\w]|[\d_]", "", s).upper()


def is_single_word(clue: str) -> bool:
    clue = clue.strip()
    return bool(clue) and not re.search(r"\s", clue) and bool(normalize_token(clue))


def check_clue_word(
    clue: str,
    board_words: Iterable[str],
    used_clues: Iterable[str] = (),
    strict: bool = False,
) -> Tuple[bool, str]:
    """
    Returns (ok, reason_if_not_ok).

    The basic check rejects anything that is not a single word, equals a board
    word (case-insensitive) or repeats a clue already given this round.
    `strict` also rejects substring overlap and simple plural variants.
    """
    clue_raw = clue.strip()
    if not clue_raw:
        return False, "empty"
    if not is_single_word(clue_raw):
        return False, "not_single_word"

    clue_upper = clue_raw.upper()
    board_words = list(board_words)
    for w in board_words:
        if w.strip().upper() == clue_upper:
            return False, f"matches_board_word:{w}"

    for used in used_clues:
        if used.strip().upper() == clue_upper:
            return False, f"already_used:{used}"

    if strict:
        clue_norm = normalize_token(clue_raw)
        for w_raw in board_words:
            w_norm = normalize_token(w_raw)
            if clue_norm and w_norm and (clue_norm in w_norm or w_norm in clue_norm):
                return False, f"substring_overlap:{w_raw}"
            if clue_norm + "S" == w_norm or w_norm + "S" == clue_norm:
                return False, f"plural_variant:{w_raw}"

    return True, "ok"
