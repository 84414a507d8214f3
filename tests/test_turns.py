"""Tests for the turn lifecycle: clues, guesses and hand-over."""

import pytest

from codenames_engine.game import (
    CardCategory,
    InvalidClueError,
    InvalidTurnStateError,
    Outcome,
    Role,
    TurnPhase,
    TurnStatus,
    UnauthorizedActionError,
)
from helpers import cards_of, clue_giver_of, guesser_of, snapshot


@pytest.fixture
def red_turn(engine, live_round):
    """(game, round, turn) with Red's turn open and no clue yet."""
    game, rnd = snapshot(engine, live_round.id)
    return game, rnd, rnd.active_turn


@pytest.fixture
def clued_turn(engine, red_turn):
    """Red's turn after a clue for 2 cards."""
    game, rnd, turn = red_turn
    engine.give_clue(turn.id, clue_giver_of(rnd, turn.team_id), "ZEPHYR", 2)
    return snapshot(engine, rnd.id) + (turn,)


class TestOpenTurn:
    def test_round_opens_with_starting_team(self, red_turn):
        game, rnd, turn = red_turn
        assert turn.team_id == game.teams[0].id == rnd.starting_team_id
        assert turn.phase == TurnPhase.OPEN
        assert turn.guesses_remaining == 0
        assert turn.clue is None

    def test_second_turn_while_active(self, engine, red_turn):
        game, rnd, turn = red_turn
        with pytest.raises(InvalidTurnStateError):
            engine.open_turn(rnd.id, game.teams[1].id)

    def test_player_context(self, engine, red_turn):
        game, rnd, turn = red_turn
        giver = clue_giver_of(rnd, turn.team_id)
        ctx = engine.player_context(rnd.id, giver)
        assert ctx.game_id == game.id
        assert ctx.team_id == turn.team_id
        assert ctx.role == Role.CLUE_GIVER


class TestGiveClue:
    def test_give_clue(self, engine, red_turn):
        game, rnd, turn = red_turn
        clue = engine.give_clue(turn.id, clue_giver_of(rnd, turn.team_id), "zephyr", 2)

        assert clue.word == "zephyr"
        assert clue.target_count == 2
        _, rnd = snapshot(engine, rnd.id)
        stored = rnd.get_turn(turn.id)
        assert stored.phase == TurnPhase.CLUED
        assert stored.guesses_remaining == 3  # number + 1

    def test_guesser_cannot_give_clue(self, engine, red_turn):
        game, rnd, turn = red_turn
        with pytest.raises(UnauthorizedActionError) as exc:
            engine.give_clue(turn.id, guesser_of(rnd, turn.team_id), "ZEPHYR", 2)
        assert exc.value.category == "authorization"

        _, rnd = snapshot(engine, rnd.id)
        stored = rnd.get_turn(turn.id)
        assert stored.phase == TurnPhase.OPEN
        assert stored.clue is None
        assert stored.guesses_remaining == 0

    def test_other_team_clue_giver(self, engine, red_turn):
        game, rnd, turn = red_turn
        with pytest.raises(UnauthorizedActionError):
            engine.give_clue(turn.id, clue_giver_of(rnd, game.teams[1].id), "ZEPHYR", 2)

    def test_clue_on_board(self, engine, red_turn):
        game, rnd, turn = red_turn
        with pytest.raises(InvalidClueError, match="matches_board_word"):
            engine.give_clue(turn.id, clue_giver_of(rnd, turn.team_id), rnd.cards[0].word.lower(), 1)

    def test_clue_must_be_one_word(self, engine, red_turn):
        game, rnd, turn = red_turn
        with pytest.raises(InvalidClueError, match="not_single_word"):
            engine.give_clue(turn.id, clue_giver_of(rnd, turn.team_id), "two words", 1)

    @pytest.mark.parametrize("count", [-1, 25])
    def test_target_count_out_of_range(self, engine, red_turn, count):
        game, rnd, turn = red_turn
        with pytest.raises(InvalidClueError):
            engine.give_clue(turn.id, clue_giver_of(rnd, turn.team_id), "ZEPHYR", count)

    def test_zero_allowed(self, engine, red_turn):
        game, rnd, turn = red_turn
        clue = engine.give_clue(turn.id, clue_giver_of(rnd, turn.team_id), "ZEPHYR", 0)
        assert clue.target_count == 0

    def test_only_one_clue_per_turn(self, engine, clued_turn):
        game, rnd, turn = clued_turn
        with pytest.raises(InvalidTurnStateError):
            engine.give_clue(turn.id, clue_giver_of(rnd, turn.team_id), "QUASAR", 1)

    def test_clue_reuse_in_round(self, engine, clued_turn):
        game, rnd, turn = clued_turn
        engine.end_turn(turn.id)

        _, rnd = snapshot(engine, rnd.id)
        blue_turn = rnd.active_turn
        with pytest.raises(InvalidClueError, match="already_used"):
            engine.give_clue(blue_turn.id, clue_giver_of(rnd, blue_turn.team_id), "Zephyr", 1)


class TestMakeGuess:
    def test_guess_before_clue(self, engine, red_turn):
        game, rnd, turn = red_turn
        card = cards_of(rnd, CardCategory.TEAM, turn.team_id)[0]
        with pytest.raises(InvalidTurnStateError, match="No clue"):
            engine.submit_guess(turn.id, guesser_of(rnd, turn.team_id), card.id)

    def test_clue_giver_cannot_guess(self, engine, clued_turn):
        game, rnd, turn = clued_turn
        card = cards_of(rnd, CardCategory.TEAM, turn.team_id)[0]
        with pytest.raises(UnauthorizedActionError):
            engine.submit_guess(turn.id, clue_giver_of(rnd, turn.team_id), card.id)

    def test_other_team_cannot_guess(self, engine, clued_turn):
        game, rnd, turn = clued_turn
        card = cards_of(rnd, CardCategory.TEAM, turn.team_id)[0]
        with pytest.raises(UnauthorizedActionError):
            engine.submit_guess(turn.id, guesser_of(rnd, game.teams[1].id), card.id)

    def test_correct_guess(self, engine, clued_turn):
        game, rnd, turn = clued_turn
        card = cards_of(rnd, CardCategory.TEAM, turn.team_id)[0]
        result = engine.submit_guess(turn.id, guesser_of(rnd, turn.team_id), card.id)

        assert result.outcome == Outcome.CORRECT_TEAM
        assert result.card.revealed
        assert not result.turn_ended
        assert not result.round_over

        game, rnd = snapshot(engine, rnd.id)
        assert rnd.get_card(card.id).revealed
        assert rnd.get_turn(turn.id).guesses_remaining == 2
        assert game.get_team(turn.team_id).score == 1

    def test_two_correct_then_neutral(self, engine, clued_turn):
        game, rnd, turn = clued_turn
        red, blue = game.teams
        guesser = guesser_of(rnd, red.id)
        own = cards_of(rnd, CardCategory.TEAM, red.id)

        for card in own[:2]:
            result = engine.submit_guess(turn.id, guesser, card.id)
            assert not result.turn_ended
        _, rnd = snapshot(engine, rnd.id)
        assert rnd.get_turn(turn.id).guesses_remaining == 1

        neutral = cards_of(rnd, CardCategory.NEUTRAL)[0]
        result = engine.submit_guess(turn.id, guesser, neutral.id)
        assert result.outcome == Outcome.NEUTRAL
        assert result.turn_ended
        assert not result.round_over
        assert result.next_turn.team_id == blue.id

        game, rnd = snapshot(engine, rnd.id)
        stored = rnd.get_turn(turn.id)
        assert stored.status == TurnStatus.COMPLETED
        assert stored.guesses_remaining == 0
        assert len(stored.guesses) == 3
        assert game.get_team(red.id).score == 2
        assert game.get_team(blue.id).score == 0
        assert rnd.active_turn.team_id == blue.id
        assert rnd.active_turn.phase == TurnPhase.OPEN

    def test_out_of_guesses_ends_turn(self, engine, red_turn):
        game, rnd, turn = red_turn
        engine.give_clue(turn.id, clue_giver_of(rnd, turn.team_id), "ZEPHYR", 0)
        card = cards_of(rnd, CardCategory.TEAM, turn.team_id)[0]

        result = engine.submit_guess(turn.id, guesser_of(rnd, turn.team_id), card.id)
        assert result.outcome == Outcome.CORRECT_TEAM
        assert result.turn_ended
        assert result.next_turn is not None

        _, rnd = snapshot(engine, rnd.id)
        assert rnd.get_turn(turn.id).guesses_remaining == 0

    def test_other_team_card_scores_nobody(self, engine, clued_turn):
        game, rnd, turn = clued_turn
        red, blue = game.teams
        card = cards_of(rnd, CardCategory.TEAM, blue.id)[0]

        result = engine.submit_guess(turn.id, guesser_of(rnd, red.id), card.id)
        assert result.outcome == Outcome.OTHER_TEAM
        assert result.turn_ended

        game, _ = snapshot(engine, rnd.id)
        assert game.get_team(blue.id).score == 0
        assert game.get_team(red.id).score == 0
        assert snapshot(engine, rnd.id)[1].get_card(card.id).revealed

    def test_revealed_card_rejected_without_side_effects(self, engine, clued_turn):
        game, rnd, turn = clued_turn
        guesser = guesser_of(rnd, turn.team_id)
        card = cards_of(rnd, CardCategory.TEAM, turn.team_id)[0]
        engine.submit_guess(turn.id, guesser, card.id)
        before, _ = snapshot(engine, rnd.id)

        with pytest.raises(InvalidTurnStateError, match="already been revealed"):
            engine.submit_guess(turn.id, guesser, card.id)

        after, rnd = snapshot(engine, rnd.id)
        assert after.version == before.version
        assert rnd.get_turn(turn.id).guesses_remaining == 2
        assert len(rnd.get_turn(turn.id).guesses) == 1
        assert after.get_team(turn.team_id).score == 1

    def test_unknown_card(self, engine, clued_turn):
        game, rnd, turn = clued_turn
        with pytest.raises(InvalidTurnStateError, match="not on this round's board"):
            engine.submit_guess(turn.id, guesser_of(rnd, turn.team_id), "no-such-card")

    def test_guess_on_completed_turn(self, engine, clued_turn):
        game, rnd, turn = clued_turn
        engine.end_turn(turn.id)
        card = cards_of(rnd, CardCategory.TEAM, turn.team_id)[0]
        with pytest.raises(InvalidTurnStateError, match="already completed"):
            engine.submit_guess(turn.id, guesser_of(rnd, turn.team_id), card.id)

    def test_counter_never_negative(self, engine, clued_turn):
        game, rnd, turn = clued_turn
        guesser = guesser_of(rnd, turn.team_id)
        own = cards_of(rnd, CardCategory.TEAM, turn.team_id)

        results = [engine.submit_guess(turn.id, guesser, card.id) for card in own[:3]]
        assert [r.turn_ended for r in results] == [False, False, True]

        with pytest.raises(InvalidTurnStateError):
            engine.submit_guess(turn.id, guesser, own[3].id)
        _, rnd = snapshot(engine, rnd.id)
        assert rnd.get_turn(turn.id).guesses_remaining == 0


class TestEndTurn:
    def test_guesser_ends_turn(self, engine, clued_turn):
        game, rnd, turn = clued_turn
        ended = engine.end_turn(turn.id, guesser_of(rnd, turn.team_id))

        assert ended.status == TurnStatus.COMPLETED
        assert ended.guesses_remaining == 0
        assert ended.completed_at is not None

        _, rnd = snapshot(engine, rnd.id)
        assert rnd.active_turn.team_id == game.teams[1].id

    def test_clue_giver_ends_turn(self, engine, clued_turn):
        game, rnd, turn = clued_turn
        ended = engine.end_turn(turn.id, clue_giver_of(rnd, turn.team_id))
        assert ended.status == TurnStatus.COMPLETED

    def test_system_ends_turn(self, engine, clued_turn):
        game, rnd, turn = clued_turn
        assert engine.end_turn(turn.id).status == TurnStatus.COMPLETED

    def test_other_team_cannot_end_turn(self, engine, clued_turn):
        game, rnd, turn = clued_turn
        with pytest.raises(UnauthorizedActionError):
            engine.end_turn(turn.id, guesser_of(rnd, game.teams[1].id))

    def test_end_turn_before_clue(self, engine, red_turn):
        game, rnd, turn = red_turn
        with pytest.raises(InvalidTurnStateError):
            engine.end_turn(turn.id, guesser_of(rnd, turn.team_id))

    def test_end_turn_twice(self, engine, clued_turn):
        game, rnd, turn = clued_turn
        engine.end_turn(turn.id)
        with pytest.raises(InvalidTurnStateError):
            engine.end_turn(turn.id)

    def test_turns_alternate(self, engine, clued_turn):
        game, rnd, turn = clued_turn
        red, blue = game.teams
        engine.end_turn(turn.id)

        _, rnd = snapshot(engine, rnd.id)
        blue_turn = rnd.active_turn
        engine.give_clue(blue_turn.id, clue_giver_of(rnd, blue.id), "QUASAR", 1)
        engine.end_turn(blue_turn.id)

        _, rnd = snapshot(engine, rnd.id)
        assert [t.team_id for t in rnd.turns] == [red.id, blue.id, red.id]
