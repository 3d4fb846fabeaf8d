import random

import pytest

from circuit_challenge.engine.difficulty import get_profile_by_level
from circuit_challenge.engine.game import (
    Status,
    attempt_move,
    create_session,
    request_new_puzzle,
    reset_puzzle,
    reveal,
)
from circuit_challenge.engine.generator import generate_puzzle
from tests.conftest import build_test_puzzle


@pytest.fixture
def wrong_first_puzzle():
    return build_test_puzzle(
        1, 4,
        path=[(0, 0), (0, 1), (0, 2), (0, 3)],
        answers={(0, 0): 5, (0, 1): 6, (0, 2): 7},
        labels={((0, 0), (0, 1)): 1, ((0, 1), (0, 2)): 6, ((0, 2), (0, 3)): 7},
    )


@pytest.fixture
def diagonal_session(short_profile):
    return create_session(generate_puzzle(short_profile, 5), max_lives=3)


class TestScenarios:
    def test_two_correct_moves_win(self, diagonal_session):
        session = diagonal_session
        assert session.status is Status.READY

        session = attempt_move(session, (1, 1))
        assert session.status is Status.PLAYING
        session = attempt_move(session, (2, 2))
        assert session.status is Status.WON
        assert session.coins == 20
        assert session.lives == 3

    def test_far_cell_is_ignored(self, diagonal_session):
        before = diagonal_session.model_copy(deep=True)
        after = attempt_move(diagonal_session, (2, 2))
        assert after.status is Status.READY
        assert after.position == before.position
        assert after.moves == [] and after.lives == before.lives

    def test_single_life_lost_on_first_mistake(self, wrong_first_puzzle):
        session = create_session(wrong_first_puzzle, max_lives=1)
        session = attempt_move(session, (0, 1))
        assert session.status is Status.LOST
        assert session.lives == 0
        assert session.coins == 0  # -30, floored

    def test_hidden_mode_settles_on_reveal(self, line_puzzle):
        session = create_session(line_puzzle, max_lives=3, hidden_mode=True)
        for target in [(0, 1), (0, 2), (0, 3)]:
            session = attempt_move(session, target)
        assert session.status is Status.REVEALING
        assert session.coins == 0 and session.lives == 3
        assert (session.correct_count, session.mistake_count) == (2, 1)

        session = reveal(session)
        assert session.status is Status.WON
        assert session.coins == 0  # 2 * 10 - 1 * 30


class TestStandardMode:
    def test_mistake_costs_a_life_and_coins(self, line_puzzle):
        session = create_session(line_puzzle, max_lives=3)
        for target in [(0, 1), (0, 2)]:
            session = attempt_move(session, target)
        assert session.coins == 20
        session = attempt_move(session, (0, 3))
        assert session.status is Status.WON  # finish reached with lives left
        assert session.lives == 2
        assert session.coins == 0

    def test_wrong_move_still_advances(self, wrong_first_puzzle):
        session = create_session(wrong_first_puzzle, max_lives=3)
        session = attempt_move(session, (0, 1))
        assert session.position == (0, 1)
        assert not session.moves[-1].correct
        assert session.status is Status.PLAYING and session.lives == 2

    def test_hidden_reveal_keeps_positive_score(self, solvable_line_puzzle):
        session = create_session(solvable_line_puzzle, hidden_mode=True)
        for target in [(0, 1), (0, 2), (0, 3)]:
            session = attempt_move(session, target)
        session = reveal(session)
        assert session.coins == 30


class TestTotality:
    @pytest.mark.parametrize("target", [None, "1,1", (1,), (1, 1, 1), (True, False), (1.0, 1.0), (-1, 0), (9, 9)])
    def test_malformed_or_off_grid_targets(self, diagonal_session, target):
        session = attempt_move(diagonal_session, target)
        assert session.status is Status.READY
        assert session.moves == []

    def test_dict_targets(self, diagonal_session):
        session = attempt_move(diagonal_session, {"row": 1, "col": 1})
        assert session.position == (1, 1)

    def test_visited_cell_is_refused(self, line_puzzle):
        session = create_session(line_puzzle)
        session = attempt_move(session, (0, 1))
        session = attempt_move(session, (0, 0))
        assert session.position == (0, 1)
        assert len(session.moves) == 1

    def test_no_moves_after_game_over(self, diagonal_session):
        session = attempt_move(attempt_move(diagonal_session, (1, 1)), (2, 2))
        assert session.status is Status.WON
        assert not session.can_move_to((2, 1))
        session = attempt_move(session, (2, 1))
        assert session.position == (2, 2)

    def test_reveal_only_from_revealing(self, diagonal_session):
        session = reveal(diagonal_session)
        assert session.status is Status.READY


class TestLifecycle:
    def test_reset_restores_start(self, line_puzzle):
        session = create_session(line_puzzle, max_lives=2)
        session = attempt_move(session, (0, 1))
        session = session.tick(4.5)
        session = reset_puzzle(session)
        assert session.status is Status.READY
        assert session.position == (0, 0)
        assert session.visited == [(0, 0)]
        assert (session.lives, session.coins, session.elapsed_seconds) == (2, 0, 0.0)

    def test_tick_only_while_playing(self, line_puzzle):
        session = create_session(line_puzzle)
        assert session.tick(3).elapsed_seconds == 0.0
        session = attempt_move(session, (0, 1)).tick(3)
        assert session.elapsed_seconds == 3.0
        assert session.tick(1).elapsed_seconds == 3.0

    def test_solution_only_when_over(self, diagonal_session):
        assert not diagonal_session.show_solution().solution_visible
        session = attempt_move(attempt_move(diagonal_session, (1, 1)), (2, 2))
        assert session.show_solution().solution_visible
        assert not session.hide_solution().solution_visible

    def test_summary_only_when_finished(self, diagonal_session):
        assert diagonal_session.summary() is None
        session = attempt_move(attempt_move(diagonal_session, (1, 1)), (2, 2))
        summary = session.summary()
        assert summary.outcome is Status.WON
        assert summary.path_length == 2
        assert summary.correct_count == 2 and summary.mistake_count == 0
        assert [move.to_cell for move in summary.moves] == [(1, 1), (2, 2)]

    def test_new_puzzle_keeps_settings(self):
        profile = get_profile_by_level(1)
        session = create_session(generate_puzzle(profile, 1), max_lives=2, hidden_mode=True)
        fresh = request_new_puzzle(session, profile, 2)
        assert fresh.id != session.id
        assert fresh.puzzle.id != session.puzzle.id
        assert fresh.max_lives == 2 and fresh.hidden_mode
        assert fresh.status is Status.READY


class TestRandomPlay:
    """Random legal walks over generated puzzles never break the economy"""

    @pytest.mark.parametrize("seed", range(6))
    @pytest.mark.parametrize("hidden_mode", [False, True])
    def test_coins_and_lives_never_negative(self, seed, hidden_mode):
        rng = random.Random(seed)
        puzzle = generate_puzzle(get_profile_by_level(rng.randint(1, 5)), rng)
        session = create_session(puzzle, max_lives=rng.randint(1, 5), hidden_mode=hidden_mode)

        for _ in range(3):
            while not session.is_over:
                targets = [coord for coord in puzzle.neighbors(session.position) if session.can_move_to(coord)]
                if not targets:
                    break  # walked into a dead end
                attempt_move(session, rng.choice(targets))
                assert session.coins >= 0
                if not hidden_mode:
                    assert 0 <= session.lives <= session.max_lives
                    assert session.coins <= session.reward * session.correct_count

            reveal(session)
            assert session.coins >= 0
            if session.status is Status.WON:
                assert session.position == puzzle.finish
            reset_puzzle(session)
