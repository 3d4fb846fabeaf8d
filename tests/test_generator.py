"""
Generator tests.

Verifies:
1. Every preset yields puzzles the validator accepts
2. Same seed gives the same puzzle, different seeds give variety
3. Impossible profiles end in GenerationFailure instead of looping
"""
import asyncio
import random

import pytest

from circuit_challenge.engine.difficulty import DIFFICULTY_PRESETS, create_custom_profile, get_profile_by_level
from circuit_challenge.engine.errors import GenerationFailure
from circuit_challenge.engine.generator import (
    carve_path,
    count_direction_changes,
    generate_puzzle,
    generate_puzzle_async,
    required_direction_changes,
)
from circuit_challenge.engine.topology import Coordinate, Topology, are_adjacent
from circuit_challenge.engine.validator import find_correct_path, validate_puzzle


@pytest.mark.parametrize("seed", range(4))
@pytest.mark.parametrize("level", range(1, len(DIFFICULTY_PRESETS) + 1))
def test_presets_generate_valid_puzzles(level, seed):
    profile = get_profile_by_level(level)
    puzzle = generate_puzzle(profile, random.Random(level * 1000 + seed))

    assert validate_puzzle(puzzle, profile).valid
    assert profile.min_path_length <= puzzle.path_length <= profile.max_path_length
    assert find_correct_path(puzzle) == list(puzzle.canonical_path)
    assert puzzle.level == level
    assert len(puzzle.cells) == profile.rows * profile.cols

    low, high = profile.label_range
    assert all(low <= edge.label <= high for edge in puzzle.edges)
    for cell in puzzle.cells:
        if cell.is_finish:
            assert cell.answer is None
        else:
            op_low, op_high = profile.answer_range(cell.operator)
            assert op_low <= cell.answer <= op_high


def test_route_cells_have_one_forward_exit():
    profile = get_profile_by_level(6)
    puzzle = generate_puzzle(profile, 11)
    order = {coord: index for index, coord in enumerate(puzzle.canonical_path)}
    for here, there in zip(puzzle.canonical_path, puzzle.canonical_path[1:]):
        exits = [other for other in puzzle.neighbors(here)
                 if puzzle.is_correct_step(here, other) and order.get(other, len(order)) > order[here]]
        assert exits == [there]


class TestDeterminism:
    def test_same_seed_same_puzzle(self):
        profile = get_profile_by_level(4)
        first = generate_puzzle(profile, 1234)
        second = generate_puzzle(profile, random.Random(1234))
        assert first.id == second.id
        assert first.cells == second.cells
        assert first.edges == second.edges
        assert first.canonical_path == second.canonical_path

    def test_different_seeds_vary(self):
        profile = get_profile_by_level(4)
        routes = {generate_puzzle(profile, seed).canonical_path for seed in range(8)}
        assert len(routes) > 1


class TestScenarios:
    def test_smallest_route_is_the_diagonal(self, short_profile):
        puzzle = generate_puzzle(short_profile, 5)
        assert puzzle.canonical_path == ((0, 0), (1, 1), (2, 2))
        assert puzzle.is_correct_step((0, 0), (1, 1))
        assert not puzzle.is_correct_step((0, 0), (0, 1))

    def test_route_longer_than_grid_fails(self):
        profile = create_custom_profile(rows=3, cols=3, min_path_length=10, max_path_length=10)
        with pytest.raises(GenerationFailure) as info:
            generate_puzzle(profile, 0, max_attempts=3, max_walk_attempts=5)
        assert info.value.attempts == 3
        assert info.value.reasons["carve-failed"] == 3
        assert "after 3 attempts" in str(info.value)


class TestCarving:
    def test_walk_is_simple_and_adjacent(self):
        profile = get_profile_by_level(7)
        path = carve_path(profile, random.Random(2))
        assert path is not None
        assert path[0] == profile.start_cell and path[-1] == profile.finish_cell
        assert len(set(path)) == len(path)
        for here, there in zip(path, path[1:]):
            assert are_adjacent(here, there, profile.rows, profile.cols)
        assert count_direction_changes(path) >= required_direction_changes(len(path) - 1)

    def test_square_topology(self):
        profile = create_custom_profile(rows=4, cols=4, topology=Topology.SQUARE)
        puzzle = generate_puzzle(profile, 9)
        for here, there in zip(puzzle.canonical_path, puzzle.canonical_path[1:]):
            assert abs(here.row - there.row) + abs(here.col - there.col) == 1

    def test_direction_changes(self):
        straight = [Coordinate(0, c) for c in range(4)]
        assert count_direction_changes(straight) == 0
        bent = [Coordinate(0, 0), Coordinate(0, 1), Coordinate(1, 1), Coordinate(1, 2)]
        assert count_direction_changes(bent) == 2
        assert required_direction_changes(2) == 0
        assert required_direction_changes(8) == 3


def test_async_generation_matches_sync():
    profile = get_profile_by_level(2)
    puzzle = asyncio.run(generate_puzzle_async(profile, 77))
    assert puzzle.id == generate_puzzle(profile, 77).id
