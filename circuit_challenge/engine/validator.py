"""
Puzzle validator.

Re-derives the puzzle's solution from scratch, looking only at correct
steps (connector label == answer of the cell being left), and checks that
the carved route is the one and only shortest way to the finish. The
reasons it returns are for the generator's retry loop and the logs; players
never see them.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from circuit_challenge.engine.difficulty import DifficultyProfile
from circuit_challenge.engine.expressions import evaluate_expression
from circuit_challenge.engine.topology import Coordinate, NeighborFn, all_adjacent_pairs
from circuit_challenge.schemas import Puzzle


class RejectionReason(str, Enum):
    TOO_SHORT = "too-short"
    TOO_LONG = "too-long"
    AMBIGUOUS = "ambiguous"
    SHORTCUT_DETECTED = "shortcut-detected"
    UNREACHABLE = "unreachable"
    BAD_ENDPOINTS = "bad-endpoints"
    NOT_ADJACENT = "not-adjacent"
    OUT_OF_RANGE = "out-of-range"
    LABEL_MISMATCH = "label-mismatch"


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: Optional[RejectionReason] = None
    detail: str = ""

    @classmethod
    def reject(cls, reason: RejectionReason, detail: str = "") -> "ValidationResult":
        return cls(valid=False, reason=reason, detail=detail)


OK = ValidationResult(valid=True)


def shortest_correct_paths(puzzle: Puzzle) -> Tuple[Optional[int], int, Dict[Coordinate, Coordinate]]:
    """
    BFS from start over directed correct steps.

    Returns (distance to finish or None, number of shortest paths capped at 2,
    parent map of the first shortest path found).
    """
    start, finish = puzzle.start, puzzle.finish
    distance = {start: 0}
    count = {start: 1}
    parent: Dict[Coordinate, Coordinate] = {}
    frontier = [start]

    while frontier and finish not in distance:
        next_frontier = []
        for coord in frontier:
            for target in puzzle.neighbors(coord):
                if not puzzle.is_correct_step(coord, target):
                    continue
                if target not in distance:
                    distance[target] = distance[coord] + 1
                    count[target] = count[coord]
                    parent[target] = coord
                    next_frontier.append(target)
                elif distance[target] == distance[coord] + 1:
                    count[target] = min(2, count[target] + count[coord])
        frontier = next_frontier

    if finish not in distance:
        return None, 0, parent
    return distance[finish], count[finish], parent


def find_correct_path(puzzle: Puzzle) -> Optional[List[Coordinate]]:
    """ One shortest correct route from start to finish, or None"""
    length, _, parent = shortest_correct_paths(puzzle)
    if length is None:
        return None
    path = [puzzle.finish]
    while path[-1] != puzzle.start:
        path.append(parent[path[-1]])
    return path[::-1]


def _check_structure(puzzle: Puzzle, neighbors: NeighborFn) -> ValidationResult:
    starts = [cell.coord for cell in puzzle.cells if cell.is_start]
    finishes = [cell.coord for cell in puzzle.cells if cell.is_finish]
    if len(starts) != 1 or len(finishes) != 1 or starts[0] == finishes[0]:
        return ValidationResult.reject(RejectionReason.BAD_ENDPOINTS, "need exactly one start and one finish")

    path = list(puzzle.canonical_path)
    if len(path) < 2 or path[0] != starts[0] or path[-1] != finishes[0]:
        return ValidationResult.reject(RejectionReason.BAD_ENDPOINTS, "canonical path does not join start to finish")
    if len(set(path)) != len(path):
        return ValidationResult.reject(RejectionReason.NOT_ADJACENT, "canonical path revisits a cell")
    for here, there in zip(path, path[1:]):
        if not puzzle.is_adjacent(here, there):
            return ValidationResult.reject(RejectionReason.NOT_ADJACENT, f"{here} -> {there} has no connector")

    expected = {frozenset(pair) for pair in all_adjacent_pairs(puzzle.rows, puzzle.cols, neighbors)}
    actual = {edge.key for edge in puzzle.edges}
    if expected != actual:
        return ValidationResult.reject(
            RejectionReason.NOT_ADJACENT,
            f"{len(expected - actual)} adjacent pairs without connector, {len(actual - expected)} stray connectors",
        )
    return OK


def _check_values(puzzle: Puzzle, profile: DifficultyProfile) -> ValidationResult:
    for cell in puzzle.cells:
        if cell.is_finish:
            continue
        if cell.answer is None or cell.operator is None:
            return ValidationResult.reject(RejectionReason.OUT_OF_RANGE, f"cell {cell.coord} has no answer")
        if cell.operator not in profile.operators:
            return ValidationResult.reject(RejectionReason.OUT_OF_RANGE, f"cell {cell.coord} uses {cell.operator.value}")
        low, high = profile.answer_range(cell.operator)
        if not low <= cell.answer <= high:
            return ValidationResult.reject(RejectionReason.OUT_OF_RANGE, f"cell {cell.coord} answer {cell.answer}")
        if evaluate_expression(cell.expression) != cell.answer:
            return ValidationResult.reject(
                RejectionReason.LABEL_MISMATCH, f"'{cell.expression}' does not evaluate to {cell.answer}"
            )

    low, high = profile.label_range
    for edge in puzzle.edges:
        if not low <= edge.label <= high:
            return ValidationResult.reject(RejectionReason.OUT_OF_RANGE, f"label {edge.label} on {edge.a}-{edge.b}")

    path = puzzle.canonical_path
    for here, there in zip(path, path[1:]):
        if not puzzle.is_correct_step(here, there):
            return ValidationResult.reject(RejectionReason.LABEL_MISMATCH, f"path step {here} -> {there} is not correct")
    return OK


def validate_puzzle(puzzle: Puzzle, profile: DifficultyProfile,
                    neighbors: Optional[NeighborFn] = None) -> ValidationResult:
    """ Certify a generated puzzle against the profile it was generated for"""
    neighbors = neighbors or profile.topology.neighbors

    structure = _check_structure(puzzle, neighbors)
    if not structure.valid:
        return structure
    values = _check_values(puzzle, profile)
    if not values.valid:
        return values

    length, count, _ = shortest_correct_paths(puzzle)
    if length is None:
        return ValidationResult.reject(RejectionReason.UNREACHABLE, "finish cannot be reached by correct steps")
    if count > 1:
        return ValidationResult.reject(RejectionReason.AMBIGUOUS, f"several correct routes of length {length}")
    if find_correct_path(puzzle) != list(puzzle.canonical_path):
        return ValidationResult.reject(
            RejectionReason.SHORTCUT_DETECTED, f"correct route of length {length} differs from the carved one"
        )
    if length < profile.min_path_length:
        return ValidationResult.reject(RejectionReason.TOO_SHORT, f"{length} < {profile.min_path_length}")
    if length > profile.max_path_length:
        return ValidationResult.reject(RejectionReason.TOO_LONG, f"{length} > {profile.max_path_length}")
    return OK
