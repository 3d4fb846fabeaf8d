"""
Connectors-First puzzle generator.

Per attempt:
    1. Lay out the grid with start and finish from the profile
    2. Carve the route first: a random walk that never moves backwards
       along one chosen axis and never revisits a cell
    3. Give every route cell an expression and copy its answer onto the
       connector to the next route cell
    4. Give every other cell (except finish) an expression of its own
    5. Fill the remaining connectors with decoy labels that never open a
       second correct exit from a route cell
    6. Package and hand to the validator; retry on rejection

The whole thing is driven by one random.Random, so a seed reproduces the
puzzle exactly.
"""
import asyncio
import logging
import random
from collections import Counter
from typing import Dict, List, Optional, Union
from uuid import UUID

from circuit_challenge.core.config import settings
from circuit_challenge.engine.difficulty import DifficultyProfile, get_level
from circuit_challenge.engine.errors import GenerationFailure
from circuit_challenge.engine.expressions import Expression, make_expression
from circuit_challenge.engine.topology import Coordinate, NeighborFn, all_adjacent_pairs, distances_to
from circuit_challenge.engine.validator import validate_puzzle
from circuit_challenge.schemas import Cell, Edge, Puzzle

logger = logging.getLogger(__name__)

RandomSource = Union[random.Random, int, None]

MAX_DECOY_RESAMPLES = 50


def as_rng(rng: RandomSource) -> random.Random:
    if isinstance(rng, random.Random):
        return rng
    return random.Random(rng)


# ---------- PATH CARVING ----------

def count_direction_changes(path: List[Coordinate]) -> int:
    deltas = [(b.row - a.row, b.col - a.col) for a, b in zip(path, path[1:])]
    return sum(1 for before, after in zip(deltas, deltas[1:]) if before != after)


def required_direction_changes(edges: int) -> int:
    """ Longer routes must turn more often to be interesting"""
    if edges < 3:
        return 0
    if edges < 5:
        return 1
    if edges < 7:
        return 2
    return 3


def _step_weight(current: Coordinate, step: Coordinate, heading, axis: int,
                 need: int, lines_left: int, on_finish_line: bool, distances: Dict) -> float:
    delta = (step.row - current.row, step.col - current.col)

    if need <= 0 or on_finish_line:
        # long enough (or no lines left): head for the finish
        return 4.0 if distances[step] < distances[current] else 1.0

    if delta[axis] != 0:
        # progress along the axis, discouraged while far more length is needed
        pace = need / (lines_left + 1)
        return 1.0 / pace if pace > 1 else 1.0
    if delta == heading:
        return 6.0
    return 3.0


def _walk(rows: int, cols: int, start: Coordinate, finish: Coordinate,
          min_length: int, max_length: int, neighbors: NeighborFn,
          distances: Dict, rng: random.Random) -> Optional[List[Coordinate]]:
    axes = [axis for axis in (0, 1) if finish[axis] != start[axis]]
    axis = rng.choice(axes)
    sign = 1 if finish[axis] > start[axis] else -1

    path = [start]
    visited = {start}
    heading = None

    while path[-1] != finish:
        current = path[-1]
        steps = len(path) - 1
        if steps >= max_length:
            return None

        candidates = []
        for step in neighbors(current, rows, cols):
            if step in visited or step not in distances:
                continue
            if (step[axis] - current[axis]) * sign < 0:
                continue
            if steps + 1 + distances[step] > max_length:
                continue
            if step == finish and steps + 1 < min_length:
                continue
            candidates.append(step)

        if not candidates:
            return None  # stalled

        need = min_length - steps
        lines_left = abs(finish[axis] - current[axis])
        weights = [
            _step_weight(current, step, heading, axis, need, lines_left, lines_left == 0, distances)
            for step in candidates
        ]
        step = rng.choices(candidates, weights=weights, k=1)[0]
        heading = (step.row - current.row, step.col - current.col)
        path.append(step)
        visited.add(step)

    if count_direction_changes(path) < required_direction_changes(len(path) - 1):
        return None
    return path


def carve_path(profile: DifficultyProfile, rng: random.Random,
               neighbors: Optional[NeighborFn] = None,
               max_walk_attempts: Optional[int] = None) -> Optional[List[Coordinate]]:
    """
    Random forward-progressing walk from start to finish whose length in
    edges lies within the profile bounds. None when every walk stalled.
    """
    neighbors = neighbors or profile.topology.neighbors
    max_walk_attempts = max_walk_attempts or settings.MAX_WALK_ATTEMPTS
    start, finish = profile.start_cell, profile.finish_cell
    distances = distances_to(finish, profile.rows, profile.cols, neighbors)
    if start not in distances:
        return None

    for _ in range(max_walk_attempts):
        path = _walk(profile.rows, profile.cols, start, finish,
                     profile.min_path_length, profile.max_path_length,
                     neighbors, distances, rng)
        if path is not None:
            return path
    return None


# ---------- VALUES ----------

def _opens_extra_exit(label: int, a: Coordinate, b: Coordinate,
                      answers: Dict[Coordinate, int], order: Dict[Coordinate, int]) -> bool:
    """
    True when the label would let a route cell step somewhere other than
    back along the route, which could shorten or duplicate the solution.
    """
    for source, target in ((a, b), (b, a)):
        if source not in order or answers.get(source) != label:
            continue
        if target in order and order[target] < order[source]:
            continue
        return True
    return False


def pick_decoy_label(a: Coordinate, b: Coordinate, profile: DifficultyProfile,
                     answers: Dict[Coordinate, int], order: Dict[Coordinate, int],
                     rng: random.Random) -> int:
    low, high = profile.label_range
    label = rng.randint(low, high)
    for _ in range(MAX_DECOY_RESAMPLES):
        if not _opens_extra_exit(label, a, b, answers, order):
            break
        label = rng.randint(low, high)
    # still unsafe after all resamples: the validator will reject the attempt
    return label


def build_puzzle(profile: DifficultyProfile, path: List[Coordinate], rng: random.Random,
                 neighbors: Optional[NeighborFn] = None) -> Puzzle:
    """ Steps 3-6: expressions, route labels, decoys, packaging"""
    neighbors = neighbors or profile.topology.neighbors
    start, finish = profile.start_cell, profile.finish_cell
    order = {coord: index for index, coord in enumerate(path)}

    expressions: Dict[Coordinate, Expression] = {}
    labels: Dict[frozenset, int] = {}

    # route first: each answer becomes the label of the outgoing connector
    for here, there in zip(path, path[1:]):
        expressions[here] = make_expression(profile, rng)
        labels[frozenset((here, there))] = expressions[here].answer

    for row in range(profile.rows):
        for col in range(profile.cols):
            coord = Coordinate(row, col)
            if coord not in expressions and coord != finish:
                expressions[coord] = make_expression(profile, rng)

    answers = {coord: expression.answer for coord, expression in expressions.items()}

    edges = []
    for a, b in all_adjacent_pairs(profile.rows, profile.cols, neighbors):
        key = frozenset((a, b))
        if key not in labels:
            labels[key] = pick_decoy_label(a, b, profile, answers, order, rng)
        edges.append(Edge(a=a, b=b, label=labels[key]))

    cells = []
    for row in range(profile.rows):
        for col in range(profile.cols):
            coord = Coordinate(row, col)
            expression = expressions.get(coord)
            cells.append(Cell(
                coord=coord,
                expression=expression.display if expression else "",
                operator=expression.operator if expression else None,
                operands=expression.operands if expression else None,
                answer=expression.answer if expression else None,
                is_start=coord == start,
                is_finish=coord == finish,
            ))

    return Puzzle(
        id=UUID(int=rng.getrandbits(128), version=4),
        profile_name=profile.name,
        level=get_level(profile),
        rows=profile.rows,
        cols=profile.cols,
        topology=profile.topology,
        hidden_mode=profile.hidden_mode,
        seconds_per_step=profile.seconds_per_step,
        cells=tuple(cells),
        edges=tuple(edges),
        canonical_path=tuple(path),
    )


# ---------- ENTRY POINTS ----------

def generate_puzzle(profile: DifficultyProfile, rng: RandomSource = None, *,
                    max_attempts: Optional[int] = None,
                    max_walk_attempts: Optional[int] = None,
                    neighbors: Optional[NeighborFn] = None) -> Puzzle:
    """
    Build a validated puzzle for the profile.

    rng may be a random.Random or a seed; the same seed gives the same puzzle.
    Raises GenerationFailure once max_attempts attempts were rejected.
    """
    rng = as_rng(rng)
    max_attempts = max_attempts or settings.MAX_GENERATION_ATTEMPTS
    neighbors = neighbors or profile.topology.neighbors
    reasons = Counter()

    for attempt in range(1, max_attempts + 1):
        path = carve_path(profile, rng, neighbors, max_walk_attempts)
        if path is None:
            reasons["carve-failed"] += 1
            logger.debug("Attempt %d for '%s': no route could be carved", attempt, profile.name)
            continue

        puzzle = build_puzzle(profile, path, rng, neighbors)
        result = validate_puzzle(puzzle, profile, neighbors)
        if result.valid:
            logger.debug("Generated '%s' puzzle %s in %d attempt(s), route of %d steps",
                         profile.name, puzzle.id, attempt, puzzle.path_length)
            return puzzle

        reasons[result.reason.value] += 1
        logger.debug("Attempt %d for '%s' rejected: %s (%s)",
                     attempt, profile.name, result.reason.value, result.detail)

    logger.warning("Giving up on '%s' after %d attempts: %s", profile.name, max_attempts, dict(reasons))
    raise GenerationFailure(profile.name, max_attempts, reasons)


async def generate_puzzle_async(profile: DifficultyProfile, rng: RandomSource = None, **kwargs) -> Puzzle:
    """ Runs generation on a worker thread. Dropping the awaitable discards the result"""
    return await asyncio.to_thread(generate_puzzle, profile, rng, **kwargs)
