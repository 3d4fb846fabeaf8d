"""
Grid coordinates and neighbor relations.

The engine never hard-codes a layout: generation, validation and play all go
through a neighbor function ``(coord, rows, cols) -> list[Coordinate]``.
Every relation registered here is symmetric.
"""
from enum import Enum
from typing import Callable, Iterable, List, NamedTuple


class Coordinate(NamedTuple):
    row: int
    col: int

    def __str__(self):
        return f"({self.row},{self.col})"


NeighborFn = Callable[[Coordinate, int, int], List[Coordinate]]

ORTHOGONAL = ((-1, 0), (1, 0), (0, -1), (0, 1))
# hex layout drawn with offset rows: only one diagonal pair touches
HEX_DIAGONALS = ((-1, -1), (1, 1))
ALL_DIAGONALS = ((-1, -1), (-1, 1), (1, -1), (1, 1))


def _offsets_neighbors(offsets: Iterable[tuple]) -> NeighborFn:
    offsets = tuple(offsets)

    def neighbors(coord: Coordinate, rows: int, cols: int) -> List[Coordinate]:
        result = []
        for d_row, d_col in offsets:
            row, col = coord.row + d_row, coord.col + d_col
            if 0 <= row < rows and 0 <= col < cols:
                result.append(Coordinate(row, col))
        return result

    return neighbors


square_neighbors = _offsets_neighbors(ORTHOGONAL)
hex_neighbors = _offsets_neighbors(ORTHOGONAL + HEX_DIAGONALS)
king_neighbors = _offsets_neighbors(ORTHOGONAL + ALL_DIAGONALS)


class Topology(str, Enum):
    SQUARE = "square"
    HEX = "hex"
    KING = "king"

    @property
    def neighbors(self) -> NeighborFn:
        return _NEIGHBORS[self]


_NEIGHBORS = {
    Topology.SQUARE: square_neighbors,
    Topology.HEX: hex_neighbors,
    Topology.KING: king_neighbors,
}


def in_bounds(coord: Coordinate, rows: int, cols: int) -> bool:
    return 0 <= coord.row < rows and 0 <= coord.col < cols


def are_adjacent(a: Coordinate, b: Coordinate, rows: int, cols: int,
                 neighbors: NeighborFn = hex_neighbors) -> bool:
    """True if b is a neighbor of a (and both are on the grid)."""
    if not in_bounds(a, rows, cols):
        return False
    return b in neighbors(a, rows, cols)


def all_adjacent_pairs(rows: int, cols: int, neighbors: NeighborFn) -> List[tuple]:
    """Every unordered adjacent pair once, as (smaller, larger) coordinates."""
    pairs = []
    for row in range(rows):
        for col in range(cols):
            here = Coordinate(row, col)
            for other in neighbors(here, rows, cols):
                if here < other:
                    pairs.append((here, other))
    return pairs


def distances_to(target: Coordinate, rows: int, cols: int, neighbors: NeighborFn) -> dict:
    """BFS step counts from every cell to target, ignoring any walk state."""
    distances = {target: 0}
    frontier = [target]
    while frontier:
        next_frontier = []
        for coord in frontier:
            for other in neighbors(coord, rows, cols):
                if other not in distances:
                    distances[other] = distances[coord] + 1
                    next_frontier.append(other)
        frontier = next_frontier
    return distances
