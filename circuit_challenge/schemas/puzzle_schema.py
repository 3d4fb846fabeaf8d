from pydantic import BaseModel, ConfigDict, PrivateAttr
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from circuit_challenge.engine.topology import Coordinate, Topology, in_bounds
from circuit_challenge.schemas.cell_schema import Cell
from circuit_challenge.schemas.edge_schema import Edge


class Puzzle(BaseModel):
    """
    A finished, immutable puzzle: every cell, an edge for every adjacent
    pair and the route the generator carved. Rendering collaborators must not
    show canonical_path before the game is over.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID
    profile_name: str = "Custom"
    level: int = 0
    rows: int
    cols: int
    topology: Topology = Topology.HEX
    hidden_mode: bool = False
    seconds_per_step: int = 10
    cells: Tuple[Cell, ...]  # row-major
    edges: Tuple[Edge, ...]
    canonical_path: Tuple[Coordinate, ...]

    _edge_index: Dict[frozenset, Edge] = PrivateAttr(default_factory=dict)
    _adjacency: Dict[Coordinate, List[Coordinate]] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context):
        self._edge_index = {edge.key: edge for edge in self.edges}
        for edge in self.edges:
            self._adjacency.setdefault(edge.a, []).append(edge.b)
            self._adjacency.setdefault(edge.b, []).append(edge.a)

    @property
    def path_length(self) -> int:
        """ Canonical path length in edges"""
        return len(self.canonical_path) - 1

    @property
    def start(self) -> Coordinate:
        return next(cell.coord for cell in self.cells if cell.is_start)

    @property
    def finish(self) -> Coordinate:
        return next(cell.coord for cell in self.cells if cell.is_finish)

    def contains(self, coord: Coordinate) -> bool:
        return in_bounds(coord, self.rows, self.cols)

    def cell(self, coord: Coordinate) -> Cell:
        return self.cells[coord[0] * self.cols + coord[1]]

    def neighbors(self, coord: Coordinate) -> List[Coordinate]:
        """ Cells sharing a connector with coord"""
        return list(self._adjacency.get(Coordinate(*coord), ()))

    def edge_between(self, a: Coordinate, b: Coordinate) -> Optional[Edge]:
        return self._edge_index.get(frozenset((Coordinate(*a), Coordinate(*b))))

    def is_adjacent(self, a: Coordinate, b: Coordinate) -> bool:
        return self.edge_between(a, b) is not None

    def is_correct_step(self, source: Coordinate, target: Coordinate) -> bool:
        """ A step is correct when the connector label equals the answer of the cell being left"""
        edge = self.edge_between(source, target)
        return edge is not None and edge.label == self.cell(source).answer

    def correct_edges(self) -> List[Tuple[Coordinate, Coordinate]]:
        """ Every directed correct step in the grid"""
        steps = []
        for edge in self.edges:
            for source in (edge.a, edge.b):
                if self.cell(source).answer == edge.label:
                    steps.append((source, edge.other(source)))
        return steps
