import os

# before any circuit_challenge import reads the settings
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from sqlalchemy.orm import sessionmaker
from uuid import uuid4

from circuit_challenge import models  # noqa: F401  registers tables
from circuit_challenge.core.database import Base, make_engine
from circuit_challenge.engine.difficulty import Operator, create_custom_profile
from circuit_challenge.engine.topology import Coordinate, Topology, all_adjacent_pairs
from circuit_challenge.schemas import Cell, Edge, Puzzle

NO_MATCH = 99  # label no hand-built answer uses


def make_cell(coord, answer=None, is_start=False, is_finish=False) -> Cell:
    """Addition cell "1 + (answer - 1)", or an empty finish cell."""
    if is_finish:
        return Cell(coord=coord, is_finish=True)
    return Cell(
        coord=coord,
        expression=f"1 + {answer - 1}",
        operator=Operator.ADD,
        operands=(1, answer - 1),
        answer=answer,
        is_start=is_start,
    )


def build_test_puzzle(rows, cols, path, answers=None, labels=None,
                      topology=Topology.HEX, skip_edges=()) -> Puzzle:
    """
    Hand-built puzzle. answers maps coord -> answer (default 2), labels maps
    (a, b) -> label (default NO_MATCH). Start and finish are the path ends.
    """
    path = [Coordinate(*coord) for coord in path]
    answers = {Coordinate(*coord): value for coord, value in (answers or {}).items()}
    labels = {frozenset((Coordinate(*a), Coordinate(*b))): value for (a, b), value in (labels or {}).items()}
    skip = {frozenset((Coordinate(*a), Coordinate(*b))) for a, b in skip_edges}
    start, finish = path[0], path[-1]

    cells = []
    for row in range(rows):
        for col in range(cols):
            coord = Coordinate(row, col)
            cells.append(make_cell(coord, answers.get(coord, 2),
                                   is_start=coord == start, is_finish=coord == finish))

    edges = [
        Edge(a=a, b=b, label=labels.get(frozenset((a, b)), NO_MATCH))
        for a, b in all_adjacent_pairs(rows, cols, topology.neighbors)
        if frozenset((a, b)) not in skip
    ]
    return Puzzle(
        id=uuid4(),
        rows=rows,
        cols=cols,
        topology=topology,
        cells=tuple(cells),
        edges=tuple(edges),
        canonical_path=tuple(path),
    )


def addition_profile(rows, cols, min_path_length, max_path_length, **overrides):
    """Addition only profile wide enough for the hand-built labels."""
    data = {"operators": (Operator.ADD,), "add_sub_range": 50, **overrides}
    return create_custom_profile(rows=rows, cols=cols, min_path_length=min_path_length,
                                 max_path_length=max_path_length, **data)


@pytest.fixture
def line_puzzle() -> Puzzle:
    """1x4 line (0,0) -> (0,3) whose last connector is wrong."""
    return build_test_puzzle(
        1, 4,
        path=[(0, 0), (0, 1), (0, 2), (0, 3)],
        answers={(0, 0): 5, (0, 1): 6, (0, 2): 7},
        labels={((0, 0), (0, 1)): 5, ((0, 1), (0, 2)): 6, ((0, 2), (0, 3)): 8},
    )


@pytest.fixture
def solvable_line_puzzle() -> Puzzle:
    """1x4 line (0,0) -> (0,3) with every route connector correct."""
    return build_test_puzzle(
        1, 4,
        path=[(0, 0), (0, 1), (0, 2), (0, 3)],
        answers={(0, 0): 5, (0, 1): 6, (0, 2): 7},
        labels={((0, 0), (0, 1)): 5, ((0, 1), (0, 2)): 6, ((0, 2), (0, 3)): 7},
    )


@pytest.fixture
def short_profile():
    """3x3 hex profile whose only possible route is the diagonal."""
    return create_custom_profile(rows=3, cols=3, min_path_length=2, max_path_length=2)


@pytest.fixture
def db():
    """Fresh in-memory database per test"""
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from circuit_challenge.main import app

    with TestClient(app) as test_client:
        yield test_client
