from circuit_challenge.schemas.cell_schema import Cell
from circuit_challenge.schemas.edge_schema import Edge
from circuit_challenge.schemas.puzzle_schema import Puzzle
from circuit_challenge.schemas.game_schema import GameCreate, MoveRequest, TickRequest, NewPuzzleRequest
from circuit_challenge.schemas.result_schema import GameResultRead, MoveResultRead
