from pydantic import BaseModel, ConfigDict
from typing import Optional, Tuple

from circuit_challenge.engine.difficulty import Operator
from circuit_challenge.engine.topology import Coordinate


class Cell(BaseModel):
    model_config = ConfigDict(frozen=True)

    coord: Coordinate
    expression: str = ""  # display only
    operator: Optional[Operator] = None
    operands: Optional[Tuple[int, int]] = None
    answer: Optional[int] = None  # None only on the finish cell
    is_start: bool = False
    is_finish: bool = False
