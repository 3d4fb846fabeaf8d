from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from uuid import UUID
from datetime import datetime


class MoveResultRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    order_index: int
    from_row: int
    from_col: int
    to_row: int
    to_col: int
    label: int
    answer: Optional[int]
    correct: bool


class GameResultRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    session_id: UUID
    puzzle_id: UUID
    profile_name: str
    level: int
    hidden_mode: bool
    outcome: str
    coins: int
    elapsed_seconds: float
    path_length: int
    correct_count: int
    mistake_count: int
    created_at: Optional[datetime] = None
    moves: List[MoveResultRead] = []
