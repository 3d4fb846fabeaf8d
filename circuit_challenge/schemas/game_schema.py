from pydantic import BaseModel, Field
from typing import Any, Dict, Optional


# Data sent by user to start a game
class GameCreate(BaseModel):
    level: Optional[int] = Field(None, ge=1, le=10)
    name: Optional[str] = None  # preset name, used when level is not given
    custom: Optional[Dict[str, Any]] = None  # profile overrides on top of level 5
    chapter: Optional[int] = Field(None, ge=1, le=10)  # story mode, wins over level and name
    story_level: str = Field("A", pattern="^[A-Ea-e]$")
    hidden_mode: bool = False
    max_lives: Optional[int] = Field(None, ge=1)
    seed: Optional[int] = None  # same seed, same puzzle


class MoveRequest(BaseModel):
    row: int
    col: int


class TickRequest(BaseModel):
    elapsed_seconds: float = Field(..., ge=0)


class NewPuzzleRequest(BaseModel):
    seed: Optional[int] = None
