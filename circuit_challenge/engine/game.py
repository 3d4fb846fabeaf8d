"""
Move/Game state machine.

One GameSession per attempt at a puzzle. The caller owns it and threads it
through the transitions; there is no shared "current game". Every transition
is total: input that does not apply in the current state leaves the session
exactly as it was.

    READY --first move--> PLAYING --finish--> WON
                                  --no lives--> LOST
                                  --finish (hidden)--> REVEALING --reveal()--> WON
"""
import logging
from enum import Enum
from typing import List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from circuit_challenge.core.config import settings
from circuit_challenge.engine.difficulty import DifficultyProfile
from circuit_challenge.engine.generator import RandomSource, generate_puzzle
from circuit_challenge.engine.topology import Coordinate
from circuit_challenge.schemas import Puzzle

logger = logging.getLogger(__name__)


class Status(str, Enum):
    READY = "ready"
    PLAYING = "playing"
    WON = "won"
    LOST = "lost"
    REVEALING = "revealing"

    @property
    def accepts_moves(self) -> bool:
        return self in (Status.READY, Status.PLAYING)

    @property
    def is_terminal(self) -> bool:
        return self in (Status.WON, Status.LOST)


class MoveRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    from_cell: Coordinate
    to_cell: Coordinate
    label: int
    answer: Optional[int]
    correct: bool


class GameSummary(BaseModel):
    """ What the scoring/persistence sink receives once a game is over"""
    session_id: UUID
    puzzle_id: UUID
    profile_name: str
    level: int
    hidden_mode: bool
    outcome: Status
    coins: int
    elapsed_seconds: float
    path_length: int
    correct_count: int
    mistake_count: int
    moves: List[MoveRecord]


def _as_coordinate(target) -> Optional[Coordinate]:
    """ Coordinate from anything shaped like (row, col), or None"""
    if isinstance(target, dict):
        target = (target.get("row"), target.get("col"))
    try:
        row, col = target
    except (TypeError, ValueError):
        return None
    if isinstance(row, bool) or isinstance(col, bool):
        return None
    if not isinstance(row, int) or not isinstance(col, int):
        return None
    return Coordinate(row, col)


class GameSession(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    puzzle: Puzzle
    hidden_mode: bool = False
    max_lives: int = Field(default_factory=lambda: settings.MAX_LIVES)
    reward: int = Field(default_factory=lambda: settings.CORRECT_REWARD)
    penalty: int = Field(default_factory=lambda: settings.MISTAKE_PENALTY)

    status: Status = Status.READY
    position: Coordinate
    visited: List[Coordinate] = []
    moves: List[MoveRecord] = []
    lives: int = 0
    coins: int = 0  # coin delta for this attempt, never negative
    elapsed_seconds: float = 0.0
    solution_visible: bool = False

    # ---------- QUERIES ----------

    @property
    def correct_count(self) -> int:
        return sum(1 for move in self.moves if move.correct)

    @property
    def mistake_count(self) -> int:
        return sum(1 for move in self.moves if not move.correct)

    @property
    def is_over(self) -> bool:
        """ Won, lost or waiting for the hidden mode reveal"""
        return not self.status.accepts_moves

    def can_move_to(self, target) -> bool:
        coord = _as_coordinate(target)
        return (
            coord is not None
            and self.status.accepts_moves
            and self.puzzle.contains(coord)
            and coord not in self.visited
            and self.puzzle.is_adjacent(self.position, coord)
        )

    # ---------- TRANSITIONS ----------

    def attempt_move(self, target) -> "GameSession":
        """
        Step from the current cell to target. Non-adjacent, visited or
        off-grid targets and moves after the game ended are ignored.
        """
        if not self.can_move_to(target):
            return self
        target = _as_coordinate(target)

        source = self.puzzle.cell(self.position)
        label = self.puzzle.edge_between(self.position, target).label
        record = MoveRecord(
            from_cell=self.position,
            to_cell=target,
            label=label,
            answer=source.answer,
            correct=label == source.answer,
        )

        self.moves.append(record)
        self.position = target
        self.visited.append(target)
        if self.status is Status.READY:
            self.status = Status.PLAYING

        reached_finish = target == self.puzzle.finish
        if self.hidden_mode:
            if reached_finish:
                self.status = Status.REVEALING
                logger.info("Session %s reached the finish, waiting for reveal", self.id)
            return self

        if record.correct:
            self.coins += self.reward
        else:
            self.lives -= 1
            self.coins = max(0, self.coins - self.penalty)

        if self.lives <= 0:
            self.status = Status.LOST
            logger.info("Session %s lost after %d moves", self.id, len(self.moves))
        elif reached_finish:
            self.status = Status.WON
            logger.info("Session %s won with %d coins", self.id, self.coins)
        return self

    def reveal(self) -> "GameSession":
        """ Hidden mode: settle the deferred score and finish the game"""
        if self.status is not Status.REVEALING:
            return self
        earned = self.correct_count * self.reward - self.mistake_count * self.penalty
        self.coins = max(0, earned)
        self.status = Status.WON
        logger.info("Session %s revealed: %d correct, %d mistakes, %d coins",
                    self.id, self.correct_count, self.mistake_count, self.coins)
        return self

    def reset_puzzle(self) -> "GameSession":
        """ Start the same puzzle over"""
        start = self.puzzle.start
        self.status = Status.READY
        self.position = start
        self.visited = [start]
        self.moves = []
        self.lives = self.max_lives
        self.coins = 0
        self.elapsed_seconds = 0.0
        self.solution_visible = False
        return self

    def tick(self, elapsed_seconds: float) -> "GameSession":
        """ Elapsed time reported by an external timer, kept only while playing"""
        if self.status is Status.PLAYING and elapsed_seconds >= self.elapsed_seconds:
            self.elapsed_seconds = float(elapsed_seconds)
        return self

    def show_solution(self) -> "GameSession":
        if self.is_over:
            self.solution_visible = True
        return self

    def hide_solution(self) -> "GameSession":
        self.solution_visible = False
        return self

    def summary(self) -> Optional[GameSummary]:
        """ None until the game is won or lost"""
        if not self.status.is_terminal:
            return None
        return GameSummary(
            session_id=self.id,
            puzzle_id=self.puzzle.id,
            profile_name=self.puzzle.profile_name,
            level=self.puzzle.level,
            hidden_mode=self.hidden_mode,
            outcome=self.status,
            coins=self.coins,
            elapsed_seconds=self.elapsed_seconds,
            path_length=self.puzzle.path_length,
            correct_count=self.correct_count,
            mistake_count=self.mistake_count,
            moves=list(self.moves),
        )


# ---------- FUNCTIONAL FACADE ----------

def create_session(puzzle: Puzzle, max_lives: Optional[int] = None,
                   hidden_mode: Optional[bool] = None) -> GameSession:
    """ Fresh session at the start cell of the puzzle"""
    max_lives = settings.MAX_LIVES if max_lives is None else max_lives
    session = GameSession(
        puzzle=puzzle,
        hidden_mode=puzzle.hidden_mode if hidden_mode is None else hidden_mode,
        max_lives=max_lives,
        position=puzzle.start,
    )
    return session.reset_puzzle()


def attempt_move(session: GameSession, target) -> GameSession:
    return session.attempt_move(target)


def reset_puzzle(session: GameSession) -> GameSession:
    return session.reset_puzzle()


def reveal(session: GameSession) -> GameSession:
    return session.reveal()


def request_new_puzzle(session: GameSession, profile: DifficultyProfile,
                       rng: RandomSource = None) -> GameSession:
    """
    Discard the session and start another one on a freshly generated puzzle
    with the same lives and mode. Raises GenerationFailure like generate_puzzle.
    """
    puzzle = generate_puzzle(profile, rng)
    logger.info("Session %s discarded for new puzzle %s", session.id, puzzle.id)
    return create_session(puzzle, max_lives=session.max_lives, hidden_mode=session.hidden_mode)
