"""
Difficulty profiles.

A profile is the whole input of one generation request: grid size and
topology, which operators appear in cell expressions, how large their
operands get, how long the hidden route must be and how operators are
weighted. Profiles are validated once, on construction, and never change.
"""
import logging
import math
import random
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from circuit_challenge.engine.errors import ConfigurationError
from circuit_challenge.engine.topology import Coordinate, Topology, in_bounds

logger = logging.getLogger(__name__)


class Operator(str, Enum):
    ADD = "+"
    SUBTRACT = "−"
    MULTIPLY = "×"
    DIVIDE = "÷"

    @property
    def family(self) -> str:
        return "add_sub" if self in (Operator.ADD, Operator.SUBTRACT) else "mult_div"


class DifficultyProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = "Custom"
    rows: int
    cols: int
    operators: Tuple[Operator, ...]
    add_sub_range: int = 0  # largest +/− operand
    mult_div_range: int = 0  # largest ×/÷ factor, divisor and quotient
    min_path_length: int  # edges
    max_path_length: int  # edges
    weights: Dict[Operator, float]
    hidden_mode: bool = False
    seconds_per_step: int = 10  # advisory, read by external timers
    allow_negative: bool = False
    topology: Topology = Topology.HEX
    start: Optional[Coordinate] = None
    finish: Optional[Coordinate] = None

    def __init__(self, **data):
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid difficulty profile: {e}") from e

    @model_validator(mode="after")
    def check_profile(self):
        errors = []
        ops = set(self.operators)

        if not ops:
            errors.append("At least one operator must be enabled")
        if ops & {Operator.ADD, Operator.SUBTRACT} and self.add_sub_range < 1:
            errors.append("Addition/subtraction range must be at least 1")
        if Operator.SUBTRACT in ops and not self.allow_negative and self.add_sub_range < 2:
            errors.append("Subtraction without negatives needs a range of at least 2")
        if ops & {Operator.MULTIPLY, Operator.DIVIDE} and self.mult_div_range < 2:
            errors.append("Multiplication/division range must be at least 2")

        if any(w < 0 for w in self.weights.values()):
            errors.append("Operator weights must be non-negative")
        for op in ops:
            if self.weights.get(op, 0) <= 0:
                errors.append(f"Weight for enabled operator {op.value} must be positive")
        if ops and sum(self.weights.get(op, 0) for op in ops) <= 0:
            errors.append("Operator weights must not sum to zero")

        if self.rows < 1 or self.cols < 1 or self.rows * self.cols < 2:
            errors.append("Grid must have at least two cells")
        if self.min_path_length < 1:
            errors.append("Minimum path length must be at least 1")
        if self.max_path_length < self.min_path_length:
            errors.append("Maximum path length must be at least equal to minimum")
        if self.seconds_per_step < 1:
            errors.append("Seconds per step must be at least 1")

        if self.rows >= 1 and self.cols >= 1:
            if not in_bounds(self.start_cell, self.rows, self.cols):
                errors.append(f"Start {self.start_cell} is outside the grid")
            if not in_bounds(self.finish_cell, self.rows, self.cols):
                errors.append(f"Finish {self.finish_cell} is outside the grid")
            if self.start_cell == self.finish_cell:
                errors.append("Start and finish must be different cells")

        if errors:
            raise ValueError("; ".join(errors))
        return self

    @property
    def start_cell(self) -> Coordinate:
        return Coordinate(*self.start) if self.start is not None else Coordinate(0, 0)

    @property
    def finish_cell(self) -> Coordinate:
        if self.finish is not None:
            return Coordinate(*self.finish)
        return Coordinate(self.rows - 1, self.cols - 1)

    @property
    def enabled_operators(self) -> List[Operator]:
        # stable order for seeded sampling
        return [op for op in Operator if op in self.operators]

    @property
    def probabilities(self) -> Dict[Operator, float]:
        """Enabled operator weights normalized to sum to 1."""
        ops = self.enabled_operators
        total = sum(self.weights[op] for op in ops)
        return {op: self.weights[op] / total for op in ops}

    def pick_operator(self, rng: random.Random) -> Operator:
        ops = self.enabled_operators
        return rng.choices(ops, weights=[self.weights[op] for op in ops], k=1)[0]

    def pick_operands(self, operator: Operator, rng: random.Random) -> Tuple[int, int]:
        """
        Operands whose result is a well defined integer.
        Division picks quotient and divisor first and derives the dividend.
        """
        r, m = self.add_sub_range, self.mult_div_range
        if operator is Operator.ADD:
            return rng.randint(1, r), rng.randint(1, r)
        if operator is Operator.SUBTRACT:
            if self.allow_negative:
                return rng.randint(1, r), rng.randint(1, r)
            a = rng.randint(2, r)
            return a, rng.randint(1, a - 1)
        if operator is Operator.MULTIPLY:
            return rng.randint(2, m), rng.randint(2, m)
        quotient = rng.randint(1, m)
        divisor = rng.randint(2, m)
        return quotient * divisor, divisor

    def answer_range(self, operator: Operator) -> Tuple[int, int]:
        """Inclusive bounds of every answer pick_operands can lead to."""
        r, m = self.add_sub_range, self.mult_div_range
        if operator is Operator.ADD:
            return 2, 2 * r
        if operator is Operator.SUBTRACT:
            return (1 - r, r - 1) if self.allow_negative else (1, r - 1)
        if operator is Operator.MULTIPLY:
            return 4, m * m
        return 1, m

    @property
    def label_range(self) -> Tuple[int, int]:
        """Hull of the answer ranges of the enabled operators."""
        bounds = [self.answer_range(op) for op in self.enabled_operators]
        return min(low for low, _ in bounds), max(high for _, high in bounds)


# ---------- PRESETS ----------

def calculate_min_path_length(rows: int, cols: int) -> int:
    """ Roughly 60% of the cells, counted in edges"""
    return max(4, int(rows * cols * 0.6)) - 1


def calculate_max_path_length(rows: int, cols: int) -> int:
    """ Roughly 85% of the cells, counted in edges"""
    return max(4, int(rows * cols * 0.85)) - 1


_ADD = Operator.ADD
_SUB = Operator.SUBTRACT
_MUL = Operator.MULTIPLY
_DIV = Operator.DIVIDE

# name, rows, cols, add_sub_range, mult_div_range, weights, seconds_per_step
_LEVELS = [
    ("Tiny Tot", 3, 4, 10, 0, {_ADD: 100}, 10),
    ("Beginner", 4, 4, 15, 0, {_ADD: 100}, 9),
    ("Easy", 4, 5, 15, 0, {_ADD: 60, _SUB: 40}, 8),
    ("Getting There", 4, 5, 20, 0, {_ADD: 55, _SUB: 45}, 7),
    ("Times Tables", 4, 5, 20, 5, {_ADD: 40, _SUB: 35, _MUL: 25}, 7),
    ("Confident", 5, 5, 25, 6, {_ADD: 35, _SUB: 30, _MUL: 35}, 6),
    ("Adventurous", 5, 6, 30, 8, {_ADD: 30, _SUB: 30, _MUL: 40}, 6),
    ("Division Intro", 5, 6, 30, 6, {_ADD: 30, _SUB: 25, _MUL: 30, _DIV: 15}, 6),
    ("Challenge", 6, 7, 50, 10, {_ADD: 25, _SUB: 25, _MUL: 30, _DIV: 20}, 5),
    ("Expert", 6, 8, 100, 12, {_ADD: 25, _SUB: 25, _MUL: 30, _DIV: 20}, 5),
]


def _build_level(index: int) -> DifficultyProfile:
    name, rows, cols, add_sub, mult_div, weights, seconds = _LEVELS[index]
    return DifficultyProfile(
        name=name,
        rows=rows,
        cols=cols,
        operators=tuple(weights),
        add_sub_range=add_sub,
        mult_div_range=mult_div,
        min_path_length=calculate_min_path_length(rows, cols),
        max_path_length=calculate_max_path_length(rows, cols),
        weights=weights,
        seconds_per_step=seconds,
    )


DIFFICULTY_PRESETS: List[DifficultyProfile] = [_build_level(i) for i in range(len(_LEVELS))]


def get_profile_by_level(level: int, hidden_mode: bool = False) -> DifficultyProfile:
    """ Preset for level 1-10, clamped"""
    index = max(0, min(len(DIFFICULTY_PRESETS) - 1, level - 1))
    profile = DIFFICULTY_PRESETS[index]
    if hidden_mode:
        profile = profile.model_copy(update={"hidden_mode": True})
    return profile


def get_profile_by_name(name: str, hidden_mode: bool = False) -> Optional[DifficultyProfile]:
    for level, preset in enumerate(DIFFICULTY_PRESETS, start=1):
        if preset.name.lower() == name.lower():
            return get_profile_by_level(level, hidden_mode)
    return None


def get_level(profile: DifficultyProfile) -> int:
    """ 1-10 for presets, 0 for custom profiles"""
    for level, preset in enumerate(DIFFICULTY_PRESETS, start=1):
        if preset.name == profile.name:
            return level
    return 0


def create_custom_profile(**overrides) -> DifficultyProfile:
    """
    Merge overrides onto level 5. Without explicit weights every enabled
    operator gets the same weight, and path bounds follow the grid when it
    changes.
    """
    base = get_profile_by_level(5).model_dump()
    data = {**base, **overrides, "name": overrides.get("name", "Custom")}

    # overrides are still raw here, pydantic only sees them below
    try:
        if "weights" not in overrides:
            operators = data["operators"]
            data["weights"] = {op: 100 // len(operators) for op in operators} if operators else {}

        grid_changed = "rows" in overrides or "cols" in overrides
        if grid_changed and "min_path_length" not in overrides:
            data["min_path_length"] = calculate_min_path_length(data["rows"], data["cols"])
        if grid_changed and "max_path_length" not in overrides:
            data["max_path_length"] = calculate_max_path_length(data["rows"], data["cols"])
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid difficulty profile overrides: {e}") from e

    logger.debug("Custom profile from overrides: %s", sorted(overrides))
    return DifficultyProfile(**data)


# ---------- STORY MODE ----------

STORY_LEVEL_LETTERS = "ABCDE"

# operators, add_sub_max, mult_div_max (largest answer), start grid, end grid, all hidden
_CHAPTERS = {
    1: ((_ADD,), 10, 0, (3, 4), (6, 7), False),
    2: ((_ADD, _SUB), 15, 0, (4, 5), (6, 7), False),
    3: ((_ADD, _SUB), 20, 0, (4, 5), (6, 7), False),
    4: ((_ADD, _SUB), 35, 0, (4, 5), (6, 7), False),
    5: ((_ADD, _SUB, _MUL), 20, 20, (4, 5), (6, 7), False),
    6: ((_ADD, _SUB, _MUL), 30, 50, (4, 5), (6, 7), False),
    7: ((_ADD, _SUB, _MUL), 40, 100, (4, 5), (6, 7), False),
    8: ((_ADD, _SUB, _MUL, _DIV), 50, 100, (4, 5), (6, 7), False),
    9: ((_ADD, _SUB, _MUL, _DIV), 100, 144, (6, 7), (6, 7), False),
    10: ((_ADD, _SUB, _MUL, _DIV), 100, 144, (8, 9), (8, 9), True),
}


def story_grid(level: int, start: Tuple[int, int], end: Tuple[int, int]) -> Tuple[int, int]:
    """
    Grid for story level 1-5. Level 5 is the chapter's end grid. Levels 1-4
    grow from the start grid, a quarter of the total growth per level,
    alternating rows and columns.
    """
    if level == 5 or start == end:
        return end
    rows, cols = start
    per_level = ((end[0] - start[0]) + (end[1] - start[1])) // 4
    for i in range((level - 1) * per_level):
        if i % 2 == 0 and rows < end[0]:
            rows += 1
        elif cols < end[1]:
            cols += 1
        elif rows < end[0]:
            rows += 1
    return rows, cols


def get_story_profile(chapter: int, level, hidden_mode: bool = False) -> DifficultyProfile:
    """
    Profile for story chapter 1-10, level 1-5 or "A"-"E".

    Level E and the whole of the last chapter are played hidden.
    """
    if isinstance(level, str):
        letter = level.strip().upper()
        if len(letter) != 1 or letter not in STORY_LEVEL_LETTERS:
            raise ConfigurationError(f"Story level must be one of A-E, got '{level}'")
        level = STORY_LEVEL_LETTERS.index(letter) + 1
    if chapter not in _CHAPTERS:
        raise ConfigurationError(f"Story chapter must be 1-{len(_CHAPTERS)}, got {chapter}")
    if level not in range(1, len(STORY_LEVEL_LETTERS) + 1):
        raise ConfigurationError(f"Story level must be 1-{len(STORY_LEVEL_LETTERS)}, got {level}")

    operators, add_sub_max, mult_div_max, start, end, all_hidden = _CHAPTERS[chapter]
    rows, cols = story_grid(level, start, end)
    return DifficultyProfile(
        name=f"Story {chapter}-{STORY_LEVEL_LETTERS[level - 1]}",
        rows=rows,
        cols=cols,
        operators=operators,
        add_sub_range=add_sub_max,
        # factors whose product stays near the chapter's largest answer
        mult_div_range=math.isqrt(mult_div_max),
        min_path_length=calculate_min_path_length(rows, cols),
        max_path_length=calculate_max_path_length(rows, cols),
        weights={op: 100 // len(operators) for op in operators},
        hidden_mode=hidden_mode or all_hidden or level == 5,
        seconds_per_step=5,
    )
