# generator, validator and game import circuit_challenge.schemas, which imports
# this package; import them from their modules directly.
from circuit_challenge.engine.errors import ConfigurationError, GenerationFailure
from circuit_challenge.engine.topology import Coordinate, Topology
from circuit_challenge.engine.difficulty import (
    DIFFICULTY_PRESETS,
    DifficultyProfile,
    Operator,
    create_custom_profile,
    get_profile_by_level,
    get_profile_by_name,
    get_story_profile,
)
from circuit_challenge.engine.expressions import Expression, evaluate_expression
