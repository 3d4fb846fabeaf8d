from circuit_challenge.models.game_result_model import GameResult
from circuit_challenge.models.move_result_model import MoveResult
