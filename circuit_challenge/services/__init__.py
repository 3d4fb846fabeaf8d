from circuit_challenge.services.game_services import GameServices, SessionRegistry
from circuit_challenge.services.result_services import ResultServices
