# import moduls/libraries
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

# import form project
from circuit_challenge.core.database import get_db
from circuit_challenge.schemas import GameCreate, MoveRequest, TickRequest, NewPuzzleRequest, GameResultRead
from circuit_challenge.services import GameServices, ResultServices, SessionRegistry


router = APIRouter()


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def get_game_services(registry: SessionRegistry = Depends(get_registry)) -> GameServices:
    return GameServices(registry)


# list difficulty presets
@router.get("/profiles")
async def get_profiles(services: GameServices = Depends(get_game_services)):
    """Get the ten difficulty presets"""
    return services.get_profiles()


# Start a game
@router.post("/", status_code=201)
async def create_game(game_data: GameCreate, services: GameServices = Depends(get_game_services)):
    """Generate a puzzle and start a session on it"""
    session = await services.create_game(game_data)
    return JSONResponse(content=services.serialize_game(session), status_code=201)


# get a list of results (GET), declared before /{session_id}
@router.get("/results/", response_model=List[GameResultRead])
async def get_results(
    db: Session = Depends(get_db),
    profile_name: Optional[str] = Query(None, description="Filter by difficulty name"),
    outcome: Optional[str] = Query(None, description="Filter by outcome (won/lost)"),
    hidden_mode: Optional[bool] = Query(None, description="Filter by hidden mode"),
    sort_by: Optional[str] = Query(None, description="Sort field"),
    order: Optional[str] = Query("asc", description="Sort order")
):
    """Get a list of finished games, with optional filters and sorting"""
    services = ResultServices(db)
    return services.get_all_results(profile_name, outcome, hidden_mode, sort_by, order)


@router.get("/results/{result_id}", response_model=GameResultRead)
async def get_result(result_id: UUID, db: Session = Depends(get_db)):
    """Fetch one finished game by ID"""
    return ResultServices(db).get_result_by_id(result_id)


@router.delete("/results/{result_id}", status_code=204)
async def delete_result(result_id: UUID, db: Session = Depends(get_db)):
    ResultServices(db).delete_result(result_id)


# Get game by id
@router.get("/{session_id}")
async def get_game(session_id: UUID, services: GameServices = Depends(get_game_services)):
    return services.serialize_game(services.get_game(session_id))


# Abandon a game
@router.delete("/{session_id}", status_code=204)
async def delete_game(session_id: UUID, services: GameServices = Depends(get_game_services)):
    services.get_game(session_id)
    services.registry.remove(session_id)


@router.post("/{session_id}/moves")
async def make_move(session_id: UUID, move: MoveRequest, services: GameServices = Depends(get_game_services)):
    """Step to a neighbouring cell. Moves that do not apply leave the game unchanged"""
    session = services.move(session_id, move.row, move.col)
    return services.serialize_game(session)


@router.post("/{session_id}/reset")
async def reset_game(session_id: UUID, services: GameServices = Depends(get_game_services)):
    return services.serialize_game(services.reset(session_id))


@router.post("/{session_id}/reveal")
async def reveal_game(session_id: UUID, services: GameServices = Depends(get_game_services)):
    """Hidden mode: settle the score after reaching the finish"""
    return services.serialize_game(services.reveal(session_id))


@router.post("/{session_id}/tick")
async def tick_game(session_id: UUID, tick: TickRequest, services: GameServices = Depends(get_game_services)):
    return services.serialize_game(services.tick(session_id, tick.elapsed_seconds))


@router.post("/{session_id}/solution")
async def show_solution(session_id: UUID, services: GameServices = Depends(get_game_services)):
    return services.serialize_game(services.show_solution(session_id))


@router.post("/{session_id}/new", status_code=201)
async def new_puzzle(session_id: UUID, new_data: Optional[NewPuzzleRequest] = None,
                     services: GameServices = Depends(get_game_services)):
    """Discard the game and start another one at the same difficulty"""
    seed = new_data.seed if new_data else None
    session = await services.new_puzzle(session_id, seed)
    return JSONResponse(content=services.serialize_game(session), status_code=201)


# Store a finished game
@router.post("/{session_id}/result", response_model=GameResultRead, status_code=201)
async def record_result(session_id: UUID, db: Session = Depends(get_db),
                        services: GameServices = Depends(get_game_services)):
    """Store a won or lost game. The session is dropped once it is recorded"""
    session = services.get_game(session_id)
    result = ResultServices(db).record_result(session)
    services.registry.remove(session_id)
    return result
