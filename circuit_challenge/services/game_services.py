import asyncio
import itertools
import logging
import random
from threading import Lock
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from fastapi import HTTPException

from circuit_challenge.core.config import settings
from circuit_challenge.engine.difficulty import (
    DIFFICULTY_PRESETS,
    DifficultyProfile,
    create_custom_profile,
    get_profile_by_level,
    get_profile_by_name,
    get_story_profile,
)
from circuit_challenge.engine.errors import ConfigurationError, GenerationFailure
from circuit_challenge.engine.game import GameSession, Status, create_session, request_new_puzzle
from circuit_challenge.engine.generator import generate_puzzle_async
from circuit_challenge.schemas import GameCreate

logger = logging.getLogger(__name__)

DEFAULT_LEVEL = 5


class SessionRegistry:
    """
    In-memory store of running sessions and the profile each was generated from.
    Past max_sessions the oldest finished sessions are dropped on add.
    """

    def __init__(self, max_sessions: Optional[int] = None):
        self._sessions: Dict[UUID, Tuple[GameSession, DifficultyProfile]] = {}
        self._lock = Lock()
        self.max_sessions = settings.MAX_SESSIONS if max_sessions is None else max_sessions

    def add(self, session: GameSession, profile: DifficultyProfile):
        with self._lock:
            self._sessions[session.id] = (session, profile)
            self._evict_finished()

    def _evict_finished(self):
        # dicts keep insertion order, so the first finished sessions are the oldest
        excess = len(self._sessions) - self.max_sessions
        if excess <= 0:
            return
        finished = (sid for sid, (session, _) in self._sessions.items()
                    if session.status in (Status.WON, Status.LOST))
        stale = list(itertools.islice(finished, excess))
        for sid in stale:
            del self._sessions[sid]
        logger.info("Evicted %d finished sessions, %d left", len(stale), len(self._sessions))

    def get(self, session_id: UUID) -> Optional[Tuple[GameSession, DifficultyProfile]]:
        with self._lock:
            return self._sessions.get(session_id)

    def replace(self, old_id: UUID, session: GameSession, profile: DifficultyProfile):
        with self._lock:
            self._sessions.pop(old_id, None)
            self._sessions[session.id] = (session, profile)
            self._evict_finished()

    def remove(self, session_id: UUID):
        with self._lock:
            self._sessions.pop(session_id, None)

    def __len__(self):
        return len(self._sessions)


def _coord(coord) -> List[int]:
    return [coord[0], coord[1]]


class GameServices:
    """ Handles the running games of one registry"""

    def __init__(self, registry: SessionRegistry):
        self.registry = registry

    # list presets
    def get_profiles(self) -> List[dict]:
        return [
            {
                "level": level,
                "name": profile.name,
                "rows": profile.rows,
                "cols": profile.cols,
                "operators": [op.value for op in profile.enabled_operators],
                "add_sub_range": profile.add_sub_range,
                "mult_div_range": profile.mult_div_range,
                "min_path_length": profile.min_path_length,
                "max_path_length": profile.max_path_length,
                "seconds_per_step": profile.seconds_per_step,
            }
            for level, profile in enumerate(DIFFICULTY_PRESETS, start=1)
        ]

    def resolve_profile(self, game_data: GameCreate) -> DifficultyProfile:
        """ custom overrides win over story chapter, chapter over level, level over name"""
        if game_data.custom is not None:
            try:
                return create_custom_profile(**{**game_data.custom, "hidden_mode": game_data.hidden_mode})
            except ConfigurationError as e:
                raise HTTPException(status_code=422, detail=str(e))
        if game_data.chapter is not None:
            return get_story_profile(game_data.chapter, game_data.story_level, game_data.hidden_mode)
        if game_data.level is not None:
            return get_profile_by_level(game_data.level, game_data.hidden_mode)
        if game_data.name:
            profile = get_profile_by_name(game_data.name, game_data.hidden_mode)
            if not profile:
                raise HTTPException(status_code=404, detail=f"Unknown difficulty '{game_data.name}'")
            return profile
        return get_profile_by_level(DEFAULT_LEVEL, game_data.hidden_mode)

    # create game
    async def create_game(self, game_data: GameCreate) -> GameSession:
        """Generate a puzzle off the event loop and register a fresh session for it"""
        profile = self.resolve_profile(game_data)
        try:
            puzzle = await generate_puzzle_async(profile, random.Random(game_data.seed))
        except GenerationFailure as e:
            raise HTTPException(status_code=422, detail=str(e))

        session = create_session(puzzle, max_lives=game_data.max_lives, hidden_mode=profile.hidden_mode)
        self.registry.add(session, profile)
        logger.info("Session %s started on '%s' puzzle %s", session.id, profile.name, puzzle.id)
        return session

    # get one game by id
    def get_game(self, session_id: UUID) -> GameSession:
        entry = self.registry.get(session_id)
        if not entry:
            raise HTTPException(status_code=404, detail="Game not found")
        return entry[0]

    def move(self, session_id: UUID, row: int, col: int) -> GameSession:
        return self.get_game(session_id).attempt_move((row, col))

    def reset(self, session_id: UUID) -> GameSession:
        return self.get_game(session_id).reset_puzzle()

    def reveal(self, session_id: UUID) -> GameSession:
        return self.get_game(session_id).reveal()

    def tick(self, session_id: UUID, elapsed_seconds: float) -> GameSession:
        return self.get_game(session_id).tick(elapsed_seconds)

    def show_solution(self, session_id: UUID) -> GameSession:
        session = self.get_game(session_id)
        if not session.is_over:
            raise HTTPException(status_code=409, detail="Solution is only shown once the game is over")
        return session.show_solution()

    async def new_puzzle(self, session_id: UUID, seed: Optional[int] = None) -> GameSession:
        """Swap the session for a new one on a fresh puzzle of the same difficulty"""
        entry = self.registry.get(session_id)
        if not entry:
            raise HTTPException(status_code=404, detail="Game not found")
        session, profile = entry
        try:
            new_session = await asyncio.to_thread(request_new_puzzle, session, profile, random.Random(seed))
        except GenerationFailure as e:
            raise HTTPException(status_code=422, detail=str(e))
        self.registry.replace(session_id, new_session, profile)
        return new_session

    # Serialize session to JSON
    def serialize_game(self, session: GameSession) -> dict:
        """
        What a client may see. Which connectors are correct, and the route,
        stay hidden until the game is won, lost or waiting for the reveal.
        Hidden mode also keeps per-move feedback back until then.
        """
        puzzle = session.puzzle
        over = session.is_over
        feedback = over or not session.hidden_mode
        route = {frozenset(pair) for pair in zip(puzzle.canonical_path, puzzle.canonical_path[1:])}
        visited = set(session.visited)

        game_data = {
            "session_id": str(session.id),
            "puzzle_id": str(puzzle.id),
            "profile_name": puzzle.profile_name,
            "level": puzzle.level,
            "status": session.status.value,
            "hidden_mode": session.hidden_mode,
            "rows": puzzle.rows,
            "cols": puzzle.cols,
            "topology": puzzle.topology.value,
            "seconds_per_step": puzzle.seconds_per_step,
            "start": _coord(puzzle.start),
            "finish": _coord(puzzle.finish),
            "position": _coord(session.position),
            "coins": session.coins,
            "elapsed_seconds": session.elapsed_seconds,
            "cells": [
                {
                    "row": cell.coord.row,
                    "col": cell.coord.col,
                    "expression": cell.expression,
                    "is_start": cell.is_start,
                    "is_finish": cell.is_finish,
                    "visited": cell.coord in visited,
                }
                for cell in puzzle.cells
            ],
            "edges": [
                {
                    "a": _coord(edge.a),
                    "b": _coord(edge.b),
                    "label": edge.label,
                    **({"on_route": edge.key in route} if over else {}),
                }
                for edge in puzzle.edges
            ],
            "moves": [
                {
                    "from": _coord(move.from_cell),
                    "to": _coord(move.to_cell),
                    "label": move.label,
                    **({"correct": move.correct} if feedback else {}),
                }
                for move in session.moves
            ],
        }
        # hidden mode has no lives
        if not session.hidden_mode:
            game_data["lives"] = session.lives
            game_data["max_lives"] = session.max_lives
        if feedback:
            game_data["correct_count"] = session.correct_count
            game_data["mistake_count"] = session.mistake_count
        if over:
            game_data["canonical_path"] = [_coord(coord) for coord in puzzle.canonical_path]
            game_data["solution_visible"] = session.solution_visible
        return game_data

