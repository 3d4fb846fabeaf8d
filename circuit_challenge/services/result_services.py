import logging
from typing import List, Optional
from uuid import uuid4

from fastapi import HTTPException
from sqlalchemy.orm import joinedload

from circuit_challenge import models
from circuit_challenge.engine.game import GameSession

logger = logging.getLogger(__name__)


class ResultServices:
    """ Handles all finished game related DB operation"""

    def __init__(self, db):
        self.db = db

    # store a finished game
    def record_result(self, session: GameSession) -> models.GameResult:
        """Insert the summary of a won or lost game and its moves"""
        summary = session.summary()
        if summary is None:
            raise HTTPException(status_code=409, detail=f"Game is {session.status.value}, only won or lost games are recorded")
        existing = self.db.query(models.GameResult).filter(models.GameResult.session_id == summary.session_id).first()
        if existing:
            raise HTTPException(status_code=409, detail=f"Game {summary.session_id} is already recorded as result {existing.id}")

        result = models.GameResult(
            id=uuid4(),
            session_id=summary.session_id,
            puzzle_id=summary.puzzle_id,
            profile_name=summary.profile_name,
            level=summary.level,
            hidden_mode=summary.hidden_mode,
            outcome=summary.outcome.value,
            coins=summary.coins,
            elapsed_seconds=summary.elapsed_seconds,
            path_length=summary.path_length,
            correct_count=summary.correct_count,
            mistake_count=summary.mistake_count,
        )
        self.db.add(result)
        self.db.flush()

        for index, move in enumerate(summary.moves):
            self.db.add(models.MoveResult(
                game_result_id=result.id,
                order_index=index,
                from_row=move.from_cell.row,
                from_col=move.from_cell.col,
                to_row=move.to_cell.row,
                to_col=move.to_cell.col,
                label=move.label,
                answer=move.answer,
                correct=move.correct,
            ))

        self.db.commit()
        self.db.refresh(result)
        logger.info("Recorded %s game %s on '%s' with %d coins",
                    result.outcome, result.session_id, result.profile_name, result.coins)
        return result

    # get all results
    def get_all_results(
            self,
            profile_name: Optional[str] = None,
            outcome: Optional[str] = None,
            hidden_mode: Optional[bool] = None,
            sort_by: Optional[str] = None,
            order: Optional[str] = "asc"
    ) -> List[models.GameResult]:
        """Fetch results with filter"""
        query = self.db.query(models.GameResult)

        if profile_name:
            query = query.filter(models.GameResult.profile_name == profile_name)
        if outcome:
            query = query.filter(models.GameResult.outcome == outcome)
        if hidden_mode is not None:
            query = query.filter(models.GameResult.hidden_mode == hidden_mode)
        if sort_by and sort_by in models.GameResult.__table__.columns:
            sort_column = getattr(models.GameResult, sort_by)
            query = query.order_by(sort_column.desc() if order == "desc" else sort_column.asc())

        return query.all()

    # get one result by id
    def get_result_by_id(self, result_id) -> models.GameResult:
        result = (self.db.query(models.GameResult)
                  .options(joinedload(models.GameResult.moves))
                  .filter(models.GameResult.id == result_id).first())
        if not result:
            raise HTTPException(status_code=404, detail="Result not found")
        return result

    # delete one result
    def delete_result(self, result_id):
        result = self.get_result_by_id(result_id)
        self.db.delete(result)
        self.db.commit()
