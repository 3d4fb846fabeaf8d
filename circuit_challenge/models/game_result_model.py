from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, Uuid, func
from sqlalchemy.orm import relationship
from circuit_challenge.core.database import Base
from uuid import uuid4


class GameResult(Base):
    __tablename__ = "game_results"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    session_id = Column(Uuid(as_uuid=True), nullable=False, unique=True)  # one result per session
    puzzle_id = Column(Uuid(as_uuid=True), nullable=False)
    profile_name = Column(String, nullable=False)
    level = Column(Integer, nullable=False, default=0)  # 0 = custom profile
    hidden_mode = Column(Boolean, nullable=False, default=False)
    outcome = Column(String, nullable=False)  # 'won' or 'lost'
    coins = Column(Integer, nullable=False, default=0)
    elapsed_seconds = Column(Float, nullable=False, default=0.0)
    path_length = Column(Integer, nullable=False)
    correct_count = Column(Integer, nullable=False, default=0)
    mistake_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # relationship
    moves = relationship(
        "MoveResult",
        back_populates="game_result",
        cascade="all, delete-orphan",
        order_by="MoveResult.order_index",
    )
