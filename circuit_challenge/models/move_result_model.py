from sqlalchemy import Column, ForeignKey, Integer, Boolean, Uuid
from sqlalchemy.orm import relationship
from circuit_challenge.core.database import Base


class MoveResult(Base):
    __tablename__ = "move_results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    game_result_id = Column(Uuid(as_uuid=True), ForeignKey("game_results.id", ondelete="CASCADE"), nullable=False)
    order_index = Column(Integer, nullable=False)
    from_row = Column(Integer, nullable=False)
    from_col = Column(Integer, nullable=False)
    to_row = Column(Integer, nullable=False)
    to_col = Column(Integer, nullable=False)
    label = Column(Integer, nullable=False)  # connector label seen by the player
    answer = Column(Integer)  # answer of the cell left
    correct = Column(Boolean, nullable=False)

    # Relationship
    game_result = relationship("GameResult", back_populates="moves")
