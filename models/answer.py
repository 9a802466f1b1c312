"""Модель ответа на вопрос"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base


class Answer(Base):
    __tablename__ = "answers"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    participant_id = Column(String(36), ForeignKey("participants.id", ondelete="CASCADE"), nullable=False)
    question_index = Column(Integer, nullable=False)
    option_id = Column(String(50), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    
    participant = relationship("Participant", back_populates="answers")
    
    __table_args__ = (
        UniqueConstraint("participant_id", "question_index", name="uq_participant_question"),
    )
    
    def __repr__(self):
        return f"<Answer(id={self.id}, question={self.question_index}, option={self.option_id})>"
