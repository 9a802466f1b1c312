"""Модель анонимного участника"""
import uuid
from sqlalchemy import Column, Integer, String, Boolean, DateTime, BigInteger, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base


class Participant(Base):
    __tablename__ = "participants"
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    session_id = Column(Integer, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False)
    tracking_id = Column(BigInteger, nullable=False)  # Telegram user_id
    username = Column(String, nullable=True)
    name = Column(String(100), nullable=True)
    generation = Column(String(30), nullable=True)  # Старые записи без ответа на вопрос о поколении
    completed = Column(Boolean, default=False)
    joined_at = Column(DateTime, default=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)
    
    session = relationship("SurveySession", back_populates="participants")
    answers = relationship("Answer", back_populates="participant", cascade="all, delete-orphan")
    
    __table_args__ = (
        Index("idx_session_tracking", "session_id", "tracking_id", unique=True),
    )
    
    def __repr__(self):
        return f"<Participant(id={self.id}, session_id={self.session_id}, completed={self.completed})>"
