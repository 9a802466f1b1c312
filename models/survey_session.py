"""Модель сессии квиза (создаётся ведущим)"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, BigInteger
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base


class SurveySession(Base):
    __tablename__ = "sessions"
    
    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(16), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)
    presenter_id = Column(BigInteger, nullable=True)  # chat_id ведущего
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    
    participants = relationship("Participant", back_populates="session", cascade="all, delete-orphan")
    
    def __repr__(self):
        return f"<SurveySession(id={self.id}, code={self.code}, active={self.is_active})>"
