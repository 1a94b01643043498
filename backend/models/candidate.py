"""Candidate and vote model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from backend.database import Base


class Candidate(Base):
    """Represents a candidate standing in the election."""
    __tablename__ = "candidates"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    party = Column(String, nullable=False)
    age = Column(Integer, nullable=False)
    vote_count = Column(Integer, nullable=False, default=0)


class Vote(Base):
    """A single ballot. Each user may cast at most one."""
    __tablename__ = "votes"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    candidate_id = Column(Integer, ForeignKey("candidates.id", ondelete="CASCADE"), index=True, nullable=False)
    voted_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
