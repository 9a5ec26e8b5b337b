from sqlalchemy import Column, Integer, ForeignKey, DateTime, Date, Float, JSON, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from exam_backend.database import Base


class Attempt(Base):
    __tablename__ = "attempts"
    # One attempt per participant per calendar day (participant's local day)
    __table_args__ = (
        UniqueConstraint("participant_id", "attempt_day", name="uq_attempts_participant_day"),
    )

    id = Column(Integer, primary_key=True, index=True)
    participant_id = Column(Integer, ForeignKey("participants.id", ondelete="CASCADE"), nullable=False, index=True)
    started_at = Column(DateTime(timezone=True), nullable=False)
    attempt_day = Column(Date, nullable=False, index=True)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    score = Column(Float, nullable=True)  # 0-10 scale
    correct_count = Column(Integer, nullable=True)
    questions = Column(JSON, nullable=False, default=list)  # [{id, noiDung, dapAn, dapAnDung}]
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    participant = relationship("Participant", back_populates="attempts")

    @property
    def is_completed(self) -> bool:
        return self.submitted_at is not None and self.score is not None
