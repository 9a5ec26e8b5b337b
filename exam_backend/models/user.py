from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from exam_backend.database import Base


class User(Base):
    """Staff account allowed to view and export submissions."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
