from sqlalchemy import Column, String, Integer, ForeignKey, DateTime
from sqlalchemy.orm import relationship

from collabmodel.core.security import utcnow
from collabmodel.db.base import BaseModel


class Session(BaseModel):
    __tablename__ = "sessions"

    access_token = Column(String(1024), unique=True, nullable=False)
    refresh_token = Column(String(1024), unique=True, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Relationships
    user = relationship("User", back_populates="sessions")
