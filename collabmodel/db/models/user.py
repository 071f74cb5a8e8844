from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from collabmodel.db.base import BaseModel


class User(BaseModel):
    __tablename__ = "users"

    username = Column(String(32), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)

    # Relationships
    sessions = relationship("Session", back_populates="user", passive_deletes=True)
    owned_projects = relationship("Project", back_populates="owner", passive_deletes=True)
