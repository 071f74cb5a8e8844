from sqlalchemy import Column, String, Text, Integer, Boolean, ForeignKey, DateTime, JSON, UniqueConstraint
from sqlalchemy.orm import relationship

from collabmodel.core.security import utcnow
from collabmodel.db.base import BaseModel
from collabmodel.core.db import Base


class Project(BaseModel):
    __tablename__ = "projects"
    __table_args__ = (UniqueConstraint("owner_id", "name", name="uq_projects_owner_name"),)

    name = Column(String(255), nullable=False)
    components_info = Column(JSON, nullable=False)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # Relationships
    owner = relationship("User", back_populates="owned_projects")
    queries = relationship("Query", back_populates="project", passive_deletes=True)
    in_use = relationship("InUse", back_populates="project", uselist=False, passive_deletes=True)


class Query(BaseModel):
    __tablename__ = "queries"

    string = Column(Text, nullable=False)
    result = Column(JSON, nullable=True)
    outdated = Column(Boolean, default=True, nullable=False)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)

    # Relationships
    project = relationship("Project", back_populates="queries")


class InUse(Base):
    """Блокировка редактирования: ровно одна строка на проект"""
    __tablename__ = "in_use"

    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True)
    # NULL после удаления сессии владельца блокировки
    session_id = Column(Integer, ForeignKey("sessions.id", ondelete="SET NULL"), nullable=True)
    latest_activity = Column(DateTime, default=utcnow, nullable=False)

    # Relationships
    project = relationship("Project", back_populates="in_use")
