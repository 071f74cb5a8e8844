from sqlalchemy import Column, Integer, ForeignKey, Enum, UniqueConstraint

from collabmodel.db.base import BaseModel
from collabmodel.domains.access.entities import Role


class Access(BaseModel):
    __tablename__ = "access"
    __table_args__ = (UniqueConstraint("user_id", "project_id", name="uq_access_user_project"),)

    role = Column(
        Enum(Role, name="role", values_callable=lambda roles: [role.value for role in roles]),
        nullable=False
    )
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
