import enum
from typing import Optional


class Role(str, enum.Enum):
    """Роль пользователя в проекте, упорядочена по возрастанию прав"""
    VIEWER = "Viewer"
    COMMENTER = "Commenter"
    EDITOR = "Editor"
    OWNER = "Owner"

    @property
    def rank(self) -> int:
        return _ROLE_RANKS[self]

    def satisfies(self, required: "Role") -> bool:
        """Достаточно ли этой роли для операции, требующей required"""
        return self.rank >= required.rank

    @property
    def can_edit(self) -> bool:
        return self.satisfies(Role.EDITOR)


_ROLE_RANKS = {
    Role.VIEWER: 0,
    Role.COMMENTER: 1,
    Role.EDITOR: 2,
    Role.OWNER: 3,
}

# Роли, которые можно выдать через запись Access; владелец задается project.owner_id
GRANTABLE_ROLES = (Role.VIEWER, Role.COMMENTER, Role.EDITOR)


class Access:
    """Права пользователя на проект"""

    def __init__(
        self,
        role: Role,
        project_id: int,
        user_id: int,
        id: Optional[int] = None
    ):
        self.id = id
        self.role = Role(role)
        self.project_id = project_id
        self.user_id = user_id

    def allows(self, required: Role) -> bool:
        return self.role.satisfies(required)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Access):
            return False
        return (self.user_id, self.project_id) == (other.user_id, other.project_id)

    def __repr__(self) -> str:
        return f"Access(user={self.user_id}, project={self.project_id}, role={self.role.value})"
