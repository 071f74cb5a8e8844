from datetime import datetime, timedelta
from typing import Optional, Any, Dict


class Project:
    """Проект: модель временных автоматов, принадлежащая владельцу"""

    def __init__(
        self,
        name: str,
        components_info: Dict[str, Any],
        owner_id: int,
        id: Optional[int] = None
    ):
        self.id = id
        self.name = name
        self.components_info = components_info
        self.owner_id = owner_id

    def is_owner(self, user_id: int) -> bool:
        return self.owner_id == user_id

    def __eq__(self, other) -> bool:
        if not isinstance(other, Project):
            return False
        return self.id == other.id

    def __repr__(self) -> str:
        return f"Project(id={self.id}, name={self.name}, owner_id={self.owner_id})"


class Query:
    """Запрос к модели и его последний результат"""

    def __init__(
        self,
        string: str,
        project_id: int,
        result: Optional[Any] = None,
        outdated: bool = True,
        id: Optional[int] = None
    ):
        self.id = id
        self.string = string
        self.project_id = project_id
        self.result = result
        self.outdated = outdated

    def __repr__(self) -> str:
        return f"Query(id={self.id}, project_id={self.project_id}, outdated={self.outdated})"


class InUse:
    """Блокировка редактирования проекта"""

    def __init__(
        self,
        project_id: int,
        session_id: Optional[int],
        latest_activity: datetime
    ):
        self.project_id = project_id
        self.session_id = session_id
        self.latest_activity = latest_activity

    def is_stale(self, now: datetime, timeout: timedelta) -> bool:
        return now - self.latest_activity > timeout

    def is_active(self, now: datetime, timeout: timedelta) -> bool:
        """Занята ли блокировка какой-либо сессией"""
        return self.session_id is not None and not self.is_stale(now, timeout)

    def __repr__(self) -> str:
        return (
            f"InUse(project_id={self.project_id}, session_id={self.session_id}, "
            f"latest_activity={self.latest_activity})"
        )
