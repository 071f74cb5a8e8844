from datetime import datetime
from typing import Optional


class User:
    """Сущность пользователя домена Identity"""

    def __init__(
        self,
        username: str,
        email: str,
        password_hash: str,
        id: Optional[int] = None
    ):
        self.id = id
        self.username = username
        self.email = email
        self.password_hash = password_hash

    def update_profile(
        self,
        username: Optional[str] = None,
        email: Optional[str] = None,
        password_hash: Optional[str] = None
    ) -> None:
        """Обновление профиля пользователя"""
        if username:
            self.username = username
        if email:
            self.email = email
        if password_hash:
            self.password_hash = password_hash

    def __eq__(self, other) -> bool:
        if not isinstance(other, User):
            return False
        return self.id == other.id

    def __repr__(self) -> str:
        return f"User(id={self.id}, username={self.username}, email={self.email})"


class Session:
    """Серверная запись сессии: текущая пара токенов пользователя"""

    def __init__(
        self,
        access_token: str,
        refresh_token: str,
        user_id: int,
        id: Optional[int] = None,
        updated_at: Optional[datetime] = None
    ):
        self.id = id
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.user_id = user_id
        self.updated_at = updated_at

    def rotate(self, access_token: str, refresh_token: str, now: datetime) -> None:
        """Замена пары токенов, старый refresh токен становится недействительным"""
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.updated_at = now

    def __repr__(self) -> str:
        return f"Session(id={self.id}, user_id={self.user_id}, updated_at={self.updated_at})"
