import re
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, ConfigDict

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]{3,32}$")


def _check_username(v: str) -> str:
    if not USERNAME_PATTERN.match(v):
        raise ValueError(
            "Username must be 3-32 characters long and contain only letters, digits and underscores"
        )
    return v


class UserCreate(BaseModel):
    """Схема для создания пользователя"""
    username: str
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        return _check_username(v)


class UserUpdate(BaseModel):
    """Схема для обновления пользователя, все поля необязательны"""
    username: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=1, max_length=128)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v):
        if v is None:
            return v
        return _check_username(v)


class UserResponse(BaseModel):
    """Схема для ответа с данными пользователя"""
    id: int
    username: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class UserInfo(BaseModel):
    """Публичная информация о пользователе"""
    id: int
    username: str

    model_config = ConfigDict(from_attributes=True)


class LoginRequest(BaseModel):
    """Вход по логину или email и паролю"""
    username_or_email: str
    password: str


class TokenPair(BaseModel):
    """Пара токенов, выдаваемая при входе и при ротации"""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
