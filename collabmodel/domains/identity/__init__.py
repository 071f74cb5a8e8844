from collabmodel.domains.identity.entities import User, Session
from collabmodel.domains.identity.schemas import (
    UserCreate, UserUpdate, UserResponse, UserInfo, LoginRequest, TokenPair
)

__all__ = [
    "User", "Session",
    "UserCreate", "UserUpdate", "UserResponse", "UserInfo",
    "LoginRequest", "TokenPair",
]
