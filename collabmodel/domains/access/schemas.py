from typing import Optional

from pydantic import BaseModel, EmailStr, ConfigDict, field_validator, model_validator

from collabmodel.domains.access.entities import Role, GRANTABLE_ROLES


def _check_grantable(v: Role) -> Role:
    if v not in GRANTABLE_ROLES:
        raise ValueError("Role must be one of: " + ", ".join(role.value for role in GRANTABLE_ROLES))
    return v


class AccessCreate(BaseModel):
    """Выдача прав; пользователь задается ровно одним из id, username или email"""
    role: Role
    user_id: Optional[int] = None
    username: Optional[str] = None
    email: Optional[EmailStr] = None

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        return _check_grantable(v)

    @model_validator(mode="after")
    def validate_single_identifier(self):
        given = [v for v in (self.user_id, self.username, self.email) if v is not None]
        if len(given) != 1:
            raise ValueError("Exactly one of user_id, username or email must be provided")
        return self


class AccessUpdate(BaseModel):
    role: Role

    @field_validator("role")
    @classmethod
    def validate_role(cls, v):
        return _check_grantable(v)


class AccessResponse(BaseModel):
    id: int
    role: Role
    project_id: int
    user_id: int

    model_config = ConfigDict(from_attributes=True)
