from collabmodel.domains.access.entities import Role, Access, GRANTABLE_ROLES
from collabmodel.domains.access.schemas import AccessCreate, AccessUpdate, AccessResponse

__all__ = [
    "Role", "Access", "GRANTABLE_ROLES",
    "AccessCreate", "AccessUpdate", "AccessResponse",
]
