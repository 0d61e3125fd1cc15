from typing import Optional

from pydantic import BaseModel, ConfigDict

from core.roles import Role, is_admin, is_manager


class ApiUser(BaseModel):
    """Caller identity resolved from request headers."""
    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    role: Role
    employee_code: Optional[str] = None
    is_demo: bool = False


class AuthResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: Optional[ApiUser] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


class TenantContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    tenant_id: str
    organization_id: Optional[str] = None


class Scope(BaseModel):
    """
    Authorized data scope of one request: who is asking and inside which tenant.

    Repository functions that read or write tenant data take a Scope, never a
    bare tenant id taken from client input.
    """
    model_config = ConfigDict(frozen=True)

    user: ApiUser
    tenant: TenantContext

    @property
    def tenant_id(self) -> str:
        return self.tenant.tenant_id

    @property
    def user_id(self) -> str:
        return self.user.id

    @property
    def is_admin(self) -> bool:
        return is_admin(self.user)

    @property
    def is_manager(self) -> bool:
        return is_manager(self.user)
