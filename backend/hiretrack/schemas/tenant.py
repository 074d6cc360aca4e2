from hiretrack.schemas.base import CamelModel


class TenantResponse(CamelModel):
    id: str
    name: str
    industry: str | None = None


class TenantSwitchRequest(CamelModel):
    tenant_id: str
