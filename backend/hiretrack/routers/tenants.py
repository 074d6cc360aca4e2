from fastapi import APIRouter, Depends

from hiretrack.dependencies import (
    get_current_user,
    get_store,
    get_tenant_context,
    require_session,
)
from hiretrack.errors import NotFound
from hiretrack.models import Tenant, User
from hiretrack.schemas.tenant import TenantResponse, TenantSwitchRequest
from hiretrack.services.record_store import RecordStore
from hiretrack.services.session_store import session_store
from hiretrack.services.tenancy import TenantContext, TenantResolver

router = APIRouter(prefix="/tenants", tags=["tenants"])


def _tenant_to_response(tenant: Tenant) -> TenantResponse:
    return TenantResponse(id=tenant.id, name=tenant.name, industry=tenant.industry)


@router.get("", response_model=list[TenantResponse])
async def list_tenants(
    user: User = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
):
    return [_tenant_to_response(t) for t in TenantResolver(store).available_tenants(user)]


@router.post("/switch", response_model=TenantResponse)
async def switch_tenant(
    req: TenantSwitchRequest,
    token: str = Depends(require_session),
    user: User = Depends(get_current_user),
    store: RecordStore = Depends(get_store),
):
    ctx = TenantResolver(store).switch(user, req.tenant_id)
    session_store.set_active_tenant(token, ctx.tenant_id)
    return _tenant_to_response(store.get_tenant(ctx.tenant_id))


@router.get("/active", response_model=TenantResponse)
async def active_tenant(
    ctx: TenantContext = Depends(get_tenant_context),
    store: RecordStore = Depends(get_store),
):
    tenant = store.get_tenant(ctx.tenant_id)
    if tenant is None:
        raise NotFound("Tenant not found")
    return _tenant_to_response(tenant)
