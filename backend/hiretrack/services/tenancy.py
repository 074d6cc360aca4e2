"""
Tenant resolution and tenant-scoped record access.

``TenantResolver`` decides which tenant a caller acts as for one request and
produces a ``TenantContext``. ``AccessGuard`` takes that context and refuses
any read or write of a record owned by another tenant.
"""
import logging
from dataclasses import dataclass

from hiretrack.errors import AccessDenied, NotFound
from hiretrack.models import Candidate, Job, Tenant, User
from hiretrack.services.record_store import RecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TenantContext:
    """The resolved active tenant for one request, passed explicitly to services."""

    tenant_id: str
    user_id: str
    role: str


class TenantResolver:
    def __init__(self, store: RecordStore):
        self.store = store

    def affiliated_tenant_ids(self, user: User) -> set[str]:
        # Only the primary affiliation exists today. Multi-tenant membership
        # would add rows from a user/tenant link table here.
        return {user.tenant_id}

    def is_affiliated(self, user: User, tenant_id: str | None) -> bool:
        return tenant_id is not None and tenant_id in self.affiliated_tenant_ids(user)

    def available_tenants(self, user: User) -> list[Tenant]:
        tenants = []
        for tenant_id in sorted(self.affiliated_tenant_ids(user)):
            tenant = self.store.get_tenant(tenant_id)
            if tenant is not None:
                tenants.append(tenant)
        return tenants

    def resolve(self, user: User, requested_tenant_id: str | None = None) -> TenantContext:
        """Pick the tenant the caller acts as.

        No request means the primary tenant. A request the caller is no longer
        affiliated with (for example a stale session value) falls back to the
        primary tenant instead of failing the request.
        """
        tenant_id = user.tenant_id
        if requested_tenant_id and requested_tenant_id != user.tenant_id:
            if self.is_affiliated(user, requested_tenant_id):
                tenant_id = requested_tenant_id
            else:
                logger.warning(
                    "User %s lost access to tenant %s; falling back to primary tenant %s",
                    user.id, requested_tenant_id, user.tenant_id,
                )
        return TenantContext(tenant_id=tenant_id, user_id=user.id, role=user.role)

    def switch(self, user: User, tenant_id: str) -> TenantContext:
        """Re-verify affiliation and return the context for the new active tenant.

        Affiliation is checked before existence so unaffiliated callers cannot
        tell which tenant ids exist.
        """
        if not self.is_affiliated(user, tenant_id):
            raise AccessDenied("Access denied to this tenant")
        if self.store.get_tenant(tenant_id) is None:
            raise NotFound("Tenant not found")
        logger.info("User %s switched active tenant to %s", user.id, tenant_id)
        return TenantContext(tenant_id=tenant_id, user_id=user.id, role=user.role)


class AccessGuard:
    """Early-exit ownership check around every tenant-scoped read and write."""

    def __init__(self, store: RecordStore, ctx: TenantContext):
        self.store = store
        self.ctx = ctx

    def check(self, record, label: str = "Record"):
        if record is None:
            raise NotFound(f"{label} not found")
        if record.tenant_id != self.ctx.tenant_id:
            logger.warning(
                "Cross-tenant access blocked: user %s (tenant %s) -> %s %s",
                self.ctx.user_id, self.ctx.tenant_id, label.lower(), record.id,
            )
            # Same status and body as a missing record.
            raise AccessDenied(f"{label} not found", status_code=404)
        return record

    def job(self, job_id: str) -> Job:
        return self.check(self.store.get_job(job_id), "Job")

    def candidate(self, candidate_id: str) -> Candidate:
        return self.check(self.store.get_candidate(candidate_id), "Candidate")

    def update(self, record, label: str = "Record", **fields):
        self.check(record, label)
        return self.store.update(record, **fields)
