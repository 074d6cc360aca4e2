from fastapi import APIRouter, Depends, Query

from hiretrack.dependencies import get_access_guard, get_store, get_tenant_context
from hiretrack.errors import ValidationError
from hiretrack.models import Candidate
from hiretrack.schemas.candidate import (
    CandidateCreate,
    CandidateListResponse,
    CandidateResponse,
    CandidateUpdate,
)
from hiretrack.services.record_store import RecordStore
from hiretrack.services.tenancy import AccessGuard, TenantContext
from hiretrack.services.transitions import CANDIDATE_WORKFLOW

router = APIRouter(prefix="/candidates", tags=["candidates"])


def candidate_to_response(c: Candidate) -> CandidateResponse:
    return CandidateResponse(
        id=c.id,
        tenant_id=c.tenant_id,
        job_id=c.job_id,
        full_name=c.full_name,
        email=c.email,
        phone=c.phone,
        notes=c.notes,
        status=c.status,
        created_at=c.created_at,
        updated_at=c.updated_at,
        hired_at=c.hired_at,
    )


@router.post("", response_model=CandidateResponse, status_code=201)
async def create_candidate(
    req: CandidateCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    guard: AccessGuard = Depends(get_access_guard),
    store: RecordStore = Depends(get_store),
):
    if req.job_id:
        guard.job(req.job_id)
    candidate = store.create_candidate(ctx.tenant_id, **req.model_dump())
    return candidate_to_response(candidate)


@router.get("", response_model=CandidateListResponse)
async def list_candidates(
    job_id: str | None = Query(None, alias="jobId"),
    status: str | None = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    ctx: TenantContext = Depends(get_tenant_context),
    store: RecordStore = Depends(get_store),
):
    if status and status not in CANDIDATE_WORKFLOW.transitions:
        raise ValidationError(f"Unknown candidate status {status!r}")
    candidates = store.list_candidates(ctx.tenant_id, job_id=job_id, status=status)
    page_items = candidates[(page - 1) * per_page: page * per_page]
    return CandidateListResponse(
        candidates=[candidate_to_response(c) for c in page_items],
        total=len(candidates),
        page=page,
        per_page=per_page,
    )


@router.get("/{candidate_id}", response_model=CandidateResponse)
async def get_candidate(candidate_id: str, guard: AccessGuard = Depends(get_access_guard)):
    return candidate_to_response(guard.candidate(candidate_id))


@router.put("/{candidate_id}", response_model=CandidateResponse)
async def update_candidate(
    candidate_id: str,
    req: CandidateUpdate,
    guard: AccessGuard = Depends(get_access_guard),
):
    candidate = guard.candidate(candidate_id)
    changes = req.model_dump(exclude_unset=True, exclude_none=True)
    if "job_id" in changes:
        guard.job(changes["job_id"])
    return candidate_to_response(guard.update(candidate, "Candidate", **changes))
