from fastapi import APIRouter, Depends, Query
from sqlalchemy import func

from hiretrack.dependencies import get_access_guard, get_store, get_tenant_context
from hiretrack.errors import ValidationError
from hiretrack.models import Candidate, Job
from hiretrack.schemas.job import JobCreate, JobListResponse, JobResponse, JobUpdate
from hiretrack.services.record_store import RecordStore
from hiretrack.services.tenancy import AccessGuard, TenantContext
from hiretrack.services.transitions import JOB_WORKFLOW

router = APIRouter(prefix="/jobs", tags=["jobs"])


def _job_to_response(job: Job, store: RecordStore) -> JobResponse:
    candidate_count = (
        store.db.query(func.count(Candidate.id))
        .filter(Candidate.job_id == job.id, Candidate.tenant_id == job.tenant_id)
        .scalar()
    )
    return JobResponse(
        id=job.id,
        tenant_id=job.tenant_id,
        title=job.title,
        department=job.department,
        type=job.type,
        description=job.description,
        status=job.status,
        created_at=job.created_at,
        updated_at=job.updated_at,
        candidate_count=candidate_count,
    )


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(
    req: JobCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    store: RecordStore = Depends(get_store),
):
    job = store.create_job(ctx.tenant_id, **req.model_dump())
    return _job_to_response(job, store)


@router.get("", response_model=JobListResponse)
async def list_jobs(
    status: str | None = None,
    department: str | None = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    ctx: TenantContext = Depends(get_tenant_context),
    store: RecordStore = Depends(get_store),
):
    if status and status not in JOB_WORKFLOW.transitions:
        raise ValidationError(f"Unknown job status {status!r}")
    jobs = store.list_jobs(ctx.tenant_id, status=status)
    if department:
        jobs = [j for j in jobs if j.department == department]
    page_jobs = jobs[(page - 1) * per_page: page * per_page]
    return JobListResponse(
        jobs=[_job_to_response(j, store) for j in page_jobs],
        total=len(jobs),
        page=page,
        per_page=per_page,
    )


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: str,
    guard: AccessGuard = Depends(get_access_guard),
    store: RecordStore = Depends(get_store),
):
    return _job_to_response(guard.job(job_id), store)


@router.put("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: str,
    req: JobUpdate,
    guard: AccessGuard = Depends(get_access_guard),
    store: RecordStore = Depends(get_store),
):
    job = guard.job(job_id)
    # Status is not editable here; it moves only through /status.
    job = guard.update(job, "Job", **req.model_dump(exclude_unset=True, exclude_none=True))
    return _job_to_response(job, store)
