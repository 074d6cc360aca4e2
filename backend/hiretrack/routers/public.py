"""
Unauthenticated endpoints hit by applicants: job views, application-form
tracking and application submission. The tenant of every record written here
is taken from the job, never from the request.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from hiretrack.dependencies import get_store
from hiretrack.errors import NotFound
from hiretrack.models import FunnelRecord, Job
from hiretrack.routers.candidates import candidate_to_response
from hiretrack.schemas.candidate import ApplicationSubmit, CandidateResponse
from hiretrack.schemas.tracking import (
    FormComplete,
    FormStart,
    FormStep,
    FormSubmit,
    FunnelRecordResponse,
    JobViewCreate,
)
from hiretrack.services.record_store import RecordStore
from hiretrack.utils.timestamps import now_str
from hiretrack.utils.user_agent import detect_browser, detect_device_type

logger = logging.getLogger(__name__)

router = APIRouter(tags=["public"])


def funnel_to_response(r: FunnelRecord) -> FunnelRecordResponse:
    return FunnelRecordResponse(
        id=r.id,
        job_id=r.job_id,
        session_id=r.session_id,
        source=r.source,
        device_type=r.device_type,
        browser_name=r.browser_name,
        form_started=r.form_started,
        form_completed=r.form_completed,
        submitted=r.submitted,
        candidate_created=r.candidate_created,
        candidate_id=r.candidate_id,
        step_reached=r.step_reached,
        total_steps=r.total_steps,
        time_to_complete=r.time_to_complete,
        started_at=r.started_at,
        completed_at=r.completed_at,
        submitted_at=r.submitted_at,
    )


def _public_job(store: RecordStore, job_id: str, active_only: bool = False) -> Job:
    job = store.get_job(job_id)
    if job is None or (active_only and job.status != "active"):
        raise NotFound("Job not found")
    return job


def _open_funnel_record(store: RecordStore, session_id: str) -> FunnelRecord:
    record = store.get_funnel_record(session_id)
    if record is None:
        raise NotFound("Tracking session not found")
    if record.submitted:
        raise HTTPException(status_code=409, detail="Application session is closed")
    return record


@router.post("/job-views", status_code=201)
async def record_job_view(req: JobViewCreate, request: Request, store: RecordStore = Depends(get_store)):
    job = _public_job(store, req.job_id)
    store.create_job_view(
        job.tenant_id,
        job.id,
        session_id=req.session_id,
        referrer=req.referrer or request.headers.get("referer"),
        user_agent=req.user_agent or request.headers.get("user-agent"),
        ip_address=request.client.host if request.client else None,
    )
    return {"success": True}


@router.post("/analytics/forms/start", response_model=FunnelRecordResponse, status_code=201)
async def form_start(req: FormStart, request: Request, store: RecordStore = Depends(get_store)):
    job = _public_job(store, req.job_id)
    if store.get_funnel_record(req.session_id) is not None:
        raise HTTPException(status_code=409, detail="Tracking session already started")
    user_agent = req.user_agent or request.headers.get("user-agent")
    record = store.create_funnel_record(
        job.tenant_id,
        job.id,
        req.session_id,
        source=req.source or "direct",
        referrer=req.referrer,
        user_agent=user_agent,
        ip_address=request.client.host if request.client else None,
        device_type=detect_device_type(user_agent),
        browser_name=detect_browser(user_agent),
        total_steps=req.total_steps,
    )
    return funnel_to_response(record)


@router.post("/analytics/forms/step", response_model=FunnelRecordResponse)
async def form_step(req: FormStep, store: RecordStore = Depends(get_store)):
    record = _open_funnel_record(store, req.session_id)
    if req.step > record.step_reached:
        record = store.update(record, step_reached=min(req.step, record.total_steps))
    return funnel_to_response(record)


@router.post("/analytics/forms/complete", response_model=FunnelRecordResponse)
async def form_complete(req: FormComplete, store: RecordStore = Depends(get_store)):
    record = _open_funnel_record(store, req.session_id)
    record = store.update(
        record,
        form_completed=True,
        completed_at=now_str(),
        step_reached=record.total_steps,
        time_to_complete=req.time_to_complete,
    )
    return funnel_to_response(record)


@router.post("/analytics/forms/submit", response_model=FunnelRecordResponse)
async def form_submit(req: FormSubmit, store: RecordStore = Depends(get_store)):
    record = _open_funnel_record(store, req.session_id)
    fields = {"submitted": True, "submitted_at": now_str()}
    if req.candidate_id:
        candidate = store.get_candidate(req.candidate_id)
        if candidate is None or candidate.tenant_id != record.tenant_id:
            raise NotFound("Candidate not found")
        fields.update(candidate_created=True, candidate_id=candidate.id)
    return funnel_to_response(store.update(record, **fields))


@router.post("/applications", response_model=CandidateResponse, status_code=201)
async def submit_application(req: ApplicationSubmit, store: RecordStore = Depends(get_store)):
    job = _public_job(store, req.job_id, active_only=True)
    candidate = store.create_candidate(
        job.tenant_id,
        job_id=job.id,
        full_name=req.full_name,
        email=req.email,
        phone=req.phone,
    )
    logger.info("Application %s received for job %s", candidate.id, job.id)

    if req.session_id:
        record = store.get_funnel_record(req.session_id)
        if record is not None and record.job_id == job.id and not record.submitted:
            store.update(
                record,
                form_completed=True,
                submitted=True,
                candidate_created=True,
                candidate_id=candidate.id,
                submitted_at=now_str(),
                completed_at=record.completed_at or now_str(),
            )
    return candidate_to_response(candidate)
