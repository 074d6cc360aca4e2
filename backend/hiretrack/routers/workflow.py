"""
Status endpoints for jobs and candidates. Both entities share one set of
handlers; the path segment picks the workflow.
"""
from fastapi import APIRouter, Depends

from hiretrack.dependencies import get_current_user, get_store, get_transition_engine
from hiretrack.models import User
from hiretrack.schemas.workflow import (
    StatusChangeResponse,
    StatusHistoryEntry,
    StatusHistoryResponse,
    StatusTransitionsResponse,
    StatusUpdate,
)
from hiretrack.services.record_store import RecordStore
from hiretrack.services.transitions import StatusTransitionEngine

router = APIRouter(tags=["workflow"])


def _transitions(engine: StatusTransitionEngine, entity: str, record_id: str) -> StatusTransitionsResponse:
    record = engine.fetch(entity, record_id)
    wf = engine.workflow(entity)
    return StatusTransitionsResponse(
        current_status=record.status,
        allowed_transitions=wf.allowed(record.status),
        transition_rules=wf.rules(),
    )


def _change_status(
    engine: StatusTransitionEngine,
    entity: str,
    record_id: str,
    req: StatusUpdate,
    user: User,
) -> StatusChangeResponse:
    result = engine.apply_transition(entity, record_id, req.status, user.id, reason=req.reason, notes=req.notes)
    return StatusChangeResponse(
        id=result.record.id,
        previous_status=result.previous_status,
        new_status=result.new_status,
        changed_by=result.changed_by,
        changed_at=result.changed_at,
        reason=result.reason,
    )


def _history(
    engine: StatusTransitionEngine,
    store: RecordStore,
    entity: str,
    record_id: str,
) -> StatusHistoryResponse:
    record = engine.fetch(entity, record_id)
    changes = store.list_status_changes(record.tenant_id, entity, record.id)
    return StatusHistoryResponse(
        id=record.id,
        current_status=record.status,
        history=[
            StatusHistoryEntry(
                previous_status=c.previous_status,
                new_status=c.new_status,
                changed_by=c.changed_by,
                changed_at=c.changed_at,
                reason=c.reason,
            )
            for c in changes
        ],
    )


@router.get("/jobs/{job_id}/status-transitions", response_model=StatusTransitionsResponse)
async def job_status_transitions(job_id: str, engine: StatusTransitionEngine = Depends(get_transition_engine)):
    return _transitions(engine, "job", job_id)


@router.get("/candidates/{candidate_id}/status-transitions", response_model=StatusTransitionsResponse)
async def candidate_status_transitions(
    candidate_id: str,
    engine: StatusTransitionEngine = Depends(get_transition_engine),
):
    return _transitions(engine, "candidate", candidate_id)


@router.patch("/jobs/{job_id}/status", response_model=StatusChangeResponse)
async def update_job_status(
    job_id: str,
    req: StatusUpdate,
    engine: StatusTransitionEngine = Depends(get_transition_engine),
    user: User = Depends(get_current_user),
):
    return _change_status(engine, "job", job_id, req, user)


@router.patch("/candidates/{candidate_id}/status", response_model=StatusChangeResponse)
async def update_candidate_status(
    candidate_id: str,
    req: StatusUpdate,
    engine: StatusTransitionEngine = Depends(get_transition_engine),
    user: User = Depends(get_current_user),
):
    return _change_status(engine, "candidate", candidate_id, req, user)


@router.get("/jobs/{job_id}/status-history", response_model=StatusHistoryResponse)
async def job_status_history(
    job_id: str,
    engine: StatusTransitionEngine = Depends(get_transition_engine),
    store: RecordStore = Depends(get_store),
):
    return _history(engine, store, "job", job_id)


@router.get("/candidates/{candidate_id}/status-history", response_model=StatusHistoryResponse)
async def candidate_status_history(
    candidate_id: str,
    engine: StatusTransitionEngine = Depends(get_transition_engine),
    store: RecordStore = Depends(get_store),
):
    return _history(engine, store, "candidate", candidate_id)
