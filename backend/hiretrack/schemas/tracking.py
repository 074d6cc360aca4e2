from pydantic import Field

from hiretrack.schemas.base import CamelModel


class JobViewCreate(CamelModel):
    job_id: str
    session_id: str | None = None
    referrer: str | None = None
    user_agent: str | None = None


class FormStart(CamelModel):
    job_id: str
    session_id: str
    source: str | None = None
    referrer: str | None = None
    user_agent: str | None = None
    total_steps: int = Field(3, ge=1)


class FormStep(CamelModel):
    session_id: str
    step: int = Field(..., ge=1)


class FormComplete(CamelModel):
    session_id: str
    time_to_complete: int | None = Field(None, ge=0)


class FormSubmit(CamelModel):
    session_id: str
    candidate_id: str | None = None


class FunnelRecordResponse(CamelModel):
    id: str
    job_id: str
    session_id: str
    source: str
    device_type: str
    browser_name: str
    form_started: bool
    form_completed: bool
    submitted: bool
    candidate_created: bool
    candidate_id: str | None
    step_reached: int
    total_steps: int
    time_to_complete: int | None
    started_at: str
    completed_at: str | None
    submitted_at: str | None
