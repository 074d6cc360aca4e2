from hiretrack.schemas.base import CamelModel


class CandidateCreate(CamelModel):
    full_name: str
    email: str
    phone: str | None = None
    notes: str | None = None
    job_id: str | None = None


class CandidateUpdate(CamelModel):
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    notes: str | None = None
    job_id: str | None = None


class CandidateResponse(CamelModel):
    id: str
    tenant_id: str
    job_id: str | None
    full_name: str
    email: str
    phone: str | None
    notes: str | None
    status: str
    created_at: str
    updated_at: str
    hired_at: str | None = None


class CandidateListResponse(CamelModel):
    candidates: list[CandidateResponse]
    total: int
    page: int
    per_page: int


class ApplicationSubmit(CamelModel):
    job_id: str
    full_name: str
    email: str
    phone: str | None = None
    session_id: str | None = None
