from hiretrack.schemas.base import CamelModel


class JobCreate(CamelModel):
    title: str
    department: str
    type: str
    description: str | None = None


class JobUpdate(CamelModel):
    title: str | None = None
    department: str | None = None
    type: str | None = None
    description: str | None = None


class JobResponse(CamelModel):
    id: str
    tenant_id: str
    title: str
    department: str
    type: str
    description: str | None
    status: str
    created_at: str
    updated_at: str
    candidate_count: int = 0


class JobListResponse(CamelModel):
    jobs: list[JobResponse]
    total: int
    page: int
    per_page: int
