from hiretrack.schemas.base import CamelModel


class StatusUpdate(CamelModel):
    status: str
    reason: str | None = None
    notes: str | None = None


class StatusTransitionsResponse(CamelModel):
    current_status: str
    allowed_transitions: list[str]
    transition_rules: dict[str, list[str]]


class StatusChangeResponse(CamelModel):
    success: bool = True
    id: str
    previous_status: str
    new_status: str
    changed_by: str
    changed_at: str
    reason: str | None


class StatusHistoryEntry(CamelModel):
    previous_status: str
    new_status: str
    changed_by: str
    changed_at: str
    reason: str | None


class StatusHistoryResponse(CamelModel):
    id: str
    current_status: str
    history: list[StatusHistoryEntry]
