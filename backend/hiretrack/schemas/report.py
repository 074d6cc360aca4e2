from pydantic import Field

from hiretrack.schemas.base import CamelModel


class DateRangeIn(CamelModel):
    period: str | None = None
    start_date: str | None = None
    end_date: str | None = None


class CustomReportRequest(CamelModel):
    metrics: list[str] = Field(..., min_length=1)
    filters: dict[str, str | None] | None = None
    group_by: str | None = None
    date_range: DateRangeIn | None = None
    name: str | None = None
