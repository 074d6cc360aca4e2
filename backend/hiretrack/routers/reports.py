"""
Hiring reports for the active tenant.

Every handler loads the tenant's collections once through ``RecordStore``
and hands them to ``ReportBuilder``; nothing below this layer sees another
tenant's rows.
"""
from fastapi import APIRouter, Depends, Query

from hiretrack.config import settings
from hiretrack.dependencies import get_access_guard, get_store, get_tenant_context
from hiretrack.schemas.report import CustomReportRequest
from hiretrack.services.analytics import resolve_date_range
from hiretrack.services.record_store import RecordStore
from hiretrack.services.reports import ReportBuilder
from hiretrack.services.tenancy import AccessGuard, TenantContext

router = APIRouter(prefix="/reports", tags=["reports"])


def _builder(store: RecordStore, ctx: TenantContext, funnel: bool = False, history: bool = False) -> ReportBuilder:
    return ReportBuilder(
        store.list_jobs(ctx.tenant_id),
        store.list_candidates(ctx.tenant_id),
        funnel_records=store.list_funnel_records(ctx.tenant_id) if funnel else (),
        status_changes=store.list_status_changes(ctx.tenant_id, "candidate") if history else (),
        top_jobs_limit=settings.top_jobs_limit,
    )


@router.get("/hiring-metrics")
async def hiring_metrics(
    period: str | None = None,
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    ctx: TenantContext = Depends(get_tenant_context),
    store: RecordStore = Depends(get_store),
):
    window = resolve_date_range(period, start_date, end_date, default_period=settings.default_report_period)
    return _builder(store, ctx).hiring_metrics(window)


@router.get("/pipeline-analytics")
async def pipeline_analytics(
    job_id: str | None = Query(None, alias="jobId"),
    period: str | None = None,
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    ctx: TenantContext = Depends(get_tenant_context),
    guard: AccessGuard = Depends(get_access_guard),
    store: RecordStore = Depends(get_store),
):
    if job_id:
        guard.job(job_id)
    window = None
    if period or start_date or end_date:
        window = resolve_date_range(period, start_date, end_date, default_period=settings.default_report_period)
    return _builder(store, ctx, history=True).pipeline_analytics(job_id, window)


@router.get("/source-performance")
async def source_performance(
    period: str | None = None,
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    ctx: TenantContext = Depends(get_tenant_context),
    store: RecordStore = Depends(get_store),
):
    window = resolve_date_range(period, start_date, end_date, default_period=settings.default_report_period)
    return _builder(store, ctx, funnel=True).source_performance(window)


@router.get("/time-to-hire")
async def time_to_hire(
    period: str | None = None,
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    department: str | None = None,
    job_type: str | None = Query(None, alias="jobType"),
    ctx: TenantContext = Depends(get_tenant_context),
    store: RecordStore = Depends(get_store),
):
    window = resolve_date_range(period, start_date, end_date, default_period=settings.time_to_hire_period)
    return _builder(store, ctx).time_to_hire(window, department=department, job_type=job_type)


@router.post("/custom")
async def custom_report(
    req: CustomReportRequest,
    ctx: TenantContext = Depends(get_tenant_context),
    store: RecordStore = Depends(get_store),
):
    window = None
    if req.date_range is not None:
        dr = req.date_range
        window = resolve_date_range(
            dr.period, dr.start_date, dr.end_date, default_period=settings.default_report_period
        )
    return _builder(store, ctx).build_report(
        req.metrics,
        filters=req.filters,
        group_by=req.group_by,
        date_range=window,
        name=req.name,
    )
