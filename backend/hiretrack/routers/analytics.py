from fastapi import APIRouter, Depends, Query

from hiretrack.dependencies import get_access_guard, get_store, get_tenant_context
from hiretrack.routers.public import funnel_to_response
from hiretrack.services import analytics
from hiretrack.services.record_store import RecordStore
from hiretrack.services.tenancy import AccessGuard, TenantContext

router = APIRouter(tags=["analytics"])


def _between(records, start_date: str | None, end_date: str | None) -> list:
    if not start_date and not end_date:
        return list(records)
    window = analytics.resolve_date_range("custom" if start_date else None, start_date, end_date)
    return analytics.filter_window(records, "started_at", window)


@router.get("/job-views/analytics")
async def job_view_analytics(
    ctx: TenantContext = Depends(get_tenant_context),
    store: RecordStore = Depends(get_store),
):
    return analytics.job_view_analytics(store.list_job_views(ctx.tenant_id), store.list_jobs(ctx.tenant_id))


@router.get("/analytics/conversions")
async def conversions(
    start_date: str | None = Query(None, alias="startDate"),
    end_date: str | None = Query(None, alias="endDate"),
    ctx: TenantContext = Depends(get_tenant_context),
    store: RecordStore = Depends(get_store),
):
    records = _between(store.list_funnel_records(ctx.tenant_id), start_date, end_date)
    return analytics.form_conversion_summary(records)


@router.get("/analytics/devices")
async def devices(
    ctx: TenantContext = Depends(get_tenant_context),
    store: RecordStore = Depends(get_store),
):
    records = store.list_funnel_records(ctx.tenant_id)
    return {
        "devices": analytics.breakdown(records, "device_type", label="device"),
        "browsers": analytics.breakdown(records, "browser_name", label="browser"),
        "total": len(records),
    }


@router.get("/analytics/jobs/{job_id}/forms")
async def job_form_analytics(
    job_id: str,
    guard: AccessGuard = Depends(get_access_guard),
    store: RecordStore = Depends(get_store),
):
    job = guard.job(job_id)
    records = store.list_funnel_records(job.tenant_id, job_id=job.id)
    summary = analytics.form_conversion_summary(records)
    return {
        "jobId": job.id,
        "title": job.title,
        **summary,
        "records": [funnel_to_response(r).model_dump(by_alias=True) for r in records],
    }
