"""
Report composition over one tenant's jobs, candidates and funnel records.

``ReportBuilder`` is handed collections that were already loaded for the
active tenant; it narrows them with filters and date windows and delegates
every number to ``hiretrack.services.analytics``.
"""
import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime

from hiretrack.errors import ValidationError
from hiretrack.services import analytics
from hiretrack.services.analytics import DateWindow, field_value
from hiretrack.utils.timestamps import format_ts, utc_now

logger = logging.getLogger(__name__)

METRIC_NAMES = frozenset(analytics.METRICS)

# filter key -> (collection it narrows, attribute matched exactly)
FILTER_KEYS = {
    "department": ("job", "department"),
    "jobType": ("job", "type"),
    "jobId": ("job", "id"),
    "jobStatus": ("job", "status"),
    "candidateStatus": ("candidate", "status"),
}

PIPELINE_REPORT_STAGES = ("applied", "screening", "interview", "offer", "hired", "rejected")


class ReportBuilder:
    def __init__(
        self,
        jobs: Sequence,
        candidates: Sequence,
        funnel_records: Sequence = (),
        status_changes: Sequence = (),
        now: datetime | None = None,
        top_jobs_limit: int = 5,
    ):
        self.jobs = list(jobs)
        self.candidates = list(candidates)
        self.funnel_records = list(funnel_records)
        self.status_changes = list(status_changes)
        self.now = now or utc_now()
        self.top_jobs_limit = top_jobs_limit

    # --- filtering -------------------------------------------------------

    def apply_filters(self, filters: Mapping[str, str | None] | None) -> tuple[list, list]:
        """Exact-match filters; job filters also narrow candidates to those jobs.

        Unknown keys are rejected because filters decide what data a report
        exposes.
        """
        filters = {k: v for k, v in (filters or {}).items()}
        unknown = sorted(set(filters) - set(FILTER_KEYS))
        if unknown:
            raise ValidationError(
                f"Unknown filter key(s): {', '.join(unknown)}. Must be one of: {', '.join(FILTER_KEYS)}"
            )

        jobs, candidates = self.jobs, self.candidates
        job_filtered = False
        for key, value in filters.items():
            if value in (None, ""):
                continue
            target, attr = FILTER_KEYS[key]
            if target == "job":
                jobs = [j for j in jobs if field_value(j, attr) == value]
                job_filtered = True
            else:
                candidates = [c for c in candidates if field_value(c, attr) == value]

        if job_filtered:
            job_ids = {field_value(j, "id") for j in jobs}
            candidates = [c for c in candidates if field_value(c, "job_id") in job_ids]
        return jobs, candidates

    # --- custom report ---------------------------------------------------

    def build_report(
        self,
        metrics: Iterable[str],
        filters: Mapping[str, str | None] | None = None,
        group_by: str | None = None,
        date_range: DateWindow | None = None,
        name: str | None = None,
    ) -> dict:
        metrics = list(metrics)
        # Unrecognised metric names are skipped so saved report definitions
        # keep working as the metric list changes.
        ignored = [m for m in metrics if m not in METRIC_NAMES]
        if ignored:
            logger.debug("Ignoring unknown report metrics: %s", ", ".join(ignored))
        known = [m for m in metrics if m in METRIC_NAMES]

        jobs, candidates = self.apply_filters(filters)
        if date_range is not None:
            jobs = analytics.filter_window(jobs, "created_at", date_range)
            candidates = analytics.filter_window(candidates, "created_at", date_range)

        grouped = None
        if group_by:
            grouped = analytics.grouped_report(jobs, candidates, group_by, known)

        return {
            "name": name or f"Custom Report - {self.now.date().isoformat()}",
            "data": analytics.compute_metrics(jobs, candidates, known),
            "groupedData": grouped,
            "filters": dict(filters or {}),
            "dateRange": date_range.as_dict() if date_range else None,
            "generatedAt": format_ts(self.now),
            "recordCount": {"jobs": len(jobs), "candidates": len(candidates)},
        }

    # --- canned reports --------------------------------------------------

    def hiring_metrics(self, window: DateWindow) -> dict:
        jobs = analytics.filter_window(self.jobs, "created_at", window)
        candidates = analytics.filter_window(self.candidates, "created_at", window)
        stages = analytics.funnel(analytics.PIPELINE_STAGES, candidates)["stages"]

        return {
            "overview": {
                "totalJobs": len(jobs),
                "activeJobs": sum(1 for j in jobs if field_value(j, "status") == "active"),
                "totalCandidates": len(candidates),
                "hiredCandidates": len(analytics.hired(candidates)),
                "averageTimeToHire": analytics.mean(analytics.hire_durations(candidates)),
                "conversionRate": analytics.conversion_rate(candidates),
            },
            "trends": {
                "jobsCreated": analytics.time_series(jobs, "created_at", window),
                "candidatesApplied": analytics.time_series(candidates, "created_at", window),
                "hiringProgress": analytics.time_series(analytics.hired(self.candidates), "hired_at", window),
            },
            "statusBreakdown": {
                "jobs": analytics.breakdown(jobs, "status", label="status"),
                "candidates": analytics.breakdown(candidates, "status", label="status"),
            },
            "departmentAnalytics": analytics.department_analytics(jobs, candidates),
            "topPerformingJobs": analytics.top_performing_jobs(jobs, candidates, self.top_jobs_limit),
            "bottleneckAnalysis": [
                {"stage": s["stage"], "count": s["count"], "percentage": s["percentage"]} for s in stages
            ],
        }

    def pipeline_analytics(self, job_id: str | None = None, window: DateWindow | None = None) -> dict:
        candidates = self.candidates
        if job_id:
            candidates = [c for c in candidates if field_value(c, "job_id") == job_id]
        if window is not None:
            candidates = analytics.filter_window(candidates, "created_at", window)

        total = len(candidates)
        stage_metrics = []
        for stage in PIPELINE_REPORT_STAGES:
            count = sum(
                1 for c in candidates
                if analytics.STAGE_ALIASES.get(field_value(c, "status"), field_value(c, "status")) == stage
            )
            stage_metrics.append({"stage": stage, "count": count, "percentage": analytics.percent(count, total)})

        return {
            "pipeline": {
                "totalCandidates": total,
                "stageMetrics": stage_metrics,
                "conversionRates": analytics.funnel(analytics.PIPELINE_STAGES, candidates)["conversions"],
                "stageTimings": analytics.stage_timings(candidates, self.status_changes),
                "dropOffAnalysis": analytics.drop_offs(analytics.PIPELINE_STAGES, candidates),
            },
            "filters": {
                "jobId": job_id,
                "dateRange": window.as_dict() if window else None,
            },
        }

    def source_performance(self, window: DateWindow) -> dict:
        records = analytics.filter_window(self.funnel_records, "started_at", window)
        return analytics.source_performance(records)

    def time_to_hire(
        self,
        window: DateWindow,
        department: str | None = None,
        job_type: str | None = None,
    ) -> dict:
        filters = {"department": department, "jobType": job_type}
        _, candidates = self.apply_filters(filters)
        hires = [c for c in analytics.hired(candidates) if window.contains(field_value(c, "hired_at"))]
        rows = analytics.hire_records(hires, self.jobs)

        return {
            "summary": analytics.time_to_hire_summary([r["daysToHire"] for r in rows]),
            "departmentBreakdown": analytics.hires_by_department(rows),
            "timelineTrends": analytics.hires_by_month(rows),
            "individualHires": rows,
            "filters": {"department": department, "jobType": job_type},
        }
