"""
Hiring analytics over tenant-scoped, in-memory collections.

Every function here is pure: callers hand in records that were already
loaded for exactly one tenant, and nothing in this module filters by tenant.
Records may be ORM rows or plain mappings; fields are read with
``field_value``. Empty input always degrades to zeros or empty lists.
"""
import math
from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from hiretrack.errors import ValidationError
from hiretrack.utils.timestamps import parse_ts, utc_now

PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}
PERIODS = (*PERIOD_DAYS, "custom")

# Ordered hiring funnel. "new" is the intake alias of "applied".
PIPELINE_STAGES = ("applied", "screening", "interview", "offer", "hired")
STAGE_ALIASES = {"new": "applied"}


@dataclass(frozen=True)
class DateWindow:
    """Half-open interval [start, end) of aware UTC datetimes."""

    start: datetime
    end: datetime

    def contains(self, value) -> bool:
        ts = parse_ts(value)
        return ts is not None and self.start <= ts < self.end

    def days(self) -> list[date]:
        if self.end <= self.start:
            return []
        first = self.start.date()
        last = (self.end - timedelta(microseconds=1)).date()
        return [first + timedelta(days=i) for i in range((last - first).days + 1)]

    def as_dict(self) -> dict:
        return {"start": self.start.isoformat(), "end": self.end.isoformat()}


def field_value(item, name: str):
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def round_half_up(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def percent(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return round_half_up(100 * part / whole)


def _is_date_only(value) -> bool:
    return isinstance(value, str) and len(value.strip()) == 10


def resolve_date_range(
    period: str | None = None,
    start=None,
    end=None,
    now: datetime | None = None,
    default_period: str = "30d",
) -> DateWindow:
    """Turn a period token or explicit bounds into a concrete window.

    The window ends at ``end`` (default: now). A bare ``YYYY-MM-DD`` end date
    covers that whole day. Without an explicit start, the period token picks
    how far back the window reaches; ``custom`` requires an explicit start.
    """
    try:
        end_dt = parse_ts(end)
        start_dt = parse_ts(start)
    except ValueError as exc:
        raise ValidationError(f"Invalid date: {exc}") from exc

    if end_dt is None:
        end_dt = now or utc_now()
    elif _is_date_only(end):
        end_dt = end_dt + timedelta(days=1)

    if start_dt is None:
        token = period or default_period
        if token == "custom":
            raise ValidationError("A custom period requires startDate")
        if token not in PERIOD_DAYS:
            raise ValidationError(f"Unknown period {token!r}. Must be one of: {', '.join(PERIODS)}")
        start_dt = end_dt - timedelta(days=PERIOD_DAYS[token])

    if start_dt > end_dt:
        raise ValidationError("startDate must not be after endDate")
    return DateWindow(start=start_dt, end=end_dt)


def filter_window(items: Iterable, field: str, window: DateWindow) -> list:
    return [item for item in items if window.contains(field_value(item, field))]


def time_series(items: Iterable, field: str, window: DateWindow) -> list[dict]:
    """One ``{date, count}`` bucket per calendar day in the window, zero-filled."""
    counts: dict[date, int] = defaultdict(int)
    for item in items:
        ts = parse_ts(field_value(item, field))
        if ts is not None and window.start <= ts < window.end:
            counts[ts.date()] += 1
    return [{"date": day.isoformat(), "count": counts.get(day, 0)} for day in window.days()]


def breakdown(items: Sequence, field: str, label: str = "value") -> list[dict]:
    """Group by ``field``: ``{label: value, count, percentage}`` in first-seen order."""
    total = len(items)
    if total == 0:
        return []
    counts: dict = {}
    for item in items:
        key = field_value(item, field)
        counts[key] = counts.get(key, 0) + 1
    return [
        {label: key, "count": count, "percentage": percent(count, total)}
        for key, count in counts.items()
    ]


def hired(candidates: Iterable) -> list:
    return [c for c in candidates if field_value(c, "status") == "hired"]


def conversion_rate(candidates: Sequence) -> int:
    return percent(len(hired(candidates)), len(candidates))


# --- time to hire ---------------------------------------------------------


def elapsed_days(application_date, resolution_date) -> int:
    start = parse_ts(application_date)
    end = parse_ts(resolution_date)
    return math.floor((end - start).total_seconds() / 86400)


def hire_durations(candidates: Iterable) -> list[int]:
    """Whole days from application to hire for hired candidates with a hire date."""
    return [
        elapsed_days(field_value(c, "created_at"), field_value(c, "hired_at"))
        for c in hired(candidates)
        if field_value(c, "hired_at")
    ]


def mean(values: Sequence[float]) -> int:
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))


def median(values: Sequence[float]) -> float:
    if not values:
        return 0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def percentile(values: Sequence[float], p: float) -> float:
    """Nearest-rank percentile: the value at rank ceil(p/100 * n)."""
    if not values:
        return 0
    ordered = sorted(values)
    index = math.ceil(p / 100 * len(ordered)) - 1
    return ordered[max(0, min(index, len(ordered) - 1))]


def time_to_hire_summary(durations: Sequence[int]) -> dict:
    return {
        "totalHires": len(durations),
        "averageTimeToHire": mean(durations),
        "medianTimeToHire": median(durations),
        "percentiles": {
            "p25": percentile(durations, 25),
            "p50": percentile(durations, 50),
            "p75": percentile(durations, 75),
            "p90": percentile(durations, 90),
        },
        "fastestHire": min(durations) if durations else 0,
        "slowestHire": max(durations) if durations else 0,
    }


def hire_records(candidates: Iterable, jobs: Iterable) -> list[dict]:
    jobs_by_id = {field_value(j, "id"): j for j in jobs}
    rows = []
    for c in hired(candidates):
        hired_at = field_value(c, "hired_at")
        if not hired_at:
            continue
        job = jobs_by_id.get(field_value(c, "job_id"))
        rows.append({
            "candidateId": field_value(c, "id"),
            "candidateName": field_value(c, "full_name"),
            "jobTitle": field_value(job, "title") if job else "Unknown",
            "department": field_value(job, "department") if job else "Unknown",
            "jobType": field_value(job, "type") if job else "Unknown",
            "applicationDate": field_value(c, "created_at"),
            "hireDate": hired_at,
            "daysToHire": elapsed_days(field_value(c, "created_at"), hired_at),
        })
    return rows


def _average_by(rows: Iterable[dict], key) -> list[tuple]:
    grouped: dict = {}
    for row in rows:
        grouped.setdefault(key(row), []).append(row["daysToHire"])
    return [(k, mean(days), len(days)) for k, days in grouped.items()]


def hires_by_department(rows: Iterable[dict]) -> list[dict]:
    return [
        {"department": dept, "averageDays": avg, "hireCount": n}
        for dept, avg, n in _average_by(rows, lambda r: r["department"])
    ]


def hires_by_month(rows: Iterable[dict]) -> list[dict]:
    trend = [
        {"month": month, "averageDays": avg, "hireCount": n}
        for month, avg, n in _average_by(rows, lambda r: parse_ts(r["applicationDate"]).strftime("%Y-%m"))
    ]
    return sorted(trend, key=lambda r: r["month"])


# --- pipeline funnel ------------------------------------------------------


def _stage_index(status, stages: Sequence[str]) -> int:
    status = STAGE_ALIASES.get(status, status)
    return stages.index(status) if status in stages else -1


def funnel(stages: Sequence[str], candidates: Sequence) -> dict:
    """Per-stage population and stage-to-stage conversion.

    ``count`` is the number of candidates currently at a stage; ``reached``
    counts those at or beyond it. Statuses outside ``stages`` (rejected,
    on-hold, ...) reach no stage.
    """
    indexes = [_stage_index(field_value(c, "status"), stages) for c in candidates]
    total = len(candidates)
    reached = [sum(1 for i in indexes if i >= pos) for pos in range(len(stages))]
    stage_rows = []
    for pos, stage in enumerate(stages):
        count = sum(1 for i in indexes if i == pos)
        stage_rows.append({
            "stage": stage,
            "count": count,
            "reached": reached[pos],
            "percentage": percent(count, total),
        })
    conversions = [
        {"from": stages[pos], "to": stages[pos + 1], "rate": percent(reached[pos + 1], reached[pos])}
        for pos in range(len(stages) - 1)
    ]
    return {"stages": stage_rows, "conversions": conversions}


def drop_offs(stages: Sequence[str], candidates: Sequence) -> list[dict]:
    """Candidates sitting at each non-final stage."""
    total = len(candidates)
    rows = []
    for stage in stages[:-1]:
        count = sum(1 for c in candidates if _stage_index(field_value(c, "status"), stages) == stages.index(stage))
        rows.append({"stage": stage, "dropOffs": count, "percentage": percent(count, total)})
    return rows


def stage_timings(candidates: Iterable, changes: Iterable, stages: Sequence[str] = PIPELINE_STAGES[:-1]) -> list[dict]:
    """Average whole days candidates spent in each stage before leaving it.

    ``changes`` are status-change audit rows (``record_id``, ``previous_status``,
    ``new_status``, ``changed_at``). Time in the intake stage starts at the
    candidate's ``created_at``.
    """
    entered_at = {field_value(c, "id"): field_value(c, "created_at") for c in candidates}
    by_record: dict = defaultdict(list)
    for ch in changes:
        if field_value(ch, "record_id") in entered_at:
            by_record[field_value(ch, "record_id")].append(ch)

    spent: dict = defaultdict(list)
    for record_id, rows in by_record.items():
        since = entered_at[record_id]
        for ch in sorted(rows, key=lambda r: parse_ts(field_value(r, "changed_at"))):
            stage = STAGE_ALIASES.get(field_value(ch, "previous_status"), field_value(ch, "previous_status"))
            spent[stage].append(elapsed_days(since, field_value(ch, "changed_at")))
            since = field_value(ch, "changed_at")

    return [{"stage": stage, "averageDays": mean(spent.get(stage, []))} for stage in stages]


# --- grouped metrics ------------------------------------------------------


def applications_per_job(jobs: Sequence, candidates: Sequence) -> int:
    if not jobs:
        return 0
    return round_half_up(len(candidates) / len(jobs))


# metric name -> (output key, function(jobs, candidates))
METRICS = {
    "job_count": ("jobCount", lambda jobs, cands: len(jobs)),
    "candidate_count": ("candidateCount", lambda jobs, cands: len(cands)),
    "hire_count": ("hireCount", lambda jobs, cands: len(hired(cands))),
    "conversion_rate": ("conversionRate", lambda jobs, cands: conversion_rate(cands)),
    "time_to_hire": ("averageTimeToHire", lambda jobs, cands: mean(hire_durations(cands))),
    "applications_per_job": ("applicationsPerJob", applications_per_job),
}

# group-by field -> (job attribute, candidate attribute or None for "via job")
GROUP_FIELDS = {
    "department": ("department", None),
    "jobType": ("type", None),
    "jobId": ("id", "job_id"),
    "status": ("status", "status"),
}


def compute_metrics(jobs: Sequence, candidates: Sequence, metrics: Iterable[str]) -> dict:
    result = {}
    for name in metrics:
        if name in METRICS:
            key, fn = METRICS[name]
            result[key] = fn(jobs, candidates)
    return result


def grouped_report(jobs: Sequence, candidates: Sequence, group_by: str, metrics: Iterable[str]) -> list[dict]:
    """One row per distinct group value, with the requested metrics computed per group.

    Candidates are grouped by their own field when it exists on them, otherwise
    through the job they applied to; unmatched values group under "Unknown".
    """
    if group_by not in GROUP_FIELDS:
        raise ValidationError(f"Cannot group by {group_by!r}. Must be one of: {', '.join(GROUP_FIELDS)}")
    metrics = list(metrics)
    job_attr, candidate_attr = GROUP_FIELDS[group_by]
    jobs_by_id = {field_value(j, "id"): j for j in jobs}

    groups: dict = {}
    for job in jobs:
        key = field_value(job, job_attr) or "Unknown"
        groups.setdefault(key, ([], []))[0].append(job)
    for cand in candidates:
        if candidate_attr:
            key = field_value(cand, candidate_attr)
        else:
            job = jobs_by_id.get(field_value(cand, "job_id"))
            key = field_value(job, job_attr) if job else None
        groups.setdefault(key or "Unknown", ([], []))[1].append(cand)

    return [
        {"group": key, **compute_metrics(group_jobs, group_cands, metrics)}
        for key, (group_jobs, group_cands) in groups.items()
    ]


def department_analytics(jobs: Sequence, candidates: Sequence) -> list[dict]:
    rows = grouped_report(jobs, candidates, "department", ["job_count", "candidate_count", "hire_count"])
    return [
        {
            "department": row["group"],
            "jobs": row["jobCount"],
            "candidates": row["candidateCount"],
            "hired": row["hireCount"],
            "conversionRate": percent(row["hireCount"], row["candidateCount"]),
        }
        for row in rows
        if row["jobCount"] > 0
    ]


def top_performing_jobs(jobs: Sequence, candidates: Sequence, limit: int = 5) -> list[dict]:
    by_job: dict = defaultdict(list)
    for c in candidates:
        by_job[field_value(c, "job_id")].append(c)
    rows = []
    for job in jobs:
        applicants = by_job.get(field_value(job, "id"), [])
        hires = len(hired(applicants))
        rows.append({
            "id": field_value(job, "id"),
            "title": field_value(job, "title"),
            "department": field_value(job, "department"),
            "applicants": len(applicants),
            "hired": hires,
            "conversionRate": percent(hires, len(applicants)),
        })
    rows.sort(key=lambda r: r["conversionRate"], reverse=True)
    return rows[:limit]


# --- application funnel & job views ---------------------------------------


def _top_counts(records: Iterable, field: str, label: str, limit: int = 3) -> list[dict]:
    counts: dict = defaultdict(int)
    for r in records:
        counts[field_value(r, field) or "unknown"] += 1
    ordered = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:limit]
    return [{label: key, "count": n} for key, n in ordered]


def source_performance(records: Sequence) -> dict:
    by_source: dict = {}
    for r in records:
        by_source.setdefault(field_value(r, "source") or "direct", []).append(r)

    sources = []
    for source, rows in by_source.items():
        completed = sum(1 for r in rows if field_value(r, "form_completed"))
        conversions = sum(1 for r in rows if field_value(r, "submitted"))
        sources.append({
            "source": source,
            "totalApplications": len(rows),
            "completedApplications": completed,
            "conversions": conversions,
            "completionRate": percent(completed, len(rows)),
            "conversionRate": percent(conversions, len(rows)),
            "topDevices": _top_counts(rows, "device_type", "device"),
            "topBrowsers": _top_counts(rows, "browser_name", "browser"),
        })
    sources.sort(key=lambda s: s["totalApplications"], reverse=True)

    total = sum(s["totalApplications"] for s in sources)
    return {
        "sources": sources,
        "summary": {
            "totalSources": len(sources),
            "bestPerformingSource": sources[0]["source"] if sources else None,
            "totalApplications": total,
            "overallConversionRate": percent(sum(s["conversions"] for s in sources), total),
        },
    }


def form_conversion_summary(records: Sequence) -> dict:
    started = [r for r in records if field_value(r, "form_started")]
    completed = sum(1 for r in started if field_value(r, "form_completed"))
    converted = sum(1 for r in started if field_value(r, "candidate_created"))
    times = [field_value(r, "time_to_complete") for r in started if field_value(r, "time_to_complete") is not None]

    sources: dict = defaultdict(lambda: [0, 0])
    for r in started:
        stats = sources[field_value(r, "source") or "direct"]
        stats[0] += 1
        if field_value(r, "candidate_created"):
            stats[1] += 1
    top_sources = sorted(
        ({"source": s, "conversions": conv, "rate": percent(conv, n)} for s, (n, conv) in sources.items()),
        key=lambda row: row["conversions"],
        reverse=True,
    )[:5]

    abandoned = [r for r in started if not field_value(r, "form_completed")]
    by_step: dict = defaultdict(int)
    for r in abandoned:
        by_step[field_value(r, "step_reached")] += 1
    abandonment = [
        {"step": step, "count": n, "percentage": percent(n, len(started))}
        for step, n in sorted(by_step.items())
    ]

    return {
        "totalStarted": len(started),
        "totalCompleted": completed,
        "totalConverted": converted,
        "completionRate": percent(completed, len(started)),
        "conversionRate": percent(converted, len(started)),
        "avgTimeToComplete": mean(times),
        "topSources": top_sources,
        "deviceBreakdown": breakdown(started, "device_type", label="device"),
        "abandonmentAnalysis": abandonment,
    }


def _month_start(value: datetime) -> datetime:
    return value.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def job_view_analytics(views: Sequence, jobs: Sequence, now: datetime | None = None) -> dict:
    """Totals plus month-over-month change and zero-filled per-job counts."""
    now = now or utc_now()
    current_start = _month_start(now)
    last_start = _month_start(current_start - timedelta(days=1))

    current = last = 0
    per_job = {field_value(j, "id"): 0 for j in jobs}
    for v in views:
        ts = parse_ts(field_value(v, "viewed_at"))
        if ts >= current_start:
            current += 1
        elif ts >= last_start:
            last += 1
        job_id = field_value(v, "job_id")
        if job_id in per_job:
            per_job[job_id] += 1

    if last == 0:
        change = 100 if current > 0 else 0
    else:
        change = round_half_up((current - last) / last * 100)
    trend = "up" if current > last else "down" if current < last else "same"

    titles = {field_value(j, "id"): field_value(j, "title") for j in jobs}
    return {
        "totalViews": len(views),
        "currentMonthViews": current,
        "lastMonthViews": last,
        "percentageChange": change,
        "trend": trend,
        "perJob": [{"jobId": jid, "title": titles[jid], "count": n} for jid, n in per_job.items()],
    }
