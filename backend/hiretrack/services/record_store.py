import uuid

from sqlalchemy import update
from sqlalchemy.orm import Session

from hiretrack.models import (
    Candidate,
    FunnelRecord,
    Job,
    JobView,
    Notification,
    StatusChange,
    Tenant,
    User,
)
from hiretrack.utils.timestamps import now_str


class RecordStore:
    """get / list / create / update per entity over one SQLAlchemy session.

    Lookups by id are unscoped and must go through ``AccessGuard`` when they
    serve a tenant request. Every ``list_*`` takes the tenant id it lists for.
    """

    def __init__(self, db: Session):
        self.db = db

    # --- get -------------------------------------------------------------

    def get(self, model, record_id: str):
        return self.db.get(model, record_id)

    def get_tenant(self, tenant_id: str) -> Tenant | None:
        return self.db.get(Tenant, tenant_id)

    def get_user(self, user_id: str) -> User | None:
        return self.db.get(User, user_id)

    def get_job(self, job_id: str) -> Job | None:
        return self.db.get(Job, job_id)

    def get_candidate(self, candidate_id: str) -> Candidate | None:
        return self.db.get(Candidate, candidate_id)

    def get_funnel_record(self, session_id: str) -> FunnelRecord | None:
        return self.db.query(FunnelRecord).filter(FunnelRecord.session_id == session_id).first()

    # --- list ------------------------------------------------------------

    def list_jobs(self, tenant_id: str, status: str | None = None) -> list[Job]:
        query = self.db.query(Job).filter(Job.tenant_id == tenant_id)
        if status:
            query = query.filter(Job.status == status)
        return query.order_by(Job.created_at.asc()).all()

    def list_candidates(
        self,
        tenant_id: str,
        job_id: str | None = None,
        status: str | None = None,
    ) -> list[Candidate]:
        query = self.db.query(Candidate).filter(Candidate.tenant_id == tenant_id)
        if job_id:
            query = query.filter(Candidate.job_id == job_id)
        if status:
            query = query.filter(Candidate.status == status)
        return query.order_by(Candidate.created_at.asc()).all()

    def list_job_views(self, tenant_id: str) -> list[JobView]:
        return self.db.query(JobView).filter(JobView.tenant_id == tenant_id).all()

    def list_funnel_records(self, tenant_id: str, job_id: str | None = None) -> list[FunnelRecord]:
        query = self.db.query(FunnelRecord).filter(FunnelRecord.tenant_id == tenant_id)
        if job_id:
            query = query.filter(FunnelRecord.job_id == job_id)
        return query.order_by(FunnelRecord.started_at.asc()).all()

    def list_status_changes(
        self,
        tenant_id: str,
        entity: str,
        record_id: str | None = None,
    ) -> list[StatusChange]:
        query = self.db.query(StatusChange).filter(
            StatusChange.tenant_id == tenant_id,
            StatusChange.entity == entity,
        )
        if record_id:
            query = query.filter(StatusChange.record_id == record_id)
        return query.order_by(StatusChange.changed_at.asc()).all()

    # --- create ----------------------------------------------------------

    def _add(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def create_tenant(self, name: str, industry: str | None = None) -> Tenant:
        return self._add(Tenant(id=str(uuid.uuid4()), name=name, industry=industry, created_at=now_str()))

    def create_user(self, tenant_id: str, email: str, full_name: str, role: str = "member") -> User:
        return self._add(User(
            id=str(uuid.uuid4()),
            tenant_id=tenant_id,
            email=email,
            full_name=full_name,
            role=role,
            created_at=now_str(),
        ))

    def create_job(self, tenant_id: str, **fields) -> Job:
        now = now_str()
        fields.setdefault("status", "draft")
        return self._add(Job(id=str(uuid.uuid4()), tenant_id=tenant_id, created_at=now, updated_at=now, **fields))

    def create_candidate(self, tenant_id: str, **fields) -> Candidate:
        now = now_str()
        fields.setdefault("status", "new")
        return self._add(Candidate(id=str(uuid.uuid4()), tenant_id=tenant_id, created_at=now, updated_at=now, **fields))

    def create_job_view(self, tenant_id: str, job_id: str, **fields) -> JobView:
        return self._add(JobView(
            id=str(uuid.uuid4()),
            tenant_id=tenant_id,
            job_id=job_id,
            viewed_at=now_str(),
            **fields,
        ))

    def create_funnel_record(self, tenant_id: str, job_id: str, session_id: str, **fields) -> FunnelRecord:
        now = now_str()
        return self._add(FunnelRecord(
            id=str(uuid.uuid4()),
            tenant_id=tenant_id,
            job_id=job_id,
            session_id=session_id,
            started_at=now,
            updated_at=now,
            **fields,
        ))

    def create_notification(self, tenant_id: str, user_id: str, **fields) -> Notification:
        return self._add(Notification(
            id=str(uuid.uuid4()),
            tenant_id=tenant_id,
            user_id=user_id,
            created_at=now_str(),
            **fields,
        ))

    def add_status_change(self, **fields) -> StatusChange:
        # Flushed with the status write; committed by the caller.
        change = StatusChange(id=str(uuid.uuid4()), **fields)
        self.db.add(change)
        return change

    # --- update ----------------------------------------------------------

    def update(self, record, **fields):
        for key, value in fields.items():
            setattr(record, key, value)
        if hasattr(record, "updated_at"):
            record.updated_at = now_str()
        self.db.commit()
        self.db.refresh(record)
        return record

    def update_status_if(self, model, record_id: str, expected: str, new_status: str, **fields) -> bool:
        """Set ``status`` only if it still equals ``expected``. Not committed."""
        result = self.db.execute(
            update(model)
            .where(model.id == record_id, model.status == expected)
            .values(status=new_status, **fields)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

    def refresh(self, record):
        self.db.refresh(record)
        return record
