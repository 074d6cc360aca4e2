from sqlalchemy import Boolean, Column, ForeignKey, Integer, Text
from hiretrack.database import Base


class JobView(Base):
    __tablename__ = "job_views"

    id = Column(Text, primary_key=True)
    tenant_id = Column(Text, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    job_id = Column(Text, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    session_id = Column(Text)
    ip_address = Column(Text)
    user_agent = Column(Text)
    referrer = Column(Text)
    viewed_at = Column(Text, nullable=False)


class FunnelRecord(Base):
    """One application-form session; patched until submitted, then frozen."""

    __tablename__ = "application_funnel"

    id = Column(Text, primary_key=True)
    tenant_id = Column(Text, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    job_id = Column(Text, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    session_id = Column(Text, nullable=False, unique=True)
    source = Column(Text, nullable=False, default="direct")
    referrer = Column(Text)
    user_agent = Column(Text)
    ip_address = Column(Text)
    device_type = Column(Text, nullable=False, default="unknown")
    browser_name = Column(Text, nullable=False, default="unknown")
    form_started = Column(Boolean, nullable=False, default=True)
    form_completed = Column(Boolean, nullable=False, default=False)
    submitted = Column(Boolean, nullable=False, default=False)
    candidate_created = Column(Boolean, nullable=False, default=False)
    candidate_id = Column(Text)
    step_reached = Column(Integer, nullable=False, default=1)
    total_steps = Column(Integer, nullable=False, default=3)
    time_to_complete = Column(Integer)
    started_at = Column(Text, nullable=False)
    completed_at = Column(Text)
    submitted_at = Column(Text)
    updated_at = Column(Text, nullable=False)
