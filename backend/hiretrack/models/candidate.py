from sqlalchemy import Column, ForeignKey, Text
from sqlalchemy.orm import relationship
from hiretrack.database import Base


class Candidate(Base):
    __tablename__ = "candidates"

    id = Column(Text, primary_key=True)
    tenant_id = Column(Text, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    job_id = Column(Text, ForeignKey("jobs.id", ondelete="SET NULL"))
    full_name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    phone = Column(Text)
    notes = Column(Text)
    status = Column(Text, nullable=False, default="new")
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)
    hired_at = Column(Text)

    job = relationship("Job", back_populates="candidates")
