from sqlalchemy import Column, ForeignKey, Text
from sqlalchemy.orm import relationship
from hiretrack.database import Base


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Text, primary_key=True)
    tenant_id = Column(Text, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    department = Column(Text, nullable=False)
    type = Column(Text, nullable=False)
    description = Column(Text)
    status = Column(Text, nullable=False, default="draft")
    created_at = Column(Text, nullable=False)
    updated_at = Column(Text, nullable=False)

    candidates = relationship("Candidate", back_populates="job")
