from sqlalchemy import Boolean, Column, ForeignKey, Text
from hiretrack.database import Base


class StatusChange(Base):
    __tablename__ = "status_changes"

    id = Column(Text, primary_key=True)
    tenant_id = Column(Text, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    entity = Column(Text, nullable=False)
    record_id = Column(Text, nullable=False)
    previous_status = Column(Text, nullable=False)
    new_status = Column(Text, nullable=False)
    changed_by = Column(Text, nullable=False)
    reason = Column(Text)
    changed_at = Column(Text, nullable=False)


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Text, primary_key=True)
    tenant_id = Column(Text, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Text, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    related_type = Column(Text)
    related_id = Column(Text)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(Text, nullable=False)
