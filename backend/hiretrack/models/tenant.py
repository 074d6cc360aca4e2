from sqlalchemy import Column, ForeignKey, Text
from sqlalchemy.orm import relationship
from hiretrack.database import Base


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    industry = Column(Text)
    created_at = Column(Text, nullable=False)

    users = relationship("User", back_populates="tenant", cascade="all, delete-orphan")


class User(Base):
    __tablename__ = "users"

    id = Column(Text, primary_key=True)
    tenant_id = Column(Text, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    email = Column(Text, nullable=False)
    full_name = Column(Text, nullable=False)
    role = Column(Text, nullable=False, default="member")
    created_at = Column(Text, nullable=False)

    tenant = relationship("Tenant", back_populates="users")
