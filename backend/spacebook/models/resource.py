# backend/spacebook/models/resource.py
"""
Branch and Resource models.

Both tables belong to the space directory. The booking core only reads
them: a resource's id, branch, hourly rate and ``active`` flag when
pricing a new reservation, and the branch location for search filters.
"""

from typing import Any

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class Branch(Base):
    """A physical location that owns bookable resources."""

    __tablename__ = "branches"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    name = Column(String(255), nullable=False)
    city = Column(String(120), nullable=True, index=True)
    state = Column(String(60), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    resources = relationship("Resource", back_populates="branch")

    def __repr__(self) -> str:
        return f"<Branch {self.id}: {self.name} ({self.city}/{self.state})>"


class Resource(Base):
    """A bookable space (room, venue) priced by the hour."""

    __tablename__ = "resources"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    branch_id = Column(String(26), ForeignKey("branches.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False, index=True)
    capacity = Column(Integer, nullable=False, default=1)
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    # Deactivation only blocks new reservations; existing ones stand.
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    branch = relationship("Branch", back_populates="resources")

    __table_args__ = (
        CheckConstraint("hourly_rate >= 0", name="ck_resources_rate_non_negative"),
        CheckConstraint("capacity > 0", name="ck_resources_capacity_positive"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if self.active is None:
            self.active = True

    def __repr__(self) -> str:
        return f"<Resource {self.id}: {self.name} rate={self.hourly_rate} active={self.active}>"
