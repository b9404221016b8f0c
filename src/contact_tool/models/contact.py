"""Contact model - records maintained through the CSV import"""
import enum
from datetime import datetime
from typing import Optional
from sqlalchemy import String, Text, Integer, DateTime, ForeignKey, Enum, Boolean, JSON, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.contact_tool.models.base import Base


class Tier(str, enum.Enum):
    TIER1 = "TIER1"
    TIER2 = "TIER2"


class Contact(Base):
    __tablename__ = "contacts"

    id: Mapped[int] = mapped_column(primary_key=True)
    record_id: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True, index=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True, index=True)
    contact_method: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    support_priority: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    pattern: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    meeting_status: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    registration_status: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    line_registered: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    acquisition_source: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    facebook_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    list_acquired: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    list_provided: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    matching_list_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contact_owner: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    marketing_contact_status: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    source_created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    strength: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tier: Mapped[Tier] = mapped_column(Enum(Tier), nullable=False, default=Tier.TIER2)
    tags: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    assigned_user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    assigned_user = relationship("User", backref="assigned_contacts")
