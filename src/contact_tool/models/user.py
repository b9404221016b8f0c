"""Operator accounts; the role decides who may bulk-import contacts"""
import enum
from datetime import datetime
from typing import Optional, Sequence
from sqlalchemy import String, Boolean, DateTime, Enum, func
from sqlalchemy.orm import Mapped, mapped_column

from src.contact_tool.models.base import Base


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    CS = "cs"
    VIEWER = "viewer"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[UserRole] = mapped_column(Enum(UserRole), nullable=False, default=UserRole.VIEWER)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    def may_import(self, allowed_roles: Sequence[str]) -> bool:
        return bool(self.is_active) and self.role.value in allowed_roles

    @property
    def owns_imported_contacts(self) -> bool:
        """CS operators become the assignee of contacts they create by import."""
        return self.role == UserRole.CS
