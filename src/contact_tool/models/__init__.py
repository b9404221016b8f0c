"""Database models"""
from src.contact_tool.models.base import Base
from src.contact_tool.models.user import User
from src.contact_tool.models.contact import Contact
from src.contact_tool.models.audit_log import AuditLog

__all__ = ["Base", "User", "Contact", "AuditLog"]
