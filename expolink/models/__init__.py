"""
SQLAlchemy ORM models.

All models imported here to ensure they are registered with Base.metadata.
Import order matters: base models before dependent models.
"""

from expolink.models.base import Base, TimestampMixin, UUIDMixin
from expolink.models.role import Role, RoleSlug, RoleUser
from expolink.models.company import Company
from expolink.models.user import User
from expolink.models.appointment import Appointment, AppointmentStatus
from expolink.models.connection import Connection, ConnectionStatus
from expolink.models.message import Message
from expolink.models.app_notification import AppNotification, NotificationType

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "Role",
    "RoleSlug",
    "RoleUser",
    "Company",
    "User",
    "Appointment",
    "AppointmentStatus",
    "Connection",
    "ConnectionStatus",
    "Message",
    "AppNotification",
    "NotificationType",
]
