"""ORM model for application users (auth and RBAC)."""

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Integer, String, func

from bookstore.models.base import Base, utc_now


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    role: 'USER' or 'ADMIN'. is_active=False marks a deactivated account; tokens
    still outstanding for it are refused by the request gate.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(16), nullable=False, default=Role.USER.value)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=utc_now)
