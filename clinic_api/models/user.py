from __future__ import annotations

import enum

from sqlalchemy import Boolean, Enum, String, text
from sqlalchemy.orm import Mapped, mapped_column

from clinic_api.models.base import Base, CreationDateMixin


class UserRole(str, enum.Enum):
    """Role marker distinguishing patients from staff."""

    PATIENT = "PATIENT"
    THERAPIST = "THERAPIST"
    ADMIN = "ADMIN"


class User(Base, CreationDateMixin):
    """Person known to the clinic; patients are users with the PATIENT role."""

    __tablename__ = "user"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    names: Mapped[str] = mapped_column("name", String(255), nullable=False)
    last_names: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    enabled: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=text("true"), nullable=False
    )
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role", native_enum=False, length=32),
        default=UserRole.PATIENT,
        nullable=False,
    )
    profile_picture: Mapped[str] = mapped_column(
        String(512), default="", server_default="", nullable=False
    )
