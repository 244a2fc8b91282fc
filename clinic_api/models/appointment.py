from __future__ import annotations

import datetime as dt
import enum
from decimal import Decimal

from sqlalchemy import Boolean, Date, ForeignKey, Integer, Numeric, String, func, text
from sqlalchemy.orm import Mapped, mapped_column

from clinic_api.models.base import Base


class AppointmentState(str, enum.Enum):
    """Known appointment states; the column itself accepts any label."""

    OPEN = "OPEN"
    SCHEDULED = "SCHEDULED"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"


class Assistance(str, enum.Enum):
    """Attendance outcome recorded once an appointment is closed."""

    ATTENDED = "ATTENDED"
    MISSED = "MISSED"


class Appointment(Base):
    """Appointment of a patient for a service with a therapist."""

    __tablename__ = "appointment"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    service_id: Mapped[int] = mapped_column(
        ForeignKey("service.id"), index=True, nullable=False
    )
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    state: Mapped[str] = mapped_column(String(32), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    hour: Mapped[int] = mapped_column(Integer, nullable=False)
    minute: Mapped[int] = mapped_column(
        Integer, default=0, server_default=text("0"), nullable=False
    )
    patient_id: Mapped[int] = mapped_column(
        ForeignKey("user.id"), index=True, nullable=False
    )
    therapist_id: Mapped[int] = mapped_column(
        ForeignKey("user.id"), index=True, nullable=False
    )
    headquarter_id: Mapped[int] = mapped_column(
        ForeignKey("headquarter.id"), nullable=False
    )
    payment_method: Mapped[str | None] = mapped_column(String(32), nullable=True)
    hidden: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    assistance: Mapped[str | None] = mapped_column(String(32), nullable=True)
    from_package: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    order_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    invoice_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    creation_date: Mapped[dt.date] = mapped_column(
        Date, server_default=func.current_date(), nullable=False
    )
