from __future__ import annotations

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from clinic_api.models.base import Base, CreationDateMixin


class Headquarter(Base, CreationDateMixin):
    """Physical clinic location where appointments take place."""

    __tablename__ = "headquarter"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
