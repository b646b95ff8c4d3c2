"""Read-only employee directory table."""

from typing import Optional

from sqlalchemy import CHAR, String
from sqlalchemy.orm import Mapped, mapped_column

from leadengine.models.base import Base


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_address: Mapped[Optional[str]] = mapped_column(String(255))
    department: Mapped[Optional[str]] = mapped_column(String(64))
    active_flag: Mapped[str] = mapped_column(CHAR(1), nullable=False, default="Y")  # 'Y'/'N'
