"""Declarative base shared by the batch, task, employee and audit tables."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
