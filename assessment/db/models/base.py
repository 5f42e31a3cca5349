"""
Declarative base and shared column types.

UUID and JSON columns use the generic SQLAlchemy types so the same models run
on PostgreSQL (JSONB) in production and on SQLite in the test suite.
"""

from __future__ import annotations

from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import JSON, Enum as SAEnum, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, mapped_column

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Base class for all ORM models."""


def uuid_pk():
    """Client-generated UUID primary key column."""
    return mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)


def enum_column(enum_cls: type[Enum], **kwargs):
    """Store a str Enum by value in a plain VARCHAR column."""
    return mapped_column(
        SAEnum(
            enum_cls,
            native_enum=False,
            length=32,
            values_callable=lambda members: [member.value for member in members],
        ),
        **kwargs,
    )


__all__ = ["Base", "JSONType", "UUID", "enum_column", "uuid_pk"]
