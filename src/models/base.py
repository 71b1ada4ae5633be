"""
SQLAlchemy Base Model
Source: https://docs.sqlalchemy.org/en/20/orm/declarative_styles.html
Verified: 2026-10-19
"""

from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, Enum, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def string_enum(enum_cls: type[PyEnum], length: int = 32) -> Enum:
    """
    Store a str-Enum as its value in a VARCHAR column.

    Evidence: Non-native enums keep migrations free of CREATE TYPE
    Source: https://docs.sqlalchemy.org/en/20/core/type_basics.html#sqlalchemy.types.Enum
    Verified: 2026-10-19
    """
    return Enum(
        enum_cls,
        native_enum=False,
        length=length,
        validate_strings=True,
        values_callable=lambda members: [m.value for m in members],
    )


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Evidence: Declarative base for type-safe ORM
    Source: https://docs.sqlalchemy.org/en/20/orm/mapping_styles.html#orm-declarative-mapping
    Verified: 2026-10-19
    """

    type_annotation_map = {
        dict[str, Any]: JSONType,
    }


class TimeStampedModel:
    """
    Mixin for models with created_at and updated_at timestamps.

    Timestamps are assigned in Python so that rows written in the same
    transaction keep microsecond ordering on every backend.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )


class UUIDModel:
    """
    Mixin for models with UUID primary key.

    Evidence: UUIDs prevent enumeration attacks and simplify distributed systems
    Source: https://docs.sqlalchemy.org/en/20/core/type_basics.html#sqlalchemy.types.Uuid
    Verified: 2026-10-19
    """

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
