"""Base model with common fields for all models."""

from datetime import UTC, datetime
from typing import ClassVar

from sqlalchemy import Boolean, DateTime, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class TimestampMixin:
    """Mixin for adding timestamp fields to models."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )


class ActiveMixin:
    """Mixin for the ``active`` flag carried by every inventory entity."""

    active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )


class BaseModel(Base, TimestampMixin, ActiveMixin):
    """Base model with integer primary key, timestamps and active flag."""

    __abstract__ = True

    # Columns matched by BaseRepository.search (ILIKE %term%)
    searchable_fields: ClassVar[tuple[str, ...]] = ()

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    def __repr__(self) -> str:
        """String representation of the model."""
        return f"<{self.__class__.__name__}(id={self.id})>"
