"""Pathway model: the physical link behind a simple route."""

from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, Boolean, Float, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory.models.base import BaseModel

if TYPE_CHECKING:
    from inventory.models.route import Route


class Pathway(BaseModel):
    """Physical characteristics of a point-to-point link.

    Owned one-to-one by the simple route created alongside it.
    """

    __tablename__ = "pathways"

    searchable_fields = ("name",)

    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    distance: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment="Distance in kilometres",
    )
    typical_time: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Typical travel time in minutes",
    )
    toll_road: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    meta: Mapped[dict[str, Any]] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        default=dict,
        nullable=False,
    )

    route: Mapped["Route | None"] = relationship(back_populates="pathway")

    def __repr__(self) -> str:
        """String representation of the pathway."""
        return f"<Pathway(id={self.id}, name={self.name}, distance={self.distance})>"
