"""Route models: simple and compound routes plus their ordered segments."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory.models.base import BaseModel
from inventory.models.location import City, Terminal
from inventory.models.pathway import Pathway


class Route(BaseModel):
    """A logical route between two cities.

    A simple route is backed by exactly one pathway. A compound route has no
    pathway; it is assembled from two or more simple routes through
    ``RouteSegment`` rows and carries the aggregates of its children.
    """

    __tablename__ = "routes"

    searchable_fields = ("name", "description")

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    origin_city_id: Mapped[int] = mapped_column(ForeignKey("cities.id"), nullable=False)
    destination_city_id: Mapped[int] = mapped_column(ForeignKey("cities.id"), nullable=False)
    origin_terminal_id: Mapped[int] = mapped_column(ForeignKey("terminals.id"), nullable=False)
    destination_terminal_id: Mapped[int] = mapped_column(ForeignKey("terminals.id"), nullable=False)
    pathway_id: Mapped[int | None] = mapped_column(
        ForeignKey("pathways.id"),
        nullable=True,
        unique=True,
    )
    distance: Mapped[float] = mapped_column(Float, nullable=False)
    base_time: Mapped[int] = mapped_column(Integer, nullable=False, comment="Base time in minutes")
    is_compound: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    connection_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_travel_time: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Total travel time in minutes",
    )
    total_distance: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        comment="Total distance in kilometres",
    )

    # Relationships
    origin_city: Mapped[City] = relationship(foreign_keys=[origin_city_id])
    destination_city: Mapped[City] = relationship(foreign_keys=[destination_city_id])
    origin_terminal: Mapped[Terminal] = relationship(foreign_keys=[origin_terminal_id])
    destination_terminal: Mapped[Terminal] = relationship(foreign_keys=[destination_terminal_id])
    pathway: Mapped[Pathway | None] = relationship(back_populates="route")
    segments: Mapped[list["RouteSegment"]] = relationship(
        back_populates="parent_route",
        foreign_keys="RouteSegment.parent_route_id",
        order_by="RouteSegment.sequence",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_routes_name", "name"),
        Index("ix_routes_origin_destination_city", "origin_city_id", "destination_city_id"),
        Index("ix_routes_origin_destination_terminal", "origin_terminal_id", "destination_terminal_id"),
        CheckConstraint("connection_count >= 0", name="ck_routes_connection_count_non_negative"),
    )

    def __repr__(self) -> str:
        """String representation of the route."""
        kind = "compound" if self.is_compound else "simple"
        return f"<Route(id={self.id}, name={self.name}, {kind})>"


class RouteSegment(BaseModel):
    """Position of a simple route inside a compound route."""

    __tablename__ = "route_segments"

    parent_route_id: Mapped[int] = mapped_column(
        ForeignKey("routes.id", ondelete="CASCADE"),
        nullable=False,
    )
    # No cascade: a simple route cannot be deleted while a chain uses it
    segment_route_id: Mapped[int] = mapped_column(
        ForeignKey("routes.id"),
        nullable=False,
        index=True,
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    parent_route: Mapped[Route] = relationship(
        back_populates="segments",
        foreign_keys=[parent_route_id],
    )
    segment_route: Mapped[Route] = relationship(foreign_keys=[segment_route_id])

    __table_args__ = (
        UniqueConstraint("parent_route_id", "sequence", name="uq_route_segments_parent_sequence"),
        UniqueConstraint("parent_route_id", "segment_route_id", name="uq_route_segments_parent_segment"),
        CheckConstraint("sequence >= 1", name="ck_route_segments_sequence_positive"),
    )

    def __repr__(self) -> str:
        """String representation of the route segment."""
        return f"<RouteSegment(id={self.id}, parent={self.parent_route_id}, seq={self.sequence})>"
