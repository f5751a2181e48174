"""Location models referenced by route origins and destinations."""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory.models.base import BaseModel


class State(BaseModel):
    """Federal state."""

    __tablename__ = "states"

    searchable_fields = ("name", "code")

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(8), nullable=False, unique=True)

    cities: Mapped[list["City"]] = relationship(back_populates="state")

    def __repr__(self) -> str:
        """String representation of the state."""
        return f"<State(id={self.id}, code={self.code})>"


class City(BaseModel):
    """City served by one or more terminals."""

    __tablename__ = "cities"

    searchable_fields = ("name", "slug")

    state_id: Mapped[int] = mapped_column(
        ForeignKey("states.id"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    state: Mapped[State] = relationship(back_populates="cities")
    terminals: Mapped[list["Terminal"]] = relationship(back_populates="city")

    def __repr__(self) -> str:
        """String representation of the city."""
        return f"<City(id={self.id}, slug={self.slug})>"


class Terminal(BaseModel):
    """Bus terminal located in a city."""

    __tablename__ = "terminals"

    searchable_fields = ("name", "code")

    city_id: Mapped[int] = mapped_column(
        ForeignKey("cities.id"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)

    city: Mapped[City] = relationship(back_populates="terminals")

    def __repr__(self) -> str:
        """String representation of the terminal."""
        return f"<Terminal(id={self.id}, code={self.code})>"
