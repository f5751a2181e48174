"""Data access layer.

Repositories never commit; callers pass the session (or transaction handle)
explicitly to every method.
"""

from inventory.repositories.base import (
    BaseRepository,
    InvalidQueryFieldError,
    Page,
    RecordNotFoundError,
)
from inventory.repositories.locations import CityRepository, StateRepository, TerminalRepository
from inventory.repositories.pathways import PathwayRepository
from inventory.repositories.routes import RouteRepository, RouteSegmentRepository

__all__ = [
    "BaseRepository",
    "Page",
    "RecordNotFoundError",
    "InvalidQueryFieldError",
    "StateRepository",
    "CityRepository",
    "TerminalRepository",
    "PathwayRepository",
    "RouteRepository",
    "RouteSegmentRepository",
]
