"""Database models for the route inventory backend."""

# Import all models to register them with SQLAlchemy metadata
from inventory.models.base import Base, BaseModel
from inventory.models.location import City, State, Terminal
from inventory.models.pathway import Pathway
from inventory.models.route import Route, RouteSegment

__all__ = [
    # Base
    "Base",
    "BaseModel",
    # Location models
    "State",
    "City",
    "Terminal",
    # Routing models
    "Pathway",
    "Route",
    "RouteSegment",
]
