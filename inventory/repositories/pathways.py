"""Pathway repository."""

from inventory.models.pathway import Pathway
from inventory.repositories.base import BaseRepository


class PathwayRepository(BaseRepository[Pathway]):
    """Pathways are created once per simple route and deleted with it."""

    def __init__(self) -> None:
        super().__init__(Pathway)
