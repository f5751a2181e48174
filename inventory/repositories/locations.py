"""State, city and terminal repositories."""

from inventory.models.location import City, State, Terminal
from inventory.repositories.base import BaseRepository


class StateRepository(BaseRepository[State]):
    def __init__(self) -> None:
        super().__init__(State)


class CityRepository(BaseRepository[City]):
    def __init__(self) -> None:
        super().__init__(City)


class TerminalRepository(BaseRepository[Terminal]):
    def __init__(self) -> None:
        super().__init__(Terminal)
