"""
Route composition helpers.

Pure functions implementing the chain rules for compound routes: duplicate
and existence checks, ordering, adjacent-pair connectivity and aggregate
computation. They operate on already-fetched ``Route`` rows and never touch
the database, so ``RouteCompositionService`` and the audit CLI share them and
they can be tested without a session.

The error classes raised by the composition engine live here too. They are
``HTTPException`` subclasses so the service can raise them directly and
FastAPI renders them; each also carries its inputs as attributes.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from fastapi import HTTPException, status

if TYPE_CHECKING:
    from inventory.models.route import Route, RouteSegment

# Aggregates compared with a tolerance (summed floats)
FLOAT_FIELDS = frozenset({"distance", "total_distance"})


# Errors


class RouteValidationError(HTTPException):
    """Base class for caller-fixable route composition errors.

    Always raised before any write begins.
    """

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> None:
        self.message = message
        super().__init__(status_code=status_code, detail=message)


class SameOriginDestinationError(RouteValidationError):
    """Raised when a simple route starts and ends in the same city."""

    def __init__(self) -> None:
        super().__init__("Origin and destination cities cannot be the same")


class RepeatedSegmentsError(RouteValidationError):
    """Raised when a route id appears more than once in a chain."""

    def __init__(self, route_ids: list[int]) -> None:
        self.route_ids = route_ids
        super().__init__("Route segments cannot be repeated")


class RoutesNotFoundError(RouteValidationError):
    """Raised when chain ids are missing or refer to compound routes.

    Both causes are reported together; a compound route cannot be nested
    inside another one.
    """

    def __init__(self, route_ids: list[int]) -> None:
        self.route_ids = route_ids
        ids = ", ".join(str(route_id) for route_id in route_ids)
        super().__init__(f"Routes with ids [{ids}] not found or are compound routes")


class InvalidConnectionError(RouteValidationError):
    """Raised for the first adjacent pair whose cities do not meet."""

    def __init__(self, from_route_id: int, to_route_id: int) -> None:
        self.from_route_id = from_route_id
        self.to_route_id = to_route_id
        super().__init__(
            f"Invalid route connection between route id {from_route_id} and route id {to_route_id}: "
            "origin and destination cities mismatch"
        )


class CompoundRouteMinimumError(RouteValidationError):
    """Raised when fewer than two routes remain for a compound route."""

    def __init__(self) -> None:
        super().__init__("A compound route requires at least two routes")


class CompoundRouteNotFoundError(RouteValidationError):
    """Raised when an id does not resolve to an existing compound route."""

    def __init__(self, route_id: int) -> None:
        self.route_id = route_id
        super().__init__(
            f"Compound route with id {route_id} not found",
            status_code=status.HTTP_404_NOT_FOUND,
        )


class RouteIntegrityError(HTTPException):
    """Base class for write-time failures.

    Raised only after the transaction has been rolled back. The message is
    generic; the storage error is chained as ``__cause__`` and logged, never
    returned to the caller.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)


class SegmentCreationFailedError(RouteIntegrityError):
    """Raised when the segments of a new compound route cannot be written."""

    def __init__(self) -> None:
        super().__init__("Failed to create all route segments")


class SegmentReplacementFailedError(RouteIntegrityError):
    """Raised when a compound route's segment set cannot be replaced."""

    def __init__(self) -> None:
        super().__init__("Failed to replace route segments")


class RouteInUseError(HTTPException):
    """Raised when deleting a simple route that compound routes still use."""

    def __init__(self, route_id: int, parent_route_ids: list[int]) -> None:
        self.route_id = route_id
        self.parent_route_ids = parent_route_ids
        parents = ", ".join(str(parent_id) for parent_id in parent_route_ids)
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Route with id {route_id} is a segment of compound routes [{parents}]",
        )


# Chain rules


@dataclass(frozen=True)
class RouteTotals:
    """Endpoints and aggregates a compound route derives from its children."""

    origin_city_id: int
    destination_city_id: int
    origin_terminal_id: int
    destination_terminal_id: int
    connection_count: int
    total_distance: float
    total_travel_time: int
    base_time: int

    def as_route_values(self) -> dict[str, Any]:
        """Column values for creating or updating the compound route row."""
        return {
            "origin_city_id": self.origin_city_id,
            "destination_city_id": self.destination_city_id,
            "origin_terminal_id": self.origin_terminal_id,
            "destination_terminal_id": self.destination_terminal_id,
            "connection_count": self.connection_count,
            "distance": self.total_distance,
            "total_distance": self.total_distance,
            "total_travel_time": self.total_travel_time,
            "base_time": self.base_time,
        }


@dataclass(frozen=True)
class RouteAuditIssue:
    """A stored value on a compound route that disagrees with its segments."""

    route_id: int
    field: str
    expected: Any
    actual: Any


def find_repeated_route_ids(route_ids: Sequence[int]) -> list[int]:
    """
    Find ids that occur more than once, anywhere in the list.

    Args:
        route_ids: Caller-supplied chain of route ids

    Returns:
        Each repeated id once, in order of first appearance (empty if none)

    Examples:
        >>> find_repeated_route_ids([1, 2, 1])
        [1]
        >>> find_repeated_route_ids([3, 4])
        []
    """
    counts = Counter(route_ids)
    return [route_id for route_id in counts if counts[route_id] > 1]


def find_missing_route_ids(route_ids: Sequence[int], routes: Iterable[Route]) -> list[int]:
    """
    Find requested ids that the fetch did not return, in caller order.

    Args:
        route_ids: Caller-supplied chain of route ids
        routes: Rows returned by the simple-route fetch

    Returns:
        Ids with no matching row
    """
    found = {route.id for route in routes}
    return [route_id for route_id in route_ids if route_id not in found]


def order_routes(route_ids: Sequence[int], routes: Iterable[Route]) -> list[Route]:
    """
    Reorder fetched routes to the caller's chain order.

    The fetch returns rows in no particular order. Ids without a row are
    skipped.

    Args:
        route_ids: Caller-supplied chain of route ids
        routes: Rows returned by the simple-route fetch

    Returns:
        Routes in the order of ``route_ids``
    """
    by_id = {route.id: route for route in routes}
    return [by_id[route_id] for route_id in route_ids if route_id in by_id]


def find_broken_connection(routes: Sequence[Route]) -> tuple[int, int] | None:
    """
    Find the first adjacent pair whose cities do not meet.

    Only adjacent pairs are checked: the last route may end where the first
    one starts (round trips are valid chains).

    Args:
        routes: Routes in chain order

    Returns:
        ``(from_route_id, to_route_id)`` of the first violating pair, or None

    Examples:
        >>> from types import SimpleNamespace as Row
        >>> a = Row(id=1, origin_city_id=1, destination_city_id=2)
        >>> b = Row(id=2, origin_city_id=2, destination_city_id=3)
        >>> c = Row(id=3, origin_city_id=4, destination_city_id=1)
        >>> find_broken_connection([a, b, c])
        (2, 3)
        >>> find_broken_connection([a, b])
    """
    for current, following in zip(routes, routes[1:], strict=False):
        if current.destination_city_id != following.origin_city_id:
            return current.id, following.id
    return None


def calculate_route_totals(routes: Sequence[Route]) -> RouteTotals:
    """
    Derive a compound route's endpoints and aggregates from its children.

    Args:
        routes: Child routes in chain order

    Returns:
        RouteTotals with origin from the first route, destination from the
        last, sums of distance, total travel time and base time, and
        ``len(routes) - 1`` connections

    Raises:
        ValueError: If routes is empty
    """
    if not routes:
        msg = "Cannot calculate totals for an empty chain"
        raise ValueError(msg)

    first, last = routes[0], routes[-1]
    return RouteTotals(
        origin_city_id=first.origin_city_id,
        destination_city_id=last.destination_city_id,
        origin_terminal_id=first.origin_terminal_id,
        destination_terminal_id=last.destination_terminal_id,
        connection_count=len(routes) - 1,
        total_distance=sum(route.distance for route in routes),
        total_travel_time=sum(route.total_travel_time for route in routes),
        base_time=sum(route.base_time for route in routes),
    )


def find_route_drift(route: Route, segments: Sequence[RouteSegment]) -> list[RouteAuditIssue]:
    """
    Compare a compound route's stored values with what its segments imply.

    Args:
        route: Compound route row
        segments: Its segments with ``segment_route`` loaded, ordered by sequence

    Returns:
        One issue per disagreeing field; empty when the route is consistent
    """
    sequences = [segment.sequence for segment in segments]
    expected_sequences = list(range(1, len(segments) + 1))
    issues = []
    if sequences != expected_sequences:
        issues.append(RouteAuditIssue(route.id, "sequence", expected_sequences, sequences))

    if not segments:
        return issues

    expected = calculate_route_totals([segment.segment_route for segment in segments]).as_route_values()
    for field, expected_value in expected.items():
        actual_value = getattr(route, field)
        if field in FLOAT_FIELDS:
            matches = math.isclose(actual_value, expected_value, rel_tol=1e-9, abs_tol=1e-6)
        else:
            matches = actual_value == expected_value
        if not matches:
            issues.append(RouteAuditIssue(route.id, field, expected_value, actual_value))
    return issues
