#!/usr/bin/env python3
"""CLI tool for route maintenance.

Usage:
    # Report compound routes whose stored totals disagree with their segments
    uv run python -m inventory.cli audit-routes

    # Same, and recalculate every drifted route
    uv run python -m inventory.cli audit-routes --fix

    # List routes (all, compound only, or simple only)
    uv run python -m inventory.cli list-routes --compound
"""

import argparse
import asyncio
import sys

from sqlalchemy.ext.asyncio import AsyncSession

from inventory.core.database import get_session_factory
from inventory.core.logging import configure_logging
from inventory.services.route_composition_service import RouteCompositionService


async def cmd_audit_routes(args: argparse.Namespace, session: AsyncSession) -> int:
    """
    Audit compound routes and optionally repair them.

    Args:
        args: Parsed command-line arguments
        session: Database session

    Returns:
        Exit code (0 when clean or fully repaired, 1 when issues remain)
    """
    service = RouteCompositionService(session)
    issues = await service.audit_compound_routes()

    if not issues:
        print("✅ All compound routes are consistent with their segments")
        return 0

    print(f"⚠️  Found {len(issues)} issue(s):\n")
    print(f"{'Route ID':<10} {'Field':<26} {'Expected':<24} Actual")
    print("-" * 80)
    for issue in issues:
        print(f"{issue.route_id:<10} {issue.field:<26} {issue.expected!s:<24} {issue.actual}")

    if not args.fix:
        print("\n💡 Re-run with --fix to recalculate the affected routes")
        return 1

    route_ids = sorted({issue.route_id for issue in issues})
    for route_id in route_ids:
        await service.recalculate_compound_route(route_id)
        print(f"🔧 Recalculated route {route_id}")

    remaining = await service.audit_compound_routes()
    if remaining:
        print(f"❌ {len(remaining)} issue(s) remain after recalculation", file=sys.stderr)
        return 1

    print(f"\n✅ Repaired {len(route_ids)} route(s)")
    return 0


async def cmd_list_routes(args: argparse.Namespace, session: AsyncSession) -> int:
    """
    Print routes with their endpoints and totals.

    Args:
        args: Parsed command-line arguments
        session: Database session

    Returns:
        Exit code (always 0)
    """
    filters = {}
    if args.compound:
        filters["is_compound"] = True
    elif args.simple:
        filters["is_compound"] = False

    service = RouteCompositionService(session)
    routes = await service.list_routes(filters=filters)

    if not routes:
        print("No routes found")
        return 0

    print(f"{'ID':<6} {'Kind':<9} {'Name':<32} {'Cities':<12} {'Distance':>10} {'Time':>7} Links")
    print("-" * 90)
    for route in routes:
        kind = "compound" if route.is_compound else "simple"
        cities = f"{route.origin_city_id}->{route.destination_city_id}"
        print(
            f"{route.id:<6} {kind:<9} {route.name[:32]:<32} {cities:<12} "
            f"{route.total_distance:>10.1f} {route.total_travel_time:>7} {route.connection_count}"
        )
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all sub-commands."""
    parser = argparse.ArgumentParser(
        description="Route maintenance CLI tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check every compound route against its segments
  uv run python -m inventory.cli audit-routes

  # Check and repair
  uv run python -m inventory.cli audit-routes --fix

  # List simple routes only
  uv run python -m inventory.cli list-routes --simple
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    audit_parser = subparsers.add_parser(
        "audit-routes",
        help="Report compound routes whose totals, endpoints or sequences have drifted",
        description="Compare every compound route with the segments it is made of.",
    )
    audit_parser.add_argument(
        "--fix",
        action="store_true",
        help="Recalculate each affected route from its segments",
    )

    list_parser = subparsers.add_parser(
        "list-routes",
        help="List routes with endpoints and totals",
        description="Display routes ordered by id.",
    )
    kind_group = list_parser.add_mutually_exclusive_group()
    kind_group.add_argument("--compound", action="store_true", help="Only compound routes")
    kind_group.add_argument("--simple", action="store_true", help="Only simple routes")

    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the CLI tool.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    command_handlers = {
        "audit-routes": cmd_audit_routes,
        "list-routes": cmd_list_routes,
    }

    if handler := command_handlers.get(args.command):
        configure_logging(log_level="WARNING")

        async def run_with_session() -> int:
            async with get_session_factory()() as session:
                try:
                    return await handler(args, session)
                except Exception as e:
                    print(f"❌ Unexpected error: {e}", file=sys.stderr)
                    return 1

        return asyncio.run(run_with_session())

    print(f"❌ Unknown command: {args.command}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
