"""create_route_composition_tables

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _common_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "states",
        *_common_columns(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("code", sa.String(length=8), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )

    op.create_table(
        "cities",
        *_common_columns(),
        sa.Column("state_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=255), nullable=False),
        sa.ForeignKeyConstraint(["state_id"], ["states.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )
    op.create_index(op.f("ix_cities_state_id"), "cities", ["state_id"], unique=False)

    op.create_table(
        "terminals",
        *_common_columns(),
        sa.Column("city_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.ForeignKeyConstraint(["city_id"], ["cities.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code"),
    )
    op.create_index(op.f("ix_terminals_city_id"), "terminals", ["city_id"], unique=False)

    op.create_table(
        "pathways",
        *_common_columns(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("distance", sa.Float(), nullable=False, comment="Distance in kilometres"),
        sa.Column("typical_time", sa.Integer(), nullable=False, comment="Typical travel time in minutes"),
        sa.Column("toll_road", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "meta",
            sa.JSON().with_variant(postgresql.JSONB(), "postgresql"),
            nullable=False,
            server_default=sa.text("'{}'"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_pathways_name"), "pathways", ["name"], unique=False)

    op.create_table(
        "routes",
        *_common_columns(),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("origin_city_id", sa.Integer(), nullable=False),
        sa.Column("destination_city_id", sa.Integer(), nullable=False),
        sa.Column("origin_terminal_id", sa.Integer(), nullable=False),
        sa.Column("destination_terminal_id", sa.Integer(), nullable=False),
        sa.Column("pathway_id", sa.Integer(), nullable=True),
        sa.Column("distance", sa.Float(), nullable=False),
        sa.Column("base_time", sa.Integer(), nullable=False, comment="Base time in minutes"),
        sa.Column("is_compound", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("connection_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_travel_time", sa.Integer(), nullable=False, comment="Total travel time in minutes"),
        sa.Column("total_distance", sa.Float(), nullable=False, comment="Total distance in kilometres"),
        sa.CheckConstraint("connection_count >= 0", name="ck_routes_connection_count_non_negative"),
        sa.ForeignKeyConstraint(["origin_city_id"], ["cities.id"]),
        sa.ForeignKeyConstraint(["destination_city_id"], ["cities.id"]),
        sa.ForeignKeyConstraint(["origin_terminal_id"], ["terminals.id"]),
        sa.ForeignKeyConstraint(["destination_terminal_id"], ["terminals.id"]),
        sa.ForeignKeyConstraint(["pathway_id"], ["pathways.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("pathway_id"),
    )
    op.create_index("ix_routes_name", "routes", ["name"], unique=False)
    op.create_index(
        "ix_routes_origin_destination_city",
        "routes",
        ["origin_city_id", "destination_city_id"],
        unique=False,
    )
    op.create_index(
        "ix_routes_origin_destination_terminal",
        "routes",
        ["origin_terminal_id", "destination_terminal_id"],
        unique=False,
    )

    op.create_table(
        "route_segments",
        *_common_columns(),
        sa.Column("parent_route_id", sa.Integer(), nullable=False),
        sa.Column("segment_route_id", sa.Integer(), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.CheckConstraint("sequence >= 1", name="ck_route_segments_sequence_positive"),
        sa.ForeignKeyConstraint(["parent_route_id"], ["routes.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["segment_route_id"], ["routes.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("parent_route_id", "sequence", name="uq_route_segments_parent_sequence"),
        sa.UniqueConstraint("parent_route_id", "segment_route_id", name="uq_route_segments_parent_segment"),
    )
    op.create_index(
        op.f("ix_route_segments_segment_route_id"),
        "route_segments",
        ["segment_route_id"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_route_segments_segment_route_id"), table_name="route_segments")
    op.drop_table("route_segments")
    op.drop_index("ix_routes_origin_destination_terminal", table_name="routes")
    op.drop_index("ix_routes_origin_destination_city", table_name="routes")
    op.drop_index("ix_routes_name", table_name="routes")
    op.drop_table("routes")
    op.drop_index(op.f("ix_pathways_name"), table_name="pathways")
    op.drop_table("pathways")
    op.drop_index(op.f("ix_terminals_city_id"), table_name="terminals")
    op.drop_table("terminals")
    op.drop_index(op.f("ix_cities_state_id"), table_name="cities")
    op.drop_table("cities")
    op.drop_table("states")
