"""create booking import tables

Revision ID: 20261016_0001
Revises:
Create Date: 2026-10-16 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261016_0001"
down_revision = None
branch_labels = None
depends_on = None

_NOW = sa.text("CURRENT_TIMESTAMP")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
    ]


def upgrade() -> None:
    platforms = op.create_table(
        "platforms",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("commission_rate", sa.Float(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code", name="uq_platforms_code"),
    )

    op.create_table(
        "properties",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column("monthly_rent", sa.Integer(), nullable=False),
        sa.Column("monthly_fixed_cost", sa.Integer(), nullable=False),
        sa.Column("room_count", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code", name="uq_properties_code"),
    )

    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("property_id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["property_id"], ["properties.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("property_id", "code", name="uq_rooms_property_id_code"),
    )
    op.create_index("ix_rooms_property_id", "rooms", ["property_id"], unique=False)

    op.create_table(
        "platform_mappings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("property_id", sa.Integer(), nullable=False),
        sa.Column("room_id", sa.Integer(), nullable=True),
        sa.Column("platform_id", sa.Integer(), nullable=False),
        sa.Column("platform_property_name", sa.String(length=500), nullable=False),
        sa.Column("sub_space_prefix", sa.String(length=120), nullable=True),
        sa.Column("platform_property_id", sa.String(length=120), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["platform_id"], ["platforms.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["property_id"], ["properties.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["room_id"], ["rooms.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_platform_mappings_platform_id", "platform_mappings", ["platform_id"], unique=False)
    op.create_index(
        "ix_platform_mappings_platform_name",
        "platform_mappings",
        ["platform_id", "platform_property_name"],
        unique=False,
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("property_id", sa.Integer(), nullable=False),
        sa.Column("room_id", sa.Integer(), nullable=True),
        sa.Column("platform_id", sa.Integer(), nullable=False),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("usage_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=True),
        sa.Column("end_time", sa.String(length=5), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=True),
        sa.Column("gross_amount", sa.Integer(), nullable=False),
        sa.Column("net_amount", sa.Integer(), nullable=True),
        sa.Column("commission", sa.Integer(), nullable=True),
        sa.Column("platform_booking_id", sa.String(length=120), nullable=True),
        sa.Column("guest_name", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("usage_purpose", sa.String(length=255), nullable=True),
        sa.Column("usage_detail", sa.Text(), nullable=True),
        sa.Column("guest_count", sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["platform_id"], ["platforms.id"]),
        sa.ForeignKeyConstraint(["property_id"], ["properties.id"]),
        sa.ForeignKeyConstraint(["room_id"], ["rooms.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("platform_booking_id", name="uq_bookings_platform_booking_id"),
    )
    op.create_index("ix_bookings_platform_id", "bookings", ["platform_id"], unique=False)
    op.create_index("ix_bookings_usage_date", "bookings", ["usage_date"], unique=False)
    op.create_index(
        "ix_bookings_property_id_usage_date",
        "bookings",
        ["property_id", "usage_date"],
        unique=False,
    )

    op.create_table(
        "import_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("platform_id", sa.Integer(), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("file_hash", sa.String(length=64), nullable=False),
        sa.Column("imported_at", sa.DateTime(timezone=True), server_default=_NOW, nullable=False),
        sa.Column("record_count", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["platform_id"], ["platforms.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_import_logs_file_hash", "import_logs", ["file_hash"], unique=False)
    op.create_index("ix_import_logs_imported_at", "import_logs", ["imported_at"], unique=False)

    op.bulk_insert(
        platforms,
        [
            {"code": "generic", "name": "汎用CSV", "commission_rate": 0.0, "is_active": True},
            {"code": "instabase", "name": "インスタベース", "commission_rate": 0.35, "is_active": True},
            {"code": "spacemarket", "name": "スペースマーケット", "commission_rate": 0.3, "is_active": True},
            {"code": "spacee", "name": "スペイシー", "commission_rate": 0.3, "is_active": True},
        ],
    )


def downgrade() -> None:
    op.drop_index("ix_import_logs_imported_at", table_name="import_logs")
    op.drop_index("ix_import_logs_file_hash", table_name="import_logs")
    op.drop_table("import_logs")
    op.drop_index("ix_bookings_property_id_usage_date", table_name="bookings")
    op.drop_index("ix_bookings_usage_date", table_name="bookings")
    op.drop_index("ix_bookings_platform_id", table_name="bookings")
    op.drop_table("bookings")
    op.drop_index("ix_platform_mappings_platform_name", table_name="platform_mappings")
    op.drop_index("ix_platform_mappings_platform_id", table_name="platform_mappings")
    op.drop_table("platform_mappings")
    op.drop_index("ix_rooms_property_id", table_name="rooms")
    op.drop_table("rooms")
    op.drop_table("properties")
    op.drop_table("platforms")
