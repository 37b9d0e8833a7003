"""Initial database schema.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

Creates all initial tables for the Yelloride platform:
- Users (customers, drivers, admins)
- Taxis
- Fare catalog (fare routes with optional corridor geography)
- Bookings and their vehicle line items
"""

from typing import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all database tables."""

    # ==================== USERS ====================
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False, index=True),
        sa.Column("phone", sa.String(20)),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, index=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("last_login_at", sa.DateTime(timezone=True)),
    )

    # ==================== TAXIS ====================
    op.create_table(
        "taxis",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("taxi_number", sa.String(20), unique=True, nullable=False, index=True),
        sa.Column("driver_name", sa.String(50), nullable=False),
        sa.Column(
            "driver_id",
            sa.Uuid,
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            unique=True,
            index=True,
        ),
        sa.Column("license_number", sa.String(20), nullable=False),
        sa.Column("model", sa.String(50), nullable=False),
        sa.Column("color", sa.String(30), nullable=False),
        sa.Column("year", sa.Integer, nullable=False),
        sa.Column("capacity", sa.Integer, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="offline", index=True),
        sa.Column("current_lng", sa.Float, nullable=False),
        sa.Column("current_lat", sa.Float, nullable=False),
        sa.Column("last_update", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("rating", sa.Float, nullable=False, server_default="0"),
        sa.Column("total_trips", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("capacity BETWEEN 1 AND 8", name="ck_taxis_capacity"),
        sa.CheckConstraint("year >= 2000", name="ck_taxis_year"),
    )

    # ==================== FARE CATALOG ====================
    op.create_table(
        "fare_routes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("region", sa.String(20), nullable=False),
        sa.Column("departure_kor", sa.String(200), nullable=False),
        sa.Column("departure_eng", sa.String(200), nullable=False),
        sa.Column("departure_is_airport", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("arrival_kor", sa.String(200), nullable=False),
        sa.Column("arrival_eng", sa.String(200), nullable=False),
        sa.Column("arrival_is_airport", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("reservation_fee", sa.Integer, nullable=False),
        sa.Column("local_payment_fee", sa.Integer, nullable=False),
        sa.Column("priority", sa.Integer, nullable=False, server_default="99"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true(), index=True),
        sa.Column("departure_lat", sa.Float),
        sa.Column("departure_lng", sa.Float),
        sa.Column("arrival_lat", sa.Float),
        sa.Column("arrival_lng", sa.Float),
        sa.Column("waypoints", sa.JSON),
        sa.Column("estimated_minutes", sa.Integer),
        sa.Column("estimated_distance_km", sa.Float),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            "reservation_fee >= 0 AND local_payment_fee >= 0", name="ck_fare_routes_fees"
        ),
    )
    op.create_index("ix_fare_routes_region_priority", "fare_routes", ["region", "priority"])
    op.create_index("ix_fare_routes_kor_pair", "fare_routes", ["departure_kor", "arrival_kor"])
    op.create_index("ix_fare_routes_eng_pair", "fare_routes", ["departure_eng", "arrival_eng"])

    # ==================== BOOKINGS ====================
    op.create_table(
        "bookings",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column("booking_number", sa.String(20), unique=True, nullable=False, index=True),
        sa.Column("customer_id", sa.Uuid, sa.ForeignKey("users.id", ondelete="SET NULL"), index=True),
        sa.Column("taxi_id", sa.Uuid, sa.ForeignKey("taxis.id", ondelete="SET NULL"), index=True),
        sa.Column("route_id", sa.Integer, sa.ForeignKey("fare_routes.id", ondelete="SET NULL")),
        sa.Column("customer_name", sa.String(100), nullable=False),
        sa.Column("customer_phone", sa.String(30), nullable=False),
        sa.Column("customer_kakao_id", sa.String(100)),
        sa.Column("service_type", sa.String(20), nullable=False, server_default="airport"),
        sa.Column("region", sa.String(20), index=True),
        sa.Column("departure_location", sa.String(200), nullable=False),
        sa.Column("departure_datetime", sa.DateTime(timezone=True), nullable=False),
        sa.Column("arrival_location", sa.String(200), nullable=False),
        sa.Column("arrival_datetime", sa.DateTime(timezone=True)),
        sa.Column("total_passengers", sa.Integer, nullable=False, server_default="1"),
        sa.Column("total_luggage", sa.Integer, nullable=False, server_default="0"),
        sa.Column("flight_number", sa.String(20)),
        sa.Column("flight_terminal", sa.String(20)),
        sa.Column("reservation_fee", sa.Integer, nullable=False),
        sa.Column("service_fee", sa.Integer, nullable=False),
        sa.Column("vehicle_upgrade_fee", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Integer, nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("fare_source", sa.String(10), nullable=False, server_default="catalog"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending", index=True),
        sa.Column("cancel_reason", sa.Text),
        sa.Column("rating", sa.Integer),
        sa.Column("review", sa.Text),
        sa.Column("reviewed_at", sa.DateTime(timezone=True)),
        sa.Column("payment_method", sa.String(10), nullable=False, server_default="card"),
        sa.Column("is_paid", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("special_requests", sa.Text),
        sa.Column("confirmed_at", sa.DateTime(timezone=True)),
        sa.Column("cancelled_at", sa.DateTime(timezone=True)),
        sa.Column("actual_pickup_time", sa.DateTime(timezone=True)),
        sa.Column("actual_dropoff_time", sa.DateTime(timezone=True)),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'in-progress', 'completed', 'cancelled')",
            name="ck_bookings_status",
        ),
        sa.CheckConstraint("rating IS NULL OR rating BETWEEN 1 AND 5", name="ck_bookings_rating"),
        sa.CheckConstraint(
            "reservation_fee >= 0 AND service_fee >= 0 AND vehicle_upgrade_fee >= 0 "
            "AND total_amount >= 0",
            name="ck_bookings_pricing",
        ),
    )

    op.create_table(
        "booking_vehicles",
        sa.Column("id", sa.Uuid, primary_key=True),
        sa.Column(
            "booking_id",
            sa.Uuid,
            sa.ForeignKey("bookings.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
        sa.Column("vehicle_type", sa.String(20), nullable=False),
        sa.Column("passengers", sa.Integer, nullable=False, server_default="1"),
        sa.Column("luggage", sa.Integer, nullable=False, server_default="0"),
    )


def downgrade() -> None:
    """Drop all database tables in reverse order."""
    op.drop_table("booking_vehicles")
    op.drop_table("bookings")
    op.drop_index("ix_fare_routes_eng_pair", table_name="fare_routes")
    op.drop_index("ix_fare_routes_kor_pair", table_name="fare_routes")
    op.drop_index("ix_fare_routes_region_priority", table_name="fare_routes")
    op.drop_table("fare_routes")
    op.drop_table("taxis")
    op.drop_table("users")
