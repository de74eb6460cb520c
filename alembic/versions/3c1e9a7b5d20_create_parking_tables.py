"""Create parking tables

Revision ID: 3c1e9a7b5d20
Revises:
Create Date: 2026-10-19 09:12:44.518203

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c1e9a7b5d20"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


reservation_status = sa.Enum(
    "preorder", "active", "finished", "cancelled", name="reservation_status"
)


def upgrade() -> None:
    """Upgrade schema."""
    # Create users table
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_id"), "users", ["id"], unique=False)
    op.create_index(op.f("ix_users_username"), "users", ["username"], unique=True)

    # Create parking_spots table
    op.create_table(
        "parking_spots",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("is_occupied", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_parking_spots_id"), "parking_spots", ["id"], unique=False)

    # Create parking_info table (reservations)
    op.create_table(
        "parking_info",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("spot_id", sa.Integer(), nullable=True),
        sa.Column("status", reservation_status, nullable=False),
        sa.Column("estimated_start_time", sa.DateTime(), nullable=True),
        sa.Column("actual_start_time", sa.DateTime(), nullable=True),
        sa.Column("actual_end_time", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["spot_id"], ["parking_spots.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_parking_info_id"), "parking_info", ["id"], unique=False)
    op.create_index(
        op.f("ix_parking_info_user_id"), "parking_info", ["user_id"], unique=False
    )
    op.create_index(
        op.f("ix_parking_info_status"), "parking_info", ["status"], unique=False
    )
    op.create_index(
        op.f("ix_parking_info_estimated_start_time"),
        "parking_info",
        ["estimated_start_time"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_parking_info_estimated_start_time"), table_name="parking_info")
    op.drop_index(op.f("ix_parking_info_status"), table_name="parking_info")
    op.drop_index(op.f("ix_parking_info_user_id"), table_name="parking_info")
    op.drop_index(op.f("ix_parking_info_id"), table_name="parking_info")
    op.drop_table("parking_info")
    op.drop_index(op.f("ix_parking_spots_id"), table_name="parking_spots")
    op.drop_table("parking_spots")
    op.drop_index(op.f("ix_users_username"), table_name="users")
    op.drop_index(op.f("ix_users_id"), table_name="users")
    op.drop_table("users")
    reservation_status.drop(op.get_bind(), checkfirst=True)
