"""create users, assets and orders

Revision ID: 5b1e0c7a2d4f
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "5b1e0c7a2d4f"
down_revision = None
branch_labels = None
depends_on = None

QUANTITY = sa.Numeric(precision=19, scale=4)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False),
        sa.Column("customer_id", sa.String(length=32), nullable=True),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_customer_id", "users", ["customer_id"], unique=True)

    op.create_table(
        "assets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.String(length=32), nullable=False),
        sa.Column("asset_name", sa.String(length=16), nullable=False),
        sa.Column("size", QUANTITY, nullable=False),
        sa.Column("usable_size", QUANTITY, nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.UniqueConstraint("customer_id", "asset_name", name="uq_assets_customer_asset"),
    )
    op.create_index("ix_assets_customer_id", "assets", ["customer_id"])

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.String(length=32), nullable=False),
        sa.Column("asset_name", sa.String(length=16), nullable=False),
        sa.Column("side", sa.String(length=8), nullable=False),
        sa.Column("size", QUANTITY, nullable=False),
        sa.Column("price", QUANTITY, nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("create_date", sa.DateTime(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
    )
    op.create_index("ix_orders_customer_id", "orders", ["customer_id"])
    op.create_index("ix_orders_asset_name", "orders", ["asset_name"])
    op.create_index("ix_orders_status", "orders", ["status"])
    op.create_index("ix_orders_create_date", "orders", ["create_date"])


def downgrade() -> None:
    op.drop_table("orders")
    op.drop_table("assets")
    op.drop_table("users")
