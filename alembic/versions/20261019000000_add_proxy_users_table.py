"""Add proxy_users table for accounts, credentials and VM assignment.

Revision ID: 20261019000000
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "proxy_users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(length=255), nullable=False),
        sa.Column("password", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("salt", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("roles", sa.JSON(), nullable=False),
        sa.Column("vm_id", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("vm_ip", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("vm_ip_id", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("volume_id", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("device_type", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("approved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "created",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_proxy_users_username"),
        "proxy_users",
        ["username"],
        unique=True,
    )
    op.create_index(
        op.f("ix_proxy_users_email"),
        "proxy_users",
        ["email"],
        unique=True,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_proxy_users_email"), table_name="proxy_users")
    op.drop_index(op.f("ix_proxy_users_username"), table_name="proxy_users")
    op.drop_table("proxy_users")
