"""add lock_counter to mfa_factors

Until this runs the lockout code treats the counter as unavailable
and grants full attempts.

Revision ID: c4e6a8b0d2f5
Revises: 8b2d4f6a1c37
Create Date: 2026-10-10 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "c4e6a8b0d2f5"
down_revision = "8b2d4f6a1c37"
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table("mfa_factors", schema=None) as batch_op:
        batch_op.add_column(sa.Column("lock_counter", sa.Integer(), nullable=False, server_default="0"))


def downgrade():
    with op.batch_alter_table("mfa_factors", schema=None) as batch_op:
        batch_op.drop_column("lock_counter")
