"""add mfa_factors and mfa_secrets tables

Revision ID: 8b2d4f6a1c37
Revises: 5e1f0a9c3b21
Create Date: 2026-10-03 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "8b2d4f6a1c37"
down_revision = "5e1f0a9c3b21"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "mfa_factors",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("factor", sa.String(length=100), nullable=False),
        sa.Column("label", sa.String(length=255), nullable=True),
        sa.Column("secret", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("modified_at", sa.DateTime(), nullable=False),
        sa.Column("last_verified_at", sa.DateTime(), nullable=True),
        sa.Column("created_from_ip", sa.String(length=64), nullable=True),
        sa.Column("revoked", sa.Boolean(), nullable=False),
        sa.Column("singleton_key", sa.String(length=191), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("singleton_key"),
    )
    with op.batch_alter_table("mfa_factors", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_mfa_factors_user_id"), ["user_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_mfa_factors_factor"), ["factor"], unique=False)

    op.create_table(
        "mfa_secrets",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("factor", sa.String(length=100), nullable=False),
        sa.Column("secret_hash", sa.String(length=128), nullable=False),
        sa.Column("session_id", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("revoked", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("mfa_secrets", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_mfa_secrets_user_id"), ["user_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_mfa_secrets_factor"), ["factor"], unique=False)


def downgrade():
    with op.batch_alter_table("mfa_secrets", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_mfa_secrets_factor"))
        batch_op.drop_index(batch_op.f("ix_mfa_secrets_user_id"))

    op.drop_table("mfa_secrets")
    with op.batch_alter_table("mfa_factors", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_mfa_factors_factor"))
        batch_op.drop_index(batch_op.f("ix_mfa_factors_user_id"))

    op.drop_table("mfa_factors")
