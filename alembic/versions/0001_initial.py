"""initial schema: stores, vendors, positivations, award tiers, winner log

Revision ID: 0001_initial
Revises:
Create Date: 2024-11-01 09:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "vendors",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("cnpj", sa.String(length=14), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=False),
        sa.Column("city", sa.String(length=100), nullable=False),
        sa.Column("neighborhood", sa.String(length=100), nullable=False),
        sa.Column("state", sa.String(length=2), nullable=False),
        sa.Column("logo_url", sa.String(length=1024), nullable=False),
        sa.Column("website", sa.String(length=255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_vendors"),
        sa.UniqueConstraint("name", name="uq_vendors_name"),
    )

    op.create_table(
        "stores",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("cnpj", sa.String(length=14), nullable=False),
        sa.Column("participating", sa.Boolean(), nullable=False),
        sa.Column("is_checked_in", sa.Boolean(), nullable=False),
        sa.Column("state", sa.String(length=2), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("neighborhood", sa.String(length=100), nullable=True),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("owner_name", sa.String(length=100), nullable=True),
        sa.Column("responsible_name", sa.String(length=100), nullable=True),
        sa.Column("email", sa.String(length=100), nullable=True),
        sa.Column("is_matrix", sa.Boolean(), nullable=False),
        sa.Column("matrix_store_id", sa.String(length=64), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ["matrix_store_id"],
            ["stores.id"],
            name="fk_stores_matrix_store_id_stores",
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_stores"),
        sa.UniqueConstraint("code", name="uq_stores_code"),
    )
    op.create_index("ix_stores_state", "stores", ["state"], unique=False)
    op.create_index(
        "ix_stores_matrix_store_id", "stores", ["matrix_store_id"], unique=False
    )

    op.create_table(
        "positivation_details",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("store_id", sa.String(length=64), nullable=False),
        sa.Column("vendor_id", sa.String(length=64), nullable=False),
        sa.Column("vendor_name", sa.String(length=255), nullable=False),
        sa.Column("vendor_logo_url", sa.String(length=1024), nullable=False),
        sa.Column("salesperson_id", sa.String(length=64), nullable=True),
        sa.Column("salesperson_name", sa.String(length=100), nullable=True),
        sa.Column("positivated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["store_id"],
            ["stores.id"],
            name="fk_positivation_details_store_id_stores",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["vendor_id"],
            ["vendors.id"],
            name="fk_positivation_details_vendor_id_vendors",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_positivation_details"),
        sa.UniqueConstraint(
            "store_id", "vendor_id", name="uq_positivation_store_vendor"
        ),
    )
    op.create_index(
        "ix_positivation_details_store_id",
        "positivation_details",
        ["store_id"],
        unique=False,
    )
    op.create_index(
        "ix_positivation_details_vendor_id",
        "positivation_details",
        ["vendor_id"],
        unique=False,
    )

    op.create_table(
        "award_tiers",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("reward_name", sa.String(length=255), nullable=False),
        sa.Column("quantity_available", sa.Integer(), nullable=False),
        sa.Column("required_pr", sa.Integer(), nullable=False),
        sa.Column("required_sc", sa.Integer(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=False,
        ),
        sa.CheckConstraint(
            "quantity_available >= 0", name="ck_award_tiers_quantity_non_negative"
        ),
        sa.CheckConstraint(
            "required_pr >= 0", name="ck_award_tiers_required_pr_non_negative"
        ),
        sa.CheckConstraint(
            "required_sc IS NULL OR required_sc >= 0",
            name="ck_award_tiers_required_sc_non_negative",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_award_tiers"),
    )

    op.create_table(
        "sweepstake_winners",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("tier_id", sa.String(length=64), nullable=False),
        sa.Column("tier_name", sa.String(length=100), nullable=False),
        sa.Column("prize_name", sa.String(length=255), nullable=False),
        sa.Column("store_id", sa.String(length=64), nullable=False),
        sa.Column("store_name", sa.String(length=512), nullable=False),
        sa.Column("drawn_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["tier_id"],
            ["award_tiers.id"],
            name="fk_sweepstake_winners_tier_id_award_tiers",
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["store_id"],
            ["stores.id"],
            name="fk_sweepstake_winners_store_id_stores",
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_sweepstake_winners"),
        sa.UniqueConstraint("store_id", name="uq_sweepstake_winner_store"),
    )
    op.create_index(
        "ix_sweepstake_winners_tier_id",
        "sweepstake_winners",
        ["tier_id"],
        unique=False,
    )
    op.create_index(
        "ix_sweepstake_winners_drawn_at",
        "sweepstake_winners",
        ["drawn_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_sweepstake_winners_drawn_at", table_name="sweepstake_winners")
    op.drop_index("ix_sweepstake_winners_tier_id", table_name="sweepstake_winners")
    op.drop_table("sweepstake_winners")
    op.drop_table("award_tiers")
    op.drop_index(
        "ix_positivation_details_vendor_id", table_name="positivation_details"
    )
    op.drop_index(
        "ix_positivation_details_store_id", table_name="positivation_details"
    )
    op.drop_table("positivation_details")
    op.drop_index("ix_stores_matrix_store_id", table_name="stores")
    op.drop_index("ix_stores_state", table_name="stores")
    op.drop_table("stores")
    op.drop_table("vendors")
