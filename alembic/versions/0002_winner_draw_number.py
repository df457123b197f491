"""number draws in the winner log

Revision ID: 0002_winner_draw_number
Revises: 0001_initial
Create Date: 2024-11-08 10:00:00

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0002_winner_draw_number"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    with op.batch_alter_table("sweepstake_winners") as batch_op:
        batch_op.add_column(
            sa.Column("draw_number", sa.Integer(), nullable=False, server_default="0")
        )

    # Number existing rows in draw order.
    op.execute(
        """
        UPDATE sweepstake_winners
        SET draw_number = (
            SELECT COUNT(*) FROM sweepstake_winners AS earlier
            WHERE earlier.drawn_at < sweepstake_winners.drawn_at
               OR (earlier.drawn_at = sweepstake_winners.drawn_at
                   AND earlier.id <= sweepstake_winners.id)
        )
        """
    )

    with op.batch_alter_table("sweepstake_winners") as batch_op:
        batch_op.alter_column(
            "draw_number",
            existing_type=sa.Integer(),
            existing_nullable=False,
            server_default=None,
        )


def downgrade() -> None:
    with op.batch_alter_table("sweepstake_winners") as batch_op:
        batch_op.drop_column("draw_number")
